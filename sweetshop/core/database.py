# ===================================
# sweetshop/core/database.py
# ===================================
import logging
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Créer le moteur SQLAlchemy, une seule fois par application
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Les sessions sont utilisées depuis le threadpool de FastAPI
        connect_args["check_same_thread"] = False

    engine = create_engine(
        database_url,
        pool_pre_ping=True,
        echo=echo,  # Log des requêtes SQL en mode debug
        connect_args=connect_args,
    )
    register_sqlite_functions(engine)
    return engine


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def register_sqlite_functions(engine: Engine) -> None:
    """
    Remplacer lower() de SQLite (ASCII seulement) par la version Unicode de Python,
    utilisée par l'index unique des noms et par les recherches
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Fabrique de sessions liée au moteur"""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Générateur de session de base de données pour l'injection de dépendance FastAPI
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine) -> None:
    """
    Crée les tables manquantes
    """
    # Import des modèles pour les enregistrer dans Base.metadata
    import sweetshop.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("✓ Tables créées")


def check_db_connection(engine: Engine) -> bool:
    """
    Vérifie la connexion à la base de données
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"❌ Erreur de connexion DB: {e}")
        return False
