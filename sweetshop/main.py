# ===================================
# sweetshop/main.py
# ===================================
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
import traceback

from sweetshop.core.config import Settings, get_settings
from sweetshop.core.database import (
    create_db_engine,
    create_session_factory,
    init_db,
    check_db_connection,
)
from sweetshop.core.exceptions import (
    SweetShopError,
    ValidationError,
    DuplicateAccountError,
    DuplicateNameError,
    InvalidCredentialsError,
    InvalidIdError,
    OutOfStockError,
    InsufficientStockError,
    UnauthenticatedError,
    ForbiddenError,
    NotFoundError,
)
from sweetshop.core.scheduler import init_scheduler, shutdown_scheduler

# Import des routes
from sweetshop.api.v1 import auth, sweets

logger = logging.getLogger(__name__)

# Correspondance erreurs métier -> codes HTTP
ERROR_STATUS_CODES = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    DuplicateAccountError: status.HTTP_400_BAD_REQUEST,
    DuplicateNameError: status.HTTP_400_BAD_REQUEST,
    InvalidCredentialsError: status.HTTP_400_BAD_REQUEST,
    InvalidIdError: status.HTTP_400_BAD_REQUEST,
    OutOfStockError: status.HTTP_400_BAD_REQUEST,
    InsufficientStockError: status.HTTP_400_BAD_REQUEST,
    UnauthenticatedError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


def status_code_for(exc: SweetShopError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def configure_logging(log_level: str) -> None:
    """Configuration des logs"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestionnaire de cycle de vie de l'application"""
    settings: Settings = app.state.settings

    # Démarrage
    logger.info("🚀 Démarrage de l'application Sweet Shop...")

    # Sans base de données, on refuse de démarrer
    if not check_db_connection(app.state.engine):
        logger.error("❌ Impossible de se connecter à la base de données")
        raise RuntimeError("Database connection failed")

    init_db(app.state.engine)

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = init_scheduler(settings, app.state.session_factory)

    logger.info("✅ Application démarrée avec succès")

    yield

    # Arrêt
    logger.info("⏹️ Arrêt de l'application...")
    if scheduler is not None:
        shutdown_scheduler(scheduler)
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Factory pour créer l'application FastAPI"""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # Connexion au store, unique pour tout le processus
    app.state.settings = settings
    app.state.engine = create_db_engine(settings.database_url, echo=settings.debug)
    app.state.session_factory = create_session_factory(app.state.engine)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes API
    app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["Auth"])
    app.include_router(sweets.router, prefix=f"{settings.api_prefix}/sweets", tags=["Sweets"])

    # Route de santé
    @app.get(f"{settings.api_prefix}/health")
    def health_check():
        """Vérification de la santé de l'API"""
        db_status = "ok" if check_db_connection(app.state.engine) else "error"

        return {
            "status": "OK",
            "message": "Server is running",
            "version": settings.app_version,
            "database": db_status,
        }

    # Gestion globale des erreurs
    @app.exception_handler(SweetShopError)
    async def domain_exception_handler(request: Request, exc: SweetShopError):
        status_code = status_code_for(exc)
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "code": exc.code,
                "message": exc.message,
                **exc.extra,
            },
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request data"
        if errors:
            field = ".".join(str(part) for part in errors[0].get("loc", ())[1:])
            message = f"{field}: {errors[0].get('msg')}" if field else errors[0].get("msg", message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "code": ValidationError.code,
                "message": message,
                "errors": jsonable_encoder(errors),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Erreur non gérée: {exc}", exc_info=True)
        content = {"success": False, "message": "Internal Server Error"}
        if settings.is_development:
            content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(status_code=500, content=content)

    return app


# Créer l'instance de l'application
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sweetshop.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().debug,
        log_level="info"
    )
