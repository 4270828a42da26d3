# ===================================
# Fichier: sweetshop/core/scheduler.py
# ===================================
from typing import List
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.executors.pool import ThreadPoolExecutor
from sqlalchemy.orm import sessionmaker
import logging

from sweetshop.core.config import Settings

logger = logging.getLogger(__name__)


def init_scheduler(settings: Settings, session_factory: sessionmaker) -> BackgroundScheduler:
    """Initialiser APScheduler"""
    executors = {
        'default': ThreadPoolExecutor(2),
    }

    job_defaults = {
        'coalesce': True,
        'max_instances': 1
    }

    scheduler = BackgroundScheduler(
        executors=executors,
        job_defaults=job_defaults,
        timezone='UTC'
    )

    add_periodic_jobs(scheduler, settings, session_factory)

    scheduler.start()
    logger.info("✓ APScheduler démarré")
    return scheduler


def add_periodic_jobs(scheduler: BackgroundScheduler, settings: Settings,
                      session_factory: sessionmaker) -> None:
    """Ajouter les tâches périodiques"""
    # Rapport de stock faible
    scheduler.add_job(
        func=low_stock_report_job,
        trigger='interval',
        minutes=settings.low_stock_check_minutes,
        args=[session_factory, settings.low_stock_threshold],
        id='low_stock_report'
    )


def low_stock_report_job(session_factory: sessionmaker, threshold: int) -> List[str]:
    """Job de rapport des sweets en stock faible"""
    from sweetshop.services.sweet_service import SweetService

    try:
        with session_factory() as db:
            sweets = SweetService(db).get_low_stock(threshold)
    except Exception as e:
        logger.error(f"Erreur rapport stock faible: {e}")
        return []

    for sweet in sweets:
        logger.warning(f"Stock faible: {sweet.name} ({sweet.quantity} restant)")
    logger.info(f"Rapport stock: {len(sweets)} sweet(s) sous le seuil de {threshold}")
    return [sweet.name for sweet in sweets]


def shutdown_scheduler(scheduler: BackgroundScheduler) -> None:
    """Arrêter le scheduler"""
    if scheduler and scheduler.running:
        scheduler.shutdown()
        logger.info("✓ APScheduler arrêté")
