import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from formguard.settings import get_settings

logger = logging.getLogger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parent.parent


def alembic_config() -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", get_settings().database_url)
    return config


def run_migrations(revision: str = "head") -> None:
    logger.info("Applying database migrations revision=%s", revision)
    command.upgrade(alembic_config(), revision)
