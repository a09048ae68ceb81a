import logging

from sqlalchemy import inspect

from lms_manager.db.session import engine
from lms_manager.db.base import Base

# IMPORTANTE: esto "registra" los modelos antes de crear tablas
import lms_manager.models  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    """Create missing tables. Existing tables are left untouched."""
    bind = bind or engine
    existing = set(inspect(bind).get_table_names())
    Base.metadata.create_all(bind=bind)
    created = sorted(set(Base.metadata.tables) - existing)
    if created:
        logger.info("created tables: %s", ", ".join(created))
