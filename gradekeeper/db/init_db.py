import logging

from gradekeeper.db.base_class import Base
from gradekeeper.db.session import engine

# import models so SQLAlchemy registers them
from gradekeeper.models import assignment, course, submission, user  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(bind=engine) -> None:
    Base.metadata.create_all(bind=bind)
    logger.info("database schema ready")
