import logging
from uuid import uuid4

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .settings import Settings
from ..auth.service import create_user, get_user_by_email
from ..models.Role import Role

logger = logging.getLogger(__name__)


def init_db(engine: Engine, settings: Settings) -> None:
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PIN:
        logger.info("No bootstrap administrator configured.")
        return

    with Session(engine) as session:
        user = get_user_by_email(session, settings.ADMIN_EMAIL)

        if not user:
            logger.info("Creating initial admin user: %s", settings.ADMIN_EMAIL)
            create_user(session, uuid4(), settings.ADMIN_EMAIL, settings.ADMIN_PIN, Role.ADMIN, settings.PIN_PEPPER)
            logger.info("Admin user created successfully.")
        else:
            logger.info("Admin user already exists.")
