from sqlmodel import Session, select
from loguru import logger
from sqlalchemy.exc import IntegrityError

from app.core.config import get_settings
from app.models.admin import Admin
from app.core.password import get_password_hash
from app.exceptions import AlreadyExistsError


def init_db(session: Session) -> None:
    """
    Ensure the configured first dashboard operator exists.

    If FIRST_SUPERUSER_EMAIL, FIRST_SUPERUSER_USERNAME, or FIRST_SUPERUSER_PASSWORD is not set, logs a warning and makes no changes. An operator with the configured username or email is left untouched.

    Parameters:
        session (Session): Database session used to look up and persist the Admin.

    Raises:
        AlreadyExistsError: If a unique constraint prevents creating the operator.
    """
    settings = get_settings()
    if (
        not settings.FIRST_SUPERUSER_EMAIL
        or not settings.FIRST_SUPERUSER_PASSWORD.get_secret_value()
        or not settings.FIRST_SUPERUSER_USERNAME
    ):
        logger.warning("First superuser not configured. Skipping creation.")
        return

    admin = session.exec(
        select(Admin).where(
            (Admin.username == settings.FIRST_SUPERUSER_USERNAME)
            | (Admin.email == settings.FIRST_SUPERUSER_EMAIL)
        )
    ).first()

    if admin:
        logger.info("First superuser already exists")
        return

    admin = Admin(
        email=settings.FIRST_SUPERUSER_EMAIL,
        username=settings.FIRST_SUPERUSER_USERNAME,
        display_name="Initial Admin",
        hashed_password=get_password_hash(
            settings.FIRST_SUPERUSER_PASSWORD.get_secret_value()
        ),
    )
    try:
        session.add(admin)
        session.commit()
        logger.info("First superuser created successfully")
    except IntegrityError:
        session.rollback()
        logger.error("First superuser already exists (constraint violation)")
        raise AlreadyExistsError(
            "Admin", "username or email", settings.FIRST_SUPERUSER_USERNAME
        )
