# nonprofit_portal/bootstrap.py
import logging
import secrets

from sqlalchemy import func
from sqlalchemy.orm import Session

from nonprofit_portal.auth import get_password_hash, get_user
from nonprofit_portal.config import config
from nonprofit_portal.models.user import User, ROLE_ADMIN, ROLE_PARTICIPANT

logger = logging.getLogger(__name__)


def create_first_admin(db: Session):
    """Creates the configured admin account when the database has no admin yet."""
    has_admin = db.query(User.id).filter(func.lower(User.role) == ROLE_ADMIN).first()
    if has_admin:
        logger.info("Admin account already present")
        return None

    try:
        admin = User(
            email=config.ADMIN_EMAIL,
            first_name="System",
            last_name="Administrator",
            hashed_password=get_password_hash(config.ADMIN_PASSWORD),
            role=ROLE_ADMIN,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
    except Exception:
        db.rollback()
        logger.error("Could not create the first admin", exc_info=True)
        raise
    logger.info("Created first admin %s", admin.email)
    return admin


def get_anonymous_donor(db: Session) -> User:
    """
    The reserved identity donations are attributed to when nobody is logged
    in. Created on first use; it has a random password nobody knows.
    """
    donor = get_user(db, email=config.ANONYMOUS_DONOR_EMAIL)
    if donor is None:
        donor = User(
            email=config.ANONYMOUS_DONOR_EMAIL,
            first_name="Anonymous",
            last_name="Donor",
            hashed_password=get_password_hash(secrets.token_urlsafe(32)),
            role=ROLE_PARTICIPANT,
        )
        db.add(donor)
        db.commit()
        db.refresh(donor)
        logger.info("Created anonymous donor account (id %s)", donor.id)
    return donor
