# nonprofit_portal/auth.py
from fastapi import Depends, Request
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from nonprofit_portal.access_policy import Identity
from nonprofit_portal.errors import Forbidden, Unauthorized
from nonprofit_portal.models.user import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def get_user(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()


def authenticate(db: Session, email: str, password: str):
    user = get_user(db, email=email)
    if not user or not user.hashed_password or not verify_password(password, user.hashed_password):
        return None
    return user


def start_session(request: Request, user: User):
    """Stores the identity of a freshly logged-in user in the session cookie."""
    request.session.clear()
    request.session["user_id"] = user.id
    request.session["role"] = user.role
    request.session["first_name"] = user.first_name
    request.session["last_name"] = user.last_name
    request.session["email"] = user.email


def refresh_session(request: Request, user: User):
    request.session["first_name"] = user.first_name
    request.session["last_name"] = user.last_name
    request.session["email"] = user.email


# --- AUTHENTICATION AND AUTHORIZATION DEPENDENCIES ---

def get_identity(request: Request) -> Identity:
    """
    The identity resolved by the access middleware for this request.
    Falls back to reading the session when the middleware did not run.
    """
    identity = getattr(request.state, "identity", None)
    if identity is None:
        identity = Identity.from_session(request.session)
    return identity


def require_login(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_authenticated:
        raise Unauthorized()
    return identity


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    """
    Declared role for admin routers. The access middleware already gates
    these paths; this keeps a route admin-only even if its path is moved.
    """
    if not identity.is_admin:
        raise Forbidden()
    return identity
