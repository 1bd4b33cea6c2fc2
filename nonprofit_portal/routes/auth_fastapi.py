# nonprofit_portal/routes/auth_fastapi.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from nonprofit_portal import auth
from nonprofit_portal.access_policy import Identity
from nonprofit_portal.database import get_db
from nonprofit_portal.models.user import User, ROLE_PARTICIPANT
from nonprofit_portal.schemas.user import AccountInfo, UserRead, clean_email
from nonprofit_portal.views import parse_date, redirect_to, render_login, safe_next

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


@router.get("/login")
def login_page(request: Request, next: Optional[str] = None):
    return render_login(request, next_url=next)


@router.post("/login")
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    try:
        user = auth.authenticate(db, email=email.strip(), password=password)
    except SQLAlchemyError:
        logger.error("Login failed on the database side", exc_info=True)
        return render_login(request, error_message="Server connection error", next_url=next)

    if user is None:
        return render_login(request, error_message="Incorrect email or password", next_url=next)

    auth.start_session(request, user)
    logger.info('User "%s" successfully logged in.', user.email)
    return redirect_to(safe_next(next))


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return redirect_to("/login")


@router.get("/register")
def register_page(error: Optional[str] = None):
    return {"error_message": error or ""}


@router.post("/register")
def register(
    request: Request,
    first_name: str = Form(...),
    last_name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    confirm_password: str = Form(...),
    birthdate: Optional[str] = Form(None),
    user_phone: Optional[str] = Form(None),
    user_city: Optional[str] = Form(None),
    user_state: Optional[str] = Form(None),
    user_zip: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    if password != confirm_password:
        return redirect_to("/register", error="Passwords do not match")

    try:
        dob = parse_date(birthdate)
    except ValueError:
        return redirect_to("/register", error="Invalid date of birth")

    try:
        email = clean_email(email)
    except ValidationError:
        return redirect_to("/register", error="Please enter a valid email address")

    try:
        if auth.get_user(db, email=email) is not None:
            return redirect_to("/register", error="An account with this email already exists")

        user = User(
            email=email,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            dob=dob,
            phone=user_phone,
            city=user_city,
            state=user_state,
            zip=user_zip,
            role=ROLE_PARTICIPANT,
            hashed_password=auth.get_password_hash(password),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        return redirect_to("/register", error="An account with this email already exists")
    except SQLAlchemyError:
        db.rollback()
        logger.error("REGISTRATION ERROR", exc_info=True)
        return redirect_to("/register", error="Error creating account. Please try again.")

    logger.info("New user registered: %s (%s)", user.full_name, user.email)
    auth.start_session(request, user)
    return redirect_to("/")


# --- ACCOUNT INFO ---

@router.get("/account-info", response_model=AccountInfo)
def account_info(
    error: Optional[str] = None,
    success: Optional[str] = None,
    identity: Identity = Depends(auth.require_login),
    db: Session = Depends(get_db),
):
    try:
        user = db.query(User).filter(User.id == identity.user_id).first()
    except SQLAlchemyError:
        logger.error("Error fetching user info", exc_info=True)
        return AccountInfo(error_message="Error loading account information")

    if user is None:
        return AccountInfo(error_message="User not found")
    return AccountInfo(
        user=UserRead.model_validate(user),
        error_message=error or "",
        success_message=success or "",
    )


@router.post("/account-info")
def update_account_info(
    request: Request,
    first_name: str = Form(...),
    last_name: str = Form(...),
    email: str = Form(...),
    birthdate: Optional[str] = Form(None),
    user_phone: Optional[str] = Form(None),
    user_city: Optional[str] = Form(None),
    user_state: Optional[str] = Form(None),
    user_zip: Optional[str] = Form(None),
    current_password: Optional[str] = Form(None),
    new_password: Optional[str] = Form(None),
    confirm_password: Optional[str] = Form(None),
    identity: Identity = Depends(auth.require_login),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.id == identity.user_id).first()
    if user is None:
        return redirect_to("/account-info", error="User not found")

    try:
        dob = parse_date(birthdate)
    except ValueError:
        return redirect_to("/account-info", error="Invalid date of birth")
    try:
        email = clean_email(email)
    except ValidationError:
        return redirect_to("/account-info", error="Please enter a valid email address")

    if current_password or new_password or confirm_password:
        if not (current_password and new_password and confirm_password):
            return redirect_to("/account-info", error="All password fields are required to change password")
        if new_password != confirm_password:
            return redirect_to("/account-info", error="New passwords do not match")
        if not auth.verify_password(current_password, user.hashed_password):
            return redirect_to("/account-info", error="Current password is incorrect")
        user.hashed_password = auth.get_password_hash(new_password)

    user.first_name = first_name.strip()
    user.last_name = last_name.strip()
    user.email = email
    user.dob = dob
    user.phone = user_phone
    user.city = user_city
    user.state = user_state
    user.zip = user_zip

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return redirect_to("/account-info", error="An account with this email already exists")
    except SQLAlchemyError:
        db.rollback()
        logger.error("UPDATE ERROR", exc_info=True)
        return redirect_to("/account-info", error="Error updating account information")

    auth.refresh_session(request, user)
    logger.info("User account updated: %s", user.email)
    return redirect_to("/account-info", success="Your account information has been successfully updated!")
