# nonprofit_portal/routes/participants_fastapi.py
# -*- coding: utf-8 -*-
"""
Admin management of user accounts and the milestones awarded to them.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Form
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from nonprofit_portal import auth
from nonprofit_portal.access_policy import Identity
from nonprofit_portal.database import get_db
from nonprofit_portal.listing import paginate, parse_page, Page
from nonprofit_portal.models.milestone import Milestone, UserMilestone
from nonprofit_portal.models.user import User, ROLE_PARTICIPANT, VALID_ROLES
from nonprofit_portal.schemas.milestone import MilestoneRead, UserMilestoneRead
from nonprofit_portal.schemas.page import PageRead
from nonprofit_portal.schemas.user import UserRead, clean_email
from nonprofit_portal.views import parse_date, redirect_to

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/manage-participants",
    tags=["Manage Participants"],
    dependencies=[Depends(auth.require_admin)],
)

LIST_URL = "/manage-participants"


class ParticipantDetail(BaseModel):
    user: UserRead
    milestones: List[UserMilestoneRead] = []
    available_milestones: List[MilestoneRead] = []
    error_message: str = ""


def _role(value: Optional[str]) -> str:
    role = (value or ROLE_PARTICIPANT).strip().lower()
    if role not in VALID_ROLES:
        raise ValueError(f"Invalid role: {value!r}")
    return role


@router.get("", response_model=PageRead[UserRead])
def list_participants(
    page: Optional[str] = None,
    search: Optional[str] = None,
    error: Optional[str] = None,
    success: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(User).order_by(User.last_name, User.first_name, User.id)
    try:
        result = paginate(
            query,
            page=page,
            search=search,
            columns=[User.first_name, User.last_name, User.email],
        )
    except SQLAlchemyError:
        logger.error("Error fetching participants", exc_info=True)
        result = Page(current_page=parse_page(page))
        error = "Error fetching participants"
    return PageRead[UserRead](**vars(result), error_message=error or "", success_message=success)


@router.get("/new")
def new_participant_form():
    return {"error_message": "", "roles": VALID_ROLES}


@router.post("/new")
def create_participant(
    first_name: str = Form(...),
    last_name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    role: Optional[str] = Form(None),
    birthdate: Optional[str] = Form(None),
    user_phone: Optional[str] = Form(None),
    user_city: Optional[str] = Form(None),
    user_state: Optional[str] = Form(None),
    user_zip: Optional[str] = Form(None),
    user_school: Optional[str] = Form(None),
    user_employer: Optional[str] = Form(None),
    user_field_of_interest: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    try:
        user_role = _role(role)
        dob = parse_date(birthdate)
    except ValueError:
        return redirect_to(LIST_URL, error="Please check the role and date of birth.")
    try:
        email = clean_email(email)
    except ValidationError:
        return redirect_to(LIST_URL, error="Please enter a valid email address")

    user = User(
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email,
        role=user_role,
        dob=dob,
        phone=user_phone,
        city=user_city,
        state=user_state,
        zip=user_zip,
        school=user_school,
        employer=user_employer,
        field_of_interest=user_field_of_interest,
        hashed_password=auth.get_password_hash(password),
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        return redirect_to(LIST_URL, error="An account with this email already exists")
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error creating participant", exc_info=True)
        return redirect_to(LIST_URL, error="Error creating participant. Please try again.")
    logger.info("Participant %s created by admin", user.email)
    return redirect_to(LIST_URL, success="Participant created")


@router.get("/{user_id}", response_model=ParticipantDetail)
def participant_detail(user_id: int, error: Optional[str] = None, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return redirect_to(LIST_URL, error="Participant does not exist")

    awarded = (
        db.query(UserMilestone)
        .options(joinedload(UserMilestone.milestone))
        .filter(UserMilestone.user_id == user_id)
        .order_by(UserMilestone.milestone_date.desc())
        .all()
    )
    awarded_ids = [um.milestone_id for um in awarded]
    available = db.query(Milestone)
    if awarded_ids:
        available = available.filter(Milestone.id.notin_(awarded_ids))

    return ParticipantDetail(
        user=UserRead.model_validate(user),
        milestones=[UserMilestoneRead.model_validate(um) for um in awarded],
        available_milestones=[MilestoneRead.model_validate(m) for m in available.order_by(Milestone.title).all()],
        error_message=error or "",
    )


@router.post("/{user_id}/update")
def update_participant(
    user_id: int,
    first_name: str = Form(...),
    last_name: str = Form(...),
    email: str = Form(...),
    role: Optional[str] = Form(None),
    birthdate: Optional[str] = Form(None),
    user_phone: Optional[str] = Form(None),
    user_city: Optional[str] = Form(None),
    user_state: Optional[str] = Form(None),
    user_zip: Optional[str] = Form(None),
    user_school: Optional[str] = Form(None),
    user_employer: Optional[str] = Form(None),
    user_field_of_interest: Optional[str] = Form(None),
    new_password: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return redirect_to(LIST_URL, error="Participant does not exist")
    try:
        user.role = _role(role or user.role)
        user.dob = parse_date(birthdate)
    except ValueError:
        return redirect_to(LIST_URL, error="Please check the role and date of birth.")
    try:
        email = clean_email(email)
    except ValidationError:
        return redirect_to(LIST_URL, error="Please enter a valid email address")

    user.first_name = first_name.strip()
    user.last_name = last_name.strip()
    user.email = email
    user.phone = user_phone
    user.city = user_city
    user.state = user_state
    user.zip = user_zip
    user.school = user_school
    user.employer = user_employer
    user.field_of_interest = user_field_of_interest
    if new_password:
        user.hashed_password = auth.get_password_hash(new_password)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return redirect_to(LIST_URL, error="An account with this email already exists")
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error updating participant", exc_info=True)
        return redirect_to(LIST_URL, error="Error updating participant. Please try again.")
    return redirect_to(LIST_URL, success="Participant updated")


@router.post("/{user_id}/delete")
def delete_participant(
    user_id: int,
    identity: Identity = Depends(auth.get_identity),
    db: Session = Depends(get_db),
):
    if user_id == identity.user_id:
        return redirect_to(LIST_URL, error="You cannot delete your own account")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return redirect_to(LIST_URL, error="Participant does not exist")
    try:
        # Registrations (and their surveys), donations and milestone awards go with it
        db.delete(user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error deleting participant", exc_info=True)
        return redirect_to(LIST_URL, error="Error deleting participant. Please try again.")
    logger.info("Participant %s deleted", user_id)
    return redirect_to(LIST_URL, success="Participant deleted")


# --- MILESTONE AWARDS ---

@router.post("/{user_id}/milestones/new")
def award_milestone(
    user_id: int,
    milestone_id: int = Form(...),
    milestone_date: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    detail_url = f"{LIST_URL}/{user_id}"
    user = db.query(User.id).filter(User.id == user_id).first()
    milestone = db.query(Milestone.id).filter(Milestone.id == milestone_id).first()
    if user is None or milestone is None:
        return redirect_to(LIST_URL, error="Participant or milestone does not exist")

    try:
        awarded_on = parse_date(milestone_date) or date.today()
    except ValueError:
        return redirect_to(detail_url, error="Invalid milestone date")

    try:
        db.add(UserMilestone(user_id=user_id, milestone_id=milestone_id, milestone_date=awarded_on))
        db.commit()
    except IntegrityError:
        db.rollback()
        return redirect_to(detail_url, error="This milestone was already awarded to the participant")
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error awarding milestone", exc_info=True)
        return redirect_to(detail_url, error="Error awarding milestone. Please try again.")
    return redirect_to(detail_url)


@router.post("/{user_id}/milestones/{milestone_id}/delete")
def revoke_milestone(user_id: int, milestone_id: int, db: Session = Depends(get_db)):
    detail_url = f"{LIST_URL}/{user_id}"
    award = db.query(UserMilestone).filter(
        UserMilestone.user_id == user_id,
        UserMilestone.milestone_id == milestone_id,
    ).first()
    if award is None:
        return redirect_to(detail_url, error="This milestone was not awarded to the participant")
    try:
        db.delete(award)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error removing milestone award", exc_info=True)
        return redirect_to(detail_url, error="Error removing milestone. Please try again.")
    return redirect_to(detail_url)
