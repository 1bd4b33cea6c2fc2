# nonprofit_portal/routes/surveys_fastapi.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Form
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from nonprofit_portal import aggregation, auth, survey_scoring
from nonprofit_portal.access_policy import Identity
from nonprofit_portal.database import get_db
from nonprofit_portal.errors import PortalError
from nonprofit_portal.listing import paginate, parse_page, Page
from nonprofit_portal.models.event import EventOccurrence
from nonprofit_portal.models.registration import Registration
from nonprofit_portal.models.survey import Survey
from nonprofit_portal.models.user import User
from nonprofit_portal.schemas.page import PageRead
from nonprofit_portal.schemas.registration import RegistrationRead
from nonprofit_portal.schemas.survey import SurveyAdminRead, SurveyRead, SurveyScores
from nonprofit_portal.views import redirect_to

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Surveys"])
admin_router = APIRouter(
    prefix="/manage-surveys",
    tags=["Manage Surveys"],
    dependencies=[Depends(auth.require_admin)],
)


@router.get("/surveys", response_model=List[SurveyRead])
def my_surveys(identity: Identity = Depends(auth.require_login), db: Session = Depends(get_db)):
    try:
        return (
            db.query(Survey)
            .join(Survey.registration)
            .filter(Registration.user_id == identity.user_id)
            .order_by(Survey.submission_date.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.error("Error fetching surveys", exc_info=True)
        return []


@router.get("/add-survey", response_model=List[RegistrationRead])
def pending_surveys(identity: Identity = Depends(auth.require_login), db: Session = Depends(get_db)):
    """Past events the user attended or signed up for that still lack a survey."""
    try:
        return (
            aggregation.pending_surveys_query(db, identity.user_id, datetime.utcnow())
            .options(contains_eager(Registration.occurrence))
            .order_by(EventOccurrence.start.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.error("Error fetching pending surveys", exc_info=True)
        return []


@router.post("/add-survey/{registration_id}")
def add_survey(
    registration_id: int,
    satisfaction: str = Form(...),
    usefulness: str = Form(...),
    instructor: str = Form(...),
    recommendation: str = Form(...),
    comments: Optional[str] = Form(None),
    identity: Identity = Depends(auth.require_login),
    db: Session = Depends(get_db),
):
    try:
        scores = SurveyScores(
            satisfaction=satisfaction,
            usefulness=usefulness,
            instructor=instructor,
            recommendation=recommendation,
        )
    except ValidationError:
        return redirect_to("/add-survey", error="Every score must be a number from 1 to 5.")

    try:
        survey_scoring.submit(db, registration_id, scores, comments=comments, user_id=identity.user_id)
    except PortalError as e:
        return redirect_to("/add-survey", error=e.message)
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error saving survey", exc_info=True)
        return redirect_to("/add-survey", error="Error saving your survey. Please try again.")
    return redirect_to("/surveys", success="Thank you for your feedback!")


# --- ADMIN ---

@admin_router.get("", response_model=PageRead[SurveyAdminRead])
def list_surveys(
    page: Optional[str] = None,
    search: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = (
        db.query(Survey)
        .join(Survey.registration)
        .join(Registration.user)
        .join(Registration.occurrence)
        .options(
            contains_eager(Survey.registration).contains_eager(Registration.user),
            contains_eager(Survey.registration).contains_eager(Registration.occurrence),
        )
        .order_by(Survey.submission_date.desc(), Survey.id.desc())
    )
    try:
        result = paginate(
            query,
            page=page,
            search=search,
            columns=[User.first_name, User.last_name, User.email, EventOccurrence.name, Survey.nps_bucket],
        )
    except SQLAlchemyError:
        logger.error("Error fetching surveys", exc_info=True)
        result = Page(current_page=parse_page(page))
        error = "Error fetching surveys"
    return PageRead[SurveyAdminRead](**vars(result), error_message=error or "")


@admin_router.post("/{survey_id}/delete")
def delete_survey(survey_id: int, db: Session = Depends(get_db)):
    survey = db.query(Survey).filter(Survey.id == survey_id).first()
    if survey is None:
        return redirect_to("/manage-surveys", error="Survey does not exist")
    try:
        db.delete(survey)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error deleting survey", exc_info=True)
        return redirect_to("/manage-surveys", error="Error deleting survey. Please try again.")
    return redirect_to("/manage-surveys")
