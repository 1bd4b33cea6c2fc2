# nonprofit_portal/routes/manage_events_fastapi.py
# -*- coding: utf-8 -*-
"""
Admin management of event templates, their occurrences, and attendance.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Form
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager, joinedload

from nonprofit_portal import auth, registration_engine
from nonprofit_portal.database import get_db
from nonprofit_portal.errors import PortalError
from nonprofit_portal.listing import paginate, parse_page, Page
from nonprofit_portal.models.event import EventOccurrence, EventTemplate
from nonprofit_portal.models.registration import Registration
from nonprofit_portal.schemas.event import EventOccurrenceRead, EventTemplateDetail, EventTemplateRead
from nonprofit_portal.schemas.page import PageRead
from nonprofit_portal.schemas.registration import RegistrationAdminRead
from nonprofit_portal.views import parse_datetime, parse_optional_int, redirect_to

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Manage Events"],
    dependencies=[Depends(auth.require_admin)],
)


# --- EVENT TEMPLATES ---

@router.get("/manage-events", response_model=PageRead[EventTemplateRead])
def list_templates(
    page: Optional[str] = None,
    search: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(EventTemplate).order_by(EventTemplate.name, EventTemplate.id)
    try:
        result = paginate(
            query,
            page=page,
            search=search,
            columns=[EventTemplate.name, EventTemplate.type, EventTemplate.description],
        )
    except SQLAlchemyError:
        logger.error("Error fetching event information", exc_info=True)
        result = Page(current_page=parse_page(page))
        error = "Error fetching event information"
    return PageRead[EventTemplateRead](**vars(result), error_message=error or "")


@router.get("/manage-events/new")
def new_template_form():
    return {"error_message": "", "success_message": ""}


@router.post("/manage-events/new-template")
def create_template(
    event_name: str = Form(...),
    event_type: Optional[str] = Form(None),
    event_description: Optional[str] = Form(None),
    event_recurrence_pattern: Optional[str] = Form(None),
    event_default_capacity: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    try:
        capacity = parse_optional_int(event_default_capacity)
    except ValueError:
        return redirect_to("/manage-events", error="Default capacity must be a whole number.")

    template = EventTemplate(
        name=event_name.strip(),
        type=event_type,
        description=event_description,
        recurrence_pattern=event_recurrence_pattern,
        default_capacity=capacity,
    )
    try:
        db.add(template)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error creating events", exc_info=True)
        return redirect_to("/manage-events", error="An error occured while creating an event.")
    return redirect_to("/manage-events")


@router.get("/manage-events/{template_id}", response_model=EventTemplateDetail)
def template_detail(template_id: int, db: Session = Depends(get_db)):
    template = (
        db.query(EventTemplate)
        .options(joinedload(EventTemplate.occurrences))
        .filter(EventTemplate.id == template_id)
        .first()
    )
    if template is None:
        return redirect_to("/manage-events", error="Event template does not exist")
    template.occurrences.sort(key=lambda o: o.start)
    return template


@router.post("/manage-events/{template_id}/new")
def create_occurrence(
    template_id: int,
    event_name: Optional[str] = Form(None),
    event_date_time_start: str = Form(...),
    event_date_time_end: Optional[str] = Form(None),
    event_location: Optional[str] = Form(None),
    event_capacity: Optional[str] = Form(None),
    event_registration_deadline: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    template = db.query(EventTemplate).filter(EventTemplate.id == template_id).first()
    if template is None:
        return redirect_to("/manage-events", error="Event template does not exist")

    try:
        start = parse_datetime(event_date_time_start)
        end = parse_datetime(event_date_time_end)
        deadline = parse_datetime(event_registration_deadline)
        capacity = parse_optional_int(event_capacity)
    except ValueError:
        return redirect_to("/manage-events", error="Please check the dates and capacity of the event occurrence.")
    if start is None:
        return redirect_to("/manage-events", error="The event occurrence needs a start date.")

    occurrence = EventOccurrence(
        template_id=template.id,
        name=(event_name or "").strip() or template.name,
        start=start,
        end=end,
        location=event_location,
        # Blank capacity falls back to the template default (which may be unlimited)
        capacity=capacity if capacity is not None else template.default_capacity,
        registration_deadline=deadline,
    )
    try:
        db.add(occurrence)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error creating occurrence", exc_info=True)
        return redirect_to("/manage-events", error="Something went wrong creating the event occurrence. Please try again.")
    return redirect_to("/manage-events")


@router.post("/manage-events/{template_id}/update")
def update_template(
    template_id: int,
    event_name: str = Form(...),
    event_type: Optional[str] = Form(None),
    event_description: Optional[str] = Form(None),
    event_recurrence_pattern: Optional[str] = Form(None),
    event_default_capacity: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    template = db.query(EventTemplate).filter(EventTemplate.id == template_id).first()
    if template is None:
        return redirect_to("/manage-events", error="Event template does not exist")
    try:
        template.default_capacity = parse_optional_int(event_default_capacity)
    except ValueError:
        return redirect_to("/manage-events", error="Default capacity must be a whole number.")

    template.name = event_name.strip()
    template.type = event_type
    template.description = event_description
    template.recurrence_pattern = event_recurrence_pattern
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error updating event template", exc_info=True)
        return redirect_to("/manage-events", error="Error updating event template. Please try again.")
    return redirect_to("/manage-events")


@router.post("/manage-events/{template_id}/delete")
def delete_template(template_id: int, db: Session = Depends(get_db)):
    template = db.query(EventTemplate).filter(EventTemplate.id == template_id).first()
    if template is None:
        return redirect_to("/manage-events", error="Event template does not exist")
    try:
        # Occurrences, their registrations and surveys go with it
        db.delete(template)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error deleting event template", exc_info=True)
        return redirect_to("/manage-events", error="Error deleting event template. Please try again.")
    logger.info("Event template %s deleted", template_id)
    return redirect_to("/manage-events")


# --- EVENT OCCURRENCES ---

@router.get("/manage-event-occurrences", response_model=PageRead[EventOccurrenceRead])
def list_occurrences(
    page: Optional[str] = None,
    search: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(EventOccurrence).order_by(EventOccurrence.start.desc(), EventOccurrence.id.desc())
    try:
        result = paginate(query, page=page, search=search, columns=[EventOccurrence.name, EventOccurrence.location])
    except SQLAlchemyError:
        logger.error("Error fetching event occurrences", exc_info=True)
        result = Page(current_page=parse_page(page))
        error = "Error fetching event occurrences"
    return PageRead[EventOccurrenceRead](**vars(result), error_message=error or "")


@router.post("/manage-event-occurrences/{occurrence_id}/update")
def update_occurrence(
    occurrence_id: int,
    event_name: str = Form(...),
    event_date_time_start: str = Form(...),
    event_date_time_end: Optional[str] = Form(None),
    event_location: Optional[str] = Form(None),
    event_capacity: Optional[str] = Form(None),
    event_registration_deadline: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    occurrence = db.query(EventOccurrence).filter(EventOccurrence.id == occurrence_id).first()
    if occurrence is None:
        return redirect_to("/manage-event-occurrences", error="Event occurrence does not exist")

    try:
        start = parse_datetime(event_date_time_start)
        end = parse_datetime(event_date_time_end)
        deadline = parse_datetime(event_registration_deadline)
        capacity = parse_optional_int(event_capacity)
    except ValueError:
        return redirect_to("/manage-event-occurrences", error="Please check the dates and capacity of the event occurrence.")
    if start is None:
        return redirect_to("/manage-event-occurrences", error="The event occurrence needs a start date.")

    occurrence.name = event_name.strip() or occurrence.name
    occurrence.start = start
    occurrence.end = end
    occurrence.location = event_location
    occurrence.capacity = capacity
    occurrence.registration_deadline = deadline
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error updating event occurrence", exc_info=True)
        return redirect_to("/manage-event-occurrences", error="Error updating event occurrence. Please try again.")
    return redirect_to("/manage-event-occurrences")


@router.post("/manage-event-occurrences/{occurrence_id}/delete")
def delete_occurrence(occurrence_id: int, db: Session = Depends(get_db)):
    occurrence = db.query(EventOccurrence).filter(EventOccurrence.id == occurrence_id).first()
    if occurrence is None:
        return redirect_to("/manage-event-occurrences", error="Event occurrence does not exist")
    try:
        db.delete(occurrence)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error deleting event occurrence", exc_info=True)
        return redirect_to("/manage-event-occurrences", error="Error deleting event occurrence. Please try again.")
    return redirect_to("/manage-event-occurrences")


@router.get("/manage-event-occurrences/{occurrence_id}/registrations", response_model=List[RegistrationAdminRead])
def occurrence_registrations(occurrence_id: int, db: Session = Depends(get_db)):
    try:
        return (
            db.query(Registration)
            .join(Registration.user)
            .options(contains_eager(Registration.user), joinedload(Registration.occurrence))
            .filter(Registration.event_occurrence_id == occurrence_id)
            .order_by(Registration.created_at, Registration.id)
            .all()
        )
    except SQLAlchemyError:
        logger.error("Error fetching registrations for occurrence %s", occurrence_id, exc_info=True)
        return []


@router.post("/manage-registrations/{registration_id}/check-in")
def check_in_registration(registration_id: int, db: Session = Depends(get_db)):
    try:
        registration = registration_engine.check_in(db, registration_id)
    except PortalError as e:
        return redirect_to("/manage-event-occurrences", error=e.message)
    return redirect_to(f"/manage-event-occurrences/{registration.event_occurrence_id}/registrations")
