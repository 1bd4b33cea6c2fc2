# nonprofit_portal/routes/events_fastapi.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from nonprofit_portal import auth, registration_engine
from nonprofit_portal.access_policy import Identity
from nonprofit_portal.database import get_db
from nonprofit_portal.errors import PortalError
from nonprofit_portal.listing import paginate, parse_page, Page
from nonprofit_portal.models.event import EventOccurrence
from nonprofit_portal.models.registration import Registration
from nonprofit_portal.schemas.event import EventListing
from nonprofit_portal.schemas.page import PageRead
from nonprofit_portal.schemas.registration import RegistrationRead
from nonprofit_portal.views import redirect_to

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Events"])

FILTER_UPCOMING = "upcoming"
FILTER_PAST = "past"


class EventPage(PageRead[EventListing]):
    filter: str = FILTER_UPCOMING


def _occurrence_query(db: Session, when: str, now: datetime):
    query = db.query(EventOccurrence)
    if when == FILTER_PAST:
        return query.filter(EventOccurrence.start < now).order_by(EventOccurrence.start.desc(), EventOccurrence.id.desc())
    return query.filter(EventOccurrence.start >= now).order_by(EventOccurrence.start.asc(), EventOccurrence.id.asc())


def _enrich(db: Session, occurrences, identity: Identity):
    """Adds the live seat count and, for a logged-in user, whether they hold one."""
    ids = [o.id for o in occurrences]
    counts = {}
    mine = set()
    if ids:
        counts = dict(
            db.query(Registration.event_occurrence_id, func.count(Registration.id))
            .filter(Registration.event_occurrence_id.in_(ids), registration_engine.active_filter())
            .group_by(Registration.event_occurrence_id)
            .all()
        )
        if identity.is_authenticated:
            mine = {
                row.event_occurrence_id
                for row in db.query(Registration.event_occurrence_id).filter(
                    Registration.event_occurrence_id.in_(ids),
                    Registration.user_id == identity.user_id,
                    registration_engine.active_filter(),
                )
            }

    listings = []
    for occurrence in occurrences:
        listing = EventListing.model_validate(occurrence)
        listing.registration_count = counts.get(occurrence.id, 0)
        listing.is_user_registered = occurrence.id in mine
        listings.append(listing)
    return listings


@router.get("/events", response_model=EventPage)
def list_events(
    filter: str = FILTER_UPCOMING,
    page: Optional[str] = None,
    search: Optional[str] = None,
    error: Optional[str] = None,
    success: Optional[str] = None,
    identity: Identity = Depends(auth.get_identity),
    db: Session = Depends(get_db),
):
    when = FILTER_PAST if filter == FILTER_PAST else FILTER_UPCOMING
    try:
        result = paginate(
            _occurrence_query(db, when, datetime.utcnow()),
            page=page,
            search=search,
            columns=[EventOccurrence.name, EventOccurrence.location],
        )
        result.items = _enrich(db, result.items, identity)
    except SQLAlchemyError:
        logger.error("Error fetching event information", exc_info=True)
        result = Page(current_page=parse_page(page))
        error = "Error fetching event information"

    return EventPage(
        **vars(result),
        filter=when,
        error_message=error or "",
        success_message=success,
    )


@router.post("/events/{occurrence_id}/register")
def register_for_event(
    occurrence_id: int,
    identity: Identity = Depends(auth.get_identity),
    db: Session = Depends(get_db),
):
    if not identity.is_authenticated:
        return redirect_to("/login", next="/events")

    try:
        registration_engine.register(db, identity.user_id, occurrence_id)
    except PortalError as e:
        return redirect_to("/events", error=e.message)
    return redirect_to("/events", success="You are registered for this event!")


@router.post("/registrations/{registration_id}/cancel")
def cancel_registration(
    registration_id: int,
    identity: Identity = Depends(auth.require_login),
    db: Session = Depends(get_db),
):
    # Admins may cancel anyone's registration
    owner = None if identity.is_admin else identity.user_id
    try:
        registration_engine.cancel(db, registration_id, user_id=owner)
    except PortalError as e:
        return redirect_to("/my-events", error=e.message)
    return redirect_to("/my-events", success="Your registration has been cancelled.")


@router.get("/my-events", response_model=List[RegistrationRead])
def my_events(identity: Identity = Depends(auth.require_login), db: Session = Depends(get_db)):
    try:
        return (
            db.query(Registration)
            .join(Registration.occurrence)
            .options(contains_eager(Registration.occurrence))
            .filter(Registration.user_id == identity.user_id)
            .order_by(EventOccurrence.start.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.error("Error fetching registrations", exc_info=True)
        return []
