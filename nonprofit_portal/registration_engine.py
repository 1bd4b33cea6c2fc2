# -*- coding: utf-8 -*-
"""
Event registration: signing a participant up for an occurrence, cancelling,
and checking in.

``register`` validates in a fixed order and stops at the first failure:
occurrence exists, has not started, deadline not passed, no earlier
registration by this user, seats left. Nothing is written unless every step
passes.

The duplicate and capacity checks and the insert must not interleave with a
concurrent signup for the same occurrence:

* the occurrence row is read ``FOR UPDATE``, which serializes signups per
  occurrence on PostgreSQL;
* the insert itself is an ``INSERT ... SELECT`` guarded by the same two
  conditions, so check and write are a single statement on every backend
  (SQLite, which has no row locks, still runs it under its write lock);
* the unique constraint on (user, occurrence) turns a lost duplicate race into
  ``AlreadyRegistered``.
"""
import logging
from datetime import datetime

from sqlalchemy import func, insert, literal, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from nonprofit_portal.errors import (
    AlreadyRegistered,
    AlreadyStarted,
    CapacityReached,
    DeadlinePassed,
    NotFound,
    RegistrationCancelled,
    StoreUnavailable,
)
from nonprofit_portal.models.event import EventOccurrence
from nonprofit_portal.models.registration import Registration, STATUS_CANCELLED

logger = logging.getLogger(__name__)


def active_filter():
    """Rows that still hold a seat: status unset or anything but Cancelled."""
    return or_(Registration.status.is_(None), Registration.status != STATUS_CANCELLED)


def active_count(db: Session, occurrence_id: int) -> int:
    return db.query(func.count(Registration.id)).filter(
        Registration.event_occurrence_id == occurrence_id,
        active_filter(),
    ).scalar() or 0


def _has_registration(db: Session, user_id: int, occurrence_id: int) -> bool:
    # Any row blocks, cancelled or not
    return db.query(Registration.id).filter(
        Registration.user_id == user_id,
        Registration.event_occurrence_id == occurrence_id,
    ).first() is not None


def _guarded_insert(db: Session, user_id: int, occurrence: EventOccurrence, now: datetime) -> int:
    """Inserts the registration only if no row exists for the pair and a seat is free. Returns rows inserted."""
    already = (
        select(Registration.id)
        .where(
            Registration.user_id == user_id,
            Registration.event_occurrence_id == occurrence.id,
        )
        .correlate(None)
        .exists()
    )
    guard = select(
        literal(user_id),
        literal(occurrence.id),
        literal(False),
        literal(now),
    ).where(~already)

    if occurrence.capacity is not None:
        seats_taken = (
            select(func.count(Registration.id))
            .where(Registration.event_occurrence_id == occurrence.id, active_filter())
            .correlate(None)
            .scalar_subquery()
        )
        guard = guard.where(seats_taken < occurrence.capacity)

    stmt = insert(Registration).from_select(
        ["user_id", "event_occurrence_id", "attended", "created_at"], guard
    )
    return db.execute(stmt).rowcount


def register(db: Session, user_id: int, event_occurrence_id: int, now: datetime = None) -> Registration:
    now = now or datetime.utcnow()

    try:
        occurrence = (
            db.query(EventOccurrence)
            .filter(EventOccurrence.id == event_occurrence_id)
            .with_for_update()
            .first()
        )
        if occurrence is None:
            raise NotFound("This event does not exist.")

        if occurrence.start <= now:
            raise AlreadyStarted()

        if occurrence.registration_deadline is not None and occurrence.registration_deadline < now:
            raise DeadlinePassed()

        if _has_registration(db, user_id, occurrence.id):
            raise AlreadyRegistered()

        if occurrence.capacity is not None and active_count(db, occurrence.id) >= occurrence.capacity:
            raise CapacityReached()

        inserted = _guarded_insert(db, user_id, occurrence, now)
        if not inserted:
            # Someone else got in between the checks above and the insert
            if _has_registration(db, user_id, occurrence.id):
                raise AlreadyRegistered()
            raise CapacityReached()

        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Duplicate registration blocked by constraint: user=%s occurrence=%s", user_id, event_occurrence_id)
        raise AlreadyRegistered()
    except (NotFound, AlreadyStarted, DeadlinePassed, AlreadyRegistered, CapacityReached) as e:
        db.rollback()
        logger.info("Registration rejected: user=%s occurrence=%s reason=%s", user_id, event_occurrence_id, type(e).__name__)
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.error("Store error registering user=%s occurrence=%s", user_id, event_occurrence_id, exc_info=True)
        raise StoreUnavailable()

    registration = db.query(Registration).filter(
        Registration.user_id == user_id,
        Registration.event_occurrence_id == event_occurrence_id,
    ).one()
    logger.info("User %s registered for occurrence %s (registration %s)", user_id, event_occurrence_id, registration.id)
    return registration


def _load_registration(db: Session, registration_id: int, user_id: int = None) -> Registration:
    registration = db.query(Registration).filter(Registration.id == registration_id).first()
    # Someone else's registration looks exactly like a missing one
    if registration is None or (user_id is not None and registration.user_id != user_id):
        raise NotFound("This registration does not exist.")
    return registration


def cancel(db: Session, registration_id: int, user_id: int = None) -> Registration:
    """
    Soft-cancels a registration. The row stays for history and survey
    linkage; it stops counting against capacity.
    """
    registration = _load_registration(db, registration_id, user_id)
    registration.status = STATUS_CANCELLED
    db.commit()
    db.refresh(registration)
    logger.info("Registration %s cancelled", registration_id)
    return registration


def check_in(db: Session, registration_id: int, now: datetime = None) -> Registration:
    registration = _load_registration(db, registration_id)
    if registration.is_cancelled:
        raise RegistrationCancelled()
    registration.attended = True
    registration.check_in_time = now or datetime.utcnow()
    db.commit()
    db.refresh(registration)
    logger.info("Registration %s checked in", registration_id)
    return registration
