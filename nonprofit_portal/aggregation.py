# -*- coding: utf-8 -*-
"""
Read-side KPIs for the dashboards.

Each KPI runs on its own: if the store fails for one of them it is logged and
that KPI falls back to its default while the others are still computed.
"""
import functools
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nonprofit_portal.models.donation import Donation
from nonprofit_portal.models.event import EventOccurrence
from nonprofit_portal.models.milestone import UserMilestone
from nonprofit_portal.models.registration import Registration, STATUS_CANCELLED
from nonprofit_portal.models.survey import Survey
from nonprofit_portal.survey_scoring import DETRACTOR, PASSIVE, PROMOTER

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _degrade(default):
    """Turns a store failure into ``default`` for the decorated KPI."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(db: Session, *args, **kwargs):
            try:
                return fn(db, *args, **kwargs)
            except SQLAlchemyError:
                logger.error("Error computing %s", fn.__name__, exc_info=True)
                try:
                    db.rollback()
                except SQLAlchemyError:
                    logger.error("Rollback failed after %s", fn.__name__, exc_info=True)
                return default() if callable(default) else default
        return wrapper
    return decorator


def year_window(now: datetime):
    return date(now.year, 1, 1), date(now.year, 12, 31)


def month_window(now: datetime):
    first = date(now.year, now.month, 1)
    last = first + relativedelta(months=1) - timedelta(days=1)
    return first, last


def _sum_donations(db: Session, start=None, end=None) -> Decimal:
    query = db.query(func.sum(Donation.amount))
    if start is not None:
        query = query.filter(Donation.date >= start)
    if end is not None:
        query = query.filter(Donation.date <= end)
    return Decimal(query.scalar() or 0)


# --- DONATIONS ---

@_degrade(ZERO)
def total_donations(db: Session) -> Decimal:
    return _sum_donations(db)


@_degrade(ZERO)
def yearly_donations(db: Session, now: datetime = None) -> Decimal:
    start, end = year_window(now or datetime.utcnow())
    return _sum_donations(db, start, end)


@_degrade(ZERO)
def monthly_donations(db: Session, now: datetime = None) -> Decimal:
    start, end = month_window(now or datetime.utcnow())
    return _sum_donations(db, start, end)


# --- EVENTS ---

@_degrade(0)
def upcoming_occurrence_count(db: Session, now: datetime = None) -> int:
    now = now or datetime.utcnow()
    return db.query(func.count(EventOccurrence.id)).filter(EventOccurrence.start >= now).scalar() or 0


@_degrade(None)
def next_occurrence(db: Session, now: datetime = None):
    now = now or datetime.utcnow()
    return (
        db.query(EventOccurrence)
        .filter(EventOccurrence.start >= now)
        .order_by(EventOccurrence.start.asc(), EventOccurrence.id.asc())
        .first()
    )


# --- PER USER ---

@_degrade(0)
def user_upcoming_registrations(db: Session, user_id: int, now: datetime = None) -> int:
    now = now or datetime.utcnow()
    return (
        db.query(func.count(Registration.id))
        .join(EventOccurrence, Registration.event_occurrence_id == EventOccurrence.id)
        .filter(
            Registration.user_id == user_id,
            Registration.status.is_(None),
            EventOccurrence.start >= now,
        )
        .scalar()
        or 0
    )


@_degrade(0)
def user_milestone_count(db: Session, user_id: int) -> int:
    return db.query(func.count()).select_from(UserMilestone).filter(UserMilestone.user_id == user_id).scalar() or 0


def pending_surveys_query(db: Session, user_id: int, now: datetime):
    """Registrations whose occurrence is over and that have no survey yet."""
    ended_at = func.coalesce(EventOccurrence.end, EventOccurrence.start)
    return (
        db.query(Registration)
        .join(EventOccurrence, Registration.event_occurrence_id == EventOccurrence.id)
        .outerjoin(Survey, Survey.registration_id == Registration.id)
        .filter(
            Registration.user_id == user_id,
            ended_at < now,
            Survey.id.is_(None),
            (Registration.status.is_(None)) | (Registration.status != STATUS_CANCELLED),
        )
    )


@_degrade(0)
def user_pending_surveys(db: Session, user_id: int, now: datetime = None) -> int:
    return pending_surveys_query(db, user_id, now or datetime.utcnow()).count()


# --- SURVEYS ---

def _empty_survey_summary():
    return {"count": 0, "average_overall": None, "buckets": {PROMOTER: 0, PASSIVE: 0, DETRACTOR: 0}}


@_degrade(_empty_survey_summary)
def survey_summary(db: Session) -> dict:
    summary = _empty_survey_summary()
    count, average = db.query(func.count(Survey.id), func.avg(Survey.overall_score)).one()
    summary["count"] = count or 0
    summary["average_overall"] = round(float(average), 2) if average is not None else None
    for bucket, total in db.query(Survey.nps_bucket, func.count(Survey.id)).group_by(Survey.nps_bucket).all():
        summary["buckets"][bucket] = total
    return summary


# --- DASHBOARDS ---

def admin_kpis(db: Session, now: datetime = None) -> dict:
    now = now or datetime.utcnow()
    return {
        "total_donations": total_donations(db),
        "yearly_donations": yearly_donations(db, now),
        "monthly_donations": monthly_donations(db, now),
        "year": now.year,
        "month": now.month,
        "upcoming_events": upcoming_occurrence_count(db, now),
        "next_event": next_occurrence(db, now),
        "surveys": survey_summary(db),
    }


def user_dashboard(db: Session, user_id: int, now: datetime = None) -> dict:
    now = now or datetime.utcnow()
    return {
        "upcoming_registrations": user_upcoming_registrations(db, user_id, now),
        "milestones": user_milestone_count(db, user_id),
        "pending_surveys": user_pending_surveys(db, user_id, now),
        "next_event": next_occurrence(db, now),
    }
