# -*- coding: utf-8 -*-
"""
Post-event survey submission and scoring.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nonprofit_portal.errors import AlreadyExists, NotFound
from nonprofit_portal.models.registration import Registration
from nonprofit_portal.models.survey import Survey

logger = logging.getLogger(__name__)

PROMOTER = "Promoter"
PASSIVE = "Passive"
DETRACTOR = "Detractor"


def overall_score(satisfaction, usefulness, instructor, recommendation) -> Decimal:
    """Plain mean of the four sub-scores, not rounded."""
    total = Decimal(satisfaction) + Decimal(usefulness) + Decimal(instructor) + Decimal(recommendation)
    return total / Decimal(4)


def nps_bucket(recommendation) -> str:
    # Same 1-5 scale as the other scores, not the 0-10 NPS scale
    if recommendation >= 4:
        return PROMOTER
    if recommendation < 3:
        return DETRACTOR
    return PASSIVE


def submit(db: Session, registration_id: int, scores, comments=None, user_id=None, now=None) -> Survey:
    """
    Records the survey for a registration.

    ``scores`` is anything with ``satisfaction``, ``usefulness``,
    ``instructor`` and ``recommendation`` attributes (see
    ``schemas.survey.SurveyScores``). When ``user_id`` is given the
    registration must belong to that user.
    """
    registration = db.query(Registration).filter(Registration.id == registration_id).first()
    if registration is None or (user_id is not None and registration.user_id != user_id):
        raise NotFound("This registration does not exist.")

    if db.query(Survey.id).filter(Survey.registration_id == registration_id).first() is not None:
        raise AlreadyExists()

    survey = Survey(
        registration_id=registration_id,
        satisfaction_score=scores.satisfaction,
        usefulness_score=scores.usefulness,
        instructor_score=scores.instructor,
        recommendation_score=scores.recommendation,
        overall_score=overall_score(scores.satisfaction, scores.usefulness, scores.instructor, scores.recommendation),
        nps_bucket=nps_bucket(scores.recommendation),
        comments=comments or None,
        submission_date=now or datetime.utcnow(),
    )
    db.add(survey)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent submission for the same registration
        db.rollback()
        raise AlreadyExists()
    db.refresh(survey)
    logger.info("Survey %s submitted for registration %s (%s)", survey.id, registration_id, survey.nps_bucket)
    return survey
