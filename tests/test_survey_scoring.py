from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from nonprofit_portal import survey_scoring
from nonprofit_portal.errors import AlreadyExists, NotFound
from nonprofit_portal.models.registration import Registration
from nonprofit_portal.models.survey import Survey
from nonprofit_portal.schemas.survey import SurveyScores


def _past_registration(db, user, make_occurrence):
    occurrence = make_occurrence(start=datetime.utcnow() - timedelta(days=2))
    registration = Registration(user_id=user.id, event_occurrence_id=occurrence.id)
    db.add(registration)
    db.commit()
    return registration


@pytest.mark.parametrize("recommendation, bucket", [
    (5, survey_scoring.PROMOTER),
    (4, survey_scoring.PROMOTER),
    (3, survey_scoring.PASSIVE),
    (2, survey_scoring.DETRACTOR),
    (1, survey_scoring.DETRACTOR),
])
def test_nps_bucket(recommendation, bucket):
    assert survey_scoring.nps_bucket(recommendation) == bucket


def test_overall_score_is_exact_mean():
    assert survey_scoring.overall_score(5, 4, 3, 4) == Decimal("4")
    assert survey_scoring.overall_score(5, 4, 4, 4) == Decimal("4.25")
    assert survey_scoring.overall_score(1, 1, 1, 2) == Decimal("1.25")


def test_submit_stores_score_and_bucket(db, make_user, make_occurrence):
    user = make_user()
    registration = _past_registration(db, user, make_occurrence)
    scores = SurveyScores(satisfaction=5, usefulness=4, instructor=3, recommendation=4)

    survey = survey_scoring.submit(db, registration.id, scores, comments="Great night", user_id=user.id)

    assert survey.overall_score == Decimal("4.00")
    assert survey.nps_bucket == survey_scoring.PROMOTER
    assert survey.comments == "Great night"
    assert survey.submission_date is not None


def test_second_submission_is_rejected(db, make_user, make_occurrence):
    user = make_user()
    registration = _past_registration(db, user, make_occurrence)
    scores = SurveyScores(satisfaction=3, usefulness=3, instructor=3, recommendation=3)

    survey_scoring.submit(db, registration.id, scores)
    with pytest.raises(AlreadyExists):
        survey_scoring.submit(db, registration.id, scores)

    assert db.query(Survey).filter_by(registration_id=registration.id).count() == 1


def test_submit_for_missing_or_foreign_registration(db, make_user, make_occurrence):
    owner, other = make_user(), make_user()
    registration = _past_registration(db, owner, make_occurrence)
    scores = SurveyScores(satisfaction=3, usefulness=3, instructor=3, recommendation=3)

    with pytest.raises(NotFound):
        survey_scoring.submit(db, 999, scores)
    with pytest.raises(NotFound):
        survey_scoring.submit(db, registration.id, scores, user_id=other.id)


@pytest.mark.parametrize("bad", [0, 6, -1])
def test_scores_outside_one_to_five_are_rejected(bad):
    with pytest.raises(ValidationError):
        SurveyScores(satisfaction=bad, usefulness=3, instructor=3, recommendation=3)


def test_scores_accept_form_strings():
    scores = SurveyScores(satisfaction="5", usefulness="1", instructor="2", recommendation="3")
    assert scores.satisfaction == 5
