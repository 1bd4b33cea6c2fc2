from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from nonprofit_portal import aggregation
from nonprofit_portal.models.donation import Donation
from nonprofit_portal.models.milestone import Milestone, UserMilestone
from nonprofit_portal.models.registration import Registration, STATUS_CANCELLED
from nonprofit_portal.models.survey import Survey

NOW = datetime(2031, 6, 15, 12, 0)


def test_windows():
    assert aggregation.year_window(NOW) == (date(2031, 1, 1), date(2031, 12, 31))
    assert aggregation.month_window(NOW) == (date(2031, 6, 1), date(2031, 6, 30))
    assert aggregation.month_window(datetime(2032, 2, 10)) == (date(2032, 2, 1), date(2032, 2, 29))
    assert aggregation.month_window(datetime(2031, 12, 31)) == (date(2031, 12, 1), date(2031, 12, 31))


def test_donation_totals(db, make_user):
    donor = make_user()
    db.add_all([
        Donation(user_id=donor.id, amount=Decimal("10.00"), date=date(2031, 6, 1)),
        Donation(user_id=donor.id, amount=Decimal("5.50"), date=date(2031, 6, 30)),
        Donation(user_id=donor.id, amount=Decimal("20.00"), date=date(2031, 1, 1)),
        Donation(user_id=donor.id, amount=Decimal("100.00"), date=date(2030, 12, 31)),
    ])
    db.commit()

    assert aggregation.total_donations(db) == Decimal("135.50")
    assert aggregation.yearly_donations(db, NOW) == Decimal("35.50")
    assert aggregation.monthly_donations(db, NOW) == Decimal("15.50")


def test_empty_store_gives_zeroes(db):
    assert aggregation.total_donations(db) == 0
    assert aggregation.upcoming_occurrence_count(db, NOW) == 0
    assert aggregation.next_occurrence(db, NOW) is None
    assert aggregation.survey_summary(db)["count"] == 0


def test_upcoming_and_next_occurrence(db, make_occurrence):
    make_occurrence(start=NOW - timedelta(days=1), name="Past")
    later = make_occurrence(start=NOW + timedelta(days=10), name="Later")
    soon = make_occurrence(start=NOW + timedelta(days=2), name="Soon")

    assert aggregation.upcoming_occurrence_count(db, NOW) == 2
    assert aggregation.next_occurrence(db, NOW).id == soon.id
    assert later.id != soon.id


def test_user_counters(db, make_user, make_occurrence):
    user = make_user()
    future = make_occurrence(start=NOW + timedelta(days=3))
    cancelled_future = make_occurrence(start=NOW + timedelta(days=4))
    ended = make_occurrence(start=NOW - timedelta(days=3), end=NOW - timedelta(days=3) + timedelta(hours=2))
    no_end = make_occurrence(start=NOW - timedelta(days=1))
    surveyed = make_occurrence(start=NOW - timedelta(days=5))
    cancelled_past = make_occurrence(start=NOW - timedelta(days=6))
    milestone = Milestone(title="First event")
    db.add(milestone)
    db.flush()

    surveyed_registration = Registration(user_id=user.id, event_occurrence_id=surveyed.id)
    db.add_all([
        Registration(user_id=user.id, event_occurrence_id=future.id),
        Registration(user_id=user.id, event_occurrence_id=cancelled_future.id, status=STATUS_CANCELLED),
        Registration(user_id=user.id, event_occurrence_id=ended.id),
        Registration(user_id=user.id, event_occurrence_id=no_end.id),
        Registration(user_id=user.id, event_occurrence_id=cancelled_past.id, status=STATUS_CANCELLED),
        surveyed_registration,
        UserMilestone(user_id=user.id, milestone_id=milestone.id, milestone_date=date(2031, 1, 1)),
    ])
    db.flush()
    db.add(Survey(
        registration_id=surveyed_registration.id,
        satisfaction_score=4, usefulness_score=4, instructor_score=4, recommendation_score=4,
        overall_score=Decimal("4"), nps_bucket="Promoter",
    ))
    db.commit()

    assert aggregation.user_upcoming_registrations(db, user.id, NOW) == 1
    assert aggregation.user_milestone_count(db, user.id) == 1
    assert aggregation.user_pending_surveys(db, user.id, NOW) == 2

    dashboard = aggregation.user_dashboard(db, user.id, NOW)
    assert dashboard["upcoming_registrations"] == 1
    assert dashboard["pending_surveys"] == 2
    assert dashboard["next_event"].id == future.id


def test_survey_summary(db, make_user, make_occurrence):
    user = make_user()
    for rec, bucket in [(5, "Promoter"), (3, "Passive"), (1, "Detractor"), (4, "Promoter")]:
        registration = Registration(user_id=user.id, event_occurrence_id=make_occurrence().id)
        db.add(registration)
        db.flush()
        db.add(Survey(
            registration_id=registration.id,
            satisfaction_score=rec, usefulness_score=rec, instructor_score=rec, recommendation_score=rec,
            overall_score=Decimal(rec), nps_bucket=bucket,
        ))
    db.commit()

    summary = aggregation.survey_summary(db)
    assert summary["count"] == 4
    assert summary["average_overall"] == 3.25
    assert summary["buckets"] == {"Promoter": 2, "Passive": 1, "Detractor": 1}


def test_a_failing_kpi_does_not_take_down_the_others(db, make_user, monkeypatch):
    donor = make_user()
    db.add(Donation(user_id=donor.id, amount=Decimal("42.00"), date=NOW.date()))
    db.commit()

    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    monkeypatch.setattr(aggregation, "_sum_donations", broken)

    kpis = aggregation.admin_kpis(db, NOW)
    assert kpis["total_donations"] == 0
    assert kpis["monthly_donations"] == 0
    assert kpis["upcoming_events"] == 0
    assert kpis["surveys"]["count"] == 0
    assert kpis["year"] == 2031
    assert kpis["month"] == 6
