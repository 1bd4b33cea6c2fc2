import threading
from datetime import datetime, timedelta

import pytest

from nonprofit_portal import registration_engine
from nonprofit_portal.errors import (
    AlreadyRegistered,
    AlreadyStarted,
    CapacityReached,
    DeadlinePassed,
    NotFound,
    RegistrationCancelled,
    StoreUnavailable,
)
from nonprofit_portal.models.registration import Registration, STATUS_CANCELLED


def test_register_creates_active_registration(db, make_user, make_occurrence):
    user = make_user()
    occurrence = make_occurrence(capacity=10)

    registration = registration_engine.register(db, user.id, occurrence.id)

    assert registration.user_id == user.id
    assert registration.event_occurrence_id == occurrence.id
    assert registration.status is None
    assert registration.attended is False
    assert registration_engine.active_count(db, occurrence.id) == 1


def test_last_seat_goes_to_first_caller(db, make_user, make_occurrence):
    first, second = make_user(), make_user()
    occurrence = make_occurrence(capacity=1)

    registration_engine.register(db, first.id, occurrence.id)
    with pytest.raises(CapacityReached):
        registration_engine.register(db, second.id, occurrence.id)

    assert db.query(Registration).filter_by(event_occurrence_id=occurrence.id).count() == 1


def test_deadline_passed_wins_even_with_free_seats(db, make_user, make_occurrence):
    user = make_user()
    occurrence = make_occurrence(capacity=50, deadline=datetime.utcnow() - timedelta(days=1))

    with pytest.raises(DeadlinePassed):
        registration_engine.register(db, user.id, occurrence.id)
    assert db.query(Registration).count() == 0


def test_started_event_is_rejected_before_deadline_check(db, make_user, make_occurrence):
    user = make_user()
    occurrence = make_occurrence(
        start=datetime.utcnow() - timedelta(hours=1),
        deadline=datetime.utcnow() - timedelta(days=1),
    )

    with pytest.raises(AlreadyStarted):
        registration_engine.register(db, user.id, occurrence.id)


def test_start_equal_to_now_counts_as_started(db, make_user, make_occurrence):
    now = datetime(2030, 5, 1, 18, 0)
    user = make_user()
    occurrence = make_occurrence(start=now)

    with pytest.raises(AlreadyStarted):
        registration_engine.register(db, user.id, occurrence.id, now=now)


def test_unknown_occurrence(db, make_user):
    user = make_user()
    with pytest.raises(NotFound):
        registration_engine.register(db, user.id, 999)


def test_second_registration_is_rejected(db, make_user, make_occurrence):
    user = make_user()
    occurrence = make_occurrence()

    registration_engine.register(db, user.id, occurrence.id)
    with pytest.raises(AlreadyRegistered):
        registration_engine.register(db, user.id, occurrence.id)

    rows = db.query(Registration).filter_by(user_id=user.id, event_occurrence_id=occurrence.id).count()
    assert rows == 1


def test_duplicate_is_reported_before_capacity(db, make_user, make_occurrence):
    user = make_user()
    occurrence = make_occurrence(capacity=1)

    registration_engine.register(db, user.id, occurrence.id)
    with pytest.raises(AlreadyRegistered):
        registration_engine.register(db, user.id, occurrence.id)


def test_unlimited_capacity(db, make_user, make_occurrence):
    occurrence = make_occurrence(capacity=None)
    for _ in range(5):
        registration_engine.register(db, make_user().id, occurrence.id)
    assert registration_engine.active_count(db, occurrence.id) == 5


def test_cancel_frees_the_seat(db, make_user, make_occurrence):
    first, second = make_user(), make_user()
    occurrence = make_occurrence(capacity=1)

    registration = registration_engine.register(db, first.id, occurrence.id)
    cancelled = registration_engine.cancel(db, registration.id, user_id=first.id)

    assert cancelled.status == STATUS_CANCELLED
    assert registration_engine.active_count(db, occurrence.id) == 0
    registration_engine.register(db, second.id, occurrence.id)


def test_cancelled_user_cannot_register_again(db, make_user, make_occurrence):
    user = make_user()
    occurrence = make_occurrence(capacity=5)

    registration = registration_engine.register(db, user.id, occurrence.id)
    registration_engine.cancel(db, registration.id)

    with pytest.raises(AlreadyRegistered):
        registration_engine.register(db, user.id, occurrence.id)


def test_cancel_someone_elses_registration_looks_missing(db, make_user, make_occurrence):
    owner, other = make_user(), make_user()
    registration = registration_engine.register(db, owner.id, make_occurrence().id)

    with pytest.raises(NotFound):
        registration_engine.cancel(db, registration.id, user_id=other.id)
    with pytest.raises(NotFound):
        registration_engine.cancel(db, 12345)

    db.refresh(registration)
    assert registration.status is None


def test_check_in(db, make_user, make_occurrence):
    registration = registration_engine.register(db, make_user().id, make_occurrence().id)
    when = datetime(2030, 1, 1, 9, 30)

    checked = registration_engine.check_in(db, registration.id, now=when)

    assert checked.attended is True
    assert checked.check_in_time == when


def test_cancelled_registration_cannot_be_checked_in(db, make_user, make_occurrence):
    registration = registration_engine.register(db, make_user().id, make_occurrence().id)
    registration_engine.cancel(db, registration.id)

    with pytest.raises(RegistrationCancelled):
        registration_engine.check_in(db, registration.id)

    db.refresh(registration)
    assert registration.attended is False
    assert registration.check_in_time is None


def test_concurrent_signups_never_exceed_capacity(session_factory, make_user, make_occurrence):
    capacity = 3
    occurrence = make_occurrence(capacity=capacity)
    user_ids = [make_user().id for _ in range(10)]

    outcomes = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(user_ids))

    def attempt(user_id):
        session = session_factory()
        try:
            barrier.wait()
            registration_engine.register(session, user_id, occurrence.id)
            result = "ok"
        except (CapacityReached, StoreUnavailable) as e:
            result = type(e).__name__
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(uid,)) for uid in user_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    check = session_factory()
    try:
        seats_taken = registration_engine.active_count(check, occurrence.id)
    finally:
        check.close()

    assert len(outcomes) == len(user_ids)
    assert "StoreUnavailable" not in outcomes
    assert seats_taken == capacity
    assert outcomes.count("ok") == capacity
    assert outcomes.count("CapacityReached") == len(user_ids) - capacity
