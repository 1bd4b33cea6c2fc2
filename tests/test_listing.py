import math

import pytest

from nonprofit_portal.listing import normalize_search, paginate, parse_page, search_predicate, total_pages_for
from nonprofit_portal.models.milestone import Milestone


@pytest.fixture
def milestones(db):
    titles = [f"Volunteer hours {i}" for i in range(23)] + ["Mentor 100%", "First_Event", "first event"]
    db.add_all([Milestone(title=t) for t in titles])
    db.commit()
    return titles


def _query(db):
    return db.query(Milestone).order_by(Milestone.id)


@pytest.mark.parametrize("raw, expected", [
    (None, 1), ("", 1), ("abc", 1), ("0", 1), ("-4", 1), (0, 1), ("3", 3), (7, 7),
])
def test_parse_page(raw, expected):
    assert parse_page(raw) == expected


def test_blank_search_means_no_filter():
    assert normalize_search("   ") == ""
    assert search_predicate("   ", [Milestone.title]) is None
    assert search_predicate("x", []) is None


def test_total_pages():
    assert total_pages_for(0, 10) == 0
    assert total_pages_for(10, 10) == 1
    assert total_pages_for(11, 10) == 2


def test_first_page(db, milestones):
    page = paginate(_query(db), page=1, per_page=10)
    assert page.total_count == len(milestones)
    assert page.total_pages == 3
    assert page.current_page == 1
    assert len(page.items) == 10


@pytest.mark.parametrize("search, per_page", [
    ("", 10), ("volunteer", 4), ("HOURS 1", 3), ("first", 1), ("nothing like this", 5),
])
def test_page_count_matches_non_empty_pages(db, milestones, search, per_page):
    first = paginate(_query(db), page=1, per_page=per_page, search=search, columns=[Milestone.title])

    non_empty = 0
    seen = []
    page_no = 1
    while True:
        page = paginate(_query(db), page=page_no, per_page=per_page, search=search, columns=[Milestone.title])
        if not page.items:
            break
        non_empty += 1
        seen.extend(m.id for m in page.items)
        page_no += 1

    assert first.total_pages == math.ceil(first.total_count / per_page)
    assert non_empty == first.total_pages
    assert len(seen) == len(set(seen)) == first.total_count


def test_search_is_case_insensitive_substring(db, milestones):
    page = paginate(_query(db), search="  FIRST ", columns=[Milestone.title])
    assert page.search == "FIRST"
    assert sorted(m.title for m in page.items) == ["First_Event", "first event"]


def test_wildcards_in_search_are_literal(db, milestones):
    assert [m.title for m in paginate(_query(db), search="100%", columns=[Milestone.title]).items] == ["Mentor 100%"]
    assert [m.title for m in paginate(_query(db), search="t_e", columns=[Milestone.title]).items] == ["First_Event"]


def test_page_past_the_end_is_empty_not_clamped(db, milestones):
    page = paginate(_query(db), page=99, per_page=10)
    assert page.items == []
    assert page.current_page == 99
    assert page.total_pages == 3
