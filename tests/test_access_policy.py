import pytest

from nonprofit_portal.access_policy import (
    ADMIN_PATHS,
    PUBLIC_PATHS,
    Decision,
    Identity,
    evaluate,
    is_public,
    matches_admin_action,
)

ANON = Identity.anonymous()
MEMBER = Identity(user_id=7, role="participant", first_name="Pat", last_name="Member")
ADMIN = Identity(user_id=1, role="Admin", first_name="Ada", last_name="Admin")


@pytest.mark.parametrize("path", sorted(PUBLIC_PATHS) + ["/lang/es", "/lang/en"])
def test_public_paths_allow_everyone(path):
    assert evaluate(path, ANON) is Decision.ALLOW
    assert evaluate(path, MEMBER) is Decision.ALLOW
    assert evaluate(path, ADMIN) is Decision.ALLOW


def test_no_public_path_is_an_admin_action():
    for path in PUBLIC_PATHS:
        assert not matches_admin_action(path)
        assert path not in ADMIN_PATHS


def test_language_switch_is_one_segment_only():
    assert is_public("/lang/es")
    assert not is_public("/lang/es/extra")
    assert not is_public("/lang/")
    assert evaluate("/lang/es/extra", ANON) is Decision.CHALLENGE


@pytest.mark.parametrize("path", [
    "/manage-events/3/delete",
    "/manage-events/3/new",
    "/manage-events/3/update",
    "/manage-event-occurrences/9/update",
    "/manage-milestones/2/delete",
    "/manage-donations/5/update",
    "/manage-participants/4/milestones/new",
    "/manage-participants/4/milestones/2/delete",
    "/manage-surveys/8/delete",
    "/manage-registrations/12/check-in",
])
def test_admin_actions(path):
    assert matches_admin_action(path)
    assert evaluate(path, ANON) is Decision.FORBIDDEN
    assert evaluate(path, MEMBER) is Decision.FORBIDDEN
    assert evaluate(path, ADMIN) is Decision.ALLOW


@pytest.mark.parametrize("path", sorted(ADMIN_PATHS))
def test_admin_static_paths(path):
    assert evaluate(path, ANON) is Decision.FORBIDDEN
    assert evaluate(path, MEMBER) is Decision.FORBIDDEN
    assert evaluate(path, ADMIN) is Decision.ALLOW


@pytest.mark.parametrize("path", [
    "/manage-events/3",
    "/manage-participants/4",
    "/manage-event-occurrences/9/registrations",
    "/manage-anything-new",
])
def test_unlisted_admin_area_paths_still_need_admin(path):
    assert evaluate(path, ANON) is Decision.FORBIDDEN
    assert evaluate(path, MEMBER) is Decision.FORBIDDEN
    assert evaluate(path, ADMIN) is Decision.ALLOW


@pytest.mark.parametrize("path", ["/dashboard", "/my-events", "/account-info", "/events/3/register", "/nowhere"])
def test_everything_else_needs_login(path):
    assert evaluate(path, ANON) is Decision.CHALLENGE
    assert evaluate(path, MEMBER) is Decision.ALLOW
    assert evaluate(path, ADMIN) is Decision.ALLOW


def test_trailing_slash_is_ignored():
    assert evaluate("/events/", ANON) is Decision.ALLOW
    assert evaluate("/manage-donations/", MEMBER) is Decision.FORBIDDEN
    assert evaluate("/manage-events/3/delete/", ADMIN) is Decision.ALLOW


def test_admin_role_is_case_insensitive():
    assert Identity(user_id=1, role="ADMIN").is_admin
    assert not Identity(user_id=None, role="admin").is_admin


def test_identity_from_session():
    assert Identity.from_session({}) == ANON
    identity = Identity.from_session({"user_id": 7, "role": "participant", "first_name": "Pat", "last_name": "Member"})
    assert identity.is_authenticated
    assert identity.display_name == "Pat Member"
