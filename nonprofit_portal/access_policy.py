# -*- coding: utf-8 -*-
"""
Per-request access control.

``evaluate`` maps a request path and the caller's identity to a decision. It
is a pure function: it reads nothing but its arguments and is called once per
request, before any route runs. Denials never say which rule fired.
"""
import enum
import re
from dataclasses import dataclass
from typing import Mapping, Optional


class Decision(enum.Enum):
    ALLOW = "allow"
    CHALLENGE = "challenge"  # login prompt, no message
    FORBIDDEN = "forbidden"  # login prompt with "Authentication error"


@dataclass(frozen=True)
class Identity:
    user_id: Optional[int] = None
    role: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @classmethod
    def anonymous(cls):
        return cls()

    @classmethod
    def from_session(cls, session: Mapping):
        if not session.get("user_id"):
            return cls.anonymous()
        return cls(
            user_id=session.get("user_id"),
            role=session.get("role"),
            first_name=session.get("first_name") or "",
            last_name=session.get("last_name") or "",
            email=session.get("email") or "",
        )

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and bool(self.role) and self.role.lower() == "admin"

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


PUBLIC_PATHS = frozenset([
    "/",
    "/login",
    "/register",
    "/about",
    "/events",
    "/donate",
    "/analytics",
    "/teapot",
])

# /lang/<code>, one segment only
LANGUAGE_SWITCH = re.compile(r"^/lang/[A-Za-z_-]+$")

# Admin actions carry a resource id in the path, so they are matched by
# prefix and suffix instead of listed one by one.
ADMIN_ACTION_PATTERNS = (
    ("/manage-events/", ("/delete", "/new", "/update")),
    ("/manage-event-occurrences/", ("/delete", "/update")),
    ("/manage-milestones/", ("/delete", "/update")),
    ("/manage-donations/", ("/delete", "/update")),
    ("/manage-participants/", ("/delete", "/update", "/milestones/new")),
    ("/manage-surveys/", ("/delete",)),
    ("/manage-registrations/", ("/check-in",)),
)

ADMIN_PATHS = frozenset([
    "/manage-events",
    "/manage-events/new",
    "/manage-events/new-template",
    "/manage-event-occurrences",
    "/manage-milestones",
    "/manage-milestones/new",
    "/manage-surveys",
    "/manage-donations",
    "/manage-donations/new",
    "/manage-donations/export",
    "/manage-participants",
    "/manage-participants/new",
])

# Anything under here is admin-only, including routes added later that no
# pattern above knows about.
ADMIN_AREA_PREFIX = "/manage-"


def normalize_path(path: str) -> str:
    if not path:
        return "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def is_public(path: str) -> bool:
    path = normalize_path(path)
    return path in PUBLIC_PATHS or bool(LANGUAGE_SWITCH.match(path))


def matches_admin_action(path: str) -> bool:
    path = normalize_path(path)
    for prefix, suffixes in ADMIN_ACTION_PATTERNS:
        if path.startswith(prefix) and path.endswith(suffixes):
            return True
    return False


def _admin_check(identity: Identity) -> Decision:
    if not identity.is_authenticated or not identity.is_admin:
        return Decision.FORBIDDEN
    return Decision.ALLOW


def evaluate(path: str, identity: Identity) -> Decision:
    path = normalize_path(path)

    if is_public(path):
        return Decision.ALLOW

    if matches_admin_action(path):
        return _admin_check(identity)

    if path in ADMIN_PATHS:
        return _admin_check(identity)

    if path.startswith(ADMIN_AREA_PREFIX):
        return _admin_check(identity)

    if identity.is_authenticated:
        return Decision.ALLOW
    return Decision.CHALLENGE
