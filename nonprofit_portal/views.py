# -*- coding: utf-8 -*-
"""
Helpers shared by the page routes: the login prompt, redirects carrying a
message, and parsing of form fields.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from urllib.parse import urlencode, urlparse

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def render_login(request: Request, error_message: str = "", next_url: str = None):
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error_message": error_message, "next": next_url or ""},
    )


def redirect_to(url: str, error: str = None, success: str = None, **params):
    query = {key: value for key, value in params.items() if value is not None}
    if error:
        query["error"] = error
    if success:
        query["success"] = success
    if query:
        url = f"{url}?{urlencode(query)}"
    return RedirectResponse(url=url, status_code=302)


def safe_next(target: str, default: str = "/") -> str:
    """Only same-site paths are accepted as a post-login target."""
    if target and target.startswith("/") and not target.startswith(("//", "/\\")):
        return target
    return default


def referer_path(request: Request, default: str = "/") -> str:
    """Path and query of the Referer header, with the scheme and host dropped."""
    referer = urlparse(request.headers.get("referer") or "")
    target = referer.path
    if referer.query:
        target = f"{target}?{referer.query}"
    return safe_next(target, default)


def return_target(request: Request) -> str:
    """
    Where to send the user after logging in. Only a GET can be replayed by
    the browser; for any other method it is the page the form was on.
    """
    if request.method == "GET":
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return safe_next(target)
    return referer_path(request)


# --- FORM PARSING ---

def parse_optional_int(value):
    if value is None or str(value).strip() == "":
        return None
    return int(value)


def parse_date(value):
    if not value:
        return None
    return date.fromisoformat(value)


def parse_datetime(value):
    # <input type="datetime-local"> sends 2025-03-01T18:30
    if not value:
        return None
    return datetime.fromisoformat(value)


def parse_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"Invalid amount: {value!r}")
    return amount.quantize(Decimal("0.01"))
