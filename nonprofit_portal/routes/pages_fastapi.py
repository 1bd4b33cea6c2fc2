# nonprofit_portal/routes/pages_fastapi.py
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from nonprofit_portal.access_policy import Identity
from nonprofit_portal.auth import get_identity
from nonprofit_portal.config import config
from nonprofit_portal.views import referer_path

router = APIRouter(tags=["Pages"])


@router.get("/")
def home(identity: Identity = Depends(get_identity)):
    user = None
    if identity.is_authenticated:
        user = {"name": identity.display_name, "role": identity.role}
    return {"page": "home", "user": user}


@router.get("/about")
def about():
    return {"page": "about"}


@router.get("/teapot")
def teapot():
    return JSONResponse(status_code=418, content={"detail": "I'm a teapot"})


@router.get("/lang/{code}")
def set_language(code: str, request: Request):
    if code not in config.SUPPORTED_LANGUAGES:
        code = config.SUPPORTED_LANGUAGES[0]
    response = RedirectResponse(url=referer_path(request), status_code=302)
    response.set_cookie("lang", code)
    return response
