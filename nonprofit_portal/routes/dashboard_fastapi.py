# nonprofit_portal/routes/dashboard_fastapi.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nonprofit_portal import aggregation, auth
from nonprofit_portal.access_policy import Identity
from nonprofit_portal.database import get_db
from nonprofit_portal.schemas.dashboard import AdminKpis, UserDashboard

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=UserDashboard)
def user_home(identity: Identity = Depends(auth.require_login), db: Session = Depends(get_db)):
    """
    Landing page after login: the participant's own counters, plus the
    organization KPIs for admins.
    """
    data = aggregation.user_dashboard(db, identity.user_id)
    data["display_name"] = identity.display_name
    if identity.is_admin:
        data["admin"] = aggregation.admin_kpis(db)
    return data


@router.get("/analytics", response_model=AdminKpis)
def analytics(db: Session = Depends(get_db)):
    return aggregation.admin_kpis(db)
