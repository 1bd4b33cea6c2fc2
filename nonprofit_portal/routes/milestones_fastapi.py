# nonprofit_portal/routes/milestones_fastapi.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Form
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from nonprofit_portal import auth
from nonprofit_portal.access_policy import Identity
from nonprofit_portal.database import get_db
from nonprofit_portal.listing import paginate, parse_page, Page
from nonprofit_portal.models.milestone import Milestone, UserMilestone
from nonprofit_portal.schemas.milestone import MilestoneRead, UserMilestoneRead
from nonprofit_portal.schemas.page import PageRead
from nonprofit_portal.views import redirect_to

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Milestones"])
admin_router = APIRouter(
    prefix="/manage-milestones",
    tags=["Manage Milestones"],
    dependencies=[Depends(auth.require_admin)],
)


@router.get("/milestone-progress", response_model=List[UserMilestoneRead])
def milestone_progress(identity: Identity = Depends(auth.require_login), db: Session = Depends(get_db)):
    try:
        return (
            db.query(UserMilestone)
            .join(UserMilestone.milestone)
            .options(contains_eager(UserMilestone.milestone))
            .filter(UserMilestone.user_id == identity.user_id)
            .order_by(UserMilestone.milestone_date.desc(), Milestone.title)
            .all()
        )
    except SQLAlchemyError:
        logger.error("Error fetching milestone progress", exc_info=True)
        return []


# --- ADMIN ---

@admin_router.get("", response_model=PageRead[MilestoneRead])
def list_milestones(
    page: Optional[str] = None,
    search: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Milestone).order_by(Milestone.title, Milestone.id)
    try:
        result = paginate(query, page=page, search=search, columns=[Milestone.title])
    except SQLAlchemyError:
        logger.error("Error fetching milestones", exc_info=True)
        result = Page(current_page=parse_page(page))
        error = "Error fetching milestones"
    return PageRead[MilestoneRead](**vars(result), error_message=error or "")


@admin_router.get("/new")
def new_milestone_form():
    return {"error_message": ""}


@admin_router.post("/new")
def create_milestone(milestone_title: str = Form(...), db: Session = Depends(get_db)):
    title = milestone_title.strip()
    if not title:
        return redirect_to("/manage-milestones", error="The milestone needs a title.")
    try:
        db.add(Milestone(title=title))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error creating milestone", exc_info=True)
        return redirect_to("/manage-milestones", error="Error creating milestone. Please try again.")
    return redirect_to("/manage-milestones")


@admin_router.post("/{milestone_id}/update")
def update_milestone(milestone_id: int, milestone_title: str = Form(...), db: Session = Depends(get_db)):
    milestone = db.query(Milestone).filter(Milestone.id == milestone_id).first()
    if milestone is None:
        return redirect_to("/manage-milestones", error="Milestone does not exist")
    title = milestone_title.strip()
    if not title:
        return redirect_to("/manage-milestones", error="The milestone needs a title.")

    milestone.title = title
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error updating milestone", exc_info=True)
        return redirect_to("/manage-milestones", error="Error updating milestone. Please try again.")
    return redirect_to("/manage-milestones")


@admin_router.post("/{milestone_id}/delete")
def delete_milestone(milestone_id: int, db: Session = Depends(get_db)):
    milestone = db.query(Milestone).filter(Milestone.id == milestone_id).first()
    if milestone is None:
        return redirect_to("/manage-milestones", error="Milestone does not exist")
    try:
        # Awards of this milestone go with it
        db.delete(milestone)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error deleting milestone", exc_info=True)
        return redirect_to("/manage-milestones", error="Error deleting milestone. Please try again.")
    return redirect_to("/manage-milestones")
