# nonprofit_portal/routes/donations_fastapi.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from nonprofit_portal import aggregation, auth, export
from nonprofit_portal.access_policy import Identity
from nonprofit_portal.bootstrap import get_anonymous_donor
from nonprofit_portal.database import get_db
from nonprofit_portal.listing import paginate, parse_page, Page
from nonprofit_portal.models.donation import Donation
from nonprofit_portal.models.user import User
from nonprofit_portal.schemas.dashboard import AdminKpis
from nonprofit_portal.schemas.donation import DonationAdminRead, DonationRead
from nonprofit_portal.schemas.page import PageRead
from nonprofit_portal.views import parse_amount, parse_date, redirect_to

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Donations"])
admin_router = APIRouter(
    prefix="/manage-donations",
    tags=["Manage Donations"],
    dependencies=[Depends(auth.require_admin)],
)

LIST_URL = "/manage-donations"


class DonationPage(PageRead[DonationAdminRead]):
    kpis: Optional[AdminKpis] = None


@router.get("/donate")
def donate_page(error: Optional[str] = None, success: Optional[str] = None):
    return {"error_message": error or "", "success_message": success or ""}


@router.post("/donate")
def donate(
    amount: str = Form(...),
    identity: Identity = Depends(auth.get_identity),
    db: Session = Depends(get_db),
):
    try:
        value = parse_amount(amount)
    except ValueError:
        return redirect_to("/donate", error="Please enter a valid donation amount.")

    try:
        if identity.is_authenticated:
            donor_id = identity.user_id
        else:
            donor_id = get_anonymous_donor(db).id
        donation = Donation(user_id=donor_id, amount=value)
        db.add(donation)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error recording donation", exc_info=True)
        return redirect_to("/donate", error="Error processing your donation. Please try again.")

    logger.info("Donation %s of %s recorded for user %s", donation.id, value, donor_id)
    return redirect_to("/donate", success="Thank you for your donation!")


@router.get("/my-donations", response_model=List[DonationRead])
def my_donations(identity: Identity = Depends(auth.require_login), db: Session = Depends(get_db)):
    try:
        return (
            db.query(Donation)
            .filter(Donation.user_id == identity.user_id)
            .order_by(Donation.date.desc(), Donation.id.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.error("Error fetching donations", exc_info=True)
        return []


# --- ADMIN ---

@admin_router.get("", response_model=DonationPage)
def list_donations(
    page: Optional[str] = None,
    search: Optional[str] = None,
    error: Optional[str] = None,
    success: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = (
        db.query(Donation)
        .join(Donation.user)
        .options(contains_eager(Donation.user))
        .order_by(Donation.date.desc(), Donation.id.desc())
    )
    try:
        result = paginate(query, page=page, search=search, columns=[User.first_name, User.last_name, User.email])
    except SQLAlchemyError:
        logger.error("Error fetching donations", exc_info=True)
        db.rollback()
        result = Page(current_page=parse_page(page))
        error = "Error fetching donations"

    return DonationPage(
        **vars(result),
        kpis=aggregation.admin_kpis(db),
        error_message=error or "",
        success_message=success,
    )


@admin_router.post("/new")
def create_donation(
    user_id: int = Form(...),
    amount: str = Form(...),
    donation_date: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    try:
        value = parse_amount(amount)
        when = parse_date(donation_date)
    except ValueError:
        return redirect_to(LIST_URL, error="Please check the amount and date of the donation.")

    if db.query(User.id).filter(User.id == user_id).first() is None:
        return redirect_to(LIST_URL, error="Donor does not exist")

    donation = Donation(user_id=user_id, amount=value)
    if when is not None:
        donation.date = when
    try:
        db.add(donation)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error creating donation", exc_info=True)
        return redirect_to(LIST_URL, error="Error creating donation. Please try again.")
    return redirect_to(LIST_URL, success="Donation recorded")


@admin_router.get("/export")
def export_donations(db: Session = Depends(get_db)):
    try:
        content = export.donations_workbook(db)
    except SQLAlchemyError:
        logger.error("Error exporting donations", exc_info=True)
        return redirect_to(LIST_URL, error="Error exporting donations")

    filename = export.export_filename(datetime.utcnow().date())
    return Response(
        content=content,
        media_type=export.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@admin_router.post("/{donation_id}/update")
def update_donation(
    donation_id: int,
    amount: str = Form(...),
    donation_date: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    donation = db.query(Donation).filter(Donation.id == donation_id).first()
    if donation is None:
        return redirect_to(LIST_URL, error="Donation does not exist")
    try:
        donation.amount = parse_amount(amount)
        when = parse_date(donation_date)
    except ValueError:
        return redirect_to(LIST_URL, error="Please check the amount and date of the donation.")
    if when is not None:
        donation.date = when

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error updating donation", exc_info=True)
        return redirect_to(LIST_URL, error="Error updating donation. Please try again.")
    return redirect_to(LIST_URL, success="Donation updated")


@admin_router.post("/{donation_id}/delete")
def delete_donation(donation_id: int, db: Session = Depends(get_db)):
    donation = db.query(Donation).filter(Donation.id == donation_id).first()
    if donation is None:
        return redirect_to(LIST_URL, error="Donation does not exist")
    try:
        db.delete(donation)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error deleting donation", exc_info=True)
        return redirect_to(LIST_URL, error="Error deleting donation. Please try again.")
    return redirect_to(LIST_URL, success="Donation deleted")
