# -*- coding: utf-8 -*-
"""
Spreadsheet export of the donation ledger.
"""
import io
from datetime import date

import pandas as pd
from sqlalchemy.orm import Session, joinedload

from nonprofit_portal.models.donation import Donation

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

COLUMNS = ["Donation ID", "User ID", "First Name", "Last Name", "Email", "Amount", "Date"]


def export_filename(today: date = None) -> str:
    today = today or date.today()
    return f"donations_export_{today.isoformat()}.xlsx"


def donation_rows(db: Session):
    donations = (
        db.query(Donation)
        .options(joinedload(Donation.user))
        .order_by(Donation.date.is_(None), Donation.date.desc(), Donation.id.desc())
        .all()
    )
    rows = []
    for donation in donations:
        rows.append({
            "Donation ID": donation.id,
            "User ID": donation.user_id,
            "First Name": donation.user.first_name if donation.user else "",
            "Last Name": donation.user.last_name if donation.user else "",
            "Email": donation.user.email if donation.user else "",
            "Amount": f"{donation.amount:.2f}" if donation.amount is not None else "",
            "Date": donation.date.strftime("%b %d, %Y") if donation.date else "N/A",
        })
    return rows


def donations_workbook(db: Session) -> bytes:
    """All donations, newest first, as an .xlsx file in memory."""
    df = pd.DataFrame(donation_rows(db), columns=COLUMNS)

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Donations")
    return output.getvalue()
