from __future__ import annotations

import io
from typing import Iterable, Mapping

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from medsos_dispatch.models import EmergencyRequest, RewardGrant

from .db import now_iso


def build_pdf_summary(requests: Iterable[EmergencyRequest], grants: Mapping[str, RewardGrant]) -> bytes:
    buff = io.BytesIO()
    pdf = canvas.Canvas(buff, pagesize=letter)
    width, height = letter

    y = height - 40
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawString(40, y, "MedSOS Emergency Requests Summary")
    y -= 18
    pdf.setFont("Helvetica", 10)
    pdf.drawString(40, y, f"Generated: {now_iso()}")
    y -= 20

    for r in requests:
        if y < 100:
            pdf.showPage()
            y = height - 40

        grant = grants.get(r.request_id)
        pdf.setStrokeColor(colors.darkred)
        pdf.rect(35, y - 65, width - 70, 60, stroke=1, fill=0)
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(45, y - 15, f"Request {r.request_id} | {r.state.value}")
        pdf.setFont("Helvetica", 9)
        pdf.drawString(45, y - 30, f"Requester: {r.requester_id}  |  Created: {r.created_at.isoformat()}")
        pdf.drawString(
            45,
            y - 43,
            f"Location: {r.origin.latitude}, {r.origin.longitude}  |  Candidates: {len(r.candidate_snapshot)}",
        )
        reward = f"{grant.points} pts" if grant else "none"
        pdf.drawString(45, y - 56, f"Responder: {r.contacted_responder_id or 'N/A'}  |  Reward: {reward}")

        y -= 75

    pdf.save()
    buff.seek(0)
    return buff.read()
