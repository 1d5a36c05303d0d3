"""Request bodies and JSON shapes for the MedSOS dispatch API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from medsos_dispatch.models import (
    Candidate,
    ContactAssignment,
    Dashboard,
    EmergencyRequest,
    Responder,
    RewardGrant,
)


class ResponderIn(BaseModel):
    responder_id: str
    name: str
    contact_handle: str
    role: str
    latitude: float
    longitude: float
    specialty: Optional[str] = None
    available: bool = True
    credit_points: int = 0


class AvailabilityIn(BaseModel):
    available: bool


class RequestIn(BaseModel):
    requester_id: str
    latitude: float
    longitude: float


class DispatchIn(BaseModel):
    radius_km: Optional[float] = None


class ContactIn(BaseModel):
    responder_id: str


def responder_out(responder: Responder) -> dict:
    return {
        "responder_id": responder.responder_id,
        "name": responder.name,
        "contact_handle": responder.contact_handle,
        "role": responder.role.value,
        "specialty": responder.specialty,
        "latitude": responder.location.latitude,
        "longitude": responder.location.longitude,
        "available": responder.available,
        "active": responder.active,
        "credit_points": responder.credit_points,
    }


def candidate_out(candidate: Candidate) -> dict:
    return {"responder_id": candidate.responder_id, "distance_km": round(candidate.distance_km, 3)}


def request_out(request: EmergencyRequest) -> dict:
    return {
        "request_id": request.request_id,
        "requester_id": request.requester_id,
        "latitude": request.origin.latitude,
        "longitude": request.origin.longitude,
        "state": request.state.value,
        "candidates": [candidate_out(c) for c in request.candidate_snapshot],
        "dispatch_radius_km": request.dispatch_radius_km,
        "contacted_responder_id": request.contacted_responder_id,
        "created_at": request.created_at.isoformat(),
        "resolved_at": request.resolved_at.isoformat() if request.resolved_at else None,
        "abandoned_at": request.abandoned_at.isoformat() if request.abandoned_at else None,
        "history": [
            {
                "event": h.event,
                "from_state": h.from_state.value if h.from_state else None,
                "to_state": h.to_state.value,
                "at": h.at.isoformat(),
            }
            for h in request.history
        ],
    }


def contact_out(contact: ContactAssignment) -> dict:
    return {
        "request_id": contact.request_id,
        "responder_id": contact.responder_id,
        "contact_handle": contact.contact_handle,
    }


def grant_out(grant: RewardGrant) -> dict:
    return {
        "request_id": grant.request_id,
        "responder_id": grant.responder_id,
        "points": grant.points,
        "granted_at": grant.granted_at.isoformat(),
    }


def dashboard_out(board: Dashboard) -> dict:
    return {
        "total_responders": board.summary.total_responders,
        "available_responders": board.summary.available_responders,
        "total_credit_points": board.summary.total_credit_points,
        "points_awarded": board.points_awarded,
        "leaderboard": [
            {"responder_id": r.responder_id, "name": r.name, "role": r.role.value, "credit_points": r.credit_points}
            for r in board.leaderboard
        ],
        "recent_requests": [
            {
                "request_id": r.request_id,
                "requester_id": r.requester_id,
                "state": r.state.value,
                "contacted_responder_id": r.contacted_responder_id,
                "created_at": r.created_at.isoformat(),
            }
            for r in board.recent_requests
        ],
    }
