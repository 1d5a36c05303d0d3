from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from medsos_dispatch.errors import InvalidProfile
from medsos_dispatch.geo import validate_coordinate


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        validate_coordinate(self.latitude, self.longitude)


class ResponderRole(str, Enum):
    PHYSICIAN = "Physician"
    NURSE = "Nurse"
    PHARMACIST = "Pharmacist"
    TECHNICAL_ASSISTANT = "TechnicalAssistant"

    @classmethod
    def parse(cls, value) -> "ResponderRole":
        """Map a role label from an outer layer onto the closed role set."""
        if isinstance(value, cls):
            return value
        label = str(value).strip().lower().replace(" ", "").replace("_", "")
        try:
            return _ROLE_ALIASES[label]
        except KeyError:
            raise InvalidProfile(f"Unknown responder role: {value!r}") from None


_ROLE_ALIASES = {
    "physician": ResponderRole.PHYSICIAN,
    "doctor": ResponderRole.PHYSICIAN,
    "nurse": ResponderRole.NURSE,
    "pharmacist": ResponderRole.PHARMACIST,
    "technicalassistant": ResponderRole.TECHNICAL_ASSISTANT,
    "compounder": ResponderRole.TECHNICAL_ASSISTANT,
}


class RequestState(str, Enum):
    PENDING = "Pending"
    DISPATCHED = "Dispatched"
    CONTACTED = "Contacted"
    RESOLVED = "Resolved"
    ABANDONED = "Abandoned"

    @property
    def terminal(self) -> bool:
        return self in (RequestState.RESOLVED, RequestState.ABANDONED)


@dataclass(frozen=True)
class Responder:
    responder_id: str
    name: str
    contact_handle: str
    role: ResponderRole
    location: Coordinate
    specialty: Optional[str] = None
    available: bool = True
    credit_points: int = 0
    active: bool = True


@dataclass(frozen=True)
class Candidate:
    responder_id: str
    distance_km: float


@dataclass(frozen=True)
class TransitionRecord:
    event: str
    to_state: RequestState
    at: datetime
    from_state: Optional[RequestState] = None


@dataclass(frozen=True)
class EmergencyRequest:
    request_id: str
    requester_id: str
    origin: Coordinate
    created_at: datetime
    state: RequestState = RequestState.PENDING
    candidate_snapshot: Tuple[Candidate, ...] = ()
    contacted_responder_id: Optional[str] = None
    dispatch_radius_km: Optional[float] = None
    resolved_at: Optional[datetime] = None
    abandoned_at: Optional[datetime] = None
    history: Tuple[TransitionRecord, ...] = field(default_factory=tuple)

    def has_candidate(self, responder_id: str) -> bool:
        return any(c.responder_id == responder_id for c in self.candidate_snapshot)


@dataclass(frozen=True)
class RewardGrant:
    request_id: str
    responder_id: str
    points: int
    granted_at: datetime


@dataclass(frozen=True)
class ContactAssignment:
    request_id: str
    responder_id: str
    contact_handle: str


@dataclass(frozen=True)
class RegistrySummary:
    total_responders: int
    available_responders: int
    total_credit_points: int


@dataclass(frozen=True)
class Dashboard:
    summary: RegistrySummary
    leaderboard: Tuple[Responder, ...]
    recent_requests: Tuple[EmergencyRequest, ...]
    points_awarded: int
