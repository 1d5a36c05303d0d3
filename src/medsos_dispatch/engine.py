from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable, Iterable, Optional, Tuple

from medsos_dispatch.errors import InvalidCoordinate, InvalidRadius
from medsos_dispatch.ledger import RequestLedger
from medsos_dispatch.models import (
    Candidate,
    ContactAssignment,
    Coordinate,
    Dashboard,
    EmergencyRequest,
    Responder,
    RewardGrant,
    utcnow,
)
from medsos_dispatch.registry import ResponderRegistry
from medsos_dispatch.rewards import RewardLedger
from medsos_dispatch.settings import DispatchSettings

logger = logging.getLogger(__name__)


class DispatchEngine:
    """Matches emergency requests to nearby volunteers and settles their rewards.

    The engine owns one registry and two ledgers. It holds no global lock:
    every call locks only the request, grant and responder records it touches.
    """

    def __init__(
        self,
        settings: Optional[DispatchSettings] = None,
        responders: Iterable[Responder] = (),
        clock: Callable[[], datetime] = utcnow,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.settings = settings or DispatchSettings()
        self.registry = ResponderRegistry()
        self.requests = RequestLedger(self.registry, clock=clock, id_factory=id_factory)
        self.rewards = RewardLedger(self.registry, clock=clock)
        for responder in responders:
            self.registry.register(responder)

    # Responders

    def register_responder(self, responder: Responder) -> Responder:
        return self.registry.register(responder)

    def set_availability(self, responder_id: str, available: bool) -> Responder:
        return self.registry.set_availability(responder_id, available)

    def deactivate_responder(self, responder_id: str) -> Responder:
        return self.registry.deactivate(responder_id)

    def get_responder(self, responder_id: str) -> Responder:
        return self.registry.get(responder_id)

    # Requests

    def create_request(self, requester_id: str, origin: Coordinate) -> EmergencyRequest:
        if not isinstance(origin, Coordinate):
            raise InvalidCoordinate(f"Origin must be a Coordinate, got {origin!r}")
        return self.requests.create(requester_id, origin, exclusive=self.settings.single_active_request)

    def get_request(self, request_id: str) -> EmergencyRequest:
        return self.requests.get(request_id)

    def dispatch(self, request_id: str, radius_km: Optional[float] = None) -> Tuple[Candidate, ...]:
        radius = self.settings.default_radius_km if radius_km is None else radius_km
        self._check_radius(radius)

        request = self.requests.dispatch(request_id, radius)
        if not request.candidate_snapshot:
            logger.warning("No responders within %.1f km of request %s", radius, request_id)
        return request.candidate_snapshot

    def mark_contacted(self, request_id: str, responder_id: str) -> ContactAssignment:
        self.requests.mark_contacted(request_id, responder_id)
        responder = self.registry.get(responder_id)
        return ContactAssignment(
            request_id=request_id,
            responder_id=responder_id,
            contact_handle=responder.contact_handle,
        )

    def resolve(self, request_id: str) -> RewardGrant:
        points = self.settings.reward_points

        def settle(request: EmergencyRequest) -> RewardGrant:
            return self.rewards.grant(request.request_id, request.contacted_responder_id, points)

        _, grant = self.requests.resolve(request_id, settle)
        return grant

    def abandon(self, request_id: str) -> EmergencyRequest:
        return self.requests.abandon(request_id)

    def get_grant(self, request_id: str) -> RewardGrant:
        return self.rewards.get(request_id)

    def dashboard(self, limit: int = 5) -> Dashboard:
        return Dashboard(
            summary=self.registry.summary(),
            leaderboard=self.registry.leaderboard(limit),
            recent_requests=self.requests.recent(limit),
            points_awarded=self.rewards.total_points(),
        )

    def _check_radius(self, radius_km: float) -> None:
        if isinstance(radius_km, bool) or not isinstance(radius_km, (int, float)) or math.isnan(radius_km):
            raise InvalidRadius(f"Search radius must be a number, got {radius_km!r}")
        if radius_km <= 0:
            raise InvalidRadius(f"Search radius must be positive, got {radius_km} km")
        cap = self.settings.max_radius_km
        if cap is not None and radius_km > cap:
            raise InvalidRadius(f"Search radius {radius_km} km exceeds the configured cap of {cap} km")
