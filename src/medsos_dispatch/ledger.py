from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple
from uuid import uuid4

from medsos_dispatch.errors import ActiveRequestExists, DuplicateId, InvalidResponder, InvalidTransition, NotFound
from medsos_dispatch.locks import KeyedLocks
from medsos_dispatch.models import (
    Coordinate,
    EmergencyRequest,
    RequestState,
    RewardGrant,
    TransitionRecord,
    utcnow,
)
from medsos_dispatch.registry import ResponderRegistry

logger = logging.getLogger(__name__)

# Event -> states it may fire from. Dispatch is the only self-loop.
ALLOWED_FROM = {
    "dispatch": {RequestState.PENDING, RequestState.DISPATCHED},
    "mark_contacted": {RequestState.DISPATCHED},
    "resolve": {RequestState.CONTACTED},
    "abandon": {RequestState.PENDING, RequestState.DISPATCHED, RequestState.CONTACTED},
}


class RequestLedger:
    """Emergency request records and their transition history.

    Each request is guarded by its own lock, so two transitions on the same
    request never interleave while different requests proceed in parallel.
    """

    def __init__(
        self,
        registry: ResponderRegistry,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.registry = registry
        self._clock = clock
        self._new_id = id_factory or (lambda: uuid4().hex)
        self._records: Dict[str, EmergencyRequest] = {}
        self._table_lock = threading.Lock()
        self._request_locks = KeyedLocks()
        self._requester_locks = KeyedLocks()

    def create(self, requester_id: str, origin: Coordinate, exclusive: bool = False) -> EmergencyRequest:
        with self._requester_locks.hold(requester_id):
            if exclusive:
                active = self.active_for(requester_id)
                if active:
                    raise ActiveRequestExists(
                        f"Requester {requester_id} already has active request {active[0].request_id}"
                    )
            now = self._clock()
            request = EmergencyRequest(
                request_id=self._new_id(),
                requester_id=requester_id,
                origin=origin,
                created_at=now,
                history=(TransitionRecord(event="create", to_state=RequestState.PENDING, at=now),),
            )
            with self._table_lock:
                if request.request_id in self._records:
                    raise DuplicateId(f"Request id {request.request_id} already allocated")
                self._records[request.request_id] = request

        logger.info("Created request %s for requester %s", request.request_id, requester_id)
        return request

    def get(self, request_id: str) -> EmergencyRequest:
        try:
            return self._records[request_id]
        except KeyError:
            raise NotFound(f"Request {request_id} not found") from None

    def dispatch(self, request_id: str, radius_km: float) -> EmergencyRequest:
        with self._request_locks.hold(request_id):
            current = self._require(request_id, "dispatch")
            snapshot = self.registry.rank_candidates(current.origin, radius_km)
            updated = self._advance(
                current,
                "dispatch",
                RequestState.DISPATCHED,
                candidate_snapshot=snapshot,
                dispatch_radius_km=radius_km,
            )
        return updated

    def mark_contacted(self, request_id: str, responder_id: str) -> EmergencyRequest:
        with self._request_locks.hold(request_id):
            current = self._require(request_id, "mark_contacted")
            if not current.has_candidate(responder_id):
                raise InvalidResponder(
                    f"Responder {responder_id} is not a candidate for request {request_id}"
                )
            updated = self._advance(
                current, "mark_contacted", RequestState.CONTACTED, contacted_responder_id=responder_id
            )
        return updated

    def resolve(
        self, request_id: str, grant: Callable[[EmergencyRequest], RewardGrant]
    ) -> Tuple[EmergencyRequest, RewardGrant]:
        """Resolve a contacted request, running ``grant`` before the state changes.

        A request that is already resolved is returned as-is together with the
        grant ``grant`` reports for it, so a repeated confirmation is harmless.
        """
        with self._request_locks.hold(request_id):
            current = self.get(request_id)
            if current.state is RequestState.RESOLVED:
                logger.info("Request %s already resolved; returning existing grant", request_id)
                return current, grant(current)

            self._require(request_id, "resolve")
            reward = grant(current)
            updated = self._advance(current, "resolve", RequestState.RESOLVED, resolved_at=self._clock())
        return updated, reward

    def abandon(self, request_id: str) -> EmergencyRequest:
        with self._request_locks.hold(request_id):
            current = self._require(request_id, "abandon")
            updated = self._advance(current, "abandon", RequestState.ABANDONED, abandoned_at=self._clock())
        return updated

    def recent(self, limit: int = 10) -> Tuple[EmergencyRequest, ...]:
        with self._table_lock:
            records = list(self._records.values())
        records.sort(key=lambda r: r.created_at, reverse=True)
        return tuple(records[:limit])

    def active_for(self, requester_id: str) -> Tuple[EmergencyRequest, ...]:
        with self._table_lock:
            records = list(self._records.values())
        return tuple(r for r in records if r.requester_id == requester_id and not r.state.terminal)

    def _require(self, request_id: str, event: str) -> EmergencyRequest:
        current = self.get(request_id)
        if current.state not in ALLOWED_FROM[event]:
            raise InvalidTransition(
                f"Cannot {event} request {request_id} in state {current.state.value}"
            )
        return current

    def _advance(self, current: EmergencyRequest, event: str, to_state: RequestState, **changes) -> EmergencyRequest:
        record = TransitionRecord(event=event, from_state=current.state, to_state=to_state, at=self._clock())
        updated = replace(current, state=to_state, history=current.history + (record,), **changes)
        with self._table_lock:
            self._records[updated.request_id] = updated
        logger.info(
            "Request %s: %s -> %s (%s)", updated.request_id, current.state.value, to_state.value, event
        )
        return updated
