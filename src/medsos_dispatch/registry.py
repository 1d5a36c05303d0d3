from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Tuple

from medsos_dispatch.errors import DuplicateId, InvalidAmount, InvalidProfile, NotFound
from medsos_dispatch.geo import distance_km
from medsos_dispatch.locks import KeyedLocks
from medsos_dispatch.models import Candidate, Coordinate, RegistrySummary, Responder, ResponderRole

logger = logging.getLogger(__name__)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class ResponderRegistry:
    """In-memory store of responder records and their availability.

    Records are immutable; every mutation swaps in a new record while holding
    that responder's lock. Ranking reads a copy of the whole table, so it sees
    a point-in-time view and never blocks on individual mutations.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Responder] = {}
        self._table_lock = threading.Lock()
        self._locks = KeyedLocks()

    def register(self, responder: Responder) -> Responder:
        self._validate_profile(responder)
        with self._table_lock:
            if responder.responder_id in self._records:
                raise DuplicateId(f"Responder {responder.responder_id} already registered")
            self._records[responder.responder_id] = responder
        logger.info("Registered responder %s (%s)", responder.responder_id, responder.role.value)
        return responder

    def get(self, responder_id: str) -> Responder:
        try:
            return self._records[responder_id]
        except KeyError:
            raise NotFound(f"Responder {responder_id} not found") from None

    def set_availability(self, responder_id: str, available: bool) -> Responder:
        with self._locks.hold(responder_id):
            current = self.get(responder_id)
            if not current.active:
                raise NotFound(f"Responder {responder_id} is deactivated")
            updated = replace(current, available=bool(available))
            self._store(updated)
        logger.info("Responder %s availability set to %s", responder_id, updated.available)
        return updated

    def deactivate(self, responder_id: str) -> Responder:
        with self._locks.hold(responder_id):
            current = self.get(responder_id)
            if not current.active:
                return current
            updated = replace(current, available=False, active=False)
            self._store(updated)
        logger.info("Responder %s deactivated", responder_id)
        return updated

    def increment_credit(self, responder_id: str, points: int) -> Responder:
        if not _is_positive_int(points):
            raise InvalidAmount(f"Credit increment must be a positive integer, got {points!r}")
        with self._locks.hold(responder_id):
            current = self.get(responder_id)
            updated = replace(current, credit_points=current.credit_points + points)
            self._store(updated)
        logger.info("Responder %s credited %d points (total %d)", responder_id, points, updated.credit_points)
        return updated

    def rank_candidates(self, origin: Coordinate, radius_km: float) -> Tuple[Candidate, ...]:
        ranked = []
        for responder in self.snapshot():
            if not responder.available or not responder.active:
                continue

            distance = distance_km(origin, responder.location)
            if distance > radius_km:
                continue
            ranked.append((distance, -responder.credit_points, responder.responder_id))

        ranked.sort()
        logger.debug("Ranked %d candidates within %.2f km", len(ranked), radius_km)
        return tuple(Candidate(responder_id=rid, distance_km=dist) for dist, _, rid in ranked)

    def snapshot(self) -> List[Responder]:
        with self._table_lock:
            return list(self._records.values())

    def summary(self) -> RegistrySummary:
        records = self.snapshot()
        return RegistrySummary(
            total_responders=len(records),
            available_responders=sum(1 for r in records if r.available and r.active),
            total_credit_points=sum(r.credit_points for r in records),
        )

    def leaderboard(self, limit: int = 5) -> Tuple[Responder, ...]:
        records = sorted(self.snapshot(), key=lambda r: (-r.credit_points, r.responder_id))
        return tuple(records[:limit])

    def _store(self, responder: Responder) -> None:
        with self._table_lock:
            self._records[responder.responder_id] = responder

    @staticmethod
    def _validate_profile(responder: Responder) -> None:
        for label, value in (
            ("id", responder.responder_id),
            ("name", responder.name),
            ("contact handle", responder.contact_handle),
        ):
            if not isinstance(value, str) or not value.strip():
                raise InvalidProfile(f"Responder {label} is required")
        if not isinstance(responder.role, ResponderRole):
            raise InvalidProfile(f"Unknown responder role: {responder.role!r}")
        if not isinstance(responder.location, Coordinate):
            raise InvalidProfile("Responder location must be a Coordinate")
        if isinstance(responder.credit_points, bool) or not isinstance(responder.credit_points, int):
            raise InvalidAmount("Credit points must be an integer")
        if responder.credit_points < 0:
            raise InvalidAmount("Credit points must not be negative")
