from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from medsos_dispatch.errors import NotFound
from medsos_dispatch.locks import KeyedLocks
from medsos_dispatch.models import RewardGrant, utcnow
from medsos_dispatch.registry import ResponderRegistry

logger = logging.getLogger(__name__)


class RewardLedger:
    """Credit-point grants, keyed by request id so each request pays out once."""

    def __init__(self, registry: ResponderRegistry, clock: Callable[[], datetime] = utcnow) -> None:
        self.registry = registry
        self._clock = clock
        self._grants: Dict[str, RewardGrant] = {}
        self._table_lock = threading.Lock()
        self._locks = KeyedLocks()

    def grant(self, request_id: str, responder_id: str, points: int) -> RewardGrant:
        with self._locks.hold(request_id):
            existing = self._grants.get(request_id)
            if existing is not None:
                logger.info("Grant for request %s already recorded; skipping", request_id)
                return existing

            record = RewardGrant(
                request_id=request_id,
                responder_id=responder_id,
                points=points,
                granted_at=self._clock(),
            )
            with self._table_lock:
                self._grants[request_id] = record
            try:
                self.registry.increment_credit(responder_id, points)
            except Exception:
                with self._table_lock:
                    del self._grants[request_id]
                logger.warning("Rolled back grant for request %s: credit increment failed", request_id)
                raise

        logger.info("Granted %d points to %s for request %s", points, responder_id, request_id)
        return record

    def get(self, request_id: str) -> RewardGrant:
        grant = self.find(request_id)
        if grant is None:
            raise NotFound(f"No reward granted for request {request_id}")
        return grant

    def find(self, request_id: str) -> Optional[RewardGrant]:
        return self._grants.get(request_id)

    def grants_for(self, responder_id: str) -> Tuple[RewardGrant, ...]:
        with self._table_lock:
            return tuple(g for g in self._grants.values() if g.responder_id == responder_id)

    def total_points(self) -> int:
        with self._table_lock:
            return sum(g.points for g in self._grants.values())
