from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


@dataclass(frozen=True)
class DispatchSettings:
    reward_points: int = 10
    default_radius_km: float = 10.0
    max_radius_km: Optional[float] = None
    single_active_request: bool = False

    def __post_init__(self) -> None:
        if self.reward_points <= 0:
            raise ValueError("reward_points must be positive")
        if self.default_radius_km <= 0:
            raise ValueError("default_radius_km must be positive")
        if self.max_radius_km is not None and self.default_radius_km > self.max_radius_km:
            raise ValueError("default_radius_km must not exceed max_radius_km")

    @classmethod
    def from_env(cls) -> "DispatchSettings":
        return cls(
            reward_points=int(os.getenv("MEDSOS_REWARD_POINTS", "10")),
            default_radius_km=float(os.getenv("MEDSOS_DEFAULT_RADIUS_KM", "10")),
            max_radius_km=_env_float("MEDSOS_MAX_RADIUS_KM"),
            single_active_request=_env_bool("MEDSOS_SINGLE_ACTIVE_REQUEST", False),
        )
