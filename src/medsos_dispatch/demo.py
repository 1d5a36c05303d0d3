from __future__ import annotations

import logging
from typing import List

from medsos_dispatch.engine import DispatchEngine
from medsos_dispatch.models import Coordinate, Responder, ResponderRole
from medsos_dispatch.settings import DispatchSettings

# Fallback used by the mobile client when GPS is unavailable.
DEMO_ORIGIN = Coordinate(28.6139, 77.2090)


def seed_responders() -> List[Responder]:
    return [
        Responder(
            responder_id="v1",
            name="Dr. Priya Sharma",
            contact_handle="+91 98765 43210",
            role=ResponderRole.PHYSICIAN,
            location=Coordinate(28.6145, 77.2090),
            specialty="Emergency Medicine",
            credit_points=120,
        ),
        Responder(
            responder_id="v2",
            name="Rajesh Kumar",
            contact_handle="+91 87654 32109",
            role=ResponderRole.NURSE,
            location=Coordinate(28.6170, 77.2115),
            credit_points=85,
        ),
        Responder(
            responder_id="v3",
            name="Dr. Anita Patel",
            contact_handle="+91 76543 21098",
            role=ResponderRole.PHYSICIAN,
            location=Coordinate(28.6120, 77.2050),
            specialty="General Surgery",
            credit_points=200,
        ),
        Responder(
            responder_id="v4",
            name="Mohammed Farhan",
            contact_handle="+91 65432 10987",
            role=ResponderRole.PHARMACIST,
            location=Coordinate(28.6190, 77.2130),
            available=False,
            credit_points=45,
        ),
        Responder(
            responder_id="v5",
            name="Sneha Reddy",
            contact_handle="+91 54321 09876",
            role=ResponderRole.TECHNICAL_ASSISTANT,
            location=Coordinate(28.6155, 77.2070),
            credit_points=60,
        ),
    ]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(name)s - %(message)s")

    engine = DispatchEngine(settings=DispatchSettings.from_env(), responders=seed_responders())
    request = engine.create_request("patient-a", DEMO_ORIGIN)
    candidates = engine.dispatch(request.request_id)

    print("=== MedSOS Dispatch ===")
    print(f"Request: {request.request_id}")
    if not candidates:
        print("No responders nearby.")
        return

    print("\nNearby volunteers:")
    for candidate in candidates:
        responder = engine.get_responder(candidate.responder_id)
        print(f" - {responder.name} ({responder.role.value}): {candidate.distance_km * 1000:.0f} m")

    contact = engine.mark_contacted(request.request_id, candidates[0].responder_id)
    print(f"\nCalling {contact.responder_id} at {contact.contact_handle}")

    grant = engine.resolve(request.request_id)
    print(f"Patient attended: +{grant.points} credit points to {grant.responder_id}")

    board = engine.dashboard()
    print("\nDashboard:")
    print(f" - Total volunteers: {board.summary.total_responders}")
    print(f" - Active now: {board.summary.available_responders}")
    print(f" - Points awarded: {board.points_awarded}")
    print("\nTop volunteers:")
    for responder in board.leaderboard:
        print(f" - {responder.name}: {responder.credit_points} pts")


if __name__ == "__main__":
    main()
