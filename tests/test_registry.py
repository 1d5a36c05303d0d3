import pytest

from medsos_dispatch.errors import DuplicateId, InvalidAmount, InvalidProfile, NotFound
from medsos_dispatch.geo import distance_km
from medsos_dispatch.models import Coordinate, Responder, ResponderRole
from medsos_dispatch.registry import ResponderRegistry

ORIGIN = Coordinate(28.6139, 77.2090)


def _responder(responder_id: str, lat: float, lon: float, **kwargs) -> Responder:
    return Responder(
        responder_id=responder_id,
        name=kwargs.pop("name", f"Volunteer {responder_id}"),
        contact_handle=kwargs.pop("contact_handle", f"+91 {responder_id}"),
        role=kwargs.pop("role", ResponderRole.NURSE),
        location=Coordinate(lat, lon),
        **kwargs,
    )


def test_register_rejects_duplicate_id() -> None:
    registry = ResponderRegistry()
    registry.register(_responder("v1", 28.6145, 77.2090))

    with pytest.raises(DuplicateId):
        registry.register(_responder("v1", 28.6170, 77.2115, name="Someone else"))

    assert registry.get("v1").name == "Volunteer v1"


def test_register_validates_profile() -> None:
    registry = ResponderRegistry()

    with pytest.raises(InvalidProfile):
        registry.register(_responder("v1", 28.6, 77.2, name="  "))
    with pytest.raises(InvalidProfile):
        registry.register(_responder("v2", 28.6, 77.2, contact_handle=""))
    with pytest.raises(InvalidAmount):
        registry.register(_responder("v3", 28.6, 77.2, credit_points=-1))

    assert registry.summary().total_responders == 0


def test_role_parsing_accepts_legacy_labels() -> None:
    assert ResponderRole.parse("Doctor") is ResponderRole.PHYSICIAN
    assert ResponderRole.parse("compounder") is ResponderRole.TECHNICAL_ASSISTANT
    assert ResponderRole.parse("Technical Assistant") is ResponderRole.TECHNICAL_ASSISTANT
    assert ResponderRole.parse(ResponderRole.NURSE) is ResponderRole.NURSE

    with pytest.raises(InvalidProfile):
        ResponderRole.parse("Surgeon")


def test_set_availability_unknown_responder() -> None:
    with pytest.raises(NotFound):
        ResponderRegistry().set_availability("ghost", True)


def test_ranking_excludes_unavailable_and_distant_responders() -> None:
    registry = ResponderRegistry()
    registry.register(_responder("near", 28.6145, 77.2090))
    registry.register(_responder("offline", 28.6140, 77.2090, available=False))
    registry.register(_responder("far", 28.9, 77.5))
    registry.register(_responder("mid", 28.6190, 77.2130))

    ranked = registry.rank_candidates(ORIGIN, radius_km=10)

    assert [c.responder_id for c in ranked] == ["near", "mid"]
    assert ranked[0].distance_km == pytest.approx(0.0667, abs=0.001)
    for candidate in ranked:
        assert candidate.distance_km <= 10


def test_ranking_sees_availability_changes_immediately() -> None:
    registry = ResponderRegistry()
    registry.register(_responder("v1", 28.6145, 77.2090))

    assert len(registry.rank_candidates(ORIGIN, 10)) == 1
    registry.set_availability("v1", False)
    assert registry.rank_candidates(ORIGIN, 10) == ()
    registry.set_availability("v1", True)
    assert len(registry.rank_candidates(ORIGIN, 10)) == 1


def test_ranking_tie_break_prefers_credit_then_id() -> None:
    registry = ResponderRegistry()
    for responder_id, points in [("c", 50), ("b", 50), ("a", 10), ("d", 90)]:
        registry.register(_responder(responder_id, 28.6150, 77.2100, credit_points=points))
    registry.register(_responder("closest", 28.6140, 77.2090, credit_points=0))

    ranked = registry.rank_candidates(ORIGIN, 5)

    assert [c.responder_id for c in ranked] == ["closest", "d", "b", "c", "a"]
    distances = [c.distance_km for c in ranked]
    assert distances == sorted(distances)


def test_ranking_returns_empty_tuple_when_nobody_qualifies() -> None:
    registry = ResponderRegistry()
    registry.register(_responder("v1", 19.0760, 72.8777))

    assert registry.rank_candidates(ORIGIN, 10) == ()


def test_increment_credit_validation() -> None:
    registry = ResponderRegistry()
    registry.register(_responder("v1", 28.6145, 77.2090, credit_points=5))

    with pytest.raises(NotFound):
        registry.increment_credit("ghost", 10)
    with pytest.raises(InvalidAmount):
        registry.increment_credit("v1", 0)
    with pytest.raises(InvalidAmount):
        registry.increment_credit("v1", -3)

    assert registry.get("v1").credit_points == 5
    assert registry.increment_credit("v1", 10).credit_points == 15


def test_deactivated_responder_is_never_ranked_but_still_credited() -> None:
    registry = ResponderRegistry()
    registry.register(_responder("v1", 28.6145, 77.2090))

    registry.deactivate("v1")

    assert registry.rank_candidates(ORIGIN, 10) == ()
    with pytest.raises(NotFound):
        registry.set_availability("v1", True)
    with pytest.raises(DuplicateId):
        registry.register(_responder("v1", 28.6145, 77.2090))
    assert registry.increment_credit("v1", 10).credit_points == 10


def test_summary_and_leaderboard() -> None:
    registry = ResponderRegistry()
    registry.register(_responder("v1", 28.6145, 77.2090, credit_points=120))
    registry.register(_responder("v2", 28.6170, 77.2115, credit_points=85, available=False))
    registry.register(_responder("v3", 28.6120, 77.2050, credit_points=200))

    summary = registry.summary()

    assert summary.total_responders == 3
    assert summary.available_responders == 2
    assert summary.total_credit_points == 405
    assert [r.responder_id for r in registry.leaderboard(2)] == ["v3", "v1"]


def test_ranked_distances_match_geo() -> None:
    registry = ResponderRegistry()
    responder = registry.register(_responder("v1", 28.6170, 77.2115))

    (candidate,) = registry.rank_candidates(ORIGIN, 10)

    assert candidate.distance_km == distance_km(ORIGIN, responder.location)
