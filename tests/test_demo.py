import pytest

from medsos_dispatch.demo import main


@pytest.fixture(autouse=True)
def default_settings(monkeypatch) -> None:
    for name in (
        "MEDSOS_REWARD_POINTS",
        "MEDSOS_DEFAULT_RADIUS_KM",
        "MEDSOS_MAX_RADIUS_KM",
        "MEDSOS_SINGLE_ACTIVE_REQUEST",
    ):
        monkeypatch.delenv(name, raising=False)


def test_demo_reports_points_awarded_this_session(capsys) -> None:
    main()
    out = capsys.readouterr().out

    assert "Patient attended: +10 credit points to v1" in out
    assert " - Points awarded: 10\n" in out
    assert " - Dr. Priya Sharma: 130 pts" in out
