from __future__ import annotations

from datetime import date

import pytest

from pentatrack.models import TrainingSession
from pentatrack.webapp import create_app


def _session(session_id: str, discipline: str, day: date, distance: float | None = None, rpe: int = 6) -> TrainingSession:
    return TrainingSession(
        id=session_id,
        subject_id="alice",
        discipline=discipline,
        date=day,
        duration_minutes=45,
        rpe=rpe,
        distance_km=distance,
    )


SESSIONS = [
    _session("swim", "swim", date(2024, 3, 4), distance=2.5, rpe=6),
    _session("run", "run", date(2024, 3, 4), distance=8, rpe=8),
    _session("lr", "laser_run", date(2024, 3, 5), distance=5, rpe=7),
    _session("fence", "fencing", date(2024, 3, 12)),
]


@pytest.fixture()
def client():
    app = create_app(sessions_loader=lambda: SESSIONS)
    app.config.update(TESTING=True)
    return app.test_client()


def test_health(client) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_stats_endpoint(client) -> None:
    response = client.get("/api/athletes/alice/stats?period=week&date=2024-03-06")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["session_count"] == 3
    assert payload["window"]["start"] == "2024-03-04T00:00:00.000"
    assert payload["window"]["end"] == "2024-03-10T23:59:59.999"
    assert payload["summary"]["run_km"] == 13
    assert [row["discipline"] for row in payload["totals"]] == ["swim", "run", "laser_run"]
    assert payload["by_discipline"]["laser_run"]["count"] == 1
    assert payload["daily_rpe"][0]["average_rpe"] == 7


def test_stats_endpoint_without_folding(client) -> None:
    payload = client.get("/api/athletes/alice/stats?period=week&date=2024-03-06&fold=false").get_json()
    assert payload["summary"]["run_km"] == 8
    assert payload["summary"]["combined_run_km"] == 5
    assert "laser_run" in [row["discipline"] for row in payload["totals"]]


def test_stats_endpoint_folds_each_output_separately(client) -> None:
    base = "/api/athletes/alice/stats?period=week&date=2024-03-06"

    merged = client.get(f"{base}&fold_totals=true").get_json()
    assert merged["summary"]["run_km"] == 13
    assert [row["discipline"] for row in merged["totals"]] == ["swim", "run"]
    assert merged["totals"][1]["distance_km"] == 13

    both = client.get(f"{base}&fold=true").get_json()
    assert [row["discipline"] for row in both["totals"]] == ["swim", "run"]

    totals_only = client.get(f"{base}&fold=true&fold_weekly=false").get_json()
    assert totals_only["summary"]["run_km"] == 8
    assert [row["discipline"] for row in totals_only["totals"]] == ["swim", "run"]


def test_stats_endpoint_custom_period(client) -> None:
    payload = client.get("/api/athletes/alice/stats?period=custom&start=2024-03-05&end=2024-03-12").get_json()
    assert payload["session_count"] == 2
    assert payload["window"]["kind"] == "custom"


@pytest.mark.parametrize(
    "query",
    [
        "period=custom&start=2024-03-05",
        "period=custom&start=2024-03-12&end=2024-03-05",
        "period=fortnight",
        "date=yesterday",
        "fold=maybe",
        "fold_totals=perhaps",
    ],
)
def test_stats_endpoint_rejects_bad_queries(client, query) -> None:
    response = client.get(f"/api/athletes/alice/stats?{query}")
    assert response.status_code == 400
    assert response.get_json()["error"]


def test_season_endpoint(client) -> None:
    response = client.get("/api/athletes/alice/season?year=2024&week=10")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["focus_week"] == 10
    assert len(payload["matrix"]["swim"]) == 52
    week10 = payload["matrix"]["run"][9]
    assert week10["week"] == 10
    assert week10["session_ids"] == ["run"]
    assert payload["week"]["run_km"] == 13
    assert payload["scale"]["fencing"] == 1
    assert payload["month_blocks"][0]["start_week"] == 1


@pytest.mark.parametrize(
    "query",
    ["year=2024&week=53", "year=2024&week=abc", "year=twenty", "year=0&week=1", "year=9999&week=1"],
)
def test_season_endpoint_rejects_bad_queries(client, query) -> None:
    response = client.get(f"/api/athletes/alice/season?{query}")
    assert response.status_code == 400


def test_unknown_athlete_gets_empty_stats(client) -> None:
    payload = client.get("/api/athletes/zoe/stats?period=year&date=2024-03-06").get_json()
    assert payload["session_count"] == 0
    assert payload["totals"] == []
