from __future__ import annotations

import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app import main
from conftest import write_regatta_workbook


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("REGATTA_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("REGATTA_WORKBOOK", raising=False)
    main.store.cache_clear()
    main.sessions.cache_clear()
    with TestClient(main.app) as test_client:
        yield test_client
    main.store.cache_clear()
    main.sessions.cache_clear()


def _new_session(client: TestClient, **payload) -> str:
    response = client.post("/sessions", json=payload)
    assert response.status_code == 201
    return response.json()["id"]


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_timing_flow(client: TestClient) -> None:
    session_id = _new_session(client)
    base = f"/sessions/{session_id}"

    started = client.post(f"{base}/start").json()
    assert started["clock"]["isRunning"] is True
    assert started["inputsLocked"] is True
    assert [record["split"] for record in started["records"]] == ["00:00.0"]

    client.post(f"{base}/lap")
    lapped = client.post(f"{base}/lap").json()
    assert [record["sequence"] for record in lapped["records"]] == [1, 2, 3]

    assert client.post(f"{base}/clear").status_code == 409
    assert client.put(f"{base}/winning-time", json={"text": "05:00.0"}).status_code == 409
    assert client.put(f"{base}/records/2/lane", json={"text": "1"}).status_code == 409

    stopped = client.post(f"{base}/stop").json()
    assert stopped["clock"]["phase"] == "stopped"

    assigned = client.put(f"{base}/records/2/lane", json={"text": "3"})
    assert assigned.status_code == 200
    assert assigned.json()["nextFocus"] == 3
    assert assigned.json()["grid"][3][3] == "2"

    duplicate = client.put(f"{base}/records/3/lane", json={"text": "3"})
    assert duplicate.status_code == 400
    assert "already assigned" in duplicate.json()["detail"]
    current = client.get(base).json()
    assert current["records"][2]["lane"] is None
    assert current["records"][1]["lane"] == 3

    assert client.put(f"{base}/records/3/lane", json={"text": "9"}).status_code == 400
    assert client.put(f"{base}/records/3/lane", json={"text": "²"}).status_code == 400
    assert client.put(f"{base}/records/7/lane", json={"text": "1"}).status_code == 404

    winning = client.put(f"{base}/winning-time", json={"text": "05:00.0"}).json()
    assert winning["winningTime"] == "05:00.0"
    assert winning["records"][0]["time"] == "05:00.0"
    assert client.put(f"{base}/winning-time", json={"text": "soon"}).status_code == 400

    edited = client.put(f"{base}/records/2/split", json={"text": "01:10.0"}).json()
    assert edited["grid"][4][3] == "01:10.0"
    assert edited["grid"][5][3] == "06:10.0"

    placed = client.put(f"{base}/lanes/3/place", json={"status": "DNF"}).json()
    assert placed["grid"][3][3] == "DNF"
    assert client.put(f"{base}/lanes/3/place", json={"status": "bogus"}).status_code == 400
    assert client.put(f"{base}/lanes/2/place", json={"status": "Next Place"}).status_code == 404

    approval = client.get(f"{base}/approval").json()
    assert approval["approved"] is False
    assert approval["rows"][0]["place"] == "DNF"

    approved = client.post(f"{base}/approve").json()
    assert approved["approved"] is True

    cleared = client.post(f"{base}/clear").json()
    assert cleared["records"] == []
    assert cleared["winningTime"] == ""
    assert cleared["approved"] is False

    assert client.delete(base).status_code == 204
    assert client.get(base).status_code == 404


def test_running_clock_display_advances(client: TestClient) -> None:
    session_id = _new_session(client)
    client.post(f"/sessions/{session_id}/start")

    display = "00:00.0"
    deadline = time.monotonic() + 3.0
    while display == "00:00.0" and time.monotonic() < deadline:
        time.sleep(0.05)
        display = client.get(f"/sessions/{session_id}").json()["clock"]["display"]

    assert display != "00:00.0"
    client.post(f"/sessions/{session_id}/stop")


def test_regatta_import_and_race_loading(client: TestClient, tmp_path: Path) -> None:
    assert client.get("/regatta").status_code == 404
    waiting = _new_session(client)
    assert client.post(f"/sessions/{waiting}/load-race", json={"raceNumber": 1}).status_code == 404

    write_regatta_workbook(tmp_path / "draw.xlsx")
    imported = client.post("/regatta/import", json={"path": "draw.xlsx"})
    assert imported.status_code == 200
    body = imported.json()
    assert body["regattaName"] == "Spring Sprints"
    assert body["scheduledRaces"] == 2
    assert body["races"][0]["description"] == "Race 1 (3 Boats) - Men's Novice 4+ - Heat 1"
    assert body["races"][0]["lanes"]["1"]["schoolName"] == "Riverside RC"

    assert client.get("/regatta").json()["date"] == "12 April 2025"

    loaded = client.post(f"/sessions/{waiting}/load-race", json={"raceNumber": 1}).json()
    assert loaded["title"] == "Race 1 (3 Boats) - Men's Novice 4+ - Heat 1"
    assert loaded["grid"][1][1] == "Riverside RC"

    created = client.post("/sessions", json={"raceNumber": 3})
    assert created.status_code == 201
    assert created.json()["raceNumber"] == 3
    assert client.post("/sessions", json={"raceNumber": 2}).status_code == 404
    assert client.post("/sessions", json={"raceNumber": 42}).status_code == 404


def test_regatta_import_errors(client: TestClient, tmp_path: Path) -> None:
    assert client.post("/regatta/import", json={"path": "missing.xlsx"}).status_code == 404
    assert client.post("/regatta/import", json={"path": "draw.csv"}).status_code == 400

    (tmp_path / "broken.xlsx").write_text("not a workbook")
    response = client.post("/regatta/import", json={"path": "broken.xlsx"})
    assert response.status_code == 400
