"""HTTP API tests against an in-process engine."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from cellgrid.config import CONFIG_FILENAME
from cellgrid.engine import SpreadsheetEngine
from cellgrid.logging.sink import MemorySink
from cellgrid.server import create_app


@pytest.fixture
def client(engine: SpreadsheetEngine) -> TestClient:
    return TestClient(create_app(engine))


# ────────────────────────────────────────────────────────────────
# Grid and cells
# ────────────────────────────────────────────────────────────────


class TestCells:
    def test_get_grid(self, client: TestClient) -> None:
        data = client.get("/api/grid").json()
        assert data["max_row"] == 10
        assert data["max_col"] == 10
        assert len(data["cells"]) == 100

    def test_put_and_get(self, client: TestClient) -> None:
        resp = client.put("/api/cells/b2", json={"value": "hi"})
        assert resp.status_code == 200
        assert resp.json()["id"] == "B2"
        assert client.get("/api/cells/B2").json()["value"] == "hi"

    def test_put_with_commit(self, client: TestClient) -> None:
        client.put("/api/cells/A1", json={"value": "2"})
        client.put("/api/cells/A2", json={"value": "5"})
        resp = client.put("/api/cells/A3", json={"value": "=SUM(A1:A2)", "commit": True})
        assert resp.json()["value"] == 7

    def test_evaluate_cell(self, client: TestClient, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "4")
        engine.set_cell_value("B1", "=MAX(A1)")
        assert client.post("/api/cells/B1/evaluate").json()["value"] == 4

    def test_outside_grid(self, client: TestClient) -> None:
        assert client.put("/api/cells/Z99", json={"value": "x"}).status_code == 404

    def test_malformed_id(self, client: TestClient) -> None:
        assert client.get("/api/cells/1A").status_code == 400
        assert client.put("/api/cells/A0", json={"value": "x"}).status_code == 400

    def test_adhoc_evaluate(self, client: TestClient, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "3")
        resp = client.post("/api/evaluate", json={"formula": "=COUNT(A1:A5)"})
        assert resp.json() == {"formula": "=COUNT(A1:A5)", "result": 1}
        resp = client.post("/api/evaluate", json={"formula": "=NOPE(A1)"})
        assert resp.json()["result"] == "=NOPE(A1)"


# ────────────────────────────────────────────────────────────────
# Styles, history, shape
# ────────────────────────────────────────────────────────────────


class TestEditing:
    def test_style_explicit_cells(self, client: TestClient, engine: SpreadsheetEngine) -> None:
        resp = client.post("/api/style", json={"cells": ["A1", "B1"], "italic": True})
        assert resp.json()["changed"] == ["A1", "B1"]
        assert engine.get_cell("B1").italic is True
        assert resp.json()["can_undo"] is True

    def test_style_invalid_patch(self, client: TestClient) -> None:
        resp = client.post("/api/style", json={"cells": ["A1"], "font_size": 3})
        assert resp.status_code == 400

    def test_toggle_on_selection(self, client: TestClient, engine: SpreadsheetEngine) -> None:
        client.post("/api/selection", json={"start": "A1", "end": "B1"})
        resp = client.post("/api/style/toggle/bold")
        assert resp.json()["changed"] == ["A1", "B1"]
        assert client.post("/api/style/toggle/underline").status_code == 404

    def test_font_size_steps(self, client: TestClient) -> None:
        client.post("/api/selection", json={"start": "C3"})
        assert client.post("/api/style/font-size/up").json()["font_size"] == 14
        assert client.post("/api/style/font-size/down").json()["font_size"] == 12
        assert client.post("/api/style/font-size/sideways").status_code == 404

    def test_undo_redo(self, client: TestClient, engine: SpreadsheetEngine) -> None:
        assert client.post("/api/undo").json()["ok"] is False
        client.put("/api/cells/A1", json={"value": "x"})
        assert client.post("/api/undo").json()["ok"] is True
        assert engine.get_cell("A1").value == ""
        resp = client.post("/api/redo").json()
        assert resp["ok"] is True and resp["can_redo"] is False
        assert engine.get_cell("A1").value == "x"

    def test_resize(self, client: TestClient) -> None:
        resp = client.post("/api/resize", json={"rows": 3, "cols": 4}).json()
        assert (resp["ok"], resp["max_row"], resp["max_col"]) == (True, 3, 4)
        resp = client.post("/api/resize", json={"rows": 0, "cols": 4}).json()
        assert resp["ok"] is False and resp["max_row"] == 3


# ────────────────────────────────────────────────────────────────
# Selection and drag fill
# ────────────────────────────────────────────────────────────────


class TestSelection:
    def test_select_and_move(self, client: TestClient) -> None:
        assert client.post("/api/selection", json={"start": "B2"}).json()["focus"] == "B2"
        resp = client.post("/api/selection/move", json={"direction": "up", "extend": True}).json()
        assert resp["focus"] == "B1"
        assert resp["selection"] == ["B1", "B2"]

    def test_bad_direction(self, client: TestClient) -> None:
        resp = client.post("/api/selection/move", json={"direction": "north"})
        assert resp.status_code == 422

    def test_bad_selection(self, client: TestClient) -> None:
        assert client.post("/api/selection", json={"start": "??"}).status_code == 400

    def test_drag_fill(self, client: TestClient, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "9")
        client.post("/api/drag/start", json={"cell": "A1"})
        client.post("/api/drag/update", json={"cell": "C1"})
        resp = client.post("/api/drag/end").json()
        assert resp["filled"] == ["A1", "B1", "C1"]
        assert engine.get_cell("C1").value == "9"
        assert client.post("/api/drag/end").json()["filled"] == []


def test_concurrent_edits_are_serialized(client: TestClient, engine: SpreadsheetEngine) -> None:
    ids = [f"{col}{row}" for col in "ABCDE" for row in range(1, 9)]

    def put(cell_id: str) -> int:
        return client.put(f"/api/cells/{cell_id}", json={"value": cell_id}).status_code

    with ThreadPoolExecutor(max_workers=8) as pool:
        assert set(pool.map(put, ids)) == {200}
    assert engine.history.undo_depth == len(ids)
    assert all(engine.get_cell(cell_id).value == cell_id for cell_id in ids)


def test_requests_are_logged(client: TestClient, events: MemorySink) -> None:
    client.get("/api/grid")
    (event,) = events.of_type("server_request")
    assert event.context == {"method": "GET", "path": "/api/grid", "status": 200}


def test_app_from_config(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("rows: 2\ncols: 2\n")
    client = TestClient(create_app(config_path=tmp_path))
    assert len(client.get("/api/grid").json()["cells"]) == 4
