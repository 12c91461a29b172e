"""FastAPI surface over one :class:`SpreadsheetEngine`.

Routes are thin wrappers.  Engine routes are plain functions, so FastAPI
runs them in its threadpool; the engine is not thread-safe, so each one
holds a shared lock for its engine calls.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Request
from pydantic import BaseModel

from cellgrid import __version__
from cellgrid.engine import SpreadsheetEngine
from cellgrid.errors import InvalidAddress
from cellgrid.grid import Alignment, StylePatch
from cellgrid.logging.events import EventType, emit_info
from cellgrid.selection import Direction


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CellValueRequest(BaseModel):
    value: str | int | float = ""
    commit: bool = False


class StyleRequest(BaseModel):
    cells: list[str] | None = None
    bold: bool | None = None
    italic: bool | None = None
    alignment: Alignment | None = None
    font_size: int | None = None
    font_color: str | None = None


class ResizeRequest(BaseModel):
    rows: int
    cols: int


class SelectionRequest(BaseModel):
    start: str
    end: str | None = None


class MoveRequest(BaseModel):
    direction: Direction
    extend: bool = False


class DragRequest(BaseModel):
    cell: str


class EvaluateRequest(BaseModel):
    formula: str


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


def create_app(
    engine: SpreadsheetEngine | None = None,
    config_path: Path | str | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        engine: Engine to serve.  Built from *config_path* when omitted.
        config_path: ``cellgrid.yaml`` (or its directory) for a new engine.

    Returns:
        Configured FastAPI instance.
    """
    if engine is None:
        engine = SpreadsheetEngine.from_config(config_path)
    app = FastAPI(title="cellgrid", version=__version__)
    app.state.engine = engine
    app.include_router(_api_router(engine, threading.Lock()))

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        emit_info(
            EventType.server_request,
            f"{request.method} {request.url.path} -> {response.status_code}",
            {"method": request.method, "path": request.url.path, "status": response.status_code},
        )
        return response

    return app


def _api_router(engine: SpreadsheetEngine, lock: threading.Lock) -> APIRouter:
    router = APIRouter(prefix="/api")

    def _cell(cell_id: str) -> dict[str, Any]:
        return {"id": cell_id.upper(), **engine.get_cell(cell_id).model_dump(mode="json")}

    def _state() -> dict[str, Any]:
        return {
            "focus": engine.focus,
            "selection": engine.selected,
            "can_undo": engine.can_undo,
            "can_redo": engine.can_redo,
        }

    # -- Grid --

    @router.get("/grid")
    def get_grid() -> dict[str, Any]:
        with lock:
            return engine.to_dict()

    @router.post("/resize")
    def resize(req: ResizeRequest) -> dict[str, Any]:
        with lock:
            ok = engine.resize_grid(req.rows, req.cols)
            max_row, max_col = engine.bounds
            return {"ok": ok, "max_row": max_row, "max_col": max_col, **_state()}

    # -- Cells --

    @router.get("/cells/{cell_id}")
    def get_cell(cell_id: str) -> dict[str, Any]:
        with lock:
            try:
                return _cell(cell_id)
            except InvalidAddress as exc:
                raise HTTPException(400, str(exc))

    @router.put("/cells/{cell_id}")
    def put_cell(cell_id: str, req: CellValueRequest) -> dict[str, Any]:
        with lock:
            try:
                if engine.set_cell_value(cell_id, req.value) is None:
                    raise HTTPException(404, f"Cell {cell_id!r} is outside the grid")
                if req.commit:
                    engine.commit_cell(cell_id)
                return _cell(cell_id)
            except InvalidAddress as exc:
                raise HTTPException(400, str(exc))

    @router.post("/cells/{cell_id}/evaluate")
    def evaluate_cell(cell_id: str) -> dict[str, Any]:
        with lock:
            try:
                engine.commit_cell(cell_id)
                return _cell(cell_id)
            except InvalidAddress as exc:
                raise HTTPException(400, str(exc))

    @router.post("/evaluate")
    def evaluate(req: EvaluateRequest) -> dict[str, Any]:
        with lock:
            return {"formula": req.formula, "result": engine.evaluate(req.formula)}

    # -- Styles --

    @router.post("/style")
    def apply_style(req: StyleRequest) -> dict[str, Any]:
        fields = req.model_dump(exclude={"cells"}, exclude_none=True)
        try:
            patch = StylePatch.model_validate(fields)
        except ValueError as exc:
            raise HTTPException(400, str(exc))
        with lock:
            changed = engine.apply_style(req.cells, patch)
            return {"changed": changed, **_state()}

    @router.post("/style/toggle/{attr}")
    def toggle(attr: str) -> dict[str, Any]:
        with lock:
            if attr == "bold":
                changed = engine.toggle_bold()
            elif attr == "italic":
                changed = engine.toggle_italic()
            else:
                raise HTTPException(404, f"Unknown toggle: {attr!r}")
            return {"changed": changed, **_state()}

    @router.post("/style/font-size/{step}")
    def font_size(step: str) -> dict[str, Any]:
        with lock:
            if step == "up":
                changed = engine.increase_font_size()
            elif step == "down":
                changed = engine.decrease_font_size()
            else:
                raise HTTPException(404, f"Unknown step: {step!r}")
            return {"changed": changed, "font_size": engine.styles.current.font_size}

    # -- History --

    @router.post("/undo")
    def undo() -> dict[str, Any]:
        with lock:
            return {"ok": engine.undo(), **_state()}

    @router.post("/redo")
    def redo() -> dict[str, Any]:
        with lock:
            return {"ok": engine.redo(), **_state()}

    # -- Selection --

    @router.post("/selection")
    def select(req: SelectionRequest) -> dict[str, Any]:
        with lock:
            try:
                if req.end is None:
                    engine.select_cell(req.start)
                else:
                    engine.select_range(req.start, req.end)
            except InvalidAddress as exc:
                raise HTTPException(400, str(exc))
            return _state()

    @router.post("/selection/move")
    def move(req: MoveRequest) -> dict[str, Any]:
        with lock:
            engine.move_focus(req.direction, req.extend)
            return _state()

    # -- Drag fill --

    @router.post("/drag/start")
    def drag_start(req: DragRequest) -> dict[str, Any]:
        with lock:
            try:
                engine.start_drag(req.cell)
            except InvalidAddress as exc:
                raise HTTPException(400, str(exc))
            return _state()

    @router.post("/drag/update")
    def drag_update(req: DragRequest) -> dict[str, Any]:
        with lock:
            engine.update_drag(req.cell)
            return _state()

    @router.post("/drag/end")
    def drag_end() -> dict[str, Any]:
        with lock:
            fill = engine.end_drag()
            return {"filled": [] if fill is None else fill.targets, **_state()}

    return router
