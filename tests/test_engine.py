"""Tests for the SpreadsheetEngine facade."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import pytest

from cellgrid.config import build_config
from cellgrid.engine import SpreadsheetEngine
from cellgrid.grid import Cell
from cellgrid.logging.sink import MemorySink


# ────────────────────────────────────────────────────────────────
# Edits and formulas
# ────────────────────────────────────────────────────────────────


class TestEditAndCommit:
    def test_set_and_get(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("a1", "hello")
        assert engine.get_cell("A1").value == "hello"

    def test_set_outside_grid(self, engine: SpreadsheetEngine) -> None:
        assert engine.set_cell_value("K1", "x") is None
        assert not engine.can_undo

    def test_commit_evaluates_formula(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "1")
        engine.set_cell_value("A2", "x")
        engine.set_cell_value("A3", "3")
        engine.set_cell_value("A4", "=SUM(A1:A3)")
        assert engine.commit_cell("A4") == 4
        assert engine.get_cell("A4").value == 4

    def test_commit_plain_text_untouched(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "hello")
        depth = engine.history.undo_depth
        assert engine.commit_cell("A1") == "hello"
        assert engine.history.undo_depth == depth

    def test_commit_unknown_function_keeps_text(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "=MEDIAN(B1:B2)")
        assert engine.evaluate_cell("A1") == "=MEDIAN(B1:B2)"
        assert engine.get_cell("A1").value == "=MEDIAN(B1:B2)"

    def test_undo_after_commit_restores_formula(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("B1", "2")
        engine.set_cell_value("A1", "=SUM(B1)")
        engine.commit_cell("A1")
        engine.undo()
        assert engine.get_cell("A1").value == "=SUM(B1)"

    def test_no_recalculation_on_change(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("B1", "2")
        engine.set_cell_value("A1", "=SUM(B1)")
        engine.commit_cell("A1")
        engine.set_cell_value("B1", "10")
        assert engine.get_cell("A1").value == 2

    def test_adhoc_evaluate(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "2")
        engine.set_cell_value("A2", "4")
        assert engine.evaluate("=AVERAGE(A1,A2)") == 3
        assert engine.evaluate("hello") == "hello"

    def test_insert_formula_template(self, engine: SpreadsheetEngine) -> None:
        engine.select_cell("C4")
        engine.insert_formula("sum")
        assert engine.get_cell("C4").value == "=SUM(C1,)"

    def test_insert_formula_without_focus(self, engine: SpreadsheetEngine) -> None:
        assert engine.insert_formula("SUM") is None


# ────────────────────────────────────────────────────────────────
# History
# ────────────────────────────────────────────────────────────────


class TestUndoRedo:
    def test_empty_is_noop(self, engine: SpreadsheetEngine, events: MemorySink) -> None:
        assert engine.undo() is False
        assert engine.redo() is False
        assert len(events.of_type("history_empty")) == 2

    def test_round_trip_after_n_edits(self, engine: SpreadsheetEngine) -> None:
        for i, cell_id in enumerate(["A1", "B2", "C3", "A1", "J10"]):
            engine.set_cell_value(cell_id, f"v{i}")
        engine.select_range("A1", "B2")
        engine.toggle_bold()
        final = engine.grid.snapshot()

        for _ in range(6):
            assert engine.undo()
        assert engine.grid.values() == {}
        for _ in range(6):
            assert engine.redo()
        assert engine.grid.snapshot() == final

    def test_edit_clears_redo(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "x")
        engine.undo()
        assert engine.can_redo
        engine.set_cell_value("A2", "y")
        assert not engine.can_redo

    def test_history_depth_from_config(self) -> None:
        engine = SpreadsheetEngine(config=build_config(history_max_depth=1))
        engine.set_cell_value("A1", "a")
        engine.set_cell_value("A1", "b")
        assert engine.undo()
        assert engine.get_cell("A1").value == "a"
        assert engine.undo() is False


# ────────────────────────────────────────────────────────────────
# Styles through the engine
# ────────────────────────────────────────────────────────────────


class TestStyles:
    def test_bold_on_mixed_selection(self, engine: SpreadsheetEngine) -> None:
        engine.apply_style(["B1"], {"bold": True})
        engine.select_range("A1", "C1")
        engine.toggle_bold()
        assert [engine.get_cell(c).bold for c in ("A1", "B1", "C1")] == [True, True, True]

    def test_explicit_selection(self, engine: SpreadsheetEngine) -> None:
        engine.select_cell("A1")
        engine.set_alignment("right", selection=["D4"])
        assert engine.get_cell("D4").alignment == "right"
        assert engine.get_cell("A1").alignment == "left"

    def test_font_steps_on_selection(self, engine: SpreadsheetEngine) -> None:
        engine.select_range("A1", "A2")
        engine.increase_font_size()
        assert engine.get_cell("A2").font_size == 14
        engine.decrease_font_size()
        engine.decrease_font_size()
        assert engine.get_cell("A1").font_size == 10

    def test_no_selection_changes_nothing(self, engine: SpreadsheetEngine) -> None:
        assert engine.toggle_italic() == []
        assert not engine.can_undo

    def test_font_color(self, engine: SpreadsheetEngine) -> None:
        engine.select_cell("B2")
        engine.set_font_color("#ff0000")
        engine.set_font_size(18)
        assert engine.get_cell("B2").font_color == "#ff0000"
        assert engine.get_cell("B2").font_size == 18


# ────────────────────────────────────────────────────────────────
# Resize
# ────────────────────────────────────────────────────────────────


class TestResize:
    def test_grow_then_shrink_resets_content(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "x")
        engine.apply_style(["B2"], {"bold": True})
        assert engine.resize_grid(11, 10)
        assert engine.resize_grid(10, 10)
        assert all(engine.get_cell(i) == Cell() for i in engine.grid.ids())

    def test_add_remove_helpers(self, engine: SpreadsheetEngine) -> None:
        engine.add_row()
        engine.add_column()
        assert engine.bounds == (11, 11)
        engine.remove_row()
        engine.remove_column()
        assert engine.bounds == (10, 10)

    def test_cannot_go_below_one(self) -> None:
        engine = SpreadsheetEngine(rows=1, cols=1)
        assert engine.remove_row() is False
        assert engine.remove_column() is False
        assert engine.bounds == (1, 1)

    def test_rejected_resize_logged(self, engine: SpreadsheetEngine, events: MemorySink) -> None:
        assert engine.resize_grid(0, 3) is False
        assert len(events.of_type("grid_resize_rejected")) == 1

    def test_wide_grid_uses_multi_letter_columns(self) -> None:
        engine = SpreadsheetEngine(rows=2, cols=28)
        engine.set_cell_value("AB2", "5")
        assert engine.get_cell("AB2").value == "5"
        assert engine.resize_grid(2, 703) is False

    def test_resize_is_undoable(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "x")
        engine.resize_grid(3, 3)
        engine.undo()
        assert engine.bounds == (10, 10)
        assert engine.get_cell("A1").value == "x"

    def test_resize_clamps_selection(self, engine: SpreadsheetEngine) -> None:
        engine.select_range("A1", "E5")
        engine.resize_grid(2, 2)
        assert engine.selected == ["A1", "B1", "A2", "B2"]
        assert engine.focus is None

    def test_preserving_resize_from_config(self) -> None:
        engine = SpreadsheetEngine(config=build_config(resize_preserves_content=True))
        engine.set_cell_value("A1", "x")
        engine.add_row()
        assert engine.get_cell("A1").value == "x"


# ────────────────────────────────────────────────────────────────
# Selection and drag fill
# ────────────────────────────────────────────────────────────────


class TestSelectionAndDrag:
    def test_keyboard_extend(self, engine: SpreadsheetEngine) -> None:
        engine.select_cell("A1")
        engine.move_focus("right", extend=True)
        focus, cells = engine.move_focus("down", extend=True)
        assert focus == "B2"
        assert cells == ["A1", "B1", "A2", "B2"]

    def test_move_without_focus(self, engine: SpreadsheetEngine) -> None:
        assert engine.move_focus("down") == (None, [])

    def test_drag_fill_copies_value_only(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "7")
        engine.apply_style(["A2"], {"italic": True})
        engine.set_cell_value("A3", "old")
        engine.start_drag("A1")
        engine.update_drag("A3")
        fill = engine.end_drag()
        assert fill is not None and fill.targets == ["A1", "A2", "A3"]
        assert [engine.get_cell(c).value for c in ("A1", "A2", "A3")] == ["7", "7", "7"]
        assert engine.get_cell("A2").italic is True
        assert engine.get_cell("A1").italic is False

    def test_drag_fill_is_undoable(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "7")
        engine.start_drag("A1")
        engine.update_drag("B1")
        engine.end_drag()
        engine.undo()
        assert engine.get_cell("B1").value == ""
        assert engine.get_cell("A1").value == "7"

    def test_end_drag_without_start(self, engine: SpreadsheetEngine) -> None:
        assert engine.end_drag() is None
        assert not engine.can_undo


# ────────────────────────────────────────────────────────────────
# Observers and state export
# ────────────────────────────────────────────────────────────────


class TestObservers:
    def test_notified_on_changes(self, engine: SpreadsheetEngine) -> None:
        seen: list[tuple[str, dict[str, Any]]] = []
        engine.subscribe(lambda kind, payload: seen.append((kind, payload)))
        engine.set_cell_value("A1", "x")
        engine.select_cell("A1")
        engine.toggle_bold()
        engine.undo()
        kinds = [k for k, _ in seen]
        assert kinds == ["cell", "selection", "style", "undo"]
        assert seen[0][1] == {"cell_id": "A1"}

    def test_unsubscribe(self, engine: SpreadsheetEngine) -> None:
        seen: list[str] = []

        def cb(kind: str, payload: dict[str, Any]) -> None:
            seen.append(kind)

        engine.subscribe(cb)
        engine.unsubscribe(cb)
        engine.set_cell_value("A1", "x")
        assert seen == []

    def test_failing_observer_does_not_break_engine(
        self, engine: SpreadsheetEngine, events: MemorySink
    ) -> None:
        def boom(kind: str, payload: dict[str, Any]) -> None:
            raise RuntimeError("boom")

        engine.subscribe(boom)
        engine.set_cell_value("A1", "x")
        assert engine.get_cell("A1").value == "x"
        (event,) = events.of_type("observer_failed")
        assert event.error_code == "RuntimeError"

    def test_to_dict_and_rows(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("B1", "5")
        state = engine.to_dict()
        assert state["max_row"] == 10
        assert state["cells"]["B1"]["value"] == "5"
        assert state["cells"]["A1"]["alignment"] == "left"
        rows = engine.rows()
        assert len(rows) == 10 and len(rows[0]) == 10
        assert rows[0][1][0] == "B1"


class TestConstruction:
    def test_explicit_zero_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            SpreadsheetEngine(rows=0)
        with pytest.raises(ValueError):
            SpreadsheetEngine(cols=0)

    def test_missing_sizes_come_from_config(self) -> None:
        engine = SpreadsheetEngine(rows=3, config=build_config(cols=4))
        assert engine.bounds == (3, 4)

    def test_huge_range_against_small_grid(self, engine: SpreadsheetEngine) -> None:
        engine.set_cell_value("A1", "1")
        started = time.perf_counter()
        assert engine.evaluate("=SUM(A1:Z200000)") == 1
        assert time.perf_counter() - started < 1.0


class TestFromConfig:
    def test_from_config_file(self, tmp_path: Path) -> None:
        (tmp_path / "cellgrid.yaml").write_text(
            "rows: 4\ncols: 3\nfont_size: 14\nlog_dir: {}\n".format(tmp_path / "logs")
        )
        engine = SpreadsheetEngine.from_config(tmp_path)
        assert engine.bounds == (4, 3)
        assert engine.get_cell("A1").font_size == 14
        engine.set_cell_value("A1", "x")
        log_file = tmp_path / "logs" / "events.ndjson"
        assert log_file.exists()
        assert "cell_edit" in log_file.read_text()
