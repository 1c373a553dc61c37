"""Headless tests for the Textual editor and the command line entry point."""

from __future__ import annotations

import asyncio
import json
import logging

from app import MindmapApp, main
from mmd_io import from_mermaid
from session import EditingSession
from sync import DEFAULT_SYNC_KEY, InMemoryStore, SyncSession


OUTLINE = (
    "mindmap\n"
    '  root(("Trip"))\n'
    '    "[L] Packing"\n'
    '      "Clothes"\n'
    '        "Socks"\n'
    '    "[R] Route"'
)


def _shutdown_logging() -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def test_tree_widget_mirrors_session() -> None:
    async def scenario() -> None:
        app = MindmapApp(EditingSession(from_mermaid(OUTLINE)))
        async with app.run_test() as pilot:
            await pilot.pause()
            tree = app.require_tree()
            assert tree.root.label.plain == "Trip"
            assert [child.label.plain for child in tree.root.children] == [
                "[L] Packing",
                "[R] Route",
            ]
            assert tree.root.children[0].children[0].data is app.session.root.children[0].children[0]

    asyncio.run(scenario())


def test_collapse_all_updates_model_and_widget() -> None:
    async def scenario() -> None:
        app = MindmapApp(EditingSession(from_mermaid(OUTLINE)))
        async with app.run_test() as pilot:
            await pilot.press("z")
            await pilot.pause()
            clothes = app.session.root.children[0].children[0]
            assert clothes.expanded is False
            assert app.session.root.children[0].expanded is True
            tree = app.require_tree()
            assert tree.root.children[0].children[0].is_expanded is False

    asyncio.run(scenario())


def test_save_and_reload_keep_collapsed_state(tmp_path) -> None:
    path = tmp_path / "trip.mmd"
    path.write_text(OUTLINE, encoding="utf-8")

    async def scenario() -> None:
        session = EditingSession(path=path)
        session.load_file(path)
        app = MindmapApp(session)
        async with app.run_test() as pilot:
            app.session.root.children[0].expanded = False
            app.session.root.topic = "Trip 2"
            app.session.notify_changed()
            await pilot.press("s")
            await pilot.pause()
            assert path.read_text(encoding="utf-8") == OUTLINE.replace("Trip", "Trip 2")

            await pilot.press("o")
            await pilot.pause()
            assert app.session.root.topic == "Trip 2"
            assert app.session.root.children[0].expanded is False
            assert app.require_tree().root.children[0].is_expanded is False

    asyncio.run(scenario())


def test_remote_update_redraws_tree() -> None:
    remote = 'mindmap\n  root(("Shared"))\n    "[R] Ideas"'
    store = InMemoryStore({DEFAULT_SYNC_KEY: remote})

    async def scenario() -> None:
        session = EditingSession()
        app = MindmapApp(session, sync=SyncSession(store, session))
        async with app.run_test() as pilot:
            await pilot.pause()
            assert app.require_tree().root.label.plain == "Shared"

            store.set_value(DEFAULT_SYNC_KEY, remote + '\n    "[L] More"')
            await pilot.pause()
            labels = [child.label.plain for child in app.require_tree().root.children]
            assert labels == ["[R] Ideas", "[L] More"]

    asyncio.run(scenario())


def test_cli_converts_outline_to_json(tmp_path) -> None:
    source = tmp_path / "trip.mmd"
    source.write_text(OUTLINE, encoding="utf-8")
    output = tmp_path / "trip.json"

    try:
        code = main([str(source), "--convert", str(output), "--log-file", str(tmp_path / "run.log")])
    finally:
        _shutdown_logging()

    assert code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["nodeData"]["topic"] == "Trip"
    assert [child["direction"] for child in payload["nodeData"]["children"]] == [0, 1]


def test_cli_convert_reports_missing_or_invalid_input(tmp_path, capsys) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("[]", encoding="utf-8")
    source = tmp_path / "trip.mmd"
    source.write_text(OUTLINE, encoding="utf-8")
    log_file = str(tmp_path / "run.log")

    try:
        missing_code = main([str(tmp_path / "missing.mmd"), "--convert", str(tmp_path / "out.json"), "--log-file", log_file])
        invalid_code = main([str(broken), "--convert", str(tmp_path / "out.mmd"), "--log-file", log_file])
        unwritable_code = main(
            [str(source), "--convert", str(tmp_path / "no-such-dir" / "out.mmd"), "--log-file", log_file]
        )
    finally:
        _shutdown_logging()

    assert missing_code == 1
    assert invalid_code == 1
    assert unwritable_code == 1
    err = capsys.readouterr().err
    assert "not found" in err
    assert "Invalid file" in err
    assert "Could not write" in err
    assert not (tmp_path / "no-such-dir").exists()


def test_cli_starts_editor_with_configured_sync_key(tmp_path, monkeypatch) -> None:
    source = tmp_path / "trip.mmd"
    source.write_text(OUTLINE, encoding="utf-8")
    monkeypatch.setenv("MMDMAP_SYNC_KEY", "team-map")
    started = []
    monkeypatch.setattr(MindmapApp, "run", lambda self: started.append(self))

    try:
        code = main([str(source), "--log-file", str(tmp_path / "run.log")])
    finally:
        _shutdown_logging()

    assert code == 0
    [app] = started
    assert isinstance(app.sync, SyncSession)
    assert app.sync.key == "team-map"
    assert app.session.root.topic == "Trip"
