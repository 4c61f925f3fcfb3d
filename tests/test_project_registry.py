"""Tests for project registry persistence, scanning and merging."""

import json
import os
from datetime import datetime, timedelta, timezone

from terminaut.models import Project
from terminaut.services import ProjectRegistry


class TestPersistence:
    """Save/load round-trips and fallbacks."""

    def test_round_trip_preserves_identity(self, settings, registered):
        reloaded = ProjectRegistry(settings)
        reloaded.load()

        assert [(p.id, p.name, p.path) for p in reloaded.projects] == [
            (p.id, p.name, p.path) for p in registered.projects
        ]

    def test_round_trip_preserves_optional_fields(self, settings, registry, make_project):
        project = registry.add("alpha", make_project("alpha"))
        project.icon = "star"
        project.has_activity = True
        registry.mark_opened(project)

        reloaded = ProjectRegistry(settings)
        reloaded.load()

        loaded = reloaded.find_by_id(project.id)
        assert loaded.icon == "star"
        assert loaded.has_activity is True
        assert loaded.last_opened == project.last_opened

    def test_file_format_uses_camel_case_keys(self, registry, make_project):
        project = registry.add("alpha", make_project("alpha"))
        registry.mark_opened(project)

        data = json.loads(registry.config_file.read_text())

        assert data[0]["id"] == project.id
        assert data[0]["hasActivity"] is False
        assert "lastOpened" in data[0]
        assert "icon" not in data[0]

    def test_save_leaves_no_temp_files(self, registered):
        leftovers = [p.name for p in registered.config_dir.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_missing_file_falls_back_to_scan(self, registry, make_project):
        make_project("scanned")

        registry.load()

        assert [p.name for p in registry.projects] == ["scanned"]
        assert registry.config_file.exists()

    def test_corrupt_file_falls_back_to_scan(self, registry, config_dir, make_project):
        make_project("scanned")
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "projects.json").write_text("{not json")

        registry.load()

        assert [p.name for p in registry.projects] == ["scanned"]

    def test_out_of_range_date_falls_back_to_scan(self, registry, config_dir, make_project, temp_home):
        make_project("scanned")
        config_dir.mkdir(parents=True, exist_ok=True)
        record = {"id": "A", "name": "x", "path": str(temp_home), "lastOpened": 1e20, "hasActivity": False}
        (config_dir / "projects.json").write_text(json.dumps([record]))

        registry.load()

        assert [p.name for p in registry.projects] == ["scanned"]

    def test_wrong_shape_falls_back_to_scan(self, registry, config_dir):
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "projects.json").write_text(json.dumps({"projects": []}))

        registry.load()

        assert registry.projects == []

    def test_legacy_numeric_dates_are_accepted(self, registry, config_dir, temp_home):
        config_dir.mkdir(parents=True, exist_ok=True)
        record = {"id": "A", "name": "a", "path": str(temp_home), "lastOpened": 86400.0, "hasActivity": False}
        (config_dir / "projects.json").write_text(json.dumps([record]))

        registry.load()

        assert registry.projects[0].last_opened == datetime(2001, 1, 2, tzinfo=timezone.utc)


class TestRecovery:
    """Recovery of lastOpened from session log directories."""

    def _write_registry(self, config_dir, projects):
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "projects.json").write_text(json.dumps([p.to_dict() for p in projects]))

    def test_recovers_from_log_directory_mtime(self, registry, config_dir, log_root, temp_home):
        old = Project(name="old", path=str(temp_home / "old"))
        new = Project(name="new", path=str(temp_home / "new"))
        self._write_registry(config_dir, [old, new])

        for project, mtime in ((old, 1_000_000), (new, 2_000_000)):
            log_dir = log_root / project.path.replace(os.sep, "-")
            log_dir.mkdir()
            os.utime(log_dir, (mtime, mtime))

        registry.load()

        assert [p.name for p in registry.projects] == ["new", "old"]
        assert registry.projects[0].last_opened == datetime.fromtimestamp(2_000_000, tz=timezone.utc)
        saved = json.loads(registry.config_file.read_text())
        assert saved[0]["name"] == "new"

    def test_no_recovery_when_any_date_is_set(self, registry, config_dir, log_root, temp_home):
        opened = Project(name="zeta", path=str(temp_home / "zeta"))
        opened.last_opened = datetime(2024, 1, 1, tzinfo=timezone.utc)
        other = Project(name="alpha", path=str(temp_home / "alpha"))
        self._write_registry(config_dir, [opened, other])
        (log_root / other.path.replace(os.sep, "-")).mkdir()

        registry.load()

        assert registry.find_by_id(other.id).last_opened is None

    def test_no_recovery_without_log_directories(self, registry, config_dir, temp_home):
        project = Project(name="alpha", path=str(temp_home / "alpha"))
        self._write_registry(config_dir, [project])

        registry.load()

        assert registry.projects[0].last_opened is None


class TestScan:
    """Directory scanning and merge rules."""

    def test_discovers_projects_by_marker(self, registry, make_project, temp_home):
        make_project("git-repo", marker=".git")
        make_project("node-app", root="Code", marker="package.json")
        make_project("rust-crate", root="Developer", marker="Cargo.toml")
        make_project("notes", marker="CLAUDE.md")
        make_project("plain", marker=None)
        (temp_home / "Projects" / "README.md").write_text("")

        registry.scan()

        assert sorted(p.name for p in registry.projects) == ["git-repo", "node-app", "notes", "rust-crate"]

    def test_skips_hidden_directories(self, registry, make_project):
        make_project(".hidden")
        make_project("visible")

        registry.scan()

        assert [p.name for p in registry.projects] == ["visible"]

    def test_scan_is_idempotent(self, registry, make_project):
        for name in ("b", "A", "c"):
            make_project(name)

        registry.scan()
        first = [(p.id, p.path) for p in registry.projects]
        registry.scan()

        assert [(p.id, p.path) for p in registry.projects] == first

    def test_rescan_preserves_metadata(self, registry, make_project):
        make_project("alpha")
        registry.scan()
        project = registry.projects[0]
        project.icon = "rocket"
        registry.mark_opened(project)

        registry.scan()

        rescanned = registry.projects[0]
        assert rescanned.id == project.id
        assert rescanned.icon == "rocket"
        assert rescanned.last_opened == project.last_opened

    def test_manual_projects_outside_roots_are_kept(self, registry, make_project):
        manual = registry.add("manual", make_project("manual", root="Elsewhere"))

        registry.scan()

        assert registry.find_by_id(manual.id) is not None

    def test_vanished_projects_are_dropped(self, registry, make_project):
        path = make_project("gone", root="Elsewhere")
        registry.add("gone", path)
        (path / ".git").rmdir()
        path.rmdir()

        registry.scan()

        assert registry.projects == []

    def test_scanned_projects_removed_from_disk_are_dropped(self, registry, make_project):
        path = make_project("temp")
        registry.scan()
        (path / ".git").rmdir()
        path.rmdir()

        registry.scan()

        assert registry.projects == []

    def test_duplicate_paths_collapse(self, registry, settings, make_project):
        make_project("alpha")
        settings.set("scan.roots", ["~/Projects", "~/Projects"])

        registry.scan()

        assert [p.name for p in registry.projects] == ["alpha"]

    def test_sort_order(self, registry, make_project):
        for name in ("delta", "Charlie", "bravo", "alpha"):
            make_project(name)
        registry.scan()
        now = datetime.now(timezone.utc)
        by_name = {p.name: p for p in registry.projects}
        by_name["delta"].last_opened = now - timedelta(days=1)
        by_name["alpha"].last_opened = now

        registry.scan()

        assert [p.name for p in registry.projects] == ["alpha", "delta", "bravo", "Charlie"]

    def test_scan_clamps_selection(self, registry, make_project):
        paths = [make_project(name) for name in ("a", "b", "c")]
        registry.scan()
        registry.selected_index = 2
        for path in paths[1:]:
            (path / ".git").rmdir()
            path.rmdir()

        registry.scan()

        assert registry.selected_index == 0

    def test_scan_emits_projects_changed(self, registry, make_project):
        make_project("alpha")
        events = []
        registry.connect("projects-changed", lambda _r: events.append("changed"))

        registry.scan()

        assert events == ["changed"]


class TestMutation:
    """add / remove / mark_opened."""

    def test_add_normalizes_and_persists(self, settings, registry, make_project, temp_home):
        make_project("alpha")

        project = registry.add("Alpha", "~/Projects/alpha")

        assert project.path == str(temp_home / "Projects" / "alpha")
        reloaded = ProjectRegistry(settings)
        reloaded.load()
        assert reloaded.find_by_id(project.id).name == "Alpha"

    def test_add_existing_path_returns_existing(self, registry, make_project):
        path = make_project("alpha")
        first = registry.add("alpha", path)

        second = registry.add("other name", str(path) + "/")

        assert second is first
        assert len(registry) == 1

    def test_remove_clamps_selection(self, registered):
        registered.selected_index = 2

        removed = registered.remove(2)

        assert removed.name == "gamma"
        assert registered.selected_index == 1

    def test_remove_last_leaves_index_zero(self, registry, make_project):
        registry.add("solo", make_project("solo"))

        registry.remove(0)

        assert registry.projects == []
        assert registry.selected_index == 0

    def test_remove_invalid_index_is_noop(self, registered):
        assert registered.remove(5) is None
        assert registered.remove(-1) is None
        assert len(registered) == 3

    def test_mark_opened_sets_timestamp(self, registered):
        project = registered.projects[1]
        before = datetime.now(timezone.utc)

        registered.mark_opened(project)

        assert project.last_opened >= before
        # No re-sort on open
        assert registered.projects[1] is project

    def test_mark_opened_unknown_project_is_ignored(self, registered, temp_home):
        stranger = Project(name="x", path=str(temp_home))

        assert registered.mark_opened(stranger) is None
        assert stranger.last_opened is None


class TestScanAsync:
    """Background scanning delivers on the main loop."""

    def test_scan_async_merges_on_main_loop(self, registry, make_project):
        from gi.repository import GLib

        make_project("alpha")
        loop = GLib.MainLoop()
        results = []

        def on_done(projects):
            results.append([p.name for p in projects])
            loop.quit()

        registry.scan_async(on_done)
        timeout_id = GLib.timeout_add_seconds(5, lambda: loop.quit() or GLib.SOURCE_REMOVE)
        loop.run()
        if results:
            GLib.source_remove(timeout_id)

        assert results == [["alpha"]]
        assert [p.name for p in registry.projects] == ["alpha"]
