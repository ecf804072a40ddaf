"""
Tests for appdex.core.resolver — desktop files, filesystem paths, roots.
"""

import os
from pathlib import Path

import pytest
from appdex.core.config import AppdexConfig
from appdex.core.engine import FOLDER_ICON, GENERIC_EXECUTABLE_ICON, EntryKind
from appdex.core.resolver import (
    GENERIC_FILE_ICON,
    collect_resolved,
    desktop_roots,
    mime_icon,
    resolve_desktop_entry,
    resolve_filesystem_entry,
    resolve_path,
    scan_desktop_root,
)
from appdex.core.scoring import DIRECTORY_BONUS

from conftest import make_config, write_desktop


# =============================================================================
# Desktop entries
# =============================================================================

class TestResolveDesktopEntry:

    def test_basic_fields(self, tmp_path):
        path = write_desktop(tmp_path, "firefox.desktop", Name="Firefox",
                             Comment="Browse the Web", Exec="firefox %u", Icon="firefox")
        entry = resolve_desktop_entry(path)
        assert entry is not None
        assert entry.name == "Firefox"
        assert entry.description == "Browse the Web"
        assert entry.command == "firefox %u"
        assert entry.icon_id == "firefox"
        assert entry.path == str(path)
        assert entry.kind is EntryKind.APPLICATION
        assert entry.launch_count == 0
        assert entry.rank_bonus == 0

    def test_generic_name_used_without_comment(self, tmp_path):
        path = write_desktop(tmp_path, "roller.desktop", Name="FileRoller",
                             GenericName="Archive Manager", Exec="file-roller")
        assert resolve_desktop_entry(path).description == "Archive Manager"

    def test_comment_preferred_over_generic_name(self, tmp_path):
        path = write_desktop(tmp_path, "a.desktop", Name="A", Comment="comment",
                             GenericName="generic", Exec="a")
        assert resolve_desktop_entry(path).description == "comment"

    def test_missing_icon_gets_generic_executable(self, tmp_path):
        path = write_desktop(tmp_path, "htop.desktop", Name="Htop", Exec="htop")
        assert resolve_desktop_entry(path).icon_id == GENERIC_EXECUTABLE_ICON

    def test_missing_name_is_rejected(self, tmp_path):
        path = write_desktop(tmp_path, "noname.desktop", Exec="thing")
        assert resolve_desktop_entry(path) is None

    @pytest.mark.parametrize("value", ["true", "True", " TRUE "])
    def test_no_display_is_rejected(self, tmp_path, value):
        path = write_desktop(tmp_path, "hidden.desktop", Name="Hidden",
                             Exec="x", NoDisplay=value)
        assert resolve_desktop_entry(path) is None

    def test_no_display_false_is_kept(self, tmp_path):
        path = write_desktop(tmp_path, "shown.desktop", Name="Shown",
                             Exec="x", NoDisplay="false")
        assert resolve_desktop_entry(path) is not None

    def test_localized_keys_do_not_replace_name(self, tmp_path):
        path = tmp_path / "loc.desktop"
        path.write_text(
            "[Desktop Entry]\nName=Files\nName[de]=Dateien\nExec=nautilus\n",
            encoding="utf-8",
        )
        assert resolve_desktop_entry(path).name == "Files"

    def test_other_sections_are_ignored(self, tmp_path):
        path = tmp_path / "actions.desktop"
        path.write_text(
            "[Desktop Entry]\nName=Firefox\nExec=firefox %u\n\n"
            "[Desktop Action new-window]\nName=New Window\nExec=firefox --new-window\n",
            encoding="utf-8",
        )
        entry = resolve_desktop_entry(path)
        assert entry.name == "Firefox"
        assert entry.command == "firefox %u"

    def test_exec_with_equals_and_percent(self, tmp_path):
        path = write_desktop(tmp_path, "env.desktop", Name="Env",
                             Exec="env FOO=bar app --x=%f")
        assert resolve_desktop_entry(path).command == "env FOO=bar app --x=%f"

    def test_missing_file(self, tmp_path):
        assert resolve_desktop_entry(tmp_path / "nope.desktop") is None

    def test_file_without_section_header(self, tmp_path):
        path = tmp_path / "broken.desktop"
        path.write_text("Name=Broken\n", encoding="utf-8")
        assert resolve_desktop_entry(path) is None

    def test_file_without_desktop_section(self, tmp_path):
        path = tmp_path / "other.desktop"
        path.write_text("[Something Else]\nName=Other\n", encoding="utf-8")
        assert resolve_desktop_entry(path) is None


# =============================================================================
# Filesystem entries
# =============================================================================

class TestResolveFilesystemEntry:

    def test_directory(self, tmp_path):
        target = tmp_path / "Documents"
        target.mkdir()
        entry = resolve_filesystem_entry(str(target))
        assert entry.name == "Documents"
        assert entry.icon_id == FOLDER_ICON
        assert entry.command == ""
        assert entry.rank_bonus == DIRECTORY_BONUS
        assert entry.kind is EntryKind.FILE
        assert entry.is_directory

    def test_directory_with_trailing_slash(self, tmp_path):
        target = tmp_path / "Music"
        target.mkdir()
        assert resolve_filesystem_entry(str(target) + "/").name == "Music"

    def test_executable_runs_directly(self, tmp_path):
        exe = tmp_path / "run.sh"
        exe.write_text("#!/bin/sh\n", encoding="utf-8")
        exe.chmod(0o755)
        entry = resolve_filesystem_entry(str(exe))
        assert entry.command == f'"{exe}"'
        assert entry.icon_id == GENERIC_EXECUTABLE_ICON
        assert not entry.is_directory

    def test_regular_file_opens_with_handler(self, tmp_path):
        doc = tmp_path / "notes.txt"
        doc.write_text("hello", encoding="utf-8")
        doc.chmod(0o644)
        entry = resolve_filesystem_entry(str(doc))
        assert entry.command == f'xdg-open "{doc}"'
        assert entry.icon_id == "text-x-generic"
        assert entry.rank_bonus == 0

    def test_tilde_is_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "Pictures").mkdir()
        entry = resolve_filesystem_entry("~/Pictures")
        assert entry.path == str(tmp_path / "Pictures")

    def test_env_var_is_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APPDEX_TEST_DIR", str(tmp_path))
        (tmp_path / "Videos").mkdir()
        entry = resolve_filesystem_entry("$APPDEX_TEST_DIR/Videos")
        assert entry.name == "Videos"

    def test_nonexistent_path(self, tmp_path):
        assert resolve_filesystem_entry(str(tmp_path / "missing")) is None

    def test_resolve_path_takes_names_literally(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APPDEX_TEST_VAR", "elsewhere")
        literal = tmp_path / "$APPDEX_TEST_VAR.txt"
        literal.write_text("x", encoding="utf-8")
        entry = resolve_path(str(literal))
        assert entry.name == "$APPDEX_TEST_VAR.txt"
        assert entry.path == str(literal)

    def test_filesystem_root_has_no_name(self):
        assert resolve_filesystem_entry("/") is None


class TestMimeIcon:

    def test_extensionless_text_is_sniffed(self, tmp_path):
        readme = tmp_path / "README"
        readme.write_text("Plain words in a plain file.\nSecond line.\n", encoding="utf-8")
        assert mime_icon(str(readme)) == "text-x-generic"

    def test_extensionless_text_entry(self, tmp_path):
        makefile = tmp_path / "Makefile"
        makefile.write_text("all:\n\techo done\n", encoding="utf-8")
        makefile.chmod(0o644)
        assert resolve_filesystem_entry(str(makefile)).icon_id == "text-x-generic"

    @pytest.mark.parametrize("filename,icon", [
        ("notes.txt", "text-x-generic"),
        ("photo.png", "image-x-generic"),
        ("song.mp3", "audio-x-generic"),
        ("clip.mp4", "video-x-generic"),
        ("paper.pdf", "application-pdf"),
        ("blob.zz9unknown", GENERIC_FILE_ICON),
    ])
    def test_buckets(self, filename, icon):
        assert mime_icon(filename) == icon


# =============================================================================
# Roots & scanning
# =============================================================================

class TestDesktopRoots:

    def test_xdg_data_dirs_come_first(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_DATA_DIRS", f"{tmp_path}/one:{tmp_path}/two")
        cfg = make_config(tmp_path, tmp_path / "extra", use_xdg_data_dirs=True)
        assert desktop_roots(cfg) == [
            tmp_path / "one" / "applications",
            tmp_path / "two" / "applications",
            tmp_path / "extra",
        ]

    def test_duplicates_keep_first_position(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_DATA_DIRS", str(tmp_path))
        cfg = make_config(tmp_path, tmp_path / "applications", tmp_path / "other",
                          use_xdg_data_dirs=True)
        assert desktop_roots(cfg) == [tmp_path / "applications", tmp_path / "other"]

    def test_xdg_ignored_when_disabled(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_DATA_DIRS", "/somewhere")
        cfg = make_config(tmp_path, tmp_path / "apps")
        assert desktop_roots(cfg) == [tmp_path / "apps"]

    def test_tilde_roots_are_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        cfg = AppdexConfig(desktop_paths=("~/.local/share/applications",), use_xdg_data_dirs=False)
        assert desktop_roots(cfg) == [tmp_path / ".local" / "share" / "applications"]


class TestScanDesktopRoot:

    def test_lists_only_desktop_files_sorted(self, apps_root):
        found = scan_desktop_root(apps_root)
        assert [p.name for p in found] == sorted(p.name for p in found)
        assert all(p.suffix == ".desktop" for p in found)
        assert len(found) == 5

    def test_does_not_recurse(self, tmp_path):
        write_desktop(tmp_path / "nested", "deep.desktop", Name="Deep", Exec="deep")
        write_desktop(tmp_path, "top.desktop", Name="Top", Exec="top")
        assert [p.name for p in scan_desktop_root(tmp_path)] == ["top.desktop"]

    def test_missing_root_is_empty(self, tmp_path):
        assert scan_desktop_root(tmp_path / "missing") == []


def test_collect_resolved_drops_failures(apps_root):
    entries = collect_resolved(resolve_desktop_entry(p) for p in scan_desktop_root(apps_root))
    names = {e.name for e in entries}
    assert "Hidden Helper" not in names
    assert {"Files", "FileRoller", "Firefox", "Htop"} == names
    assert all(os.path.isabs(e.path) for e in entries)
    assert all(Path(e.path).parent == apps_root for e in entries)
