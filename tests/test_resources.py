"""Tests for unity_editor_relay/resources.py - Help resources"""

from __future__ import annotations

from pathlib import Path

from unity_editor_relay.resources import (
    BUILTIN_RESOURCES,
    TextResource,
    get_all_resources,
    load_text_resources,
)


class TestBuiltinResources:
    """Test the packaged help documents"""

    def test_uris(self) -> None:
        assert [r.uri for r in BUILTIN_RESOURCES] == [
            "help:///vrchat/world-building-notes",
            "help:///vrchat/udon-script-example",
        ]

    def test_files_are_packaged(self) -> None:
        for resource in BUILTIN_RESOURCES:
            assert resource.path.is_file()
            assert resource.read().strip()

    def test_default_set(self) -> None:
        assert get_all_resources() == list(BUILTIN_RESOURCES)


class TestTextResource:
    """Test file-backed resources"""

    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tips.md"
        path.write_text("# Tips", encoding="utf-8")

        resource = TextResource.from_file(path)

        assert resource.uri == "file:///tips.md"
        assert resource.definition.name == "tips.md"
        assert resource.definition.mime_type == "text/plain"
        assert resource.read() == "# Tips"

    def test_missing_file_reads_as_error_text(self, tmp_path: Path) -> None:
        resource = TextResource.from_file(tmp_path / "gone.txt")
        assert resource.read() == "Error loading text file: gone.txt"

    def test_load_directory_skips_subdirectories(self, tmp_path: Path) -> None:
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "nested").mkdir()

        assert [r.uri for r in load_text_resources(tmp_path)] == ["file:///a.txt", "file:///b.txt"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert load_text_resources(tmp_path / "missing") == []

    def test_all_resources_with_directory(self, tmp_path: Path) -> None:
        (tmp_path / "extra.txt").write_text("x")
        resources = get_all_resources(tmp_path)
        assert len(resources) == len(BUILTIN_RESOURCES) + 1
        assert resources[-1].uri == "file:///extra.txt"
