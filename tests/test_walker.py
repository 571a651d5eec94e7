"""Tests for mirroring host directories into the manifest."""

import logging
import os
import pathlib

import pytest

from nanofs.builder import ManifestBuilder
from nanofs.errors import ConflictError, ConflictKind
from nanofs.tree import Directory, File, Link
from nanofs.walker import absolute_mapper, relative_mapper


@pytest.fixture
def source(tmp_path: pathlib.Path) -> pathlib.Path:
    """Host tree:

    src/
      a.txt
      link -> a.txt
      broken -> missing.txt
      sub/b.txt
      sub/empty/
      shared -> sub
    """
    src = tmp_path / "src"
    (src / "sub" / "empty").mkdir(parents=True)
    (src / "a.txt").write_text("a")
    (src / "sub" / "b.txt").write_text("b")
    os.symlink("a.txt", src / "link")
    os.symlink("missing.txt", src / "broken")
    os.symlink("sub", src / "shared")
    return src


class TestMappers:
    def test_absolute_mapper(self) -> None:
        assert absolute_mapper("/srv/www/index.html") == "/srv/www/index.html"
        assert absolute_mapper("static/index.html") == "/static/index.html"

    def test_absolute_mapper_collapses_dot_segments(self) -> None:
        assert absolute_mapper("./static/index.html") == "/static/index.html"
        assert absolute_mapper("../static/index.html") == "/static/index.html"
        assert absolute_mapper("/srv/./www/../www/index.html") == "/srv/www/index.html"

    def test_relative_mapper(self) -> None:
        mapper = relative_mapper("/build/rootfs")
        assert mapper("/build/rootfs") == "/"
        assert mapper("/build/rootfs/etc/hosts") == "/etc/hosts"

    def test_relative_mapper_trailing_slash(self) -> None:
        mapper = relative_mapper("/build/rootfs/")
        assert mapper("/build/rootfs/etc/hosts") == "/etc/hosts"


class TestAddRelativeDirectory:
    """Tests for walking a tree into the image root."""

    def test_mirrors_tree(self, source: pathlib.Path) -> None:
        builder = ManifestBuilder()
        builder.add_relative_directory(str(source))

        assert builder.file_exists("/a.txt")
        assert builder.file_exists("/sub/b.txt")
        assert isinstance(builder.manifest.find("/sub/empty"), Directory)
        assert builder.manifest.find("/a.txt") == File(host_path=str(source / "a.txt"))

    def test_symlinks_are_links(self, source: pathlib.Path) -> None:
        builder = ManifestBuilder()
        builder.add_relative_directory(str(source))

        assert builder.manifest.find("/link") == Link(target="a.txt")
        # Symlinked directories are recorded, not descended.
        assert builder.manifest.find("/shared") == Link(target="sub")

    def test_broken_symlink_skipped_with_warning(
        self, source: pathlib.Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        builder = ManifestBuilder()
        with caplog.at_level(logging.WARNING):
            builder.add_relative_directory(str(source))

        assert builder.manifest.find("/broken") is None
        messages = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert len(messages) == 1
        assert "broken" in messages[0]

    def test_directory_over_file_aborts(
        self,
        source: pathlib.Path,
        tmp_path: pathlib.Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        other = tmp_path / "sub-file"
        other.touch()
        builder = ManifestBuilder()
        builder.add_file("/sub", str(other))

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ConflictError) as exc_info:
                builder.add_relative_directory(str(source))

        assert exc_info.value.kind is ConflictKind.DIRECTORY_OVER_FILE
        assert exc_info.value.path == str(source / "sub")
        assert builder.manifest.find("/sub") == File(host_path=str(other))
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_file_over_directory_aborts(self, source: pathlib.Path) -> None:
        builder = ManifestBuilder()
        builder.add_mount("data", "/a.txt")
        with pytest.raises(ConflictError) as exc_info:
            builder.add_relative_directory(str(source))
        assert exc_info.value.kind is ConflictKind.FILE_OVER_DIRECTORY

    def test_exclude_patterns(self, source: pathlib.Path) -> None:
        (source / "cache").mkdir()
        (source / "cache" / "blob").touch()
        (source / "module.pyc").touch()

        builder = ManifestBuilder()
        builder.add_relative_directory(str(source), exclude=["*.pyc", "cache/"])

        assert builder.manifest.find("/cache") is None
        assert builder.manifest.find("/module.pyc") is None
        assert builder.file_exists("/a.txt")

    def test_directory_pattern_keeps_same_named_file(self, source: pathlib.Path) -> None:
        (source / "cache").touch()
        (source / "sub" / "cache").mkdir()
        (source / "sub" / "cache" / "blob").touch()

        builder = ManifestBuilder()
        builder.add_relative_directory(str(source), exclude=["cache/"])

        assert builder.file_exists("/cache")
        assert builder.manifest.find("/sub/cache") is None

    def test_walk_is_repeatable(self, source: pathlib.Path) -> None:
        builder = ManifestBuilder()
        builder.add_relative_directory(str(source))
        before = builder.manifest.model_dump()
        builder.add_relative_directory(str(source))
        assert builder.manifest.model_dump() == before


class TestAddDirectory:
    """Tests for walking a tree at its own path."""

    def test_absolute_source(self, source: pathlib.Path) -> None:
        builder = ManifestBuilder()
        builder.add_directory(str(source))

        assert builder.file_exists(str(source / "a.txt"))
        assert builder.file_exists(str(source / "sub" / "b.txt"))
        assert builder.manifest.find(str(source / "link")) == Link(target="a.txt")

    def test_relative_source(
        self, source: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(source.parent)
        builder = ManifestBuilder()
        builder.add_directory("src")

        assert builder.file_exists("/src/a.txt")
        assert builder.file_exists("/src/sub/b.txt")
        assert builder.manifest.find("/src/sub/b.txt") == File(host_path="src/sub/b.txt")

    def test_dot_prefixed_source(
        self, source: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(source.parent)
        builder = ManifestBuilder()
        builder.add_directory("./src")

        assert list(builder.manifest.root.children) == ["src"]
        assert builder.file_exists("/src/a.txt")
        assert builder.manifest.find("/src/sub/b.txt") == File(host_path="./src/sub/b.txt")

    def test_missing_directory(self, tmp_path: pathlib.Path) -> None:
        builder = ManifestBuilder()
        with pytest.raises(FileNotFoundError):
            builder.add_directory(str(tmp_path / "missing"))
