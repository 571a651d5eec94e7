"""Virtual filesystem tree nodes and insertion primitives."""

import logging
from typing import Annotated, Literal

import pydantic

from nanofs.errors import ConflictError, ConflictKind

logger = logging.getLogger(__name__)


class File(pydantic.BaseModel):
    """Leaf backed by a host filesystem source."""

    model_config = pydantic.ConfigDict(extra="forbid")

    kind: Literal["file"] = "file"
    host_path: str

    @property
    def source(self) -> str:
        return self.host_path


class Link(pydantic.BaseModel):
    """Symbolic link holding its literal, unresolved target."""

    model_config = pydantic.ConfigDict(extra="forbid")

    kind: Literal["link"] = "link"
    target: str

    @property
    def source(self) -> str:
        return self.target


class Directory(pydantic.BaseModel):
    """Directory node: named children of any node kind."""

    model_config = pydantic.ConfigDict(extra="forbid")

    kind: Literal["dir"] = "dir"
    children: dict[str, "Node"] = pydantic.Field(default_factory=dict)


Node = Annotated[Directory | File | Link, pydantic.Field(discriminator="kind")]
Leaf = File | Link

Directory.model_rebuild()


def split_path(path: str) -> list[str]:
    """Split a slash-separated path, dropping empty segments."""
    return [part for part in path.split("/") if part]


def get_children(node: Directory) -> dict[str, Node]:
    return node.children


def mk_dir(parent: Directory, name: str) -> Directory:
    """Return the directory ``name`` under ``parent``, creating it if absent."""
    children = get_children(parent)
    existing = children.get(name)
    if existing is None:
        created = Directory()
        children[name] = created
        return created
    if not isinstance(existing, Directory):
        raise ConflictError(ConflictKind.DIRECTORY_OVER_FILE, name)
    return existing


def mk_dir_path(parent: Directory, path: str) -> Directory:
    """Apply :func:`mk_dir` for each segment of ``path``."""
    parts = split_path(path)
    for i, part in enumerate(parts):
        try:
            parent = mk_dir(parent, part)
        except ConflictError:
            prefix = "/" + "/".join(parts[: i + 1])
            raise ConflictError(ConflictKind.DIRECTORY_OVER_FILE, prefix) from None
    return parent


def check_leaf(root: Directory, path: str) -> tuple[Directory, str, Leaf | None]:
    """Prepare insertion of a leaf at ``path``.

    Intermediate directories are created. Returns the parent directory, the
    final segment and the node currently stored there.

    Raises:
        ConflictError: the final segment is an existing directory, or an
            intermediate segment is a file or link.
    """
    parts = split_path(path)
    if not parts:
        raise ValueError(f"empty virtual path: {path!r}")
    parent = mk_dir_path(root, "/".join(parts[:-1]))
    name = parts[-1]
    existing = parent.children.get(name)
    if isinstance(existing, Directory):
        raise ConflictError(ConflictKind.FILE_OVER_DIRECTORY, path)
    return parent, name, existing


def peek_leaf(root: Directory, path: str) -> Leaf | None:
    """Run the checks of :func:`check_leaf` without creating anything.

    Returns the leaf currently stored at ``path``, if any.
    """
    parts = split_path(path)
    if not parts:
        raise ValueError(f"empty virtual path: {path!r}")
    node = root
    for i, part in enumerate(parts[:-1]):
        child = node.children.get(part)
        if child is None:
            return None
        if not isinstance(child, Directory):
            prefix = "/" + "/".join(parts[: i + 1])
            raise ConflictError(ConflictKind.DIRECTORY_OVER_FILE, prefix)
        node = child
    existing = node.children.get(parts[-1])
    if isinstance(existing, Directory):
        raise ConflictError(ConflictKind.FILE_OVER_DIRECTORY, path)
    return existing


def place_leaf(
    parent: Directory,
    name: str,
    existing: Leaf | None,
    path: str,
    leaf: Leaf,
) -> None:
    """Store ``leaf`` as ``name`` under ``parent``; last write wins."""
    if existing is not None and existing != leaf:
        logger.warning(
            "overwriting existing file %s hostpath old: %s new: %s",
            path,
            existing.source,
            leaf.source,
        )
    parent.children[name] = leaf


def lookup(root: Directory, path: str) -> Node | None:
    """Return the node at ``path`` without creating anything."""
    node: Node = root
    for part in split_path(path):
        if not isinstance(node, Directory):
            return None
        child = node.children.get(part)
        if child is None:
            return None
        node = child
    return node


def insert_leaf(root: Directory, path: str, leaf: Leaf) -> None:
    """Insert ``leaf`` at ``path`` under ``root``."""
    parent, name, existing = check_leaf(root, path)
    place_leaf(parent, name, existing, path, leaf)
