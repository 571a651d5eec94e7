"""Mirror a host directory subtree into a manifest."""

import collections.abc
import logging
import os
import posixpath
import stat
import typing

import pathspec

from nanofs.errors import ConflictError, ConflictKind
from nanofs.tree import Directory, mk_dir, split_path

if typing.TYPE_CHECKING:
    from nanofs.builder import ManifestBuilder

logger = logging.getLogger(__name__)

PathMapper = collections.abc.Callable[[str], str]


def absolute_mapper(hostpath: str) -> str:
    """Root relative host paths at ``/``; absolute ones map to themselves.

    ``.`` and ``..`` segments are collapsed so they never become nodes.
    """
    return posixpath.normpath("/" + hostpath.lstrip("/"))


def relative_mapper(src: str) -> PathMapper:
    """Map host paths under ``src`` to virtual paths rooted at ``/``."""

    def _map(hostpath: str) -> str:
        return "/" + hostpath.removeprefix(src).lstrip("/")

    return _map


def _is_excluded(exclude: pathspec.PathSpec, rel: str, *, is_dir: bool) -> bool:
    path = f"{rel}/" if is_dir else rel
    return exclude.match_file(path)


def _iter_tree(
    top: str,
    path: str,
    st: os.stat_result,
    exclude: pathspec.PathSpec | None,
) -> collections.abc.Iterator[tuple[str, os.stat_result]]:
    """Yield (hostpath, lstat) for ``path`` and its descendants in lexical order.

    Symlinked directories are yielded but not descended.
    """
    yield path, st
    if not stat.S_ISDIR(st.st_mode):
        return

    for name in sorted(os.listdir(path)):
        child = os.path.join(path, name)
        child_st = os.lstat(child)
        if exclude is not None:
            rel = os.path.relpath(child, top)
            if _is_excluded(exclude, rel, is_dir=stat.S_ISDIR(child_st.st_mode)):
                logger.debug("excluded %s", child)
                continue
        yield from _iter_tree(top, child, child_st, exclude)


def _ensure_dirs(root: Directory, vmpath: str, hostpath: str) -> None:
    node = root
    for part in split_path(vmpath):
        try:
            node = mk_dir(node, part)
        except ConflictError:
            err = ConflictError(ConflictKind.DIRECTORY_OVER_FILE, hostpath)
            logger.error("%s", err)
            raise err from None


def walk(
    builder: "ManifestBuilder",
    src: str,
    mapper: PathMapper,
    exclude: collections.abc.Sequence[str] = (),
) -> None:
    """Insert every entry under host directory ``src`` into ``builder``.

    Broken symlinks are skipped with a warning. A directory that collides
    with an existing file aborts the walk with :class:`ConflictError`.
    """
    spec = pathspec.PathSpec.from_lines("gitwildmatch", exclude) if exclude else None
    root = builder.manifest.root
    count = 0

    for hostpath, st in _iter_tree(src, src, os.lstat(src), spec):
        vmpath = mapper(hostpath)

        if stat.S_ISLNK(st.st_mode):
            try:
                os.stat(hostpath)
            except OSError as e:
                logger.warning("skipping invalid symlink %s: %s", hostpath, e)
                continue
            builder.add_link(vmpath, hostpath)
        elif stat.S_ISDIR(st.st_mode):
            _ensure_dirs(root, vmpath, hostpath)
        else:
            builder.add_file(vmpath, hostpath)
        count += 1

    logger.info("added %d entries from %s", count, src)
