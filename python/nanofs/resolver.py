"""Host path resolution through an optional staged overlay root."""

import logging
import os
import stat

from nanofs.errors import HostPathNotFoundError, SymlinkLoopError

logger = logging.getLogger(__name__)

# Same ceiling the Linux kernel applies to path walks (MAXSYMLINKS).
MAX_SYMLINK_HOPS = 40


def _join(root: str, path: str) -> str:
    # os.path.join would discard root for absolute paths.
    return os.path.normpath(root + "/" + path)


def resolve(target_root: str, path: str) -> str:
    """Resolve ``path`` to the concrete host path backing it.

    With a non-empty ``target_root`` the staged tree is consulted first. Absolute
    symlinks found there are re-resolved against the overlay; relative ones
    are accepted as-is. Entries missing from the overlay fall back to the
    host filesystem.

    Raises:
        HostPathNotFoundError: the final candidate does not exist.
        SymlinkLoopError: absolute overlay symlinks form a cycle.
        OSError: any other stat/readlink failure.
    """
    if target_root:
        current = path
        visited: set[str] = set()
        while True:
            candidate = _join(target_root, current)
            try:
                st = os.lstat(candidate)
            except FileNotFoundError:
                logger.debug("%s not staged under %s, using host", path, target_root)
                break

            if not stat.S_ISLNK(st.st_mode):
                return candidate

            current = os.readlink(candidate)
            if not current.startswith("/"):
                path = candidate
                break

            if candidate in visited or len(visited) >= MAX_SYMLINK_HOPS:
                raise SymlinkLoopError(path, len(visited))
            visited.add(candidate)

    try:
        os.stat(path)
    except FileNotFoundError as e:
        raise HostPathNotFoundError(path) from e
    return path
