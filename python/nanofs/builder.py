"""Manifest builder: the only sanctioned way to mutate a manifest."""

import collections.abc
import logging
import os
import posixpath

from nanofs import walker
from nanofs.errors import BadLinkError
from nanofs.manifest import KLIBS_BOOTFS, Manifest, NetworkConfig
from nanofs.resolver import resolve
from nanofs.tree import (
    Directory,
    File,
    Link,
    check_leaf,
    lookup,
    mk_dir,
    mk_dir_path,
    peek_leaf,
    place_leaf,
    split_path,
)

logger = logging.getLogger(__name__)


class ManifestBuilder:
    """Builds a manifest from host files, directories and metadata.

    Errors propagate to the caller; whether one stops the build is decided by
    :func:`nanofs.errors.is_fatal` at the top level.
    """

    def __init__(self, target_root: str = "", manifest: Manifest | None = None) -> None:
        if manifest is None:
            manifest = Manifest(target_root=target_root)
        self.manifest = manifest

    @property
    def target_root(self) -> str:
        return self.manifest.target_root

    # Tree insertion

    def add_file(self, path: str, hostpath: str) -> None:
        """Add host file ``hostpath`` at virtual ``path`` in the root tree."""
        self.add_file_to(self.manifest.root, path, hostpath)

    def add_file_to(self, directory: Directory, path: str, hostpath: str) -> None:
        """Add host file ``hostpath`` at ``path`` relative to ``directory``.

        Raises:
            ConflictError: ``path`` is an existing directory.
            HostPathNotFoundError: ``hostpath`` is missing from the overlay
                and the host.
        """
        peek_leaf(directory, path)
        resolve(self.target_root, hostpath)
        parent, name, existing = check_leaf(directory, path)
        place_leaf(parent, name, existing, path, File(host_path=hostpath))

    def add_link(self, path: str, hostpath: str) -> None:
        """Add host symlink ``hostpath`` at ``path``, keeping its literal target.

        Raises:
            ConflictError: ``path`` is an existing directory.
            HostPathNotFoundError: ``hostpath`` cannot be found.
            BadLinkError: the link target cannot be read.
        """
        peek_leaf(self.manifest.root, path)
        resolve(self.target_root, hostpath)
        try:
            target = os.readlink(hostpath)
        except OSError as e:
            raise BadLinkError(hostpath) from e
        parent, name, existing = check_leaf(self.manifest.root, path)
        place_leaf(parent, name, existing, path, Link(target=target))

    def add_user_program(self, imgpath: str) -> None:
        """Stage the program image and record it as the entry point."""
        parts = imgpath.split("/")
        if parts[0] == ".":
            parts = parts[1:]
        program = posixpath.normpath("/" + "/".join(p for p in parts if p))
        self.add_file(program, imgpath)
        self.manifest.program = program
        logger.debug("program %s from %s", program, imgpath)

    def add_directory(
        self,
        hostdir: str,
        exclude: collections.abc.Sequence[str] = (),
    ) -> None:
        """Mirror host directory ``hostdir`` at the same path in the image."""
        walker.walk(self, hostdir, walker.absolute_mapper, exclude)

    def add_relative_directory(
        self,
        src: str,
        exclude: collections.abc.Sequence[str] = (),
    ) -> None:
        """Mirror the contents of host directory ``src`` at the image root."""
        walker.walk(self, src, walker.relative_mapper(src), exclude)

    def add_library(self, path: str) -> None:
        """Stage a shared library at its host path."""
        parts = split_path(path)
        if not parts:
            raise ValueError(f"empty library path: {path!r}")
        self.add_file_to(self.manifest.root, "/".join(parts), path)

    def add_klibs(self, klibs: collections.abc.Iterable[str], host_dir: str) -> None:
        """Stage klibs from ``host_dir`` under ``/klib`` of the boot tree."""
        for klib in klibs:
            self.add_file_to(self.manifest.boot, f"klib/{klib}", os.path.join(host_dir, klib))
        mk_dir(self.manifest.boot, "klib")
        self.manifest.klibs = KLIBS_BOOTFS

    def add_kernel(self, path: str) -> None:
        self.add_file_to(self.manifest.boot, "kernel", path)

    def add_mount(self, label: str, path: str) -> None:
        """Create the mount point directories and record the mount."""
        mk_dir_path(self.manifest.root, path)
        self.manifest.mounts[label] = path

    # Metadata

    def add_environment_variable(self, name: str, value: str) -> None:
        self.manifest.environment[name] = value

    def add_argument(self, arg: str) -> None:
        self.manifest.arguments.append(arg)

    def add_notrace(self, name: str) -> None:
        self.manifest.notrace.append(name)

    def add_debug_flag(self, name: str, value: str) -> None:
        if len(value) != 1:
            raise ValueError(f"debug flag {name} takes a single character, got {value!r}")
        self.manifest.debug_flags[name] = value

    def add_network_config(self, config: NetworkConfig) -> None:
        self.manifest.network = config.model_copy()

    # Queries

    def file_exists(self, path: str) -> bool:
        """Return True only if ``path`` is a file (not a directory or link)."""
        if not split_path(path):
            return False
        return isinstance(lookup(self.manifest.root, path), File)

    def build(self) -> Manifest:
        """Return the manifest."""
        return self.manifest
