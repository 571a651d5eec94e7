"""Manifest model: root and boot trees plus runtime metadata."""

import pydantic

from nanofs.tree import Directory, Node, lookup

KLIBS_BOOTFS = "bootfs"


class NetworkConfig(pydantic.BaseModel):
    """Static network configuration, stored as literal strings."""

    model_config = pydantic.ConfigDict(extra="forbid")

    ip: str = ""
    gateway: str = ""
    netmask: str = ""


class Manifest(pydantic.BaseModel):
    """In-memory description of a filesystem image.

    ``root`` and ``boot`` are separate namespaces and are never merged; the
    image writer serializes them differently. Mutate through
    :class:`nanofs.builder.ManifestBuilder` only.
    """

    model_config = pydantic.ConfigDict(extra="forbid")

    target_root: str = ""
    root: Directory = pydantic.Field(default_factory=Directory)
    boot: Directory = pydantic.Field(default_factory=Directory)

    program: str | None = None
    arguments: list[str] = pydantic.Field(default_factory=list)
    environment: dict[str, str] = pydantic.Field(default_factory=dict)
    network: NetworkConfig | None = None
    mounts: dict[str, str] = pydantic.Field(default_factory=dict)
    notrace: list[str] = pydantic.Field(default_factory=list)
    klibs: str | None = None
    debug_flags: dict[str, str] = pydantic.Field(default_factory=dict)

    def find(self, path: str) -> Node | None:
        """Look up a node in the root tree."""
        return lookup(self.root, path)

    def find_boot(self, path: str) -> Node | None:
        """Look up a node in the boot tree."""
        return lookup(self.boot, path)
