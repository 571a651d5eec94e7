"""nanofs - filesystem image manifest builder."""

from nanofs.builder import ManifestBuilder
from nanofs.config import ImageConfig, build_manifest
from nanofs.errors import (
    BadLinkError,
    ConflictError,
    ConflictKind,
    FatalManifestError,
    HostPathNotFoundError,
    ImageError,
    InvalidSizeError,
    ManifestError,
    SymlinkLoopError,
    is_fatal,
)
from nanofs.image import ImageCommand, parse_size
from nanofs.logging_utils import configure_logging
from nanofs.manifest import Manifest, NetworkConfig
from nanofs.resolver import resolve
from nanofs.tree import Directory, File, Link, get_children, mk_dir, mk_dir_path

__all__ = [
    "BadLinkError",
    "ConflictError",
    "ConflictKind",
    "Directory",
    "FatalManifestError",
    "File",
    "HostPathNotFoundError",
    "ImageCommand",
    "ImageConfig",
    "ImageError",
    "InvalidSizeError",
    "Link",
    "Manifest",
    "ManifestBuilder",
    "ManifestError",
    "NetworkConfig",
    "SymlinkLoopError",
    "build_manifest",
    "configure_logging",
    "get_children",
    "is_fatal",
    "mk_dir",
    "mk_dir_path",
    "parse_size",
    "resolve",
]
