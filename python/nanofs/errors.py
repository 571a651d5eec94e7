"""Manifest error taxonomy and the fatal/non-fatal policy table."""

import enum


class ManifestError(Exception):
    """Base class for manifest construction errors."""


class HostPathNotFoundError(ManifestError):
    """A required host source (or overlay entry) does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"no such file or directory: {path}")
        self.path = path


class ConflictKind(enum.Enum):
    FILE_OVER_DIRECTORY = "file-over-directory"
    DIRECTORY_OVER_FILE = "directory-over-file"


class ConflictError(ManifestError):
    """A new node would change the variant of an existing node."""

    def __init__(self, kind: ConflictKind, path: str) -> None:
        if kind is ConflictKind.FILE_OVER_DIRECTORY:
            message = f"file '{path}' overriding an existing directory"
        else:
            message = f"directory '{path}' is conflicting with an existing file"
        super().__init__(message)
        self.kind = kind
        self.path = path


class BadLinkError(ManifestError):
    """The literal target of a host symlink could not be read."""

    def __init__(self, path: str) -> None:
        super().__init__(f"bad link: {path}")
        self.path = path


class SymlinkLoopError(ManifestError):
    """Absolute symlinks inside the overlay root never settle."""

    def __init__(self, path: str, hops: int) -> None:
        super().__init__(f"too many levels of symbolic links resolving {path} ({hops} hops)")
        self.path = path
        self.hops = hops


class InvalidSizeError(ManifestError, ValueError):
    """A filesystem size string could not be parsed."""


class ImageError(ManifestError):
    """The image command could not assemble its output."""


class FatalManifestError(ManifestError):
    """Raised by top-level drivers once the policy marks an error fatal."""

    def __init__(self, operation: str, cause: Exception) -> None:
        super().__init__(f"{operation}: {cause}")
        self.operation = operation
        self.cause = cause


# Operations whose structural conflicts leave the manifest unusable.
_CONFLICT_FATAL = frozenset(
    {"add_file", "add_library", "add_user_program", "add_kernel", "add_klibs"}
)


def is_fatal(operation: str, exc: BaseException) -> bool:
    """Return True when ``exc`` raised by ``operation`` must stop the build.

    Missing host sources and unreadable links are fatal everywhere. Conflicts
    are fatal for single-path insertions and recoverable for links, mounts
    and directory walks. Everything else is returned to the caller.
    """
    if isinstance(exc, (HostPathNotFoundError, BadLinkError)):
        return True
    if isinstance(exc, ConflictError):
        return operation in _CONFLICT_FATAL
    return False
