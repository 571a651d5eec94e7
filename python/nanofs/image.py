"""Image command: boot image concatenation and root filesystem offset."""

import logging
import re
import typing

from nanofs.errors import ImageError, InvalidSizeError
from nanofs.manifest import Manifest

logger = logging.getLogger(__name__)

# Space reserved after the boot image for the kernel log dump.
KLOG_DUMP_SIZE = 4 * 1024

_CHUNK_SIZE = 8192
_SIZE_RE = re.compile(r"(?P<value>\d+)(?P<units>\D.*)?", re.DOTALL)
_UNITS = {
    "": 1,
    "k": 1024,
    "m": 1024 * 1024,
    "g": 1024 * 1024 * 1024,
}


def parse_size(size: str) -> int:
    """Parse ``"512"``, ``"64k"``, ``"10M"``, ``"1g"`` into bytes.

    Raises:
        InvalidSizeError: no leading digits or an unknown unit suffix.
    """
    match = _SIZE_RE.fullmatch(size)
    if match is None:
        raise InvalidSizeError(f"invalid size {size}")
    units = (match.group("units") or "").lower()
    if units not in _UNITS:
        raise InvalidSizeError(f"invalid units {units}")
    return int(match.group("value")) * _UNITS[units]


class ImageCommand:
    """Assembles the output image around a finished manifest.

    Serializing the root filesystem itself is left to the image writer; this
    command lays out the boot image and computes where that filesystem starts.
    """

    def __init__(self, manifest: Manifest | None = None) -> None:
        self.boot_path = ""
        self.label = ""
        self.manifest = manifest
        self.size = 0
        self.out_path = ""
        self.root_fs_offset = 0

    def set_empty_file_system(self) -> None:
        self.manifest = None

    def set_file_system_size(self, size: str) -> None:
        self.size = parse_size(size)

    def set_boot(self, boot: str) -> None:
        self.boot_path = boot

    def set_file_system_path(self, fs_path: str) -> None:
        self.out_path = fs_path

    def set_label(self, label: str) -> None:
        self.label = label

    def get_uuid(self) -> str:
        # Assigned by the image writer.
        return ""

    def execute(self) -> int:
        """Write the boot image to the output and return the root fs offset."""
        if not self.out_path:
            raise ImageError("output image file path not set")

        try:
            out_file = open(self.out_path, "wb")
        except OSError as e:
            raise ImageError(f"cannot create output file {self.out_path}: {e}") from e

        offset = 0
        with out_file:
            if self.boot_path:
                offset += self._copy_boot(out_file)

        if self.manifest is None:
            self.manifest = Manifest()
        if self.manifest.boot.children:
            offset += KLOG_DUMP_SIZE

        self.root_fs_offset = offset
        logger.info(
            "image %s: root filesystem at offset %d (label=%r, size=%d)",
            self.out_path,
            offset,
            self.label,
            self.size,
        )
        return offset

    def _copy_boot(self, out_file: typing.BinaryIO) -> int:
        try:
            boot_file = open(self.boot_path, "rb")
        except OSError as e:
            raise ImageError(f"cannot open boot image {self.boot_path}: {e}") from e

        copied = 0
        with boot_file:
            while True:
                try:
                    chunk = boot_file.read(_CHUNK_SIZE)
                except OSError as e:
                    raise ImageError(f"cannot read boot image {self.boot_path}: {e}") from e
                if not chunk:
                    break
                try:
                    out_file.write(chunk)
                except OSError as e:
                    raise ImageError(f"cannot write output file {self.out_path}: {e}") from e
                copied += len(chunk)
        logger.debug("copied %d bytes of boot image %s", copied, self.boot_path)
        return copied
