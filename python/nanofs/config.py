"""Image manifest configuration (image.yaml)."""

import logging
import pathlib
import typing

import pydantic
import yaml

from nanofs.builder import ManifestBuilder
from nanofs.errors import FatalManifestError, HostPathNotFoundError, is_fatal
from nanofs.image import ImageCommand, parse_size
from nanofs.manifest import Manifest, NetworkConfig

logger = logging.getLogger(__name__)

CONFIG_NAME = "image.yaml"


class DirectoryEntry(pydantic.BaseModel):
    """A host directory to mirror into the root tree."""

    model_config = pydantic.ConfigDict(extra="forbid")

    source: str
    relative: bool = False
    exclude: list[str] = pydantic.Field(default_factory=list)


class ImageConfig(pydantic.BaseModel):
    """Declarative description of an image (image.yaml)."""

    model_config = pydantic.ConfigDict(extra="forbid")

    apiVersion: typing.Literal["nanofs/v1"] = "nanofs/v1"

    target_root: str = ""
    program: str | None = None
    args: list[str] = pydantic.Field(default_factory=list)
    env: dict[str, str] = pydantic.Field(default_factory=dict)

    files: dict[str, str] = pydantic.Field(default_factory=dict)
    libraries: list[str] = pydantic.Field(default_factory=list)
    dirs: list[DirectoryEntry] = pydantic.Field(default_factory=list)

    kernel: str | None = None
    klib_dir: str = ""
    klibs: list[str] = pydantic.Field(default_factory=list)

    mounts: dict[str, str] = pydantic.Field(default_factory=dict)
    notrace: list[str] = pydantic.Field(default_factory=list)
    debug_flags: dict[str, str] = pydantic.Field(default_factory=dict)
    network: NetworkConfig | None = None

    boot: str = ""
    size: str | None = None
    label: str = ""
    output: str = ""

    @pydantic.field_validator("dirs", mode="before")
    @classmethod
    def _coerce_dirs(cls, value: typing.Any) -> typing.Any:
        if isinstance(value, list):
            return [{"source": v} if isinstance(v, str) else v for v in value]
        return value

    @pydantic.field_validator("size")
    @classmethod
    def _check_size(cls, value: str | None) -> str | None:
        if value is not None:
            parse_size(value)
        return value

    @pydantic.model_validator(mode="after")
    def _check_klibs(self) -> typing.Self:
        if self.klibs and not self.klib_dir:
            raise ValueError("klibs require klib_dir")
        return self

    @classmethod
    def load(cls, config_path: pathlib.Path) -> typing.Self:
        """Load a config file; a missing file yields an empty config."""
        if not config_path.is_file():
            logger.debug("%s not found, using empty config", config_path)
            return cls()
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{config_path} must contain a mapping")
        return cls.model_validate(data)


def _apply(operation: str, func: typing.Callable[..., None], *args: typing.Any) -> None:
    try:
        func(*args)
    except Exception as e:
        if not is_fatal(operation, e):
            raise
        if isinstance(e, HostPathNotFoundError):
            logger.error("please check your manifest for the missing file: %s", e)
        else:
            logger.error("%s failed: %s", operation, e)
        raise FatalManifestError(operation, e) from e


def build_manifest(config: ImageConfig) -> Manifest:
    """Run the builder operations described by ``config``.

    Raises:
        FatalManifestError: an error the policy table marks as fatal.
        ManifestError, OSError: recoverable errors, returned to the caller.
    """
    builder = ManifestBuilder(target_root=config.target_root)

    if config.kernel:
        _apply("add_kernel", builder.add_kernel, config.kernel)
    if config.klibs:
        _apply("add_klibs", builder.add_klibs, config.klibs, config.klib_dir)

    if config.program:
        _apply("add_user_program", builder.add_user_program, config.program)
    for arg in config.args:
        builder.add_argument(arg)
    for name, value in config.env.items():
        builder.add_environment_variable(name, value)

    for vpath, hostpath in config.files.items():
        _apply("add_file", builder.add_file, vpath, hostpath)
    for lib in config.libraries:
        _apply("add_library", builder.add_library, lib)
    for entry in config.dirs:
        if entry.relative:
            _apply("add_relative_directory", builder.add_relative_directory, entry.source, entry.exclude)
        else:
            _apply("add_directory", builder.add_directory, entry.source, entry.exclude)

    for label, path in config.mounts.items():
        _apply("add_mount", builder.add_mount, label, path)
    for name in config.notrace:
        builder.add_notrace(name)
    for name, value in config.debug_flags.items():
        builder.add_debug_flag(name, value)
    if config.network is not None:
        builder.add_network_config(config.network)

    return builder.build()


def image_command(config: ImageConfig, manifest: Manifest | None) -> ImageCommand:
    """Create an :class:`ImageCommand` carrying the config's image settings."""
    command = ImageCommand(manifest)
    if manifest is None:
        command.set_empty_file_system()
    if config.boot:
        command.set_boot(config.boot)
    if config.size is not None:
        command.set_file_system_size(config.size)
    if config.label:
        command.set_label(config.label)
    if config.output:
        command.set_file_system_path(config.output)
    return command
