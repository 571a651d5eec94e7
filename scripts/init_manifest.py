"""Generate a default image.yaml."""

import logging
from pathlib import Path

import yaml

from nanofs import configure_logging
from nanofs.config import CONFIG_NAME, DirectoryEntry, ImageConfig
from nanofs.manifest import NetworkConfig


def create_example_config() -> ImageConfig:
    """Create an example config with common defaults."""
    return ImageConfig(
        program="./main",
        args=["--verbose"],
        env={"HOME": "/"},
        libraries=["/lib/x86_64-linux-gnu/libc.so.6"],
        dirs=[
            DirectoryEntry(source="static"),
            DirectoryEntry(source="rootfs/", relative=True, exclude=["*.pyc", "__pycache__/"]),
        ],
        kernel="kernel.img",
        mounts={"data": "/mnt/data"},
        network=NetworkConfig(ip="10.0.2.15", gateway="10.0.2.2", netmask="255.255.255.0"),
        boot="boot.img",
        size="64M",
        output="image.raw",
    )


def main() -> None:
    configure_logging()
    output = Path(CONFIG_NAME)
    data = create_example_config().model_dump(mode="json", exclude_defaults=True)
    output.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    logging.getLogger("nanofs.scripts").info("generated %s", output)


if __name__ == "__main__":
    main()
