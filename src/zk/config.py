"""Configuration for a zk collection.

An optional ``_zettel.toml`` at the collection root overrides the defaults::

    [zk]
    format  = "yaml"         # yaml | json | duckdb
    subdirs = ["2022"]       # created by ``zk init``

    [zk.template]            # order is preserved
    title = "@title"
    id    = "@id"
    date  = "@created"

The file name shares the ``_zettel`` prefix so ``sync`` never treats it as
a note.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from zk.errors import ConfigError
from zk.formats import format_named
from zk.frontmatter import HeaderTemplate

CONFIG_FILENAME = "_zettel.toml"
ROOT_ENV_VAR = "ZK_ROOT"


@dataclass(frozen=True)
class ZkConfig:
    """Settings used to create a new index.  Validated on construction."""

    root: Path
    format: str = "yaml"
    template: HeaderTemplate = field(default_factory=HeaderTemplate.default)
    subdirs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root))
        format_named(self.format)  # raises UnsupportedFormat
        self.template.validate()  # raises UnknownField
        for subdir in self.subdirs:
            if not isinstance(subdir, str) or not subdir or Path(subdir).is_absolute():
                raise ConfigError(f"subdirs must be relative paths, got {subdir!r}")


def default_root() -> Path:
    """Collection root used when none is given: ``$ZK_ROOT`` or the cwd."""
    if env_root := os.environ.get(ROOT_ENV_VAR):
        return Path(env_root)
    return Path.cwd()


def load_config(root: Path) -> ZkConfig:
    """Load ``_zettel.toml`` from *root*; defaults when the file is absent."""
    root = Path(root)
    config_path = root / CONFIG_FILENAME
    if not config_path.exists():
        return ZkConfig(root=root)

    try:
        with open(config_path, "rb") as fh:
            data = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{config_path}: {exc}") from exc

    return config_from_dict(root, data.get("zk", {}))


def config_from_dict(root: Path, section: dict[str, Any]) -> ZkConfig:
    kwargs: dict[str, Any] = {}
    if "format" in section:
        if not isinstance(section["format"], str):
            raise ConfigError(f"format must be a string, got {section['format']!r}")
        kwargs["format"] = section["format"]
    if "template" in section:
        if not isinstance(section["template"], dict):
            raise ConfigError("template must be a table")
        try:
            kwargs["template"] = HeaderTemplate.from_mapping(section["template"])
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc
    if "subdirs" in section:
        if not isinstance(section["subdirs"], list):
            raise ConfigError("subdirs must be a list")
        kwargs["subdirs"] = tuple(section["subdirs"])
    return ZkConfig(root=root, **kwargs)
