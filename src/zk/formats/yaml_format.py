"""YAML index file (``_zettel.yaml``)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from zk.errors import IndexParseError


class YamlFormat:
    name = "yaml"
    suffixes = (".yaml", ".yml")

    def load(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as fh:
                return yaml.safe_load(fh)
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise IndexParseError(f"{path}: {exc}") from exc

    def dump(self, data: dict[str, Any], path: Path) -> None:
        with open(path, "w", encoding="utf-8") as fh:
            yaml.safe_dump(data, fh, sort_keys=False, allow_unicode=True)
