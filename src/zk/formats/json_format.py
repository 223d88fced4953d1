"""JSON index file (``_zettel.json``)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from zk.errors import IndexParseError


class JsonFormat:
    name = "json"
    suffixes = (".json",)

    def load(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as fh:
                return json.load(fh)
        except ValueError as exc:
            raise IndexParseError(f"{path}: {exc}") from exc

    def dump(self, data: dict[str, Any], path: Path) -> None:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
            fh.write("\n")
