"""JSON file persister."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from rulelist_core.persistence.persister import Persister

logger = logging.getLogger(__name__)


class JsonFilePersister(Persister):
    """Stores the rule list as a JSON document.

    The document is written to a temporary sibling file and moved into
    place, so readers never observe a partially written list.

    Args:
        path: Path of the JSON file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def save(self, payload: dict[str, Any]) -> bool:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError) as e:
            logger.warning(f"Failed to write rules to {self.path}: {e}")
            return False
        logger.info(f"Saved rules to {self.path}")
        return True

    async def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)
