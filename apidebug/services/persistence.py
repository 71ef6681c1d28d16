from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError as SchemaError

from ..config import get_settings
from ..schemas.catalog import Catalog
from ..utils.errors import PersistenceError

logger = logging.getLogger("apidebug.catalog")


class CatalogFile:
    """Reads and writes the catalog document (``api.json``).

    The path is resolved from settings on every access unless one was
    pinned at construction, so a changed ``CONFIG_DIR`` applies to the
    next call.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else None

    @property
    def path(self) -> Path:
        if self._path is not None:
            return self._path
        return get_settings().catalog_path

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    def _read_document(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.error("Failed to read API config file %s: %s", path, exc)
            return None
        if not isinstance(data, dict):
            logger.error("API config file %s does not hold an object", path)
            return None
        return data

    def load(self) -> Catalog:
        """Return the persisted catalog, creating a default one on first access."""
        path = self.path
        if not path.exists():
            catalog = Catalog.default()
            self.save(catalog)
            logger.info("Created default API config: %s", path)
            return catalog

        data = self._read_document(path)
        if data is None:
            # Corrupted file: start fresh in memory, next save overwrites it
            return Catalog.default()

        # A readable document with a bad shape is never replaced, the
        # caller has to fix it
        try:
            return Catalog.model_validate(data)
        except SchemaError as exc:
            logger.error("API config file %s failed validation: %s", path, exc)
            raise PersistenceError(
                f"API config file {path} is invalid, fix or remove it: {exc}"
            ) from exc

    def save(self, catalog: Catalog) -> None:
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(catalog.to_document(), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save API config file %s: %s", path, exc)
            raise PersistenceError(f"Failed to save API configuration: {exc}") from exc
