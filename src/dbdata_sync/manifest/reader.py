from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from dbdata_sync.errors import ConfigError, ManifestParseError
from dbdata_sync.schemas import ManifestEntry

logger = logging.getLogger(__name__)


def read_manifest(path: str | Path) -> list[ManifestEntry]:
    manifest_path = Path(path)
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"The input file '{manifest_path}' does not exist.") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read input file '{manifest_path}': {exc}") from exc

    entries = parse_manifest(raw)
    logger.info("manifest loaded path=%s entries=%d", manifest_path, len(entries))
    return entries


def parse_manifest(raw: str) -> list[ManifestEntry]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"manifest is not valid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise ManifestParseError(
            f"manifest root must be an array, got {type(payload).__name__}"
        )

    entries: list[ManifestEntry] = []
    for index, record in enumerate(payload):
        if not isinstance(record, dict):
            raise ManifestParseError(
                f"manifest entry {index} must be an object, got {type(record).__name__}"
            )
        try:
            entries.append(ManifestEntry.model_validate(record))
        except ValidationError as exc:
            raise ManifestParseError(f"manifest entry {index} is invalid: {exc}") from exc
    return entries
