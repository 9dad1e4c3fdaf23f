from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, field_validator

COMPRESSED_SUFFIX = ".gz"


class SyncStatus(StrEnum):
    DOWNLOADED = "downloaded"
    UP_TO_DATE = "up_to_date"


class ManifestEntry(BaseModel):
    # Manifest records carry other database-init fields; only these two matter here.
    model_config = ConfigDict(extra="ignore", frozen=True)

    collection: str = ""
    path: str

    @field_validator("collection", mode="before")
    @classmethod
    def normalize_collection(cls, value: object) -> object:
        if value is None:
            return ""
        if not isinstance(value, str):
            return json.dumps(value, ensure_ascii=False)
        return value

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("path must not be empty")

        posix = PurePosixPath(normalized)
        if not posix.parts:
            raise ValueError("path must name a file below the data folder")
        if posix.is_absolute():
            raise ValueError("path must be relative to the data folder")
        if ".." in posix.parts:
            raise ValueError("path must not contain '..' segments")
        return str(posix)

    @property
    def remote_path(self) -> str:
        return f"{self.path}{COMPRESSED_SUFFIX}"

    def compressed_path(self, data_folder: Path) -> Path:
        return data_folder / self.remote_path

    def decompressed_path(self, data_folder: Path) -> Path:
        return data_folder / self.path
