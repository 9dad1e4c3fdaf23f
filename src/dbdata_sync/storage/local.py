from __future__ import annotations

import gzip
import hashlib
import logging
import os
import shutil
import tempfile
import zlib
from pathlib import Path

from dbdata_sync.errors import CorruptDataError, LocalStoreError
from dbdata_sync.schemas import COMPRESSED_SUFFIX

CHUNK_SIZE = 64 * 1024

logger = logging.getLogger(__name__)


class GzipLocalStore:
    """Filesystem side of a sync: md5 checksums and gzip materialization."""

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.chunk_size = chunk_size

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def checksum(self, path: Path) -> str:
        digest = hashlib.md5()
        try:
            with path.open("rb") as handle:
                for block in iter(lambda: handle.read(self.chunk_size), b""):
                    digest.update(block)
        except OSError as exc:
            raise LocalStoreError(f"cannot read {path}: {exc}", path=str(path)) from exc
        return digest.hexdigest()

    def prepare_destination(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LocalStoreError(
                f"cannot create directory {path.parent}: {exc}", path=str(path)
            ) from exc

    def decompress(self, path: Path) -> Path:
        target = decompressed_path_for(path)
        if not path.is_file():
            raise LocalStoreError(f"compressed file is missing: {path}", path=str(path))

        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
        except OSError as exc:
            raise LocalStoreError(
                f"cannot create output next to {path}: {exc}", path=str(path)
            ) from exc
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as sink, gzip.open(path, "rb") as source:
                shutil.copyfileobj(source, sink, self.chunk_size)
            shutil.copymode(path, tmp_path)
            os.replace(tmp_path, target)
        except (gzip.BadGzipFile, EOFError, zlib.error) as exc:
            tmp_path.unlink(missing_ok=True)
            raise CorruptDataError(f"invalid gzip data in {path}: {exc}", path=str(path)) from exc
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise LocalStoreError(f"cannot decompress {path}: {exc}", path=str(path)) from exc

        logger.debug("decompressed source=%s target=%s", path, target)
        return target


def decompressed_path_for(path: Path) -> Path:
    if path.suffix != COMPRESSED_SUFFIX:
        raise LocalStoreError(
            f"compressed file must end with {COMPRESSED_SUFFIX}: {path}", path=str(path)
        )
    return path.with_suffix("")
