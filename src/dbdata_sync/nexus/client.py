from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import requests

from dbdata_sync.config import NexusConfig
from dbdata_sync.errors import ArtifactNotFoundError, TransportError

SEARCH_ENDPOINT = "/service/rest/v1/search"
CHUNK_SIZE = 64 * 1024
PARTIAL_SUFFIX = ".part"
_AUTH_STATUS_CODES = {401, 403}

logger = logging.getLogger(__name__)


class NexusClient:
    """Nexus REST client for checksum lookups and raw artifact downloads."""

    def __init__(
        self,
        config: NexusConfig,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = (config.username, config.password)
        self.session.headers.setdefault("User-Agent", "dbdata-sync/0.1.0")

    def search_url(self) -> str:
        return f"{self.config.base_url}{SEARCH_ENDPOINT}"

    def download_url(self, path: str) -> str:
        return f"{self.config.base_url}/repository/{self.config.repository}/{path}"

    def get_checksum(self, path: str) -> str:
        try:
            response = self.session.get(
                self.search_url(),
                params={"repository": self.config.repository, "name": path},
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._http_error(exc, path=path, action="checksum query") from exc
        except requests.RequestException as exc:
            raise TransportError(f"checksum query failed path={path}: {exc}", path=path) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"checksum query returned non-JSON body path={path}", path=path
            ) from exc

        checksum = self._extract_md5(payload, path=path)
        logger.debug("nexus checksum path=%s md5=%s", path, checksum)
        return checksum

    def fetch(self, path: str, destination: Path) -> None:
        url = self.download_url(path)
        partial = destination.with_name(destination.name + PARTIAL_SUFFIX)
        written = 0
        try:
            with self.session.get(
                url,
                stream=True,
                timeout=self.config.timeout_seconds,
            ) as response:
                response.raise_for_status()
                with partial.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)
                            written += len(chunk)
            os.replace(partial, destination)
        except requests.HTTPError as exc:
            partial.unlink(missing_ok=True)
            raise self._http_error(exc, path=path, action="download") from exc
        except requests.RequestException as exc:
            partial.unlink(missing_ok=True)
            raise TransportError(f"download failed path={path}: {exc}", path=path) from exc
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise TransportError(
                f"download could not be written path={path} destination={destination}: {exc}",
                path=path,
            ) from exc

        logger.debug("nexus fetch path=%s bytes=%d destination=%s", path, written, destination)

    @staticmethod
    def _http_error(
        error: requests.HTTPError, *, path: str, action: str
    ) -> ArtifactNotFoundError | TransportError:
        response = error.response
        status_code = response.status_code if response is not None else None
        if status_code == 404:
            return ArtifactNotFoundError(
                f"{action} found no artifact path={path} status=404", path=path
            )
        if status_code in _AUTH_STATUS_CODES:
            return TransportError(
                f"{action} rejected credentials path={path} status={status_code}; "
                "check the Nexus username and password",
                path=path,
            )
        return TransportError(f"{action} failed path={path} status={status_code}", path=path)

    @staticmethod
    def _extract_md5(payload: Any, *, path: str) -> str:
        if not isinstance(payload, dict):
            raise TransportError("checksum response payload is invalid.", path=path)

        items = payload.get("items")
        if not isinstance(items, list):
            raise TransportError("checksum response has no items list.", path=path)
        if not items:
            raise ArtifactNotFoundError(f"artifact is not indexed in Nexus path={path}", path=path)

        first = items[0]
        assets = first.get("assets") if isinstance(first, dict) else None
        if not isinstance(assets, list) or not assets or not isinstance(assets[0], dict):
            raise TransportError("checksum response item has no assets.", path=path)

        checksum = assets[0].get("checksum")
        md5 = checksum.get("md5") if isinstance(checksum, dict) else None
        if not isinstance(md5, str) or not md5.strip():
            raise TransportError("checksum response asset has no md5.", path=path)
        return md5.strip().lower()
