"""HTTP client for the Airborne release-management API.

Uses a synchronous httpx.Client: every devkit command is a short,
sequential CLI run, so there is nothing to overlap. Authenticated calls
carry ``Authorization: Bearer <token>``; application-scoped calls also send
``x-organisation`` / ``x-application`` headers.

Endpoints used:
  POST /api/file            : register an externally hosted file
  POST /api/file/upload     : upload file bytes (octet-stream, x-checksum)
  POST /api/packages        : create a package from file ids
  POST /api/token/issue     : exchange client credentials for tokens
"""

import logging
import os
from pathlib import Path
from typing import Iterator, Optional, Union

import httpx

from devkit.client.types import FileResponse, LoginResponse, PackageResponse
from devkit.errors import RemoteAPIError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
UPLOAD_CHUNK_SIZE = 1024 * 1024


def _iter_file(path: Path) -> Iterator[bytes]:
    with open(path, "rb") as handle:
        while True:
            chunk = handle.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


def _error_message(response: httpx.Response) -> str:
    """Pull the server's own message out of an error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            if payload.get(key):
                return str(payload[key])
    return response.text.strip() or response.reason_phrase


def _drop_none(values: dict) -> dict:
    return {k: v for k, v in values.items() if v is not None}


class AirborneClient:
    """Thin typed wrapper over the Airborne REST API.

    Usable as a context manager; the underlying connection pool is closed on
    exit. ``transport`` exists so tests can inject ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AirborneClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def create_file(
        self,
        *,
        file_path: str,
        url: str,
        organisation: str,
        application: str,
        tag: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> FileResponse:
        body = _drop_none({
            "file_path": file_path,
            "url": url,
            "tag": tag,
            "metadata": metadata,
        })
        data = self._send(
            "POST",
            "/api/file",
            headers=self._app_headers(organisation, application),
            json=body,
        )
        return FileResponse.model_validate(data)

    def upload_file(
        self,
        *,
        file: Union[str, Path],
        file_path: str,
        checksum: str,
        organisation: str,
        application: str,
        tag: Optional[str] = None,
    ) -> FileResponse:
        """Stream a local file to the server.

        ``checksum`` is the base64 SHA-256 of the content; the server uses it
        to verify the transfer.
        """
        source = Path(file)
        headers = self._app_headers(organisation, application)
        headers["content-type"] = "application/octet-stream"
        headers["x-checksum"] = checksum
        headers["content-length"] = str(os.path.getsize(source))
        data = self._send(
            "POST",
            "/api/file/upload",
            headers=headers,
            params=_drop_none({"file_path": file_path, "tag": tag}),
            content=_iter_file(source),
        )
        return FileResponse.model_validate(data)

    def create_package(
        self,
        *,
        index: str,
        files: list[str],
        organisation: str,
        application: str,
        tag: Optional[str] = None,
    ) -> PackageResponse:
        data = self._send(
            "POST",
            "/api/packages",
            headers=self._app_headers(organisation, application),
            json=_drop_none({"index": index, "files": files, "tag": tag}),
        )
        return PackageResponse.model_validate(data)

    def post_login(self, *, client_id: str, client_secret: str) -> LoginResponse:
        data = self._send(
            "POST",
            "/api/token/issue",
            json={"client_id": client_id, "client_secret": client_secret},
        )
        return LoginResponse.model_validate(data)

    @staticmethod
    def _app_headers(organisation: str, application: str) -> dict[str, str]:
        return {"x-organisation": organisation, "x-application": application}

    def _send(self, method: str, path: str, **kwargs) -> dict:
        logger.debug("%s %s", method, path)
        response = self._client.request(method, path, **kwargs)
        if response.status_code >= 300:
            raise RemoteAPIError(response.status_code, _error_message(response))
        if not response.content:
            return {}
        payload = response.json()
        return payload if isinstance(payload, dict) else {}
