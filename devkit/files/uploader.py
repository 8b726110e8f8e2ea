"""The two ways a file becomes known to the remote store.

ArtifactUploader sends the bytes themselves; ArtifactRegistrar records a URL
where the caller already hosts the file (base URL + file path). Both return
the server's FileResponse after checking it names the stored file.
"""

import logging
from pathlib import Path

from devkit.client.types import FileResponse, RemoteArtifactClient
from devkit.errors import InvalidRemoteResponseError
from devkit.files.checksum import hex_to_base64
from devkit.files.types import SyncConfig

logger = logging.getLogger(__name__)


def require_identifiers(response: FileResponse, message: str) -> FileResponse:
    """Reject responses that lack the remote id or the echoed file path."""
    if not response.id or not response.file_path:
        raise InvalidRemoteResponseError(message)
    return response


class ArtifactUploader:
    """Binary upload; the checksum travels base64-encoded."""

    mode = "upload"

    def __init__(self, client: RemoteArtifactClient):
        self.client = client

    def send(
        self,
        file_path: str,
        full_path: Path,
        checksum_hex: str,
        config: SyncConfig,
    ) -> FileResponse:
        logger.info("Uploading file: %s", file_path)
        response = self.client.upload_file(
            file=full_path,
            file_path=file_path,
            checksum=hex_to_base64(checksum_hex),
            organisation=config.organisation,
            application=config.namespace,
            tag=config.tag,
        )
        return require_identifiers(response, "Upload failed, invalid response from server")


class ArtifactRegistrar:
    """Registers externally hosted files at ``prefix_url + file_path``."""

    mode = "create"

    def __init__(self, client: RemoteArtifactClient, prefix_url: str):
        self.client = client
        self.prefix_url = prefix_url if prefix_url.endswith("/") else prefix_url + "/"

    def url_for(self, file_path: str) -> str:
        return self.prefix_url + file_path

    def send(
        self,
        file_path: str,
        full_path: Path,
        checksum_hex: str,
        config: SyncConfig,
    ) -> FileResponse:
        url = self.url_for(file_path)
        logger.info("Creating file record for %s (url=%s)", file_path, url)
        response = self.client.create_file(
            file_path=file_path,
            url=url,
            organisation=config.organisation,
            application=config.namespace,
            tag=config.tag,
        )
        return require_identifiers(
            response, "CreateFileAction failed, invalid response from server"
        )
