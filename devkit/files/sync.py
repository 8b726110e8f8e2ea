"""Synchronization reconciler.

Walks an ordered list of build artifacts and makes each one known to the
remote store at most once per content version:

1. Resolve <project>/<platform>/build/generated/airborne/<file_path>
2. Missing on disk → per-file failure, next file
3. Stored checksum equals the current checksum → "existing", next file
4. Otherwise upload (or register) and record the server's id + checksum

Files are processed strictly in list order, one at a time. A failure on one
file is recorded in the summary and never stops the batch; only an unusable
project directory raises.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

from devkit.client.types import FileResponse, RemoteArtifactClient
from devkit.errors import ArtifactNotFoundError, SyncEnvironmentError
from devkit.files.checksum import checksums_match, sha256_file_hex
from devkit.files.mapping import MappingStore
from devkit.files.types import SyncConfig, SyncSummary
from devkit.files.uploader import ArtifactRegistrar, ArtifactUploader
from devkit.release.types import FileRef

logger = logging.getLogger(__name__)


class ArtifactSender(Protocol):
    mode: str

    def send(
        self,
        file_path: str,
        full_path: Path,
        checksum_hex: str,
        config: SyncConfig,
    ) -> FileResponse:
        ...


def _file_path_of(item: Union[FileRef, str]) -> str:
    return item if isinstance(item, str) else item.file_path


class SyncReconciler:
    """Drives one batch of uploads or registrations against a MappingStore."""

    def __init__(
        self,
        store: MappingStore,
        client: RemoteArtifactClient,
        config: SyncConfig,
    ):
        self.store = store
        self.client = client
        self.config = config

    def upload(self, files: Iterable[Union[FileRef, str]]) -> SyncSummary:
        """Upload every changed file's bytes."""
        return self.run(files, ArtifactUploader(self.client))

    def create(self, files: Iterable[Union[FileRef, str]], prefix_url: str) -> SyncSummary:
        """Register every changed file at ``prefix_url + file_path``."""
        return self.run(files, ArtifactRegistrar(self.client, prefix_url))

    def run(self, files: Iterable[Union[FileRef, str]], sender: ArtifactSender) -> SyncSummary:
        root = self.config.project_root()
        if not root.is_dir():
            raise SyncEnvironmentError(f"Project directory does not exist: {root}")

        file_paths = [_file_path_of(item) for item in files]
        summary = SyncSummary(mode=sender.mode)
        total = len(file_paths)
        logger.info("Starting %s process for %d files", sender.mode, total)

        for index, file_path in enumerate(file_paths, start=1):
            progress = f"[{index}/{total}]"
            try:
                outcome = self._sync_one(file_path, sender)
            except Exception as exc:
                logger.error("%s Error processing %s: %s", progress, file_path, exc)
                summary.record_failure(file_path, str(exc))
                continue

            if outcome == "processed":
                summary.processed += 1
            else:
                summary.existing += 1
            logger.info("%s %s: %s", progress, file_path, outcome)

        logger.info(
            "Sync summary: processed=%d existing=%d failed=%d",
            summary.processed, summary.existing, summary.failed,
        )
        return summary

    def _sync_one(self, file_path: str, sender: ArtifactSender) -> str:
        """Synchronize one file; returns "processed" or "existing"."""
        full_path = self.config.build_dir() / file_path
        if not full_path.is_file():
            raise ArtifactNotFoundError(str(full_path))

        stored = self.store.get(self.config.tag, file_path)
        checksum = sha256_file_hex(full_path)

        if stored is not None and checksums_match(stored.checksum, checksum):
            return "existing"

        response = sender.send(file_path, full_path, checksum, self.config)
        self.store.put(
            self.config.tag,
            response.file_path,
            response.id,
            response.checksum or checksum,
        )
        return "processed" if _same_content(response.checksum, checksum) else "existing"


def _same_content(remote: Optional[str], local_hex: str) -> bool:
    """True when the server stored exactly the bytes we hold.

    A differing checksum means the server already had a file under this
    path and returned its record instead of ours. Registrations of external
    URLs may come back without a checksum; those count as new.
    """
    if not remote:
        return True
    return checksums_match(remote, local_hex)
