"""Types for the synchronization engine."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Where the bundler writes output, relative to <project>/<platform>.
BUILD_OUTPUT_SUBPATH = ("build", "generated", "airborne")


@dataclass
class SyncConfig:
    """Shared settings for one synchronization batch.

    directory_path is the React Native project root; relative paths are
    resolved against the current working directory.
    """

    directory_path: str
    platform: str
    organisation: str
    namespace: str
    token: str
    tag: Optional[str] = None

    def project_root(self) -> Path:
        root = Path(self.directory_path)
        return root if root.is_absolute() else Path.cwd() / root

    def build_dir(self) -> Path:
        return self.project_root().joinpath(self.platform, *BUILD_OUTPUT_SUBPATH)


@dataclass
class FileFailure:
    file_path: str
    error: str

    def to_dict(self) -> dict:
        return {"file": self.file_path, "error": self.error}


@dataclass
class SyncSummary:
    """Outcome of a batch.

    processed counts files uploaded (upload mode) or created (registration
    mode); existing counts files skipped locally or reported as already
    present by the server.
    """

    mode: str
    processed: int = 0
    existing: int = 0
    failed: int = 0
    errors: list[FileFailure] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.failed == 0

    def record_failure(self, file_path: str, error: str) -> None:
        self.failed += 1
        self.errors.append(FileFailure(file_path=file_path, error=error))

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "processed": self.processed,
            "existing": self.existing,
            "failed": self.failed,
            "errors": [e.to_dict() for e in self.errors],
        }
