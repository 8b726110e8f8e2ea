"""Exception hierarchy for the devkit.

Per-file synchronization errors (ArtifactNotFoundError,
InvalidRemoteResponseError, RemoteAPIError, StoreWriteError) are collected
into a SyncSummary by the reconciler and never escape the batch. The
remaining errors are terminal for the operation that raised them.
"""

from typing import Optional


class DevkitError(Exception):
    """Base class for every error raised by the devkit."""


class ArtifactNotFoundError(DevkitError):
    """A build artifact listed for synchronization is missing on disk."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found: {path}")


class InvalidRemoteResponseError(DevkitError):
    """The server answered without the fields the protocol requires."""


class RemoteAPIError(DevkitError):
    """Raised when the Airborne API answers with a non-success status.

    The server's own message is surfaced verbatim.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


class StoreWriteError(DevkitError):
    """The local mapping document could not be persisted.

    When raised after a successful remote write, the local record and the
    remote state disagree until the file is synchronized again.
    """

    def __init__(self, path: str, cause: Optional[Exception] = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to write file mapping {path}{detail}")


class SyncEnvironmentError(DevkitError):
    """The project directory a sync batch runs against is unusable."""


class MissingIndexError(DevkitError):
    """The release config has no index file."""

    def __init__(self) -> None:
        super().__init__("Index file missing in package.")


class UnresolvedFileError(DevkitError):
    """A release config references a file that was never synchronized."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"Missing mapping for file: {file_path}")


class BundleCommandError(DevkitError):
    """The external bundler exited non-zero or could not be started."""

    def __init__(self, command: list[str], output: str, exit_code: Optional[int] = None):
        self.command = command
        self.output = output
        self.exit_code = exit_code
        super().__init__(
            f"React Native bundle command failed (exit={exit_code}): {output.strip()}"
        )


class ReleaseConfigNotFoundError(DevkitError):
    """No release config exists for the requested platform."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Release config not found at {path}")


class AirborneConfigError(DevkitError):
    """airborne-config.json is missing or malformed."""


class NotLoggedInError(DevkitError):
    """No stored access token was found."""

    def __init__(self) -> None:
        super().__init__("Please log in first")


class MissingParametersError(DevkitError):
    """A core command was invoked without its required parameters."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required parameters: {', '.join(missing)}")
