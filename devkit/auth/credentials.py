"""Stored login tokens.

Tokens are kept per project in ``<project>/.airborne/credentials.json``
(directory 0700, file 0600). In CI, where the checkout is throwaway, they
go to ``/tmp/airborne_tokens.json`` instead. Saving also makes sure the
project's .gitignore excludes ``.airborne``.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from devkit.core.config import Settings, get_settings
from devkit.errors import DevkitError, NotLoggedInError
from devkit.files.mapping import STATE_DIR

logger = logging.getLogger(__name__)

CREDENTIALS_FILE = "credentials.json"
CI_TOKEN_PATH = Path("/tmp/airborne_tokens.json")
GITIGNORE_ENTRY = ".airborne"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class Credentials(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: str = ""
    saved_at: str = Field(default_factory=_utcnow)


def token_path(directory_path: Union[str, Path], settings: Optional[Settings] = None) -> Path:
    settings = settings or get_settings()
    if settings.ci:
        return CI_TOKEN_PATH
    return Path(directory_path) / STATE_DIR / CREDENTIALS_FILE


def _ensure_gitignored(directory_path: Path) -> None:
    gitignore = directory_path / ".gitignore"
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    if any(line.strip().rstrip("/") == GITIGNORE_ENTRY for line in content.splitlines()):
        return
    if content and not content.endswith("\n"):
        content += "\n"
    gitignore.write_text(content + GITIGNORE_ENTRY + "\n", encoding="utf-8")
    logger.info("Added %s to %s", GITIGNORE_ENTRY, gitignore)


def save_token(
    access_token: str,
    refresh_token: str,
    directory_path: Union[str, Path],
    settings: Optional[Settings] = None,
) -> Credentials:
    """Persist tokens for later commands.

    Raises:
        DevkitError: If the credentials file cannot be written.
    """
    root = Path(directory_path)
    path = token_path(root, settings)
    credentials = Credentials(access_token=access_token, refresh_token=refresh_token)

    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(credentials.model_dump_json(indent=2))
        os.chmod(path, 0o600)
        _ensure_gitignored(root)
    except OSError as exc:
        raise DevkitError(f"Failed to save tokens: {exc}") from exc

    logger.info("Credentials saved to %s", path)
    return credentials


def load_token(
    directory_path: Union[str, Path],
    settings: Optional[Settings] = None,
) -> Optional[Credentials]:
    """Return saved credentials, or None when absent or unreadable."""
    path = token_path(directory_path, settings)
    if not path.exists():
        return None
    try:
        return Credentials.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        logger.warning("Failed to load tokens from %s: %s", path, exc)
        return None


def require_access_token(
    directory_path: Union[str, Path],
    settings: Optional[Settings] = None,
) -> str:
    credentials = load_token(directory_path, settings)
    if credentials is None or not credentials.access_token:
        raise NotLoggedInError()
    return credentials.access_token
