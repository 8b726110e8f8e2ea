"""Local file-path → remote-id mapping store.

The mapping document lives at ``<project>/.airborne/mappings.json`` and is
the only local database the devkit keeps:

    {
      "<tag>": {
        "<file_path>": {"id": "<remote id>", "checksum": "<checksum>"}
      }
    }

Untagged files share the reserved ``__default__`` namespace.

Every ``put`` re-reads the document, applies one change and replaces the
file atomically (temp file in the same directory + ``os.replace``), so a
reader never sees a half-written document.

Concurrency:
  There is no file locking. Two devkit processes writing the same project's
  mappings can still lose each other's updates; operators must not run
  ``create-remote-files`` concurrently against one project directory.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from devkit.errors import StoreWriteError

logger = logging.getLogger(__name__)

DEFAULT_TAG = "__default__"
STATE_DIR = ".airborne"
MAPPINGS_FILE = "mappings.json"


@dataclass(frozen=True)
class MappingEntry:
    """A synchronized artifact. checksum is the content that produced remote_id."""

    file_path: str
    remote_id: str
    checksum: str

    def to_dict(self) -> dict:
        return {"id": self.remote_id, "checksum": self.checksum}


def resolve_tag(tag: Optional[str]) -> str:
    """Map an absent tag onto the shared default namespace."""
    return tag or DEFAULT_TAG


class MappingStore:
    """Tag-scoped mapping table backed by a single JSON document."""

    def __init__(self, directory_path: Union[str, Path]):
        self.directory_path = Path(directory_path)
        self.path = self.directory_path / STATE_DIR / MAPPINGS_FILE

    def get(self, tag: Optional[str], file_path: str) -> Optional[MappingEntry]:
        """Return the entry for (tag, file_path), or None.

        Absence is a normal result: a missing or unreadable document, an
        unknown tag and an unknown path all return None.
        """
        try:
            mappings = self._read()
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable mapping file %s: %s", self.path, exc)
            return None

        namespace = mappings.get(resolve_tag(tag))
        if not isinstance(namespace, dict):
            return None
        raw = namespace.get(file_path)
        if not isinstance(raw, dict) or not raw.get("id"):
            return None
        return MappingEntry(
            file_path=file_path,
            remote_id=str(raw["id"]),
            checksum=str(raw.get("checksum") or ""),
        )

    # Package assembly reads through the same contract.
    load = get

    def put(
        self,
        tag: Optional[str],
        file_path: str,
        remote_id: str,
        checksum: Optional[str],
    ) -> MappingEntry:
        """Insert or overwrite the entry for (tag, file_path).

        Raises:
            StoreWriteError: If the existing document is corrupt or the new
                one cannot be written. A corrupt document is never replaced,
                since that would drop every other mapping in it.
        """
        try:
            mappings = self._read()
        except (OSError, ValueError) as exc:
            raise StoreWriteError(str(self.path), exc) from exc

        entry = MappingEntry(file_path=file_path, remote_id=remote_id, checksum=checksum or "")
        namespace = mappings.setdefault(resolve_tag(tag), {})
        namespace[file_path] = entry.to_dict()

        try:
            self._write(mappings)
        except OSError as exc:
            raise StoreWriteError(str(self.path), exc) from exc

        logger.debug("Mapped %s (tag=%s) -> %s", file_path, resolve_tag(tag), remote_id)
        return entry

    def _read(self) -> dict:
        """Load the document; a missing file is an empty table."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object in {self.path}")
        return data

    def _write(self, mappings: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(mappings, handle, indent=2)
            os.replace(tmp, self.path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)
