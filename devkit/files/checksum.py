"""Content digests for build artifacts.

The mapping store and the server identify file content by SHA-256. The hex
form is what gets compared locally; the upload endpoint expects the same
digest base64-encoded in its ``x-checksum`` header.
"""

import base64
import hashlib
from pathlib import Path
from typing import Union

# Read size per chunk; bundles can be tens of MB, so never read whole files.
CHUNK_SIZE = 1024 * 1024


def sha256_file_hex(path: Union[str, Path]) -> str:
    """Stream a file through SHA-256 and return the lower-case hex digest.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def hex_to_base64(hex_digest: str) -> str:
    """Re-encode a hex digest as base64 of the raw digest bytes."""
    return base64.b64encode(bytes.fromhex(hex_digest)).decode("ascii")


def checksums_match(stored: str, hex_digest: str) -> bool:
    """Compare a stored checksum against a freshly computed hex digest.

    The server may echo either encoding, and the store records whatever the
    server echoed, so both forms count as a match.
    """
    if not stored:
        return False
    return stored == hex_digest or stored == hex_to_base64(hex_digest)
