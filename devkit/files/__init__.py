"""Artifact synchronization: checksums, the local mapping store and the
reconciler that uploads or registers build output.

Public API:
    sha256_file_hex(path) -> str
    MappingStore(directory_path)
    SyncReconciler(store, client, config).upload(files) / .create(files, prefix_url)
"""

from devkit.files.checksum import hex_to_base64, sha256_file_hex
from devkit.files.mapping import DEFAULT_TAG, MappingEntry, MappingStore
from devkit.files.sync import SyncReconciler

__all__ = [
    "DEFAULT_TAG",
    "MappingEntry",
    "MappingStore",
    "SyncReconciler",
    "hex_to_base64",
    "sha256_file_hex",
]
