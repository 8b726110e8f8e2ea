"""Release config models, bundler invocation and config assembly.

Public API:
    ReleaseConfigAssembler(directory_path, airborne_config).create(platform) / .update(platform)
    ReleaseConfig, FileRef
"""

from devkit.release.config import ReleaseConfigAssembler, release_config_path
from devkit.release.types import FileRef, ReleaseConfig

__all__ = ["FileRef", "ReleaseConfig", "ReleaseConfigAssembler", "release_config_path"]
