"""Per-project devkit configuration (``airborne-config.json``).

Written once by ``create-local-airborne-config`` at the React Native
project root and read by every later command:

    {
      "organisation": "...",
      "namespace": "...",
      "js_entry_file": "index.js",
      "android": {"index_file_path": "index.android.bundle"},
      "ios": {"index_file_path": "main.jsbundle"}
    }
"""

import json
import logging
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from devkit.errors import AirborneConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = "airborne-config.json"

DEFAULT_ENTRY_FILE = "index.js"
DEFAULT_INDEX_FILES = {
    "android": "index.android.bundle",
    "ios": "main.jsbundle",
}


class PlatformConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    index_file_path: str = ""


class AirborneConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    organisation: str
    namespace: str
    js_entry_file: str = DEFAULT_ENTRY_FILE
    android: PlatformConfig = Field(
        default_factory=lambda: PlatformConfig(index_file_path=DEFAULT_INDEX_FILES["android"])
    )
    ios: PlatformConfig = Field(
        default_factory=lambda: PlatformConfig(index_file_path=DEFAULT_INDEX_FILES["ios"])
    )
    expo: bool = False

    def index_file_for(self, platform: str) -> str:
        """Index bundle name for a platform, falling back to index.<platform>.bundle."""
        platform_config: PlatformConfig = getattr(self, platform)
        return platform_config.index_file_path or f"index.{platform}.bundle"


def config_path(directory_path: Union[str, Path]) -> Path:
    return Path(directory_path) / CONFIG_FILE


def airborne_config_exists(directory_path: Union[str, Path]) -> bool:
    return config_path(directory_path).is_file()


def read_airborne_config(directory_path: Union[str, Path]) -> AirborneConfig:
    """Load and validate airborne-config.json.

    Raises:
        AirborneConfigError: If the file is missing or invalid.
    """
    path = config_path(directory_path)
    if not path.is_file():
        raise AirborneConfigError(
            f"Airborne config not found at {path}, try using create-local-airborne-config"
        )
    try:
        return AirborneConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (ValueError, ValidationError) as exc:
        raise AirborneConfigError(f"Failed to read {CONFIG_FILE}: {exc}") from exc


def write_airborne_config(directory_path: Union[str, Path], config: AirborneConfig) -> Path:
    path = config_path(directory_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        config.model_dump_json(indent=2, exclude={"expo"} if not config.expo else None),
        encoding="utf-8",
    )
    logger.info("Config written to %s", path)
    return path
