"""Release config document models.

A release config describes one platform's OTA package: the index bundle,
files needed at boot ("important"), files loaded on demand ("lazy") and
auxiliary resources that are not part of the package. It is written as
``release_config.json`` inside the app project; see
``devkit.release.config.release_config_path`` for where.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

PLATFORMS = ("android", "ios")

DEFAULT_BOOT_TIMEOUT = 4000
DEFAULT_RELEASE_CONFIG_TIMEOUT = 4000


class FileRef(BaseModel):
    """A file in the package, addressed by its path inside the build output."""

    model_config = ConfigDict(extra="allow")

    file_path: str
    url: str = ""
    checksum: str = ""


class ConfigSection(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: str = ""
    boot_timeout: Optional[int] = None
    release_config_timeout: Optional[int] = None
    properties: dict[str, Any] = Field(default_factory=dict)


class PackageSection(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    version: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)
    index: FileRef = Field(default_factory=lambda: FileRef(file_path=""))
    important: list[FileRef] = Field(default_factory=list)
    lazy: list[FileRef] = Field(default_factory=list)

    def file_paths(self) -> set[str]:
        return {ref.file_path for ref in self.important + self.lazy}


class ReleaseConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: str = ""
    config: ConfigSection = Field(default_factory=ConfigSection)
    package: PackageSection = Field(default_factory=PackageSection)
    resources: list[FileRef] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)
