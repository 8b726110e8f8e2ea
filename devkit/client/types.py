"""Request/response models for the Airborne API.

Responses are validated leniently (unknown fields kept, protocol fields
optional): whether a file response is usable is a decision for the caller,
which raises InvalidRemoteResponseError when `id` or `file_path` is missing.
"""

from pathlib import Path
from typing import Any, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field


class FileResponse(BaseModel):
    """Returned by both create-file and upload-file."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    file_path: Optional[str] = None
    checksum: Optional[str] = None
    tag: Optional[str] = None
    url: Optional[str] = None
    version: Optional[int] = None


class PackageResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: int
    index: Optional[str] = None
    files: list[str] = Field(default_factory=list)
    tag: Optional[str] = None


class UserToken(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: str = ""


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    user_id: Optional[str] = None
    user_token: UserToken
    organisations: list[Any] = Field(default_factory=list)


class RemoteArtifactClient(Protocol):
    """The three remote operations the sync and packaging code depends on."""

    def create_file(
        self,
        *,
        file_path: str,
        url: str,
        organisation: str,
        application: str,
        tag: Optional[str] = None,
    ) -> FileResponse:
        ...

    def upload_file(
        self,
        *,
        file: Union[str, Path],
        file_path: str,
        checksum: str,
        organisation: str,
        application: str,
        tag: Optional[str] = None,
    ) -> FileResponse:
        ...

    def create_package(
        self,
        *,
        index: str,
        files: list[str],
        organisation: str,
        application: str,
        tag: Optional[str] = None,
    ) -> PackageResponse:
        ...
