"""Core API commands as data.

Each command is a CommandSpec: the parameters it requires and a function
that turns validated options into one AirborneClient call. A single
dispatcher (`run_command`) does the shared work every command needs:

1. Optionally merge a ``@params.json`` file (explicit CLI values win)
2. Check required parameters, including dotted nested ones
3. Build a client (authenticated or not) and send the request

Adding an endpoint means registering one more CommandSpec, not writing
another parse/merge/validate/send function.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel

from devkit.client.airborne import AirborneClient
from devkit.core.config import Settings, get_settings
from devkit.errors import DevkitError, MissingParametersError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandSpec:
    """Descriptor for one core API command.

    required lists option keys; dotted keys ("a.b") are only enforced when
    their parent is present or itself required.
    """

    name: str
    required: tuple[str, ...]
    send: Callable[[AirborneClient, dict], BaseModel]
    requires_auth: bool = True
    description: str = ""


COMMANDS: dict[str, CommandSpec] = {}


def register(command: CommandSpec) -> CommandSpec:
    COMMANDS[command.name] = command
    return command


def read_params_file(params_ref: str) -> dict:
    """Load a ``@path.json`` parameter reference."""
    if not params_ref.startswith("@"):
        raise DevkitError("Params file must start with @ (e.g., @params.json)")
    path = Path(params_ref[1:])
    if path.suffix.lower() != ".json":
        raise DevkitError("File must be a JSON file (.json)")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise DevkitError(f"Failed to read or parse JSON file: {exc}") from exc
    if not isinstance(data, dict):
        raise DevkitError("Params file must contain a JSON object")
    return data


def merge_options(options: dict, file_options: dict) -> dict:
    """Overlay explicitly provided options on top of file options."""
    merged = dict(file_options)
    for key, value in options.items():
        if value is not None:
            merged[key] = value
    return merged


def _get_nested(options: dict, path: str) -> Any:
    current: Any = options
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def validate_required(options: dict, required: tuple[str, ...]) -> None:
    """Raise MissingParametersError listing every absent required key."""
    missing: list[str] = []
    for field in required:
        parts = field.split(".")
        if len(parts) > 1:
            parent = ".".join(parts[:-1])
            if parent not in required and _get_nested(options, parent) is None:
                continue
        if _get_nested(options, field) is None:
            missing.append(field)
    if missing:
        raise MissingParametersError(missing)


def run_command(
    name: str,
    params_ref: Optional[str],
    options: dict,
    settings: Optional[Settings] = None,
    client_factory: Optional[Callable[..., AirborneClient]] = None,
) -> dict:
    """Execute a registered command and return its response as a dict."""
    command = COMMANDS.get(name)
    if command is None:
        valid = ", ".join(sorted(COMMANDS))
        raise DevkitError(f"Unknown command '{name}'. Valid options: {valid}")

    final = merge_options(options, read_params_file(params_ref)) if params_ref else dict(options)
    required = command.required + (("token",) if command.requires_auth else ())
    validate_required(final, required)

    settings = settings or get_settings()
    factory = client_factory or AirborneClient
    token = final.pop("token", None) if command.requires_auth else None
    logger.info("Running %s", name)
    with factory(settings.base_url, token=token, timeout=settings.request_timeout) as client:
        result = command.send(client, final)
    return result.model_dump(exclude_none=True)


def _metadata(value: Any) -> Optional[dict]:
    if value is None or isinstance(value, dict):
        return value
    return json.loads(value)


register(CommandSpec(
    name="create-file",
    required=("file_path", "url", "organisation", "application"),
    send=lambda client, o: client.create_file(
        file_path=o["file_path"],
        url=o["url"],
        organisation=o["organisation"],
        application=o["application"],
        tag=o.get("tag"),
        metadata=_metadata(o.get("metadata")),
    ),
    description="Register a file hosted at an external URL.",
))

register(CommandSpec(
    name="upload-file",
    required=("file", "file_path", "checksum", "organisation", "application"),
    send=lambda client, o: client.upload_file(
        file=o["file"],
        file_path=o["file_path"],
        checksum=o["checksum"],
        organisation=o["organisation"],
        application=o["application"],
        tag=o.get("tag"),
    ),
    description="Upload a local file to Airborne storage.",
))

register(CommandSpec(
    name="create-package",
    required=("index", "files", "organisation", "application"),
    send=lambda client, o: client.create_package(
        index=o["index"],
        files=list(o["files"]),
        organisation=o["organisation"],
        application=o["application"],
        tag=o.get("tag"),
    ),
    description="Create a package from an index file id and file ids.",
))

register(CommandSpec(
    name="post-login",
    required=("client_id", "client_secret"),
    send=lambda client, o: client.post_login(
        client_id=o["client_id"],
        client_secret=o["client_secret"],
    ),
    requires_auth=False,
    description="Exchange client credentials for access tokens.",
))
