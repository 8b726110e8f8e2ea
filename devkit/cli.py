"""Command-line entry point (``airborne-devkit``).

Workflow commands, in the order a release goes through them:

  create-local-airborne-config   write airborne-config.json
  create-local-release-config    bundle + write release_config.json
  update-local-release-config    rebundle + regenerate release_config.json
  login                          store access tokens
  create-remote-files            sync build output to the server
  create-remote-package          create a package from synced files

Core API commands (``create-file``, ``upload-file``, ``create-package``)
take an optional ``@params.json`` plus ``--param key=value`` pairs and print
the server's JSON response.

Logs go to stderr; stdout carries only results. Every failure prints one
error line and exits 1.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import httpx

from devkit import __version__
from devkit.auth.credentials import load_token, require_access_token, save_token
from devkit.client.airborne import AirborneClient
from devkit.client.commands import COMMANDS, run_command
from devkit.core.config import Settings, get_settings
from devkit.core.logging import configure_structlog, set_command
from devkit.errors import DevkitError
from devkit.files.mapping import DEFAULT_TAG, MappingStore
from devkit.files.sync import SyncReconciler
from devkit.files.types import SyncConfig
from devkit.packaging.assembler import PackageAssembler, PackageContext
from devkit.project.config import (
    DEFAULT_ENTRY_FILE,
    DEFAULT_INDEX_FILES,
    AirborneConfig,
    PlatformConfig,
    airborne_config_exists,
    read_airborne_config,
    write_airborne_config,
)
from devkit.prompt import prompt_with_type
from devkit.release.config import ReleaseConfigAssembler
from devkit.release.types import DEFAULT_BOOT_TIMEOUT, PLATFORMS

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = DEFAULT_BOOT_TIMEOUT


# ── argument types ───────────────────────────────────────────────────

def platform_arg(value: str) -> str:
    lower = value.lower()
    if lower not in PLATFORMS:
        raise argparse.ArgumentTypeError(
            f'Invalid platform: "{value}". Allowed values: android | ios'
        )
    return lower


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number <= 0:
        raise argparse.ArgumentTypeError(f'Invalid timeout: "{value}". Must be a positive number.')
    return number


def tag_arg(value: str) -> str:
    if value == DEFAULT_TAG:
        raise argparse.ArgumentTypeError(f"You cannot use '{DEFAULT_TAG}' as a tag.")
    return value


def param_arg(value: str) -> tuple[str, str]:
    key, sep, raw = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f'Expected key=value, got "{value}"')
    return key, raw


def _parse_value(raw: str) -> Any:
    """JSON objects and arrays are decoded; everything else stays a string."""
    if raw[:1] in ("{", "["):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def params_to_options(pairs: list[tuple[str, str]]) -> dict:
    """Turn ``a.b=value`` pairs into a nested options dict."""
    options: dict = {}
    for key, raw in pairs:
        target = options
        parts = key.split(".")
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = _parse_value(raw)
    return options


# ── helpers ──────────────────────────────────────────────────────────

def _project_dir(args: argparse.Namespace) -> Path:
    return Path(args.directory_path or ".").resolve()


def _platform(args: argparse.Namespace) -> str:
    if args.platform:
        return args.platform
    return prompt_with_type("\n Please enter the target platform (android/ios): ", list(PLATFORMS))


def _timeout(value: Optional[int], name: str, settings: Settings) -> int:
    """Use the flag when given; otherwise ask, defaulting to 4000 ms. CI never prompts."""
    if value is not None:
        return value
    if settings.ci:
        return DEFAULT_TIMEOUT_MS
    answer = prompt_with_type(
        f"\nPlease enter the {name} in milliseconds (default: {DEFAULT_TIMEOUT_MS}): ",
        "number",
        DEFAULT_TIMEOUT_MS,
    )
    if int(answer) <= 0:
        raise DevkitError(f"Invalid {name}: {answer}. Must be a positive number.")
    return int(answer)


def _client(settings: Settings, token: Optional[str]) -> AirborneClient:
    return AirborneClient(settings.base_url, token=token, timeout=settings.request_timeout)


# ── workflow commands ────────────────────────────────────────────────

def cmd_create_airborne_config(args: argparse.Namespace, settings: Settings) -> int:
    directory = _project_dir(args)
    if airborne_config_exists(directory):
        raise DevkitError("Airborne config already exists.")

    organisation = args.organisation or prompt_with_type(
        "\n Please enter the organisation name: ", "string"
    )
    namespace = args.namespace or prompt_with_type(
        "\n Please enter namespace/application name: ", "string"
    )
    js_entry_file = args.js_entry_file or prompt_with_type(
        f"\n Please enter the JavaScript entry file (default: {DEFAULT_ENTRY_FILE}): ",
        "string",
        DEFAULT_ENTRY_FILE,
    )
    android_index = args.android_index_file or prompt_with_type(
        f"\n Please enter the Android index file path (default: {DEFAULT_INDEX_FILES['android']}): ",
        "string",
        DEFAULT_INDEX_FILES["android"],
    )
    ios_index = args.ios_index_file or prompt_with_type(
        f"\n Please enter the iOS index file path (default: {DEFAULT_INDEX_FILES['ios']}): ",
        "string",
        DEFAULT_INDEX_FILES["ios"],
    )

    config = AirborneConfig(
        organisation=organisation,
        namespace=namespace,
        js_entry_file=js_entry_file,
        android=PlatformConfig(index_file_path=android_index),
        ios=PlatformConfig(index_file_path=ios_index),
        expo=args.expo,
    )
    path = write_airborne_config(directory, config)
    print(f"Config written to {path}")
    return 0


def cmd_create_release_config(args: argparse.Namespace, settings: Settings) -> int:
    directory = _project_dir(args)
    platform = _platform(args)
    assembler = ReleaseConfigAssembler(directory, read_airborne_config(directory), settings)
    if assembler.exists(platform):
        raise DevkitError(
            f"Release config for {platform} platform already exists in {directory}. "
            "Use 'update-local-release-config' to modify it."
        )
    assembler.create(
        platform,
        _timeout(args.boot_timeout, "boot timeout", settings),
        _timeout(args.release_config_timeout, "release config timeout", settings),
    )
    print(f"Release config written to {assembler.path_for(platform)}")
    return 0


def cmd_update_release_config(args: argparse.Namespace, settings: Settings) -> int:
    directory = _project_dir(args)
    platform = _platform(args)
    assembler = ReleaseConfigAssembler(directory, read_airborne_config(directory), settings)
    assembler.update(platform, args.boot_timeout, args.release_config_timeout)
    print(f"Release config updated at {assembler.path_for(platform)}")
    return 0


def cmd_login(args: argparse.Namespace, settings: Settings) -> int:
    directory = _project_dir(args)
    with _client(settings, None) as client:
        result = client.post_login(client_id=args.client_id, client_secret=args.client_secret)
    save_token(
        result.user_token.access_token,
        result.user_token.refresh_token,
        directory,
        settings,
    )
    print("Login successful")
    return 0


def cmd_create_remote_files(args: argparse.Namespace, settings: Settings) -> int:
    directory = _project_dir(args)
    platform = _platform(args)
    airborne_config = read_airborne_config(directory)
    release_config = ReleaseConfigAssembler(directory, airborne_config, settings).read(platform)
    token = require_access_token(directory, settings)

    package = release_config.package
    files = package.important + package.lazy + release_config.resources + [package.index]
    sync_config = SyncConfig(
        directory_path=str(directory),
        platform=platform,
        organisation=airborne_config.organisation,
        namespace=airborne_config.namespace,
        token=token,
        tag=args.tag,
    )

    with _client(settings, token) as client:
        reconciler = SyncReconciler(MappingStore(directory), client, sync_config)
        if args.upload:
            summary = reconciler.upload(files)
        else:
            base_url = args.base_url or prompt_with_type(
                "\n Provide your base url for files: ", "string"
            )
            summary = reconciler.create(files, base_url)

    print(json.dumps(summary.to_dict(), indent=2))
    return 0 if summary.is_success else 1


def cmd_create_remote_package(args: argparse.Namespace, settings: Settings) -> int:
    directory = _project_dir(args)
    platform = _platform(args)
    airborne_config = read_airborne_config(directory)
    token = require_access_token(directory, settings)

    with _client(settings, token) as client:
        assembler = PackageAssembler(
            MappingStore(directory),
            client,
            ReleaseConfigAssembler(directory, airborne_config, settings),
        )
        response = assembler.assemble(PackageContext(
            organisation=airborne_config.organisation,
            namespace=airborne_config.namespace,
            platform=platform,
            tag=args.tag,
        ))

    print(json.dumps(response.model_dump(exclude_none=True), indent=2))
    return 0


# ── core API commands ────────────────────────────────────────────────

def cmd_core(args: argparse.Namespace, settings: Settings) -> int:
    options = params_to_options(args.param or [])
    if "token" not in options:
        credentials = load_token(Path.cwd(), settings)
        if credentials is not None:
            options["token"] = credentials.access_token
    result = run_command(args.command, args.params_file, options, settings=settings)
    print(json.dumps(result, indent=2))
    return 0


# ── parser ───────────────────────────────────────────────────────────

def _add_platform_options(parser: argparse.ArgumentParser, timeouts: bool = False) -> None:
    parser.add_argument("directory_path", nargs="?", help="React Native project root (default: cwd)")
    parser.add_argument("-p", "--platform", type=platform_arg, help="Target platform: android | ios")
    if timeouts:
        parser.add_argument("-b", "--boot-timeout", type=positive_int, dest="boot_timeout",
                            help="Boot timeout in milliseconds")
        parser.add_argument("-r", "--release-config-timeout", type=positive_int,
                            dest="release_config_timeout",
                            help="Release config timeout in milliseconds")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="airborne-devkit",
        description="Prepare React Native bundles for Airborne OTA releases",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Human-readable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create-local-airborne-config", help="Create airborne-config.json")
    p.add_argument("directory_path", nargs="?", help="React Native project root (default: cwd)")
    p.add_argument("-o", "--organisation")
    p.add_argument("-n", "--namespace")
    p.add_argument("-j", "--js-entry-file", dest="js_entry_file")
    p.add_argument("-a", "--android-index-file", dest="android_index_file")
    p.add_argument("-i", "--ios-index-file", dest="ios_index_file")
    p.add_argument("--expo", action="store_true", help="Bundle with expo export:embed")
    p.set_defaults(handler=cmd_create_airborne_config)

    p = sub.add_parser("create-local-release-config", help="Bundle and create release_config.json")
    _add_platform_options(p, timeouts=True)
    p.set_defaults(handler=cmd_create_release_config)

    p = sub.add_parser("update-local-release-config", help="Rebundle and update release_config.json")
    _add_platform_options(p, timeouts=True)
    p.set_defaults(handler=cmd_update_release_config)

    p = sub.add_parser("create-remote-files", help="Upload or register build output files")
    _add_platform_options(p)
    p.add_argument("-t", "--tag", type=tag_arg)
    p.add_argument("-u", "--upload", action="store_true", help="Upload file bytes to Airborne")
    p.add_argument("--base-url", dest="base_url",
                   help="Where the files are hosted (registration mode; prompted if omitted)")
    p.set_defaults(handler=cmd_create_remote_files)

    p = sub.add_parser("create-remote-package", help="Create a package from synced files")
    _add_platform_options(p)
    p.add_argument("-t", "--tag", type=tag_arg)
    p.set_defaults(handler=cmd_create_remote_package)

    p = sub.add_parser("login", help="Store access tokens for later commands")
    p.add_argument("directory_path", nargs="?", help="Where tokens are stored (default: cwd)")
    p.add_argument("--client_id", required=True)
    p.add_argument("--client_secret", required=True)
    p.set_defaults(handler=cmd_login)

    for name in ("create-file", "upload-file", "create-package"):
        p = sub.add_parser(name, help=COMMANDS[name].description)
        p.add_argument("params_file", nargs="?", help="@params.json")
        p.add_argument("--param", action="append", type=param_arg, metavar="KEY=VALUE")
        p.set_defaults(handler=cmd_core)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_structlog(debug=args.debug or settings.debug)
    set_command(args.command)

    try:
        return args.handler(args, settings)
    except DevkitError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except httpx.HTTPError as exc:
        print(f"Error: request failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
