"""Bundler invocation and build-output scanning.

The bundler itself (React Native CLI or Expo) is an external command. This
module builds its argument list, runs it with output captured, and lists
what it produced under ``<platform>/build/generated/airborne``.
"""

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from devkit.errors import BundleCommandError
from devkit.files.types import BUILD_OUTPUT_SUBPATH

logger = logging.getLogger(__name__)

# Production bundles of large apps can take several minutes.
DEFAULT_TIMEOUT = 900


@dataclass
class BundleResult:
    command: list[str]
    exit_code: int
    duration_seconds: float
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


@dataclass(frozen=True)
class BuildFile:
    """A file found in the build output; path is relative to the build dir."""

    name: str
    path: str
    full_path: Path


def build_folder(platform: str) -> Path:
    """Build output directory relative to the project root."""
    return Path(platform).joinpath(*BUILD_OUTPUT_SUBPATH)


def build_bundle_command(
    platform: str,
    entry_file: str,
    index_file_path: str,
    expo: bool = False,
) -> list[str]:
    """Argument list for a production bundle of `platform`."""
    folder = build_folder(platform).as_posix()
    if expo:
        head = ["npx", "expo", "export:embed"]
    else:
        head = ["npx", "react-native", "bundle"]
    return head + [
        "--platform", platform,
        "--dev", "false",
        "--entry-file", entry_file,
        "--bundle-output", f"{folder}/{index_file_path}",
        "--assets-dest", folder,
    ]


def run_bundle_command(
    command: list[str],
    cwd: Path,
    timeout: int = DEFAULT_TIMEOUT,
) -> BundleResult:
    """Run the bundler in the project root.

    Raises:
        BundleCommandError: On non-zero exit, timeout, or when the command
            cannot be started. Carries the captured output.
    """
    logger.info("Executing bundle command: %s (cwd=%s)", " ".join(command), cwd)
    start = time.monotonic()
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise BundleCommandError(command, f"Timed out after {timeout} seconds") from exc
    except OSError as exc:
        raise BundleCommandError(command, str(exc)) from exc

    result = BundleResult(
        command=command,
        exit_code=completed.returncode,
        duration_seconds=time.monotonic() - start,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    logger.info(
        "Bundle command %s (exit=%d, %.1fs)",
        "OK" if result.is_success else "FAILED",
        result.exit_code,
        result.duration_seconds,
    )
    if not result.is_success:
        raise BundleCommandError(command, result.output, exit_code=result.exit_code)
    return result


def read_directory_recursive(dir_path: Path, base_dir: Optional[Path] = None) -> list[BuildFile]:
    """List every file below dir_path, with POSIX paths relative to base_dir.

    Entries are sorted so repeated builds produce the same file order.
    A missing directory yields an empty list.
    """
    base = base_dir or dir_path
    if not dir_path.exists():
        return []

    items: list[BuildFile] = []
    for entry in sorted(dir_path.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            items.extend(read_directory_recursive(entry, base))
        else:
            items.append(BuildFile(
                name=entry.name,
                path=entry.relative_to(base).as_posix(),
                full_path=entry,
            ))
    return items


def clear_directory(dir_path: Path) -> None:
    """Remove everything inside dir_path, keeping the directory itself."""
    if not dir_path.exists():
        return
    for entry in dir_path.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
