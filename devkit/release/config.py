"""Release config assembly.

Creates or regenerates a platform's ``release_config.json`` from freshly
bundled output.

Create:
  bundle → scan build dir → every file except the index is "important"
  → write.

Update:
  read existing config → clear build dir → bundle → regenerate "important"
  from the scan, keep versions/properties, override timeouts only when
  given, drop resources whose path now belongs to the package → write.

Neither path fills "lazy"; moving files there is a manual step. A failed
bundle aborts before anything is written.

iOS post-write hook:
  After writing an iOS config, a Ruby script adds the file to the Xcode
  project. Its failure is logged and otherwise ignored.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import ValidationError

from devkit.core.config import Settings, get_settings
from devkit.errors import DevkitError, ReleaseConfigNotFoundError
from devkit.project.config import AirborneConfig
from devkit.release.bundler import (
    BuildFile,
    build_bundle_command,
    build_folder,
    clear_directory,
    read_directory_recursive,
    run_bundle_command,
)
from devkit.release.types import (
    DEFAULT_BOOT_TIMEOUT,
    DEFAULT_RELEASE_CONFIG_TIMEOUT,
    ConfigSection,
    FileRef,
    PackageSection,
    ReleaseConfig,
)

logger = logging.getLogger(__name__)

RELEASE_CONFIG_FILE = "release_config.json"


def release_config_dir(directory_path: Union[str, Path], platform: str, namespace: str) -> Path:
    """Android keeps the config in app assets under the namespace; iOS at ios/."""
    root = Path(directory_path)
    if platform == "android":
        return root / "android" / "app" / "src" / "main" / "assets" / namespace
    return root / platform


def release_config_path(directory_path: Union[str, Path], platform: str, namespace: str) -> Path:
    return release_config_dir(directory_path, platform, namespace) / RELEASE_CONFIG_FILE


def _important_files(contents: list[BuildFile], index_file_path: str) -> list[FileRef]:
    return [
        FileRef(file_path=item.path)
        for item in contents
        if item.path != index_file_path
    ]


class ReleaseConfigAssembler:
    """Reads, writes and (re)builds release configs for one project.

    run_bundle and run_hook are injectable so tests can stand in for the
    external bundler and the Ruby hook.
    """

    def __init__(
        self,
        directory_path: Union[str, Path],
        airborne_config: AirborneConfig,
        settings: Optional[Settings] = None,
        run_bundle: Callable = run_bundle_command,
        run_hook: Callable = subprocess.run,
    ):
        root = Path(directory_path)
        self.directory_path = root if root.is_absolute() else Path.cwd() / root
        self.airborne_config = airborne_config
        self.settings = settings or get_settings()
        self._run_bundle = run_bundle
        self._run_hook = run_hook

    @property
    def namespace(self) -> str:
        return self.airborne_config.namespace

    def path_for(self, platform: str) -> Path:
        return release_config_path(self.directory_path, platform, self.namespace)

    def exists(self, platform: str) -> bool:
        return self.path_for(platform).is_file()

    def read(self, platform: str) -> ReleaseConfig:
        path = self.path_for(platform)
        if not path.is_file():
            raise ReleaseConfigNotFoundError(str(path))
        try:
            return ReleaseConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (ValueError, ValidationError) as exc:
            raise DevkitError(f"Failed to read release config {path}: {exc}") from exc

    def write(self, release_config: ReleaseConfig, platform: str) -> Path:
        path = self.path_for(platform)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(release_config.to_json(), encoding="utf-8")
        logger.info("Release config written to %s", path)

        if platform == "ios":
            self._run_post_write_hook()
        return path

    def create(
        self,
        platform: str,
        boot_timeout: Optional[int] = None,
        release_config_timeout: Optional[int] = None,
    ) -> ReleaseConfig:
        """Bundle and write a brand-new release config for `platform`."""
        index_file_path = self.airborne_config.index_file_for(platform)
        contents = self._bundle(platform, index_file_path)

        release_config = ReleaseConfig(
            config=ConfigSection(
                boot_timeout=boot_timeout if boot_timeout is not None else DEFAULT_BOOT_TIMEOUT,
                release_config_timeout=(
                    release_config_timeout
                    if release_config_timeout is not None
                    else DEFAULT_RELEASE_CONFIG_TIMEOUT
                ),
            ),
            package=PackageSection(
                name=self.namespace,
                index=FileRef(file_path=index_file_path),
                important=_important_files(contents, index_file_path),
            ),
        )
        self.write(release_config, platform)
        return release_config

    def update(
        self,
        platform: str,
        boot_timeout: Optional[int] = None,
        release_config_timeout: Optional[int] = None,
    ) -> ReleaseConfig:
        """Rebuild `platform` and regenerate its existing release config.

        Raises:
            ReleaseConfigNotFoundError: If there is no config to update.
            BundleCommandError: If bundling fails; the old config is kept.
        """
        existing = self.read(platform)
        index_file_path = self.airborne_config.index_file_for(platform)

        clear_directory(self.directory_path / build_folder(platform))
        contents = self._bundle(platform, index_file_path)
        fresh_paths = {item.path for item in contents}

        resources: list[FileRef] = []
        for resource in existing.resources:
            if resource.file_path in fresh_paths:
                logger.warning(
                    "Dropping resource %s: it is now part of the package build output",
                    resource.file_path,
                )
                continue
            resources.append(resource)

        release_config = ReleaseConfig(
            version=existing.version,
            config=ConfigSection(
                version=existing.config.version,
                boot_timeout=(
                    boot_timeout if boot_timeout is not None else existing.config.boot_timeout
                ),
                release_config_timeout=(
                    release_config_timeout
                    if release_config_timeout is not None
                    else existing.config.release_config_timeout
                ),
                properties=existing.config.properties,
            ),
            package=PackageSection(
                name=self.namespace,
                version=existing.package.version,
                properties=existing.package.properties,
                index=FileRef(file_path=index_file_path),
                important=_important_files(contents, index_file_path),
                lazy=[],
            ),
            resources=resources,
        )
        self.write(release_config, platform)
        return release_config

    def _bundle(self, platform: str, index_file_path: str) -> list[BuildFile]:
        output_dir = self.directory_path / build_folder(platform)
        output_dir.mkdir(parents=True, exist_ok=True)

        command = build_bundle_command(
            platform,
            entry_file=self.airborne_config.js_entry_file,
            index_file_path=index_file_path,
            expo=self.airborne_config.expo,
        )
        self._run_bundle(command, cwd=self.directory_path)
        return read_directory_recursive(output_dir)

    def _run_post_write_hook(self) -> None:
        script = Path(self.settings.ios_post_write_script)
        if not script.is_absolute():
            script = self.directory_path / script
        logger.info("Running post-write script for ios: %s", script)
        try:
            self._run_hook(["ruby", str(script)], cwd=str(self.directory_path), check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.error("Post-write script failed: %s", exc)
            return
        logger.info("Post-write script executed successfully")
