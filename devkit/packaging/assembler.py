"""Remote package assembly.

Turns a local release config into a remote package:

1. The config must name an index file (MissingIndexError otherwise)
2. The index and every important, lazy and resource file is resolved to its
   remote id through the MappingStore, in that order
3. Any unresolved path aborts before the server is contacted
4. create-package is called; the returned version is written back into the
   release config
"""

import logging
from dataclasses import dataclass
from typing import Optional

from devkit.client.types import PackageResponse, RemoteArtifactClient
from devkit.errors import MissingIndexError, UnresolvedFileError
from devkit.files.mapping import MappingStore
from devkit.release.config import ReleaseConfigAssembler
from devkit.release.types import ReleaseConfig

logger = logging.getLogger(__name__)


@dataclass
class PackageContext:
    organisation: str
    namespace: str
    platform: str
    tag: Optional[str] = None


class PackageAssembler:
    def __init__(
        self,
        store: MappingStore,
        client: RemoteArtifactClient,
        release_configs: ReleaseConfigAssembler,
    ):
        self.store = store
        self.client = client
        self.release_configs = release_configs

    def resolve(self, release_config: ReleaseConfig, tag: Optional[str]) -> tuple[str, list[str]]:
        """Return (index id, ordered file ids) for `release_config`.

        Raises:
            MissingIndexError: The package has no index file.
            UnresolvedFileError: A file has no mapping under `tag`.
        """
        package = release_config.package
        if not package.index.file_path:
            raise MissingIndexError()

        index_id = self._remote_id(tag, package.index.file_path)
        refs = package.important + package.lazy + release_config.resources
        file_ids = [self._remote_id(tag, ref.file_path) for ref in refs]
        return index_id, file_ids

    def assemble(self, context: PackageContext) -> PackageResponse:
        release_config = self.release_configs.read(context.platform)
        index_id, file_ids = self.resolve(release_config, context.tag)

        logger.info(
            "Creating package for %s/%s with %d files",
            context.organisation, context.namespace, len(file_ids),
        )
        response = self.client.create_package(
            index=index_id,
            files=file_ids,
            organisation=context.organisation,
            application=context.namespace,
            tag=context.tag,
        )

        release_config.package.version = str(response.version)
        self.release_configs.write(release_config, context.platform)
        logger.info("Package version %s recorded in release config", response.version)
        return response

    def _remote_id(self, tag: Optional[str], file_path: str) -> str:
        entry = self.store.load(tag, file_path)
        if entry is None:
            raise UnresolvedFileError(file_path)
        return entry.remote_id
