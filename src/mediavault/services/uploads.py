"""
Upload, delete and stats orchestration.

Each upload runs resolve-folder -> validate -> transcode -> write, stopping
at the first failure. Nothing touches the storage root until every earlier
step has succeeded.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from mediavault.configs.config import Config
from mediavault.error_handling import MediaVaultError, StorageIOError
from mediavault.media.transcode import Transcoder, build_transcoder
from mediavault.security.file_validator import MediaValidator
from mediavault.storage import (
    BaseStore,
    FolderTaxonomy,
    LocalStore,
    MediaPayload,
    PathResolver,
    StatsAggregator,
    StorageStats,
    StoredObject,
)

logger = logging.getLogger("mediavault.uploads")


@dataclass(frozen=True)
class IncomingFile:
    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None
    declared_size: Optional[int] = None


class UploadService:
    def __init__(
        self,
        taxonomy: FolderTaxonomy,
        resolver: PathResolver,
        validator: MediaValidator,
        transcoder: Transcoder,
        store: BaseStore,
        aggregator: StatsAggregator,
    ):
        self.taxonomy = taxonomy
        self.resolver = resolver
        self.validator = validator
        self.transcoder = transcoder
        self.store = store
        self.aggregator = aggregator

    @classmethod
    def from_config(cls, config: Config) -> "UploadService":
        taxonomy = FolderTaxonomy.from_config(config)
        resolver = PathResolver(config.storage_dir, config.public_mount, taxonomy)
        return cls(
            taxonomy=taxonomy,
            resolver=resolver,
            validator=MediaValidator(config),
            transcoder=build_transcoder(config),
            store=LocalStore(resolver),
            aggregator=StatsAggregator(resolver),
        )

    def _prepare(self, file: IncomingFile) -> MediaPayload:
        result = self.validator.validate(file.content_type, file.declared_size, file.content)
        return self.transcoder.transcode(file.content, result.detected_type, file.filename)

    def upload(self, folder: Optional[str], file: IncomingFile) -> StoredObject:
        target = self.taxonomy.resolve(folder)
        payload = self._prepare(file)
        stored = self.store.write(target, payload)
        logger.info(f"Uploaded {file.filename!r} as {stored.public_path}")
        return stored

    def upload_many(self, folder: Optional[str], files: Sequence[IncomingFile]) -> List[StoredObject]:
        """
        Upload a batch atomically: every file is validated and transcoded
        before the first write, and a failed write removes what the batch
        already stored.
        """
        target = self.taxonomy.resolve(folder)
        self.validator.validate_batch(len(files))

        payloads = []
        for index, file in enumerate(files):
            try:
                payloads.append(self._prepare(file))
            except MediaVaultError as e:
                e.message = f"File {index} ({file.filename}): {e.message}"
                raise

        stored: List[StoredObject] = []
        try:
            for payload in payloads:
                stored.append(self.store.write(target, payload))
        except MediaVaultError:
            logger.warning(f"Batch write failed after {len(stored)} file(s), rolling back")
            for obj in stored:
                path = self.resolver.resolve_for_write(obj.folder, obj.identifier, obj.extension)
                try:
                    self.store.remove(path)
                except StorageIOError as cleanup_error:
                    logger.error(f"Rollback could not remove {path}: {cleanup_error.message}")
            raise

        logger.info(f"Uploaded batch of {len(stored)} file(s) to '{target}'")
        return stored

    def delete(self, reference: str) -> bool:
        path = self.resolver.resolve_for_delete(reference)
        return self.store.remove(path)

    def stats(self) -> StorageStats:
        return self.aggregator.aggregate()
