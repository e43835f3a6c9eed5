"""Derives variants for an asset and records the outcome."""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from assethub.models.asset import Asset, AssetVariant
from assethub.schemas.asset import AssetType, ProcessingStatus, VariantType
from assethub.schemas.events import AssetProcessed, AssetProcessingFailed
from assethub.schemas.job import JobStatus, ProcessingJob
from assethub.services.activity_service import ActivitySink, activity_sink
from assethub.services.asset_service import set_processing_status
from assethub.storage.gateway import StorageGateway
from assethub.storage.keys import generate_variant_keys, replace_extension
from assethub_worker.services.errors import MediaProcessingError
from assethub_worker.services.image_variants import ImageVariantService, RenderedVariant
from assethub_worker.services.placeholder_variants import PlaceholderVariantService, needs_placeholder
from assethub_worker.services.video_variants import VideoVariantService

logger = logging.getLogger(__name__)

# States a re-delivered job leaves untouched
SETTLED_STATUSES = (
    ProcessingStatus.COMPLETED,
    ProcessingStatus.FAILED,
    ProcessingStatus.NEEDS_REVISION,
)


@dataclass
class ProcessingOutcome:
    asset_id: int
    status: str
    variants: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "asset_id": self.asset_id,
            "status": self.status,
            "variants": self.variants,
            "error": self.error,
        }


class AssetProcessor:
    """Runs one processing job.

    Re-running a job is idempotent: settled assets are skipped and
    variants are written to deterministic keys and upserted by
    (asset, variant type). Unrecoverable payload problems mark the asset
    FAILED; infrastructure errors propagate so the caller can retry, and
    the asset stays PROCESSING.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        gateway_factory: Callable[[Session, int], StorageGateway],
        sink: ActivitySink = activity_sink,
        image_service: Optional[ImageVariantService] = None,
        video_service: Optional[VideoVariantService] = None,
        placeholder_service: Optional[PlaceholderVariantService] = None,
    ):
        self.session_factory = session_factory
        self.gateway_factory = gateway_factory
        self.sink = sink
        self.image_service = image_service or ImageVariantService()
        self.video_service = video_service or VideoVariantService()
        self.placeholder_service = placeholder_service or PlaceholderVariantService()

    def process(self, job: ProcessingJob) -> ProcessingOutcome:
        db = self.session_factory()
        try:
            return self._process(db, job)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _process(self, db: Session, job: ProcessingJob) -> ProcessingOutcome:
        asset = db.get(Asset, job.asset_id)
        if asset is None:
            logger.warning(f"Job {job.job_id}: asset {job.asset_id} no longer exists")
            return ProcessingOutcome(job.asset_id, JobStatus.SKIPPED, error="Asset not found")

        if asset.is_archived or asset.processing_status in SETTLED_STATUSES:
            logger.info(f"Job {job.job_id}: asset {asset.id} is {asset.processing_status}, skipping")
            return ProcessingOutcome(asset.id, JobStatus.SKIPPED)

        if asset.processing_status == ProcessingStatus.PENDING:
            set_processing_status(asset, ProcessingStatus.PROCESSING)
            db.commit()

        logger.info(f"Job {job.job_id}: processing {asset.type} asset {asset.id}")
        gateway = self.gateway_factory(db, asset.tenant_id)

        if needs_placeholder(asset.type, asset.mime_type):
            if not gateway.complete_upload(asset.file_key):
                return self._fail(db, asset, "Original upload not found in storage")
            rendered = self.placeholder_service.render(asset.type, asset.mime_type, asset.original_filename)
        else:
            try:
                original = gateway.fetch(asset.file_key)
            except FileNotFoundError:
                return self._fail(db, asset, "Original upload not found in storage")

            try:
                rendered = self._render(asset, original)
            except MediaProcessingError as e:
                return self._fail(db, asset, str(e))

        variant_keys = generate_variant_keys(asset.file_key)
        stored = {}
        for variant in rendered:
            key = replace_extension(variant_keys[variant.variant_type], variant.extension)
            gateway.put_variant(key, variant.content, variant.mime_type)
            self._upsert_variant(db, asset, variant, key)
            stored[variant.variant_type] = key

        asset.thumbnail_key = stored.get(VariantType.THUMBNAIL)
        asset.preview_key = stored.get(VariantType.PREVIEW)
        set_processing_status(asset, ProcessingStatus.COMPLETED)
        self.sink.log(
            db,
            AssetProcessed(
                tenant_id=asset.tenant_id,
                user_id=asset.uploaded_by_id,
                asset_id=asset.id,
                variants=sorted(stored),
            ),
        )
        db.commit()

        logger.info(f"Job {job.job_id}: asset {asset.id} completed with {len(stored)} variants")
        return ProcessingOutcome(asset.id, JobStatus.COMPLETED, variants=sorted(stored))

    def _render(self, asset: Asset, original: bytes) -> List[RenderedVariant]:
        if asset.type == AssetType.IMAGE:
            info, variants = self.image_service.render(original)
            asset.width, asset.height = info.width, info.height
            asset.format = info.format or asset.format
            return variants

        info, variants = self.video_service.render(original, asset.format or "mp4")
        asset.width, asset.height, asset.duration = info.width, info.height, info.duration
        return variants

    @staticmethod
    def _upsert_variant(db: Session, asset: Asset, variant: RenderedVariant, key: str) -> AssetVariant:
        row = (
            db.query(AssetVariant)
            .filter(AssetVariant.asset_id == asset.id, AssetVariant.variant_type == variant.variant_type)
            .first()
        )
        if row is None:
            row = AssetVariant(asset_id=asset.id, variant_type=variant.variant_type)
            db.add(row)

        row.file_key = key
        row.mime_type = variant.mime_type
        row.file_size = len(variant.content)
        row.width = variant.width
        row.height = variant.height
        return row

    def _fail(self, db: Session, asset: Asset, error: str) -> ProcessingOutcome:
        logger.error(f"Processing failed for asset {asset.id}: {error}")
        set_processing_status(asset, ProcessingStatus.FAILED, error=error)
        self.sink.log(
            db,
            AssetProcessingFailed(
                tenant_id=asset.tenant_id,
                user_id=asset.uploaded_by_id,
                asset_id=asset.id,
                asset_title=asset.title,
                error=error,
            ),
        )
        db.commit()
        return ProcessingOutcome(asset.id, JobStatus.FAILED, error=error)
