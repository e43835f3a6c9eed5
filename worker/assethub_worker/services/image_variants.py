"""Image variant rendering with Pillow."""

import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from assethub.schemas.asset import VariantType
from assethub_worker.services.errors import MediaProcessingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariantSpec:
    variant_type: str
    width: int
    height: int
    fit: str  # "cover" crops to the box, "inside" scales down to fit
    format: str
    quality: int

    @property
    def extension(self) -> str:
        return "webp" if self.format == "WEBP" else "jpg"

    @property
    def mime_type(self) -> str:
        return "image/webp" if self.format == "WEBP" else "image/jpeg"


IMAGE_VARIANTS = (
    VariantSpec(VariantType.THUMBNAIL, 400, 225, "cover", "JPEG", 80),
    VariantSpec(VariantType.PREVIEW, 1200, 675, "inside", "JPEG", 85),
    VariantSpec(VariantType.WEB_OPTIMIZED, 1920, 1080, "inside", "WEBP", 85),
    VariantSpec(VariantType.MOBILE, 800, 450, "cover", "JPEG", 80),
)


@dataclass
class RenderedVariant:
    variant_type: str
    content: bytes
    mime_type: str
    extension: str
    width: int
    height: int


@dataclass
class ImageInfo:
    width: int
    height: int
    format: Optional[str]


class ImageVariantService:
    """Renders the fixed set of image variants from an original upload."""

    def __init__(self, specs=IMAGE_VARIANTS):
        self.specs = specs

    def _open(self, content: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(content))
            image.load()
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            raise MediaProcessingError(f"Corrupt or unsupported image: {e}")
        return image

    @staticmethod
    def _flatten(image: Image.Image) -> Image.Image:
        """RGB copy, compositing transparency onto white."""
        if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            return background
        return image.convert("RGB")

    def _resize(self, image: Image.Image, spec: VariantSpec) -> Image.Image:
        if spec.fit == "cover":
            return ImageOps.fit(image, (spec.width, spec.height), Image.Resampling.LANCZOS)
        resized = image.copy()
        resized.thumbnail((spec.width, spec.height), Image.Resampling.LANCZOS)
        return resized

    def render(self, content: bytes) -> Tuple[ImageInfo, List[RenderedVariant]]:
        original = self._open(content)
        image_format = (original.format or "").lower() or None
        image = ImageOps.exif_transpose(original)
        info = ImageInfo(width=image.width, height=image.height, format=image_format)
        base = self._flatten(image)

        variants = []
        for spec in self.specs:
            resized = self._resize(base, spec)
            buffer = io.BytesIO()
            resized.save(buffer, format=spec.format, quality=spec.quality)
            variants.append(
                RenderedVariant(
                    variant_type=spec.variant_type,
                    content=buffer.getvalue(),
                    mime_type=spec.mime_type,
                    extension=spec.extension,
                    width=resized.width,
                    height=resized.height,
                )
            )
            logger.debug(f"Rendered {spec.variant_type} {resized.width}x{resized.height}")

        return info, variants
