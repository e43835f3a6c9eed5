"""Placeholder thumbnails for assets without a raster source."""

import io
from dataclasses import dataclass
from typing import List, Tuple

from PIL import Image, ImageDraw, ImageFont

from assethub.schemas.asset import AssetType, VariantType
from assethub_worker.services.image_variants import RenderedVariant

PLACEHOLDER_SIZE = (400, 225)

# Image types Pillow cannot rasterize
VECTOR_MIME_TYPES = ("image/svg+xml",)

Color = Tuple[int, int, int]


@dataclass(frozen=True)
class PlaceholderStyle:
    label: str
    background: Color
    card: Color
    accent: Color
    text: Color


STYLES = {
    AssetType.IMAGE: PlaceholderStyle("VECTOR IMAGE", (240, 244, 248), (255, 255, 255), (142, 68, 173), (51, 51, 51)),
    AssetType.DOCUMENT: PlaceholderStyle("DOCUMENT", (245, 245, 245), (255, 255, 255), (66, 133, 244), (51, 51, 51)),
    AssetType.AUDIO: PlaceholderStyle("AUDIO", (30, 30, 46), (42, 42, 62), (255, 107, 107), (255, 255, 255)),
    AssetType.MODEL_3D: PlaceholderStyle("3D MODEL", (44, 62, 80), (52, 73, 94), (52, 152, 219), (255, 255, 255)),
    AssetType.DESIGN: PlaceholderStyle("DESIGN", (250, 243, 232), (255, 255, 255), (230, 126, 34), (51, 51, 51)),
}
GENERIC_STYLE = PlaceholderStyle("FILE", (236, 240, 241), (255, 255, 255), (127, 140, 141), (51, 51, 51))

DOCUMENT_COLORS = {
    "application/pdf": (220, 53, 69),
    "application/msword": (43, 87, 154),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (43, 87, 154),
    "application/vnd.ms-excel": (33, 115, 70),
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": (33, 115, 70),
    "application/vnd.ms-powerpoint": (209, 71, 38),
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": (209, 71, 38),
}


def needs_placeholder(asset_type: str, mime_type: str) -> bool:
    if asset_type == AssetType.IMAGE:
        return mime_type in VECTOR_MIME_TYPES
    return asset_type != AssetType.VIDEO


def truncate_filename(filename: str, max_length: int) -> str:
    """Shorten a filename, keeping its extension."""
    if len(filename) <= max_length:
        return filename
    stem, dot, extension = filename.rpartition(".")
    if not dot or len(extension) >= max_length - 4:
        return filename[: max_length - 3] + "..."
    return stem[: max_length - len(extension) - 4] + "..." + dot + extension


class PlaceholderVariantService:
    """Draws a labelled card as the thumbnail of a non-raster asset."""

    def __init__(self):
        self.font = ImageFont.load_default()

    def _centered_text(self, draw: ImageDraw.ImageDraw, y: int, text: str, fill: Color) -> None:
        left, _, right, _ = draw.textbbox((0, 0), text, font=self.font)
        x = (PLACEHOLDER_SIZE[0] - (right - left)) / 2
        draw.text((x, y), text, font=self.font, fill=fill)

    def render(self, asset_type: str, mime_type: str, filename: str) -> List[RenderedVariant]:
        style = STYLES.get(asset_type, GENERIC_STYLE)
        accent = DOCUMENT_COLORS.get(mime_type, style.accent) if asset_type == AssetType.DOCUMENT else style.accent
        extension = filename.rpartition(".")[2].upper() if "." in filename else style.label.split()[0]

        image = Image.new("RGB", PLACEHOLDER_SIZE, style.background)
        draw = ImageDraw.Draw(image)
        draw.rounded_rectangle((10, 10, 389, 214), radius=8, fill=style.card)
        draw.rounded_rectangle((160, 40, 240, 120), radius=6, fill=accent)
        self._centered_text(draw, 74, extension[:8], (255, 255, 255))
        self._centered_text(draw, 150, truncate_filename(filename, 40), style.text)
        self._centered_text(draw, 172, style.label, style.text)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return [
            RenderedVariant(
                variant_type=VariantType.THUMBNAIL,
                content=buffer.getvalue(),
                mime_type="image/png",
                extension="png",
                width=PLACEHOLDER_SIZE[0],
                height=PLACEHOLDER_SIZE[1],
            )
        ]
