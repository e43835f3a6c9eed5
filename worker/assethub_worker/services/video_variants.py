"""Video inspection and variant rendering with ffprobe/ffmpeg."""

import json
import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from assethub.schemas.asset import VariantType
from assethub_worker.services.errors import MediaProcessingError, MediaToolError
from assethub_worker.services.image_variants import RenderedVariant

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = 300
PREVIEW_HEIGHT = 720


@dataclass
class VideoInfo:
    width: int
    height: int
    duration: float
    codec: Optional[str] = None


class VideoVariantService:
    """Extracts a thumbnail frame and a short 720p preview from a video."""

    def __init__(
        self,
        ffprobe_binary: str = "ffprobe",
        ffmpeg_binary: str = "ffmpeg",
        preview_seconds: int = 30,
        timeout_seconds: int = 300,
    ):
        self.ffprobe_binary = ffprobe_binary
        self.ffmpeg_binary = ffmpeg_binary
        self.preview_seconds = preview_seconds
        self.timeout_seconds = timeout_seconds

    def _run(self, cmd: List[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=self.timeout_seconds)
        except FileNotFoundError as e:
            raise MediaToolError(f"{cmd[0]} is not installed: {e}")
        except subprocess.TimeoutExpired as e:
            raise MediaToolError(f"{cmd[0]} timed out after {self.timeout_seconds}s: {e}")
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip().splitlines()
            reason = stderr[-1] if stderr else f"exit code {e.returncode}"
            raise MediaProcessingError(f"{Path(cmd[0]).name} failed: {reason}")

    def inspect(self, path: Path) -> VideoInfo:
        result = self._run(
            [
                self.ffprobe_binary,
                "-v", "error",
                "-print_format", "json",
                "-show_format",
                "-show_streams",
                str(path),
            ]
        )
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            raise MediaProcessingError("ffprobe returned unreadable output")

        stream = next((s for s in data.get("streams", []) if s.get("codec_type") == "video"), None)
        if stream is None:
            raise MediaProcessingError("No video stream found")

        duration = stream.get("duration") or data.get("format", {}).get("duration")
        try:
            return VideoInfo(
                width=int(stream["width"]),
                height=int(stream["height"]),
                duration=float(duration or 0),
                codec=stream.get("codec_name"),
            )
        except (KeyError, TypeError, ValueError):
            raise MediaProcessingError("Video stream has no usable dimensions")

    def render(self, content: bytes, extension: str = "mp4") -> Tuple[VideoInfo, List[RenderedVariant]]:
        with tempfile.TemporaryDirectory(prefix="assethub-video-") as workdir:
            source = Path(workdir) / f"source.{extension or 'mp4'}"
            source.write_bytes(content)

            info = self.inspect(source)

            thumbnail = Path(workdir) / "thumbnail.jpg"
            self._run(
                [
                    self.ffmpeg_binary, "-y",
                    "-ss", f"{info.duration * 0.1:.3f}",
                    "-i", str(source),
                    "-frames:v", "1",
                    "-vf",
                    f"scale={THUMBNAIL_SIZE}:{THUMBNAIL_SIZE}:force_original_aspect_ratio=increase,"
                    f"crop={THUMBNAIL_SIZE}:{THUMBNAIL_SIZE}",
                    str(thumbnail),
                ]
            )

            preview = Path(workdir) / "preview.mp4"
            self._run(
                [
                    self.ffmpeg_binary, "-y",
                    "-i", str(source),
                    "-t", str(self.preview_seconds),
                    "-vf", f"scale=-2:{PREVIEW_HEIGHT}",
                    "-c:v", "libx264",
                    "-preset", "fast",
                    "-crf", "28",
                    "-c:a", "aac",
                    "-movflags", "+faststart",
                    str(preview),
                ]
            )

            preview_width = round(info.width * PREVIEW_HEIGHT / info.height / 2) * 2 if info.height else None
            variants = [
                RenderedVariant(
                    variant_type=VariantType.THUMBNAIL,
                    content=thumbnail.read_bytes(),
                    mime_type="image/jpeg",
                    extension="jpg",
                    width=THUMBNAIL_SIZE,
                    height=THUMBNAIL_SIZE,
                ),
                RenderedVariant(
                    variant_type=VariantType.PREVIEW,
                    content=preview.read_bytes(),
                    mime_type="video/mp4",
                    extension="mp4",
                    width=preview_width,
                    height=PREVIEW_HEIGHT,
                ),
            ]

        logger.debug(f"Rendered video variants ({info.width}x{info.height}, {info.duration:.1f}s)")
        return info, variants
