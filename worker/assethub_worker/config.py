"""Worker configuration."""

from assethub.config import Settings


class WorkerSettings(Settings):
    """Worker settings: API settings plus the worker pool knobs."""

    worker_concurrency: int = 5
    job_soft_time_limit_seconds: int = 600
    job_hard_time_limit_seconds: int = 900
    transient_retry_limit: int = 3
    transient_retry_backoff_seconds: int = 2
    asset_lock_ttl_seconds: int = 960
    lock_retry_seconds: int = 15
    supervisor_interval_seconds: int = 300

    ffprobe_binary: str = "ffprobe"
    ffmpeg_binary: str = "ffmpeg"
    video_preview_seconds: int = 30


settings = WorkerSettings()
