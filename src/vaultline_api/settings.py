from __future__ import annotations
import tempfile
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # Remote vault and the credential injected into its URL
    git_repo: str = Field(default="", alias="VAULTLINE_GIT_REPO")
    git_token: str = Field(default="", alias="VAULTLINE_GIT_TOKEN")

    # LINE channel secret used for x-line-signature verification
    channel_secret: str = Field(default="", alias="VAULTLINE_CHANNEL_SECRET")

    timezone: str = Field(default="Asia/Tokyo", alias="VAULTLINE_TZ")

    bot_name: str = Field(default="LINE Bot", alias="VAULTLINE_BOT_NAME")
    bot_email: str = Field(default="bot@example.com", alias="VAULTLINE_BOT_EMAIL")

    # timeline | topic
    target_kind: str = Field(default="timeline", alias="VAULTLINE_TARGET_KIND")
    # content | marker | strict
    dedup_policy: str = Field(default="strict", alias="VAULTLINE_DEDUP_POLICY")

    diary_dir: str = Field(default="01_diary", alias="VAULTLINE_DIARY_DIR")
    topic_file: str = Field(
        default="02_log/running-log.md", alias="VAULTLINE_TOPIC_FILE"
    )
    timeline_header: str = Field(
        default="## Timeline\n", alias="VAULTLINE_TIMELINE_HEADER"
    )
    topic_header: str = Field(default="## Log\n", alias="VAULTLINE_TOPIC_HEADER")

    split_segments: bool = Field(default=True, alias="VAULTLINE_SPLIT_SEGMENTS")

    # Parent directory for per-invocation working copies
    workdir_base: str = Field(
        default_factory=tempfile.gettempdir, alias="VAULTLINE_WORKDIR_BASE"
    )

    max_push_attempts: int = Field(default=3, alias="VAULTLINE_MAX_PUSH_ATTEMPTS")
    retry_delay_seconds: float = Field(
        default=1.0, alias="VAULTLINE_RETRY_DELAY_SECONDS"
    )
    jitter_min_seconds: float = Field(default=1.0, alias="VAULTLINE_JITTER_MIN_SECONDS")
    jitter_max_seconds: float = Field(default=6.0, alias="VAULTLINE_JITTER_MAX_SECONDS")

    # Global request size limit enforced by middleware (bytes)
    max_request_bytes: int = Field(default=262144, alias="VAULTLINE_MAX_REQUEST_BYTES")

    log_level: str = Field(default="INFO", alias="VAULTLINE_LOG_LEVEL")

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True


settings = Settings()  # load at import
