from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "essay_review"
    create_tables: bool = Field(
        default=True,
        description="Create missing tables on application startup.",
    )
    serverless: bool = Field(
        default=False,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration"""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    bucket_name: str = "essay-review-media"
    key_prefix: str = "submissions"
    signed_url_expires_hours: int = Field(default=24, ge=1, le=168)

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class BedrockConfig(BaseSettings):
    """Amazon Bedrock configuration."""

    region: str = Field(
        default="us-east-1",
        validation_alias="BEDROCK_REGION",
    )
    model_id: str = Field(
        default="amazon.nova-micro-v1:0",
        validation_alias="BEDROCK_MODEL_ID",
    )
    max_tokens: int = Field(
        default=1024,
        validation_alias="BEDROCK_MAX_TOKENS",
        ge=1,
        le=4096,
    )
    temperature: float = Field(
        default=0.0,
        validation_alias="BEDROCK_TEMPERATURE",
        ge=0.0,
        le=1.0,
    )
    top_p: float = Field(
        default=0.9,
        validation_alias="BEDROCK_TOP_P",
        ge=0.0,
        le=1.0,
    )
    read_timeout_seconds: int = Field(
        default=60,
        validation_alias="BEDROCK_READ_TIMEOUT_SECONDS",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class EvaluationConfig(BaseSettings):
    """Retry policy for the AI evaluation stage."""

    max_retries: int = Field(default=3, ge=1, le=10)
    backoff_initial_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Zero disables the delay between attempts.",
    )
    backoff_max_seconds: float = Field(default=30.0, ge=0.0)

    model_config = SettingsConfigDict(
        env_prefix="EVALUATION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class MediaConfig(BaseSettings):
    """Video transcoding configuration."""

    temp_directory: str = "./temp"
    max_file_size_mb: int = Field(default=50, ge=1)
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    timeout_seconds: int = Field(default=300, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="MEDIA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class WorkerConfig(BaseSettings):
    """Background revision worker configuration."""

    enabled: bool = False
    concurrency: int = Field(default=3, ge=1)
    sweep_interval_seconds: int = Field(default=3600, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="WORKER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Essay Review Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/review_pipeline.log"

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # S3
    s3: S3Config = Field(default_factory=S3Config)

    # Bedrock
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)

    # Evaluation retries
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)

    # Transcoding
    media: MediaConfig = Field(default_factory=MediaConfig)

    # Revision worker
    worker: WorkerConfig = Field(default_factory=WorkerConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
