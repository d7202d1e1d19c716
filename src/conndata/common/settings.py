from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Application configuration settings backed by environment variables."""

    connections_config_path: str = Field(
        default="configs/connections.yaml",
        validation_alias="CONNECTIONS_CONFIG",
        description="Path to the YAML file listing connections and their backend configuration."
    )
    job_runs_config_path: str = Field(
        default="configs/job_runs.yaml",
        validation_alias="JOB_RUNS_CONFIG",
        description="Path to the YAML file listing recent runs per job."
    )
    secrets_config_path: str = Field(default="configs/secrets.yaml", validation_alias="SECRETS_CONFIG")

    connection_timeout_sec: int = Field(
        default=5,
        validation_alias="CONNECTION_TIMEOUT_SEC",
        description="Connect timeout applied to every SQL connection opened by an adapter."
    )

    aws_s3_endpoint_url: Optional[str] = Field(
        default=None,
        validation_alias="AWS_S3_ENDPOINT_URL",
        description="Endpoint override for S3-compatible object stores (e.g. MinIO, localstack)."
    )
    s3_list_page_size: Optional[int] = Field(
        default=None,
        validation_alias="S3_LIST_PAGE_SIZE",
        description="MaxKeys for data object listings. None keeps the S3 default of 1000."
    )

    openai_api_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias="OPENAI_API_URL",
        description="Base URL used when an openai connection does not set api_url."
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(
        default=False,
        validation_alias="LOG_JSON",
        description="Emit structured JSON log lines instead of plain text."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def configure_env(self, env: str) -> None:
        """Loads environment-specific variables and reloads settings."""
        if not env:
            return

        load_dotenv(f".env.{env}", override=True)
        new_settings = Settings()
        self.__dict__.update(new_settings.__dict__)


settings = Settings()

# Configure logging during import
from conndata.common.logger import configure_logging
configure_logging(
    level=settings.log_level,
    json_format=settings.log_json
)
