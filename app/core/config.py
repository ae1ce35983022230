"""
App Configuration.

This module defines the global application settings using Pydantic Settings.
It loads configuration variables from environment variables and/or a .env file,
ensuring typed and validated settings for the application.

Attributes:
    settings: The global instance of the Settings class, ready to be imported and used.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Settings.

    This class defines the configuration for the application, validating
    environment variables against the specified types.

    Attributes:
        PROJECT_NAME: The name of the project (default: "Try-Merge Bot").
        DATABASE_URL: The connection string for the database.
        GITHUB_TOKEN: Token used for every GitHub REST call.
        GITHUB_WEBHOOK_SECRET: Shared secret for X-Hub-Signature-256 checks.
        BOT_NAME: Mention handle recognised in PR comments (``@bot try``).
        BRANCH_NAMESPACE: Root under which try-branches are created.
    """

    # Core
    PROJECT_NAME: str = "Try-Merge Bot"
    DATABASE_URL: str
    LOG_LEVEL: str = "INFO"

    # GitHub
    GITHUB_TOKEN: str
    GITHUB_WEBHOOK_SECRET: str
    GITHUB_API_URL: str = "https://api.github.com"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Commands / branches
    BOT_NAME: str = "bot"
    BRANCH_NAMESPACE: str = "automation/bot"

    # Status polling
    STATUS_POLL_INITIAL_DELAY_SECONDS: float = Field(default=5.0, ge=0)
    STATUS_POLL_INTERVAL_SECONDS: float = Field(default=10.0, gt=0)
    STATUS_POLL_BACKOFF_FACTOR: float = Field(default=2.0, ge=1)
    STATUS_POLL_MAX_INTERVAL_SECONDS: float = Field(default=60.0, gt=0)
    STATUS_POLL_TIMEOUT_SECONDS: float = Field(default=1800.0, gt=0)

    # Orchestration
    TRY_MERGE_TIMEOUT_SECONDS: float = 3600.0
    REPORT_RESULTS: bool = True
    RECONCILE_STALE_JOBS: bool = True
    SHUTDOWN_GRACE_SECONDS: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_empty=True, extra="ignore"
    )


settings = Settings()
