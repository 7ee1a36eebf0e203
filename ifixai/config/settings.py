"""Runtime settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="IFIXAI_", env_file="config/.env", extra="ignore")

    app_name: str = "ifixai"
    env: str = "dev"
    log_level: str = "info"
    # empty disables the rotating file handler
    log_dir: str = "logs"
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 10
    host: str = "127.0.0.1"
    port: int = 4000
    cors_allow_origins: str = "*"
    max_request_body_bytes: int = 50 * 1024 * 1024

    sqlite_db_path: str = "data/ifixai.db"
    # populate agent_models from config/default_models.yaml when the table is empty
    seed_default_models: bool = True

    upstream_timeout_seconds: float = 120.0
    upstream_max_connections: int = 100
    upstream_max_keepalive_connections: int = 20

    gemini_model: str = "gemini-2.0-flash-exp"
    claude_model: str = "claude-3-5-sonnet-20241022"
    gpt_model: str = "gpt-4o"
    qwen_model: str = "qwen-code"
    qwen_api_endpoint: str = "https://api.openai.com/v1/chat/completions"
    qwen_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=4096, gt=0)

    # claude/qwen cannot take images; False drops them silently, True rejects the request
    strict_attachments: bool = False
    stream_chunk_delay_seconds: float = Field(default=0.05, ge=0.0)


settings = Settings()
