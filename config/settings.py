from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── LLM Provider ─────────────────────────────────────────────────────────
    # Options: "openai" (default) or "bedrock"
    llm_provider: str = "openai"

    # ── OpenAI ───────────────────────────────────────────────────────────────
    openai_api_key: str = ""
    openai_model_id: str = "gpt-4o-mini"
    openai_max_tokens: int = 1000
    openai_temperature: float = 0.1
    openai_timeout_seconds: float = 30.0

    # ── AWS Bedrock ──────────────────────────────────────────────────────────
    aws_default_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_profile: str = ""
    bedrock_model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"
    bedrock_max_tokens: int = 1000
    bedrock_temperature: float = 0.1

    # ── Persistence ──────────────────────────────────────────────────────────
    sqlite_db_path: str = "data/completeness.db"
    db_echo: bool = False

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"
    activity_log_path: str = "logs/activity.jsonl"
    llm_log_path: str = "logs/llm_calls.jsonl"

    # ── Metrics ──────────────────────────────────────────────────────────────
    metrics_port: int = 8080

    # ── Completeness analysis ────────────────────────────────────────────────
    aspect_text_limit: int = 3000
    completeness_threshold: int = 80
    analysis_version: str = "v1.0"
    batch_size: int = 5
    batch_delay_seconds: float = 2.0

    # ── Comment templates ────────────────────────────────────────────────────
    templates_path: str = ""
    default_maintainer_name: str = "Maintainer Team"

    # ── Development ──────────────────────────────────────────────────────────
    dry_run: bool = False

    # ── Derived helpers ──────────────────────────────────────────────────────
    @property
    def llm_model_id(self) -> str:
        if self.llm_provider.lower().strip() == "bedrock":
            return self.bedrock_model_id
        return self.openai_model_id

    @property
    def llm_temperature(self) -> float:
        if self.llm_provider.lower().strip() == "bedrock":
            return self.bedrock_temperature
        return self.openai_temperature

    @property
    def llm_max_tokens(self) -> int:
        if self.llm_provider.lower().strip() == "bedrock":
            return self.bedrock_max_tokens
        return self.openai_max_tokens


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
