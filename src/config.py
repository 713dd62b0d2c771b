"""Application configuration using pydantic-settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Ollama Configuration
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "qwen3:14b"
    ollama_temperature: float = 0.0
    ollama_num_ctx: int = 32768
    # Every generation call is bounded; a hung backend fails the turn
    llm_timeout_seconds: float = 90.0
    llm_max_transport_retries: int = 3

    # ClickHouse Configuration (HTTP interface)
    clickhouse_url: str = "http://localhost:8123"
    clickhouse_database: str = "linkedin"
    clickhouse_user: str = "default"
    clickhouse_password: str = ""
    clickhouse_table: str = "linkedin.people"
    query_timeout_seconds: float = 60.0

    # Conversational search
    dialogue_window_size: int = 8
    summarize_after_turns: int = 6
    sample_limit: int = 7
    export_limit: int = 2000
    senior_feedback_threshold: int = 2

    # Logging
    log_level: str = "INFO"

    # Debug state dumps (writes markdown snapshots per turn)
    enable_state_dump: bool = False
    state_dump_dir: str = "./debugging"

    @property
    def state_dump_path(self) -> Path:
        """Return resolved state dump directory."""
        return Path(self.state_dump_dir).resolve()


# Singleton instance
settings = Settings()
