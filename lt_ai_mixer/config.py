from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LanguageTool upstream
    languagetool_url: str = ""

    # OpenAI-compatible completion endpoint
    openai_url: str = ""
    openai_model: str = ""
    openai_token: str = ""
    openai_prompt: str = ""  # prepended to the user text, separated by a blank line

    # Outbound HTTP (applies to both clients, no per-phase timeouts)
    http_timeout_s: float = 60.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Logging
    log_level: str = "warn"
    log_json: bool = False
    log_dir: str | None = None
    log_max_bytes: int = 10_485_760  # 10MB
    log_backup_count: int = 5

    @field_validator("languagetool_url", "openai_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
