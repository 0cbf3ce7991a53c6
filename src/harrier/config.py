from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Harrier"
    app_env: str = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/harrier.db"
    data_dir: Path = Path("./data")
    artifact_dir: Path = Path("./data/artifacts")

    browser_headless: bool = True
    browser_channel: str = ""
    browser_executable_path: str = ""
    browser_viewport_width: int = 1280
    browser_viewport_height: int = 900
    browser_nav_timeout_sec: int = 30
    browser_selector_timeout_sec: int = 10
    browser_action_timeout_sec: int = 20
    browser_form_settle_ms: int = 2000
    browser_submit_settle_ms: int = 3000

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_vision: str = "gpt-4o"
    openai_timeout_sec: int = 60

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model_vision: str = "llava:13b"
    local_llm_timeout_sec: int = 90

    llm_router_vision_provider: str = "openai"

    proxy_enabled: bool = True
    asocks_api_key: str = ""
    asocks_base_url: str = "https://api.asocks.com/v2"
    proxy_country: str = "US"
    proxy_label: str = "job-automation"
    proxy_request_timeout_sec: int = 20
    proxy_failure_threshold: int = 3
    proxy_max_pool_size: int = 5

    retry_ceiling: int = 3
    retry_base_delay_min: int = 30
    retry_max_delay_min: int = 1440
    retry_batch_size: int = 10
    retry_sweep_interval_sec: int = 1800

    min_filled_fields: int = 5
    submit_when_no_fields: bool = True
    credits_per_application: int = 1
    resume_download_timeout_sec: int = 30
    save_screenshots: bool = True

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("llm_router_vision_provider")
    @classmethod
    def validate_vision_provider(cls, value: str) -> str:
        if value not in {"openai", "local"}:
            raise ValueError("llm_router_vision_provider must be 'openai' or 'local'")
        return value

    @field_validator("retry_ceiling", "proxy_failure_threshold", "proxy_max_pool_size", "retry_batch_size")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be at least 1")
        return value

    @property
    def nav_timeout_ms(self) -> int:
        return self.browser_nav_timeout_sec * 1000

    @property
    def selector_timeout_ms(self) -> int:
        return self.browser_selector_timeout_sec * 1000

    @property
    def action_timeout_ms(self) -> int:
        return self.browser_action_timeout_sec * 1000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
