"""Application configuration — reads from environment variables and a .env file."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server settings with env var support."""

    prompts_dir: str = "./prompts"
    generate_rule_path: str = "./generate_rule.txt"
    default_addr: str = "127.0.0.1:8888"
    server_name: str = "mcp-prompt-server"
    server_version: str = "0.1.0"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
