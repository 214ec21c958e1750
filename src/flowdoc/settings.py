"""Standalone flowdoc settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./flowdoc.db"
    api_host: str = "0.0.0.0"
    api_port: int = 8020
    template_dir: str = "./templates"
    default_actor_id: str = "system"
    access_check_workers: int = 8
    layout_spacing_x: int = 400
    layout_spacing_y: int = 300
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "FLOWDOC_"
        extra = "ignore"

    @property
    def template_dir_path(self) -> Path:
        return Path(self.template_dir).expanduser().resolve()


settings = Settings()
