"""
Runtime settings, read from the environment.

`load_settings()` first loads `.env` from the project root so GEMINI_API_KEY
and friends are available without a manual `export`.
"""
from __future__ import annotations

import os
from typing import List, Optional

from dotenv import load_dotenv

_ENV_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "../..", ".env"))

IMAGE_MODEL_NAME = "gemini-2.5-flash-image"
TEXT_MODEL_NAME = "gemini-2.5-flash"


class Settings:
    def __init__(
        self,
        api_key: Optional[str] = None,
        image_model: str = IMAGE_MODEL_NAME,
        text_model: str = TEXT_MODEL_NAME,
        host: str = "0.0.0.0",
        port: int = 3001,
        log_level: str = "INFO",
        cors_origins: Optional[List[str]] = None,
    ) -> None:
        self.api_key = api_key
        self.image_model = image_model
        self.text_model = text_model
        self.host = host
        self.port = port
        self.log_level = log_level.upper()
        self.cors_origins = cors_origins if cors_origins is not None else ["*"]

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("BANANAFLOW_CORS_ORIGINS", "*")
        return cls(
            # API_KEY is what the browser build used
            api_key=os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY"),
            image_model=os.environ.get("BANANAFLOW_IMAGE_MODEL", IMAGE_MODEL_NAME),
            text_model=os.environ.get("BANANAFLOW_TEXT_MODEL", TEXT_MODEL_NAME),
            host=os.environ.get("BANANAFLOW_HOST", "0.0.0.0"),
            port=int(os.environ.get("BANANAFLOW_PORT", "3001")),
            log_level=os.environ.get("BANANAFLOW_LOG_LEVEL", "INFO"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


def load_settings(env_path: str = _ENV_PATH) -> Settings:
    load_dotenv(env_path)
    return Settings.from_env()
