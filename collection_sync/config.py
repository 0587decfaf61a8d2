"""Library Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every field can be set through a COLLECTION_SYNC_* environment variable or .env
    - get_settings() is cached (lru_cache) — single instance per process
    - default_sort tokens are validated into SortDescriptor objects on access

Design Decisions:
    - default_sort accepts a comma-separated string ("-pop,name") or a JSON list
"""

import json
from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from collection_sync.core.domain_types import SortDescriptor


class Settings(BaseSettings):
    """collection-sync settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COLLECTION_SYNC_", env_file=".env",
        case_sensitive=False, extra="ignore",
    )

    # Transport
    api_base_url: str = "http://localhost:8000/api/v1/"
    request_timeout_seconds: float = 30.0

    # URL resolution
    trailing_slash: bool = True

    # Cache
    default_sort: Annotated[list[str], NoDecode] = []
    serialize_mutations: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("default_sort", mode="before")
    @classmethod
    def split_sort_tokens(cls, v):
        """Accept "-pop,name" as well as ["-pop", "name"]."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                v = json.loads(v)
            else:
                v = v.split(",")
        return [t.strip() for t in v if t and t.strip()]

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    @property
    def sort_descriptors(self) -> list[SortDescriptor]:
        return [SortDescriptor.from_token(t) for t in self.default_sort]


@lru_cache
def get_settings() -> Settings:
    return Settings()
