"""Application configuration read from environment variables."""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes")


def _env_list(name: str) -> List[str]:
    """Comma separated, trimmed and lower-cased; blanks dropped."""
    return [item.strip().lower() for item in os.getenv(name, "").split(",") if item.strip()]


@dataclass
class PaginationSettings:
    default_page_size: int = 20
    # Can only lower the hard cap of 100 applied by request validation
    max_page_size: int = 100


@dataclass
class HierarchySettings:
    # Longest management chain walked before the data is treated as corrupt
    max_depth: int = 100


@dataclass
class CustomFieldSettings:
    """Shape limits for the free-form ``custom_fields`` map on employee payloads."""

    max_fields: int = 50
    max_field_name_length: int = 50
    max_value_length: int = 500
    max_list_length: int = 10
    max_list_item_length: int = 100


@dataclass
class Settings:
    """Directory settings; database connection settings live in ``DatabaseConfig``."""

    app_name: str = "Employee Directory API"
    app_version: str = "1.0.0"
    debug: bool = False

    pagination: PaginationSettings = field(default_factory=PaginationSettings)
    hierarchy: HierarchySettings = field(default_factory=HierarchySettings)
    custom_fields: CustomFieldSettings = field(default_factory=CustomFieldSettings)

    # Corporate email domain allow-list (empty allows any domain)
    allowed_email_domains: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            app_version=os.getenv("APP_VERSION", cls.app_version),
            debug=_env_bool("DEBUG"),
            pagination=PaginationSettings(
                default_page_size=_env_int("PAGINATION_DEFAULT_SIZE", 20),
                max_page_size=_env_int("PAGINATION_MAX_SIZE", 100),
            ),
            hierarchy=HierarchySettings(
                max_depth=_env_int("HIERARCHY_MAX_DEPTH", 100),
            ),
            custom_fields=CustomFieldSettings(
                max_fields=_env_int("CUSTOM_FIELDS_MAX_FIELDS", 50),
                max_value_length=_env_int("CUSTOM_FIELDS_MAX_VALUE_LENGTH", 500),
            ),
            allowed_email_domains=_env_list("ALLOWED_EMAIL_DOMAINS"),
        )


_settings: Optional[Settings] = None


@lru_cache()
def get_settings() -> Settings:
    """Settings built once from the environment and then cached."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
    get_settings.cache_clear()
