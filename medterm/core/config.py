"""
medterm Central Configuration
Contains cache sizes, TTLs, schema defaults and other tunable parameters
"""

from dataclasses import dataclass, asdict, replace
from typing import Optional
import os

import yaml

from .exceptions import ConfigurationError, UnsupportedLocaleError

SUPPORTED_LOCALES = ("en", "zh")


@dataclass
class CacheConfig:
    """Configuration for the result caches"""

    # Text annotation cache
    annotation_ttl_seconds: float = 5 * 60
    annotation_max_entries: int = 1000

    # Structured-data schema cache
    schema_ttl_seconds: float = 10 * 60
    schema_max_entries: int = 500

    # Occupancy ratio that triggers an expired-entry sweep before insertion
    sweep_threshold: float = 0.8

    def __post_init__(self):
        """Validate numeric limits"""
        for name in ("annotation_ttl_seconds", "schema_ttl_seconds"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        for name in ("annotation_max_entries", "schema_max_entries"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1")
        if not 0 < self.sweep_threshold <= 1:
            raise ConfigurationError("sweep_threshold must be in (0, 1]")


@dataclass
class SchemaConfig:
    """Defaults for generated MedicalWebPage structured data"""

    context: str = "https://schema.org"
    audience_type: str = "Patient"
    reviewer_name: str = "PeriodHub Medical Review Team"
    reviewer_type: str = "Organization"


class MedTermConfig:
    """Main configuration class combining all settings"""

    def __init__(self,
                 cache: Optional[CacheConfig] = None,
                 schema: Optional[SchemaConfig] = None):
        """Initialize with optional custom configurations"""
        # Env overrides apply to a copy, never to the caller's CacheConfig
        self.cache = replace(cache) if cache is not None else CacheConfig()
        self.schema = schema or SchemaConfig()
        self.default_locale = "en"

        # Logging
        self.log_level = "INFO"
        self.debug = False

        # Override with environment variables if present
        self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration overrides from environment variables"""
        # Cache overrides
        if os.getenv("MEDTERM_ANNOTATION_CACHE_TTL"):
            self.cache.annotation_ttl_seconds = self._env_number("MEDTERM_ANNOTATION_CACHE_TTL", float)

        if os.getenv("MEDTERM_ANNOTATION_CACHE_SIZE"):
            self.cache.annotation_max_entries = self._env_number("MEDTERM_ANNOTATION_CACHE_SIZE", int)

        if os.getenv("MEDTERM_SCHEMA_CACHE_TTL"):
            self.cache.schema_ttl_seconds = self._env_number("MEDTERM_SCHEMA_CACHE_TTL", float)

        if os.getenv("MEDTERM_SCHEMA_CACHE_SIZE"):
            self.cache.schema_max_entries = self._env_number("MEDTERM_SCHEMA_CACHE_SIZE", int)

        # Re-run validation after overrides
        self.cache.__post_init__()

        if os.getenv("MEDTERM_DEFAULT_LOCALE"):
            self.default_locale = os.getenv("MEDTERM_DEFAULT_LOCALE")

        # Debug override
        if os.getenv("MEDTERM_DEBUG", "").lower() in ("true", "1", "yes"):
            self.debug = True
            self.log_level = "DEBUG"

        self.validate()

    @staticmethod
    def _env_number(name: str, cast):
        raw = os.getenv(name)
        try:
            return cast(raw)
        except ValueError:
            raise ConfigurationError(f"Invalid value for {name}: {raw!r}")

    def validate(self):
        """Check cross-field constraints"""
        if self.default_locale not in SUPPORTED_LOCALES:
            raise ConfigurationError(
                f"default_locale must be one of {SUPPORTED_LOCALES}, got {self.default_locale!r}"
            )

    @classmethod
    def load_from_file(cls, config_path: str) -> 'MedTermConfig':
        """Load configuration from YAML file"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

            cache = CacheConfig(**config_data.get('cache', {}))
            schema = SchemaConfig(**config_data.get('schema', {}))

            config = cls(cache=cache, schema=schema)

            # Override other settings
            for key, value in config_data.items():
                if key not in ['cache', 'schema'] and hasattr(config, key):
                    setattr(config, key, value)

            config.validate()
            return config

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e

    def to_dict(self) -> dict:
        return {
            'cache': asdict(self.cache),
            'schema': asdict(self.schema),
            'default_locale': self.default_locale,
            'log_level': self.log_level,
            'debug': self.debug,
        }

    def save_to_file(self, config_path: str):
        """Save configuration to YAML file"""
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2, allow_unicode=True)


def validate_locale(locale: str) -> str:
    """Return the locale if supported, raise UnsupportedLocaleError otherwise"""
    if locale not in SUPPORTED_LOCALES:
        raise UnsupportedLocaleError(locale)
    return locale


# Default global configuration instance
default_config = MedTermConfig()
