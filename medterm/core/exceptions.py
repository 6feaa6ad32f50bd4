"""Custom exceptions for the medterm engine."""


class MedTermException(Exception):
    """Base exception for all medterm errors."""
    pass


class ConfigurationError(MedTermException):
    """Error in configuration or in the static tables."""
    pass


class UnsupportedLocaleError(ConfigurationError, ValueError):
    """Locale outside the supported set."""

    def __init__(self, locale):
        self.locale = locale
        super().__init__(f"Unsupported locale: {locale!r}")


class EntityNotFoundError(ConfigurationError, KeyError):
    """Medical entity key missing from the entity table."""

    def __init__(self, entity_key):
        self.entity_key = entity_key
        super().__init__(f"Medical entity not found: {entity_key}")

    def __str__(self):
        return self.args[0]


class CitationNotFoundError(ConfigurationError, KeyError):
    """Citation key missing from the citation table."""

    def __init__(self, citation_key):
        self.citation_key = citation_key
        super().__init__(f"Citation not found: {citation_key}")

    def __str__(self):
        return self.args[0]
