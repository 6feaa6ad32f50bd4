"""
medterm Structured Data
Builds schema.org MedicalWebPage JSON-LD for condition pages
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .cache import ResultCache, make_cache_key
from .config import SchemaConfig, validate_locale
from .entities import get_citation, get_entity, get_medical_condition_schema

logger = logging.getLogger(__name__)

LANGUAGE_TAGS = {
    "en": "en-US",
    "zh": "zh-CN",
}


@dataclass
class MedicalWebPageOptions:
    """Inputs of a MedicalWebPage schema"""
    title: str
    description: str
    condition: str
    citations: List[str] = field(default_factory=list)
    locale: str = "en"
    url: Optional[str] = None
    last_reviewed: Optional[str] = None
    reviewed_by: Optional[str] = None

    def cache_parts(self) -> tuple:
        return (
            "medical-webpage",
            self.title,
            self.description,
            self.condition,
            sorted(set(self.citations)),
            self.locale,
            self.url,
            self.last_reviewed,
            self.reviewed_by,
        )


class SchemaGenerator:
    """
    Generates MedicalWebPage structured data through a result cache
    """

    def __init__(self, cache: ResultCache, config: Optional[SchemaConfig] = None):
        self.cache = cache
        self.config = config or SchemaConfig()

    def generate_medical_webpage_schema(self, options: MedicalWebPageOptions) -> Dict[str, Any]:
        """
        Get the MedicalWebPage schema for a page

        Args:
            options: Page title, description, condition key, citation keys, locale, url, review data

        Returns:
            JSON-LD ready dictionary owned by the caller

        Raises:
            EntityNotFoundError: Unknown condition key
            CitationNotFoundError: Unknown citation key
        """
        validate_locale(options.locale)
        key = make_cache_key(*options.cache_parts())
        return self.cache.get_or_compute(key, lambda: self._build_webpage_schema(options))

    def _build_webpage_schema(self, options: MedicalWebPageOptions) -> Dict[str, Any]:
        # Resolve keys first so unknown ones fail before anything is built
        get_entity(options.condition)
        citations = [get_citation(key) for key in sorted(set(options.citations))]

        logger.debug(f"Building MedicalWebPage schema for {options.condition} ({options.locale})")

        schema: Dict[str, Any] = {
            "@context": self.config.context,
            "@type": "MedicalWebPage",
            "name": options.title,
            "description": options.description,
            "inLanguage": LANGUAGE_TAGS[options.locale],
        }

        if options.url:
            schema["url"] = options.url

        schema["audience"] = {
            "@type": "MedicalAudience",
            "audienceType": self.config.audience_type,
        }
        schema["about"] = get_medical_condition_schema(options.condition, options.locale)

        if citations:
            schema["citation"] = [citation.to_schema() for citation in citations]

        schema["reviewedBy"] = {
            "@type": self.config.reviewer_type,
            "name": options.reviewed_by or self.config.reviewer_name,
        }

        if options.last_reviewed:
            schema["lastReviewed"] = options.last_reviewed

        schema["mainEntity"] = get_medical_condition_schema(options.condition, options.locale)

        return schema

    def generate_medical_condition_schema(self, entity_key: str, locale: str = "en") -> Dict[str, Any]:
        """Standalone MedicalCondition schema with @context"""
        return {
            "@context": self.config.context,
            **get_medical_condition_schema(entity_key, locale),
        }
