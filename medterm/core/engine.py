"""
medterm Engine
Owns the term dictionary and the two result caches, and exposes the public operations
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .annotator import TermAnnotator
from .cache import ResultCache, make_cache_key
from .config import MedTermConfig, default_config, validate_locale
from .schema import MedicalWebPageOptions, SchemaGenerator
from .terminology import TermDictionary, get_default_dictionary

logger = logging.getLogger(__name__)


class TerminologyEngine:
    """
    Term standardization, text annotation and schema generation with caching
    """

    def __init__(self,
                 config: Optional[MedTermConfig] = None,
                 dictionary: Optional[TermDictionary] = None,
                 clock=None):
        """
        Initialize the engine

        Args:
            config: Cache and schema settings, defaults to the global config
            dictionary: Term table, defaults to the built-in one
            clock: Optional time source shared by both caches
        """
        self.config = config or default_config
        self.dictionary = dictionary if dictionary is not None else get_default_dictionary()
        self.annotator = TermAnnotator(self.dictionary)

        cache_config = self.config.cache
        clock_kwargs = {"clock": clock} if clock is not None else {}
        self.annotation_cache: ResultCache[str] = ResultCache(
            "text-annotation",
            ttl_seconds=cache_config.annotation_ttl_seconds,
            max_size=cache_config.annotation_max_entries,
            sweep_threshold=cache_config.sweep_threshold,
            **clock_kwargs,
        )
        self.schema_cache: ResultCache[Dict[str, Any]] = ResultCache(
            "schema",
            ttl_seconds=cache_config.schema_ttl_seconds,
            max_size=cache_config.schema_max_entries,
            sweep_threshold=cache_config.sweep_threshold,
            **clock_kwargs,
        )
        self.schema_generator = SchemaGenerator(self.schema_cache, self.config.schema)

    def standardize(self, term: str, locale: str = "en") -> str:
        return self.dictionary.standardize(term, locale)

    def get_synonyms(self, term: str, locale: str = "en") -> List[str]:
        return self.dictionary.get_synonyms(term, locale)

    def terms_equivalent(self, term_a: str, term_b: str) -> bool:
        return self.dictionary.terms_equivalent(term_a, term_b)

    def get_entity_key(self, term: str) -> Optional[str]:
        return self.dictionary.get_entity_key(term)

    def mark_terms(self, text: str, locale: str = "en") -> str:
        """
        Annotate text, consulting the text-annotation cache first

        Args:
            text: Input text
            locale: "en" or "zh"

        Returns:
            Text with each recognized term wrapped in a data-medical-term span
        """
        validate_locale(locale)
        if not text or not text.strip():
            return text

        key = make_cache_key("annotate", locale, text)
        return self.annotation_cache.get_or_compute(key, lambda: self.annotator.annotate(text, locale))

    def extract_terms(self, text: str, locale: str = "en"):
        return self.annotator.extract_terms(text, locale)

    def generate_webpage_schema(self,
                                options: Union[MedicalWebPageOptions, Dict[str, Any], None] = None,
                                **kwargs) -> Dict[str, Any]:
        """Accepts MedicalWebPageOptions, a dict of its fields, or keyword arguments"""
        if options is None:
            options = MedicalWebPageOptions(**kwargs)
        elif isinstance(options, dict):
            options = MedicalWebPageOptions(**{**options, **kwargs})
        return self.schema_generator.generate_medical_webpage_schema(options)

    def generate_condition_schema(self, entity_key: str, locale: str = "en") -> Dict[str, Any]:
        return self.schema_generator.generate_medical_condition_schema(entity_key, locale)

    def clear_caches(self) -> None:
        """Clear compiled patterns and both result caches"""
        self.annotator.reset_compiled_patterns()
        self.annotation_cache.clear()
        self.schema_cache.clear()
        logger.info("Cleared terminology caches")

    def get_cache_stats(self) -> Dict[str, Any]:
        return {
            "regex_cache_size": self.annotator.compiled_locale_count(),
            "text_cache_size": len(self.annotation_cache),
            "schema_cache_size": len(self.schema_cache),
            "text_cache": self.annotation_cache.stats(),
            "schema_cache": self.schema_cache.stats(),
        }


# Global engine (created on first use)
_default_engine: Optional[TerminologyEngine] = None


def get_engine() -> TerminologyEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = TerminologyEngine()
    return _default_engine


def set_engine(engine: Optional[TerminologyEngine]) -> None:
    """Replace the global engine; None recreates it on next use"""
    global _default_engine
    _default_engine = engine


def standardize_medical_term(term: str, locale: str = "en") -> str:
    """Resolve a term, synonym or translation to its standard term"""
    return get_engine().standardize(term, locale)


def get_medical_term_synonyms(term: str, locale: str = "en") -> List[str]:
    """Standard term followed by its synonyms, or [term] if unknown"""
    return get_engine().get_synonyms(term, locale)


def terms_equivalent(term_a: str, term_b: str) -> bool:
    """Whether two terms standardize to the same English term"""
    return get_engine().terms_equivalent(term_a, term_b)


def get_term_entity_key(term: str) -> Optional[str]:
    return get_engine().get_entity_key(term)


def mark_medical_terms_in_text(text: str, locale: str = "en") -> str:
    """Wrap recognized terms with data-medical-term / data-entity-key spans"""
    return get_engine().mark_terms(text, locale)


def generate_medical_webpage_schema(options=None, **kwargs) -> Dict[str, Any]:
    """MedicalWebPage JSON-LD; returns an independent copy on every call"""
    return get_engine().generate_webpage_schema(options, **kwargs)


def generate_medical_condition_schema(entity_key: str, locale: str = "en") -> Dict[str, Any]:
    return get_engine().generate_condition_schema(entity_key, locale)


def clear_terminology_cache() -> None:
    get_engine().clear_caches()


def get_cache_stats() -> Dict[str, Any]:
    return get_engine().get_cache_stats()
