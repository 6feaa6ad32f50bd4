"""
medterm - Medical Term Standardization & Annotation Engine
"""

from .core.engine import (
    TerminologyEngine,
    clear_terminology_cache,
    generate_medical_condition_schema,
    generate_medical_webpage_schema,
    get_cache_stats,
    get_engine,
    get_medical_term_synonyms,
    get_term_entity_key,
    mark_medical_terms_in_text,
    standardize_medical_term,
    terms_equivalent,
)
from .core.exceptions import (
    CitationNotFoundError,
    ConfigurationError,
    EntityNotFoundError,
    MedTermException,
    UnsupportedLocaleError,
)
from .core.schema import MedicalWebPageOptions

__version__ = "1.0.0"

__all__ = [
    "TerminologyEngine",
    "MedicalWebPageOptions",
    "standardize_medical_term",
    "get_medical_term_synonyms",
    "terms_equivalent",
    "get_term_entity_key",
    "mark_medical_terms_in_text",
    "generate_medical_webpage_schema",
    "generate_medical_condition_schema",
    "clear_terminology_cache",
    "get_cache_stats",
    "get_engine",
    "MedTermException",
    "ConfigurationError",
    "EntityNotFoundError",
    "CitationNotFoundError",
    "UnsupportedLocaleError",
]
