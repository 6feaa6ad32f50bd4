"""
medterm Term Annotator
Marks dictionary terms in free text with standardized-term metadata
"""

import html
import logging
import re
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .config import validate_locale
from .terminology import TermDictionary, get_default_dictionary

logger = logging.getLogger(__name__)

# Word characters that take part in word boundaries. CJK ideographs are
# excluded because Chinese text has no separators between words.
_CJK_RANGES = "\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff"
_BOUNDARY_CHAR = f"[^\\W{_CJK_RANGES}]"
_BOUNDARY_CHAR_RE = re.compile(_BOUNDARY_CHAR)

# Inline wrapper written around each recognized term
WRAPPER_TEMPLATE = '<span data-medical-term="{term}" data-entity-key="{entity_key}">{text}</span>'
_WRAPPER_RE = re.compile(r'<span data-medical-term="[^"]*" data-entity-key="[^"]*">(.*?)</span>', re.DOTALL)


@dataclass(frozen=True)
class CompiledPatternEntry:
    """One searchable term variant of a concept"""
    term: str
    pattern: re.Pattern
    standard_term: str
    entity_key: Optional[str]


@dataclass
class AnnotationMatch:
    """An accepted occurrence in the source text"""
    start: int
    end: int
    text: str
    standard_term: str
    entity_key: Optional[str]

    @property
    def replacement(self) -> str:
        return WRAPPER_TEMPLATE.format(
            term=html.escape(self.standard_term, quote=True),
            entity_key=html.escape(self.entity_key or "", quote=True),
            text=self.text,
        )

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and end > self.start


def build_term_pattern(term: str) -> re.Pattern:
    """
    Compile a case-insensitive whole-word matcher for a literal term

    Boundary guards are only added at edges that are word characters, so
    CJK terms still match inside unsegmented Chinese text.
    """
    escaped = re.escape(term)
    prefix = f"(?<!{_BOUNDARY_CHAR})" if _BOUNDARY_CHAR_RE.match(term[0]) else ""
    suffix = f"(?!{_BOUNDARY_CHAR})" if _BOUNDARY_CHAR_RE.match(term[-1]) else ""
    return re.compile(f"{prefix}{escaped}{suffix}", re.IGNORECASE)


def compile_entries(dictionary: TermDictionary, locale: str) -> Tuple[CompiledPatternEntry, ...]:
    entries = []
    for mapping in dictionary:
        standard_term = mapping.standard_term(locale)
        for term in mapping.terms_for(locale):
            entries.append(CompiledPatternEntry(
                term=term,
                pattern=build_term_pattern(term),
                standard_term=standard_term,
                entity_key=mapping.entity_key,
            ))

    # Longest term first; sort is stable so equal lengths keep registration order
    entries.sort(key=lambda entry: len(entry.term), reverse=True)

    logger.info(f"Compiled {len(entries)} term patterns for locale '{locale}'")
    return tuple(entries)


def strip_annotations(text: str) -> str:
    """
    Remove wrappers written by TermAnnotator.annotate

    Wrappers that were already present in the text handed to annotate are
    removed as well, so only wrapper-free input round-trips exactly.
    """
    if not text:
        return text
    return _WRAPPER_RE.sub(lambda match: match.group(1), text)


class TermAnnotator:
    """
    Finds non-overlapping dictionary terms in text and wraps them
    """

    def __init__(self, dictionary: Optional[TermDictionary] = None):
        self.dictionary = dictionary if dictionary is not None else get_default_dictionary()
        self._compiled: Dict[str, Tuple[CompiledPatternEntry, ...]] = {}
        self._lock = threading.Lock()

    def compiled_entries(self, locale: str) -> Tuple[CompiledPatternEntry, ...]:
        """
        Get the compiled pattern table of a locale, building it on first use

        Args:
            locale: "en" or "zh"

        Returns:
            Entries ordered longest term first
        """
        validate_locale(locale)
        entries = self._compiled.get(locale)
        if entries is None:
            with self._lock:
                entries = self._compiled.get(locale)
                if entries is None:
                    entries = compile_entries(self.dictionary, locale)
                    self._compiled[locale] = entries
        return entries

    def compiled_locale_count(self) -> int:
        """Number of locales whose pattern table is compiled"""
        return len(self._compiled)

    def reset_compiled_patterns(self) -> None:
        with self._lock:
            self._compiled.clear()

    def find_matches(self, text: str, locale: str = "en") -> List[AnnotationMatch]:
        """
        Find accepted term occurrences

        Args:
            text: Input text
            locale: Locale whose terms are searched

        Returns:
            Pairwise non-overlapping matches sorted by start offset
        """
        if not text or not text.strip():
            return []

        accepted: List[AnnotationMatch] = []
        # Wrappers already in the input are left as they are
        wrapped = [(m.start(), m.end()) for m in _WRAPPER_RE.finditer(text)]

        for entry in self.compiled_entries(locale):
            for match in entry.pattern.finditer(text):
                start, end = match.start(), match.end()

                # Skip spans already claimed by a longer or earlier term
                if any(existing.overlaps(start, end) for existing in accepted):
                    continue
                if any(start < w_end and end > w_start for w_start, w_end in wrapped):
                    continue

                accepted.append(AnnotationMatch(
                    start=start,
                    end=end,
                    text=match.group(0),
                    standard_term=entry.standard_term,
                    entity_key=entry.entity_key,
                ))

        accepted.sort(key=lambda m: m.start)
        return accepted

    def annotate(self, text: str, locale: str = "en") -> str:
        """
        Wrap every recognized term with its standardized metadata

        Args:
            text: Input text
            locale: Locale whose terms are searched

        Returns:
            Annotated text; empty or whitespace-only input is returned unchanged
        """
        if not text or not text.strip():
            return text

        matches = self.find_matches(text, locale)

        # Apply replacements in reverse order to maintain positions
        result = text
        for match in reversed(matches):
            result = result[:match.start] + match.replacement + result[match.end:]

        return result

    def extract_terms(self, text: str, locale: str = "en") -> List[Tuple[str, Optional[str]]]:
        """
        Extract distinct recognized concepts from text

        Returns:
            (standard_term, entity_key) pairs in order of first occurrence
        """
        found = []
        seen = set()
        for match in self.find_matches(text, locale):
            if match.standard_term in seen:
                continue
            seen.add(match.standard_term)
            found.append((match.standard_term, match.entity_key))
        return found
