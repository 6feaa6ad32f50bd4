"""
medterm Terminology Dictionary
Standardizes medical terms and synonyms across English and Chinese
"""

import csv
import io
import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Tuple

import yaml

from .config import SUPPORTED_LOCALES, validate_locale
from .entities import MEDICAL_ENTITIES
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Embedded terminology table, one entry per medical concept
TERMINOLOGY_YAML = """
dysmenorrhea:
  standard_term:
    en: "Dysmenorrhea"
    zh: "痛经"
  synonyms:
    en: ["Period Pain", "Menstrual Cramps", "Menstrual Pain", "Period Cramps", "Menstrual Discomfort"]
    zh: ["月经痛", "经期疼痛", "月经痉挛", "经期不适", "痛经症"]
  related_terms: ["Endometriosis", "PMS", "Menstrual Cycle"]
  entity_key: DYSMENORRHEA

endometriosis:
  standard_term:
    en: "Endometriosis"
    zh: "子宫内膜异位症"
  synonyms:
    en: ["Endometrial Disease", "Endometrial Disorder"]
    zh: ["内膜异位", "子宫内膜症"]
  related_terms: ["Dysmenorrhea", "Infertility"]
  entity_key: ENDOMETRIOSIS

pms:
  standard_term:
    en: "Premenstrual Syndrome"
    zh: "经前期综合征"
  synonyms:
    en: ["PMS", "Premenstrual Tension"]
    zh: ["经前综合征", "经前紧张症"]
  related_terms: ["Dysmenorrhea", "PMDD"]
  entity_key: PMS

nsaid:
  standard_term:
    en: "Nonsteroidal Anti-inflammatory Drugs"
    zh: "非甾体抗炎药"
  synonyms:
    en: ["NSAIDs", "NSAID", "Anti-inflammatory Drugs"]
    zh: ["消炎药", "抗炎药"]
  related_terms: ["Ibuprofen", "Naproxen"]
  entity_key: NSAID_DRUGS

pmdd:
  standard_term:
    en: "Premenstrual Dysphoric Disorder"
    zh: "经前焦虑障碍"
  synonyms:
    en: ["PMDD"]
    zh: ["经前不悦症", "经前焦虑症"]
  related_terms: ["PMS", "Dysmenorrhea"]
  entity_key: PREMENSTRUAL_DYSPHORIC_DISORDER

menorrhagia:
  standard_term:
    en: "Menorrhagia"
    zh: "月经过多"
  synonyms:
    en: ["Heavy Menstrual Bleeding", "Heavy Periods"]
    zh: ["经血过多", "月经量多"]
  related_terms: ["Dysmenorrhea", "Endometriosis"]
  entity_key: MENORRHAGIA

amenorrhea:
  standard_term:
    en: "Amenorrhea"
    zh: "闭经"
  synonyms:
    en: ["Absent Menstruation", "Missing Periods"]
    zh: ["无月经", "停经"]
  related_terms: ["PCOS", "Infertility"]
  entity_key: AMENORRHEA

pcos:
  standard_term:
    en: "Polycystic Ovary Syndrome"
    zh: "多囊卵巢综合征"
  synonyms:
    en: ["PCOS", "Polycystic Ovarian Syndrome"]
    zh: ["多囊症", "多囊卵巢症"]
  related_terms: ["Amenorrhea", "Infertility"]
  entity_key: POLYCYSTIC_OVARY_SYNDROME

fibroids:
  standard_term:
    en: "Uterine Fibroids"
    zh: "子宫肌瘤"
  synonyms:
    en: ["Leiomyoma", "Uterine Myoma"]
    zh: ["肌瘤", "子宫平滑肌瘤"]
  related_terms: ["Menorrhagia", "Dysmenorrhea"]
  entity_key: FIBROIDS

infertility:
  standard_term:
    en: "Infertility"
    zh: "不孕症"
  synonyms:
    en: ["Sterility", "Inability to Conceive"]
    zh: ["不育症", "不能生育"]
  related_terms: ["Endometriosis", "PCOS"]
  entity_key: INFERTILITY
"""

_SEPARATOR_RE = re.compile(r"[\s\-]+")


def normalize_term(term: str) -> str:
    """Lowercase, trim and collapse whitespace/hyphen runs to a single hyphen"""
    return _SEPARATOR_RE.sub("-", term.strip().lower())


@dataclass
class TermMapping:
    """One medical concept with its locale variants"""
    concept_id: str
    standard_terms: Dict[str, str]
    synonyms: Dict[str, Tuple[str, ...]]
    related_terms: Tuple[str, ...] = ()
    entity_key: Optional[str] = None

    def standard_term(self, locale: str = "en") -> str:
        return self.standard_terms[locale]

    def synonyms_for(self, locale: str = "en") -> Tuple[str, ...]:
        return self.synonyms.get(locale, ())

    def terms_for(self, locale: str = "en") -> List[str]:
        """Standard term followed by synonyms, without case-insensitive repeats"""
        terms = []
        seen = set()
        for term in (self.standard_term(locale),) + self.synonyms_for(locale):
            key = term.casefold()
            if key not in seen:
                seen.add(key)
                terms.append(term)
        return terms

    def all_terms(self) -> Iterator[str]:
        for locale in SUPPORTED_LOCALES:
            yield from self.terms_for(locale)

    def to_dict(self) -> dict:
        return {
            'standard_term': dict(self.standard_terms),
            'synonyms': {locale: list(values) for locale, values in self.synonyms.items()},
            'related_terms': list(self.related_terms),
            'entity_key': self.entity_key,
        }


class TermDictionary:
    """
    Read-only term table with a normalized-string index
    """

    def __init__(self, mappings: List[TermMapping]):
        """
        Build the dictionary and its lookup index

        Args:
            mappings: Concept mappings in registration order
        """
        self._mappings: Tuple[TermMapping, ...] = tuple(mappings)
        self._by_id: Dict[str, TermMapping] = {}
        self._index: Dict[str, str] = {}

        for mapping in self._mappings:
            if mapping.concept_id in self._by_id:
                raise ConfigurationError(f"Duplicate concept id: {mapping.concept_id}")
            self._by_id[mapping.concept_id] = mapping

        self._build_index()

        logger.info(f"Loaded terminology with {len(self._mappings)} concepts, {len(self._index)} index keys")

    @classmethod
    def from_yaml(cls, source: str) -> 'TermDictionary':
        """Parse a YAML terminology table"""
        data = yaml.safe_load(source) or {}
        if not isinstance(data, dict):
            raise ConfigurationError("Terminology table must be a mapping of concept id to entry")

        mappings = []
        for concept_id, entry in data.items():
            mappings.append(cls._parse_entry(str(concept_id), entry or {}))
        return cls(mappings)

    @staticmethod
    def _parse_entry(concept_id: str, entry: dict) -> TermMapping:
        standard = entry.get('standard_term') or {}
        for locale in SUPPORTED_LOCALES:
            value = standard.get(locale)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"Concept {concept_id} is missing a '{locale}' standard term")

        synonyms = entry.get('synonyms') or {}
        entity_key = entry.get('entity_key')
        if entity_key is not None and entity_key not in MEDICAL_ENTITIES:
            raise ConfigurationError(f"Concept {concept_id} references unknown entity {entity_key}")

        return TermMapping(
            concept_id=concept_id,
            standard_terms={locale: standard[locale] for locale in SUPPORTED_LOCALES},
            synonyms={locale: tuple(synonyms.get(locale) or ()) for locale in SUPPORTED_LOCALES},
            related_terms=tuple(entry.get('related_terms') or ()),
            entity_key=entity_key,
        )

    def _build_index(self):
        """Register concept ids, standard terms and synonyms in both locales"""
        for mapping in self._mappings:
            keys = [mapping.concept_id, *mapping.all_terms()]
            for key in keys:
                normalized = normalize_term(key)
                if not normalized:
                    continue
                owner = self._index.setdefault(normalized, mapping.concept_id)
                if owner != mapping.concept_id:
                    logger.debug(f"Index key '{normalized}' already owned by {owner}, "
                                 f"skipping for {mapping.concept_id}")

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self) -> Iterator[TermMapping]:
        return iter(self._mappings)

    @property
    def mappings(self) -> Tuple[TermMapping, ...]:
        return self._mappings

    def get(self, concept_id: str) -> Optional[TermMapping]:
        return self._by_id.get(concept_id)

    def lookup(self, term: str) -> Optional[TermMapping]:
        """
        Exact lookup of a term through the normalized index

        Args:
            term: Raw term in either locale

        Returns:
            Matching mapping or None
        """
        concept_id = self._index.get(normalize_term(term))
        if concept_id is None:
            return None
        return self._by_id[concept_id]

    def resolve(self, term: str, locale: str = "en") -> Optional[TermMapping]:
        """Exact lookup, then substring containment scan over the locale's terms"""
        validate_locale(locale)
        normalized = normalize_term(term)
        if not normalized:
            return None

        mapping = self.lookup(normalized)
        if mapping is not None:
            return mapping

        for candidate in self._mappings:
            for known in candidate.terms_for(locale):
                known_normalized = normalize_term(known)
                if known_normalized in normalized or normalized in known_normalized:
                    return candidate

        return None

    def standardize(self, term: str, locale: str = "en") -> str:
        """
        Resolve a term to its standard form

        Args:
            term: Input term (synonym, variant, or translation)
            locale: Locale of the returned standard term

        Returns:
            Standard term, or the input unchanged if nothing matches
        """
        mapping = self.resolve(term, locale)
        if mapping is None:
            return term
        return mapping.standard_term(locale)

    def get_synonyms(self, term: str, locale: str = "en") -> List[str]:
        """Standard term followed by synonyms, or [term] when unresolved"""
        validate_locale(locale)
        mapping = self.lookup(term)
        if mapping is None:
            return [term]
        return mapping.terms_for(locale)

    def terms_equivalent(self, term_a: str, term_b: str) -> bool:
        return self.standardize(term_a, "en") == self.standardize(term_b, "en")

    def get_entity_key(self, term: str) -> Optional[str]:
        mapping = self.lookup(term)
        return mapping.entity_key if mapping else None

    def get_related_terms(self, term: str) -> List[str]:
        mapping = self.lookup(term)
        return list(mapping.related_terms) if mapping else []

    def search(self, query: str, locale: str = "en") -> List[TermMapping]:
        """
        Search for concepts whose terms contain the query

        Args:
            query: Search query
            locale: Locale whose terms are searched

        Returns:
            Mappings ranked exact match, prefix match, then containment
        """
        validate_locale(locale)
        needle = normalize_term(query)
        if not needle:
            return []

        ranked = []
        for position, mapping in enumerate(self._mappings):
            best = None
            for known in mapping.terms_for(locale):
                known_normalized = normalize_term(known)
                if known_normalized == needle:
                    rank = 0
                elif known_normalized.startswith(needle):
                    rank = 1
                elif needle in known_normalized:
                    rank = 2
                else:
                    continue
                best = rank if best is None else min(best, rank)
            if best is not None:
                ranked.append((best, position, mapping))

        ranked.sort(key=lambda item: (item[0], item[1]))
        return [mapping for _, _, mapping in ranked]

    def export(self, format: str = "json") -> str:
        """
        Export the terminology table

        Args:
            format: Export format ("json", "yaml", "csv")

        Returns:
            Formatted table string
        """
        table = {mapping.concept_id: mapping.to_dict() for mapping in self._mappings}

        if format == "json":
            return json.dumps(table, indent=2, ensure_ascii=False)

        elif format == "yaml":
            return yaml.dump(table, default_flow_style=False, allow_unicode=True, sort_keys=False)

        elif format == "csv":
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            writer.writerow(["concept_id", "locale", "standard_term", "synonyms", "entity_key"])
            for mapping in self._mappings:
                for locale in SUPPORTED_LOCALES:
                    writer.writerow([
                        mapping.concept_id,
                        locale,
                        mapping.standard_term(locale),
                        "|".join(mapping.synonyms_for(locale)),
                        mapping.entity_key or "",
                    ])
            return buffer.getvalue()

        else:
            raise ValueError(f"Unknown format: {format}")

    def get_stats(self) -> Dict[str, int]:
        """Get statistics about the terminology table"""
        stats = {
            'concepts': len(self._mappings),
            'index_keys': len(self._index),
            'linked_entities': sum(1 for m in self._mappings if m.entity_key),
        }
        for locale in SUPPORTED_LOCALES:
            stats[f'{locale}_terms'] = sum(len(m.terms_for(locale)) for m in self._mappings)
        return stats


@lru_cache(maxsize=None)
def get_default_dictionary() -> TermDictionary:
    """The built-in terminology table, parsed once per process"""
    return TermDictionary.from_yaml(TERMINOLOGY_YAML)
