"""Tests for the term dictionary: normalization, lookup and standardization."""

import csv
import io
import json

import pytest
import yaml

from medterm.core.config import SUPPORTED_LOCALES
from medterm.core.exceptions import ConfigurationError, UnsupportedLocaleError
from medterm.core.terminology import TermDictionary, TermMapping, normalize_term


class TestNormalizeTerm:
    """Tests for normalize_term."""

    @pytest.mark.parametrize("raw,expected", [
        ("Period Pain", "period-pain"),
        ("  period   pain  ", "period-pain"),
        ("period-pain", "period-pain"),
        ("Period - \t Pain", "period-pain"),
        ("PMS", "pms"),
        ("月经痛", "月经痛"),
        ("", ""),
        ("   ", ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_term(raw) == expected

    def test_spacing_variants_share_a_key(self):
        assert normalize_term("Menstrual  Cramps") == normalize_term("menstrual-cramps")


class TestStandardize:
    """Tests for TermDictionary.standardize."""

    def test_english_synonym(self, dictionary):
        assert dictionary.standardize("period pain", "en") == "Dysmenorrhea"

    def test_chinese_synonym(self, dictionary):
        assert dictionary.standardize("月经痛", "zh") == "痛经"

    def test_cross_locale(self, dictionary):
        assert dictionary.standardize("月经痛", "en") == "Dysmenorrhea"
        assert dictionary.standardize("Period-Pain", "zh") == "痛经"

    def test_concept_id_resolves(self, dictionary):
        assert dictionary.standardize("pcos") == "Polycystic Ovary Syndrome"

    def test_unknown_term_returned_unchanged(self, dictionary):
        assert dictionary.standardize("totally-unknown-term", "en") == "totally-unknown-term"

    def test_empty_input_returned_unchanged(self, dictionary):
        assert dictionary.standardize("", "en") == ""
        assert dictionary.standardize("   ", "en") == "   "

    def test_fallback_known_term_inside_input(self, dictionary):
        assert dictionary.standardize("severe period pain symptoms", "en") == "Dysmenorrhea"

    def test_fallback_input_inside_known_term(self, dictionary):
        assert dictionary.standardize("Polycystic", "en") == "Polycystic Ovary Syndrome"

    def test_unsupported_locale(self, dictionary):
        with pytest.raises(UnsupportedLocaleError) as exc_info:
            dictionary.standardize("pms", "fr")
        assert exc_info.value.locale == "fr"

    def test_unsupported_locale_is_value_error(self, dictionary):
        with pytest.raises(ValueError):
            dictionary.standardize("pms", "de")

    def test_synonym_closure(self, dictionary):
        for mapping in dictionary:
            for locale in SUPPORTED_LOCALES:
                for term in mapping.terms_for(locale):
                    assert dictionary.standardize(term, locale) == mapping.standard_term(locale)

    @pytest.mark.parametrize("term", [
        "period pain", "月经痛", "PMS", "severe period pain symptoms", "unknown thing", "Heavy  Periods",
    ])
    @pytest.mark.parametrize("locale", SUPPORTED_LOCALES)
    def test_idempotent(self, dictionary, term, locale):
        once = dictionary.standardize(term, locale)
        assert dictionary.standardize(once, locale) == once

    def test_deterministic(self, dictionary):
        results = {dictionary.standardize("menstrual cramps", "zh") for _ in range(5)}
        assert results == {"痛经"}


class TestSynonymsAndEquivalence:
    """Tests for synonyms, equivalence, entity keys and related terms."""

    def test_synonyms_standard_first(self, dictionary):
        assert dictionary.get_synonyms("PMS", "en") == ["Premenstrual Syndrome", "PMS", "Premenstrual Tension"]

    def test_synonyms_chinese(self, dictionary):
        assert dictionary.get_synonyms("pms", "zh") == ["经前期综合征", "经前综合征", "经前紧张症"]

    def test_synonyms_unknown(self, dictionary):
        assert dictionary.get_synonyms("unknown", "en") == ["unknown"]

    def test_synonyms_exact_lookup_only(self, dictionary):
        assert dictionary.get_synonyms("severe period pain symptoms") == ["severe period pain symptoms"]

    def test_synonyms_unsupported_locale(self, dictionary):
        with pytest.raises(UnsupportedLocaleError):
            dictionary.get_synonyms("PMS", "fr")

    def test_equivalent_across_locales(self, dictionary):
        assert dictionary.terms_equivalent("period pain", "月经痛") is True

    def test_not_equivalent(self, dictionary):
        assert dictionary.terms_equivalent("PMS", "PMDD") is False

    def test_entity_key(self, dictionary):
        assert dictionary.get_entity_key("menstrual cramps") == "DYSMENORRHEA"
        assert dictionary.get_entity_key("经前焦虑症") == "PREMENSTRUAL_DYSPHORIC_DISORDER"
        assert dictionary.get_entity_key("unknown") is None

    def test_related_terms(self, dictionary):
        assert dictionary.get_related_terms("pcos") == ["Amenorrhea", "Infertility"]
        assert dictionary.get_related_terms("unknown") == []


class TestDictionaryLoading:
    """Tests for building TermDictionary from tables."""

    def test_builtin_table(self, dictionary):
        assert len(dictionary) == 10
        assert dictionary.get("nsaid").entity_key == "NSAID_DRUGS"

    def test_missing_standard_term(self):
        source = """
broken:
  standard_term:
    en: "Broken"
"""
        with pytest.raises(ConfigurationError, match="zh"):
            TermDictionary.from_yaml(source)

    def test_unknown_entity_key(self):
        source = """
broken:
  standard_term: {en: "Broken", zh: "坏"}
  entity_key: NOT_AN_ENTITY
"""
        with pytest.raises(ConfigurationError, match="NOT_AN_ENTITY"):
            TermDictionary.from_yaml(source)

    def test_duplicate_concept_id(self):
        mapping = TermMapping("a", {"en": "Alpha", "zh": "甲"}, {"en": (), "zh": ()})
        with pytest.raises(ConfigurationError, match="Duplicate"):
            TermDictionary([mapping, mapping])

    def test_first_registration_wins_on_collision(self):
        first = TermMapping("a", {"en": "Alpha", "zh": "甲"}, {"en": ("Shared",), "zh": ()})
        second = TermMapping("b", {"en": "Beta", "zh": "乙"}, {"en": ("shared",), "zh": ()})
        dictionary = TermDictionary([first, second])
        assert dictionary.standardize("SHARED") == "Alpha"

    def test_terms_for_dedupes_case_insensitively(self):
        mapping = TermMapping("a", {"en": "PCOS", "zh": "甲"}, {"en": ("pcos", "Other"), "zh": ()})
        assert mapping.terms_for("en") == ["PCOS", "Other"]


class TestSearchAndExport:
    """Tests for search, export and stats."""

    def test_search_exact_first(self, dictionary):
        results = dictionary.search("pcos")
        assert results[0].concept_id == "pcos"

    def test_search_ranking(self, dictionary):
        ids = [m.concept_id for m in dictionary.search("menstrual")]
        assert ids[0] == "dysmenorrhea"
        assert "pms" in ids
        assert "menorrhagia" in ids
        assert "infertility" not in ids

    def test_search_chinese(self, dictionary):
        ids = [m.concept_id for m in dictionary.search("经前", "zh")]
        assert ids[:2] == ["pms", "pmdd"]

    def test_search_empty(self, dictionary):
        assert dictionary.search("  ") == []

    def test_export_json(self, dictionary):
        data = json.loads(dictionary.export("json"))
        assert data["pms"]["entity_key"] == "PMS"
        assert data["dysmenorrhea"]["standard_term"]["zh"] == "痛经"

    def test_export_yaml(self, dictionary):
        data = yaml.safe_load(dictionary.export("yaml"))
        assert list(data)[0] == "dysmenorrhea"
        assert "月经痛" in data["dysmenorrhea"]["synonyms"]["zh"]

    def test_export_csv(self, dictionary):
        rows = list(csv.reader(io.StringIO(dictionary.export("csv"))))
        assert rows[0] == ["concept_id", "locale", "standard_term", "synonyms", "entity_key"]
        assert len(rows) == 1 + len(dictionary) * len(SUPPORTED_LOCALES)
        assert rows[1][:3] == ["dysmenorrhea", "en", "Dysmenorrhea"]

    def test_export_unknown_format(self, dictionary):
        with pytest.raises(ValueError, match="Unknown format"):
            dictionary.export("xml")

    def test_stats(self, dictionary):
        stats = dictionary.get_stats()
        assert stats["concepts"] == 10
        assert stats["linked_entities"] == 10
        assert stats["en_terms"] > stats["concepts"]
