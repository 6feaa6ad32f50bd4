"""
medterm Medical Entities
Condition, drug and treatment records with ICD-10, SNOMED CT, MeSH and RxNorm codes
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .config import validate_locale
from .exceptions import CitationNotFoundError, EntityNotFoundError

logger = logging.getLogger(__name__)

# Embedded entity knowledge base
ENTITY_KB_YAML = """
DYSMENORRHEA:
  name: "Dysmenorrhea"
  name_zh: "痛经"
  alternate_names: ["Period Pain", "Menstrual Cramps", "痛经", "月经痛"]
  icd10: "N94.6"
  snomed: "266599006"
  mesh: "D004412"
  category: "Gynecological Condition"
  related_conditions: ["ENDOMETRIOSIS", "PMS", "PREMENSTRUAL_DYSPHORIC_DISORDER"]
  associated_anatomy: ["Uterus", "Pelvis"]
  possible_treatments: ["NSAID_DRUGS", "HORMONAL_CONTRACEPTION", "HEAT_THERAPY"]

ENDOMETRIOSIS:
  name: "Endometriosis"
  name_zh: "子宫内膜异位症"
  alternate_names: ["子宫内膜异位症"]
  icd10: "N80.9"
  snomed: "129127001"
  mesh: "D004715"
  category: "Gynecological Condition"
  related_conditions: ["DYSMENORRHEA", "INFERTILITY"]
  associated_anatomy: ["Uterus", "Pelvis", "Ovaries"]
  possible_treatments: ["HORMONAL_CONTRACEPTION", "SURGERY"]

PMS:
  name: "Premenstrual Syndrome"
  name_zh: "经前期综合征"
  alternate_names: ["PMS", "经前期综合征"]
  icd10: "N94.3"
  snomed: "192080009"
  mesh: "D011293"
  category: "Gynecological Condition"
  related_conditions: ["DYSMENORRHEA", "PREMENSTRUAL_DYSPHORIC_DISORDER"]
  associated_anatomy: ["Reproductive System"]
  possible_treatments: ["HORMONAL_CONTRACEPTION", "LIFESTYLE_MODIFICATIONS"]

PREMENSTRUAL_DYSPHORIC_DISORDER:
  name: "Premenstrual Dysphoric Disorder"
  name_zh: "经前焦虑障碍"
  alternate_names: ["PMDD", "经前焦虑障碍"]
  icd10: "F32.81"
  snomed: "192080009"
  mesh: "D011293"
  category: "Psychiatric Condition"
  related_conditions: ["PMS", "DYSMENORRHEA"]
  associated_anatomy: ["Reproductive System", "Brain"]
  possible_treatments: ["SSRI_ANTIDEPRESSANTS", "HORMONAL_CONTRACEPTION"]

NSAID_DRUGS:
  name: "Nonsteroidal Anti-inflammatory Drugs"
  name_zh: "非甾体抗炎药"
  alternate_names: ["NSAIDs", "非甾体抗炎药"]
  rxnorm: ["5640", "4337", "197806"]
  category: "Anti-inflammatory"
  possible_treatments: ["DYSMENORRHEA", "ENDOMETRIOSIS"]

HORMONAL_CONTRACEPTION:
  name: "Hormonal Contraception"
  name_zh: "激素避孕"
  alternate_names: ["Hormonal Birth Control", "激素避孕", "口服避孕药"]
  category: "Hormonal Treatment"
  possible_treatments: ["DYSMENORRHEA", "ENDOMETRIOSIS", "PMS"]

HEAT_THERAPY:
  name: "Heat Therapy"
  name_zh: "热敷疗法"
  alternate_names: ["Thermotherapy", "热敷疗法"]
  category: "Physical Therapy"
  possible_treatments: ["DYSMENORRHEA"]

LIFESTYLE_MODIFICATIONS:
  name: "Lifestyle Modifications"
  name_zh: "生活方式调整"
  alternate_names: ["生活方式调整"]
  category: "Non-pharmacological Treatment"
  possible_treatments: ["PMS", "DYSMENORRHEA"]

SSRI_ANTIDEPRESSANTS:
  name: "Selective Serotonin Reuptake Inhibitors"
  name_zh: "选择性血清素再摄取抑制剂"
  alternate_names: ["SSRIs", "选择性血清素再摄取抑制剂"]
  category: "Psychiatric Medication"
  possible_treatments: ["PREMENSTRUAL_DYSPHORIC_DISORDER"]

SURGERY:
  name: "Surgical Treatment"
  name_zh: "手术治疗"
  alternate_names: ["手术治疗"]
  category: "Surgical Intervention"
  possible_treatments: ["ENDOMETRIOSIS"]

MENORRHAGIA:
  name: "Menorrhagia"
  name_zh: "月经过多"
  alternate_names: ["Heavy Menstrual Bleeding", "月经过多", "经血过多"]
  icd10: "N92.0"
  snomed: "26743008"
  mesh: "D008595"
  category: "Gynecological Condition"
  related_conditions: ["DYSMENORRHEA", "ENDOMETRIOSIS", "FIBROIDS"]
  associated_anatomy: ["Uterus", "Endometrium"]
  possible_treatments: ["HORMONAL_CONTRACEPTION", "SURGERY"]

AMENORRHEA:
  name: "Amenorrhea"
  name_zh: "闭经"
  alternate_names: ["Absent Menstruation", "闭经", "无月经"]
  icd10: "N91.2"
  snomed: "19346006"
  mesh: "D000568"
  category: "Gynecological Condition"
  related_conditions: ["POLYCYSTIC_OVARY_SYNDROME"]
  associated_anatomy: ["Uterus", "Ovaries", "Pituitary Gland"]
  possible_treatments: ["LIFESTYLE_MODIFICATIONS"]

POLYCYSTIC_OVARY_SYNDROME:
  name: "Polycystic Ovary Syndrome"
  name_zh: "多囊卵巢综合征"
  alternate_names: ["PCOS", "多囊卵巢综合征", "多囊症"]
  icd10: "E28.2"
  snomed: "237055002"
  mesh: "D011085"
  category: "Endocrine Disorder"
  related_conditions: ["AMENORRHEA", "INFERTILITY"]
  associated_anatomy: ["Ovaries", "Endocrine System"]
  possible_treatments: ["HORMONAL_CONTRACEPTION", "LIFESTYLE_MODIFICATIONS"]

FIBROIDS:
  name: "Uterine Fibroids"
  name_zh: "子宫肌瘤"
  alternate_names: ["Leiomyoma", "子宫肌瘤", "肌瘤"]
  icd10: "D25.9"
  snomed: "126906006"
  mesh: "D007889"
  category: "Gynecological Condition"
  related_conditions: ["MENORRHAGIA", "DYSMENORRHEA"]
  associated_anatomy: ["Uterus"]
  possible_treatments: ["SURGERY"]

INFERTILITY:
  name: "Infertility"
  name_zh: "不孕症"
  alternate_names: ["不孕症", "不育症"]
  icd10: "N97.9"
  snomed: "386661006"
  mesh: "D007246"
  category: "Reproductive Health"
  related_conditions: ["ENDOMETRIOSIS", "POLYCYSTIC_OVARY_SYNDROME", "AMENORRHEA"]
  associated_anatomy: ["Uterus", "Ovaries", "Fallopian Tubes"]
  possible_treatments: ["SURGERY"]
"""

# Additional coding systems with localized descriptions, merged into the base codes
MULTILINGUAL_CODES_YAML = """
DYSMENORRHEA:
  - {coding_system: "ICD-10", code: "N94.6", locale: all, description_en: "Dysmenorrhea, unspecified", description_zh: "痛经，未特指"}
  - {coding_system: "ICD-10-CM", code: "N94.6", locale: all, description_en: "Dysmenorrhea, unspecified", description_zh: "痛经，未特指"}
  - {coding_system: "SNOMED CT", code: "266599006", locale: all, description_en: "Dysmenorrhea (disorder)", description_zh: "痛经（疾病）"}
  - {coding_system: "MeSH", code: "D004412", locale: all, description_en: "Dysmenorrhea", description_zh: "痛经"}
  - {coding_system: "ICD-11", code: "GA34.4", locale: all, description_en: "Dysmenorrhea", description_zh: "痛经"}
ENDOMETRIOSIS:
  - {coding_system: "ICD-10", code: "N80.9", locale: all, description_en: "Endometriosis, unspecified", description_zh: "子宫内膜异位症，未特指"}
  - {coding_system: "SNOMED CT", code: "129127001", locale: all, description_en: "Endometriosis (disorder)", description_zh: "子宫内膜异位症（疾病）"}
  - {coding_system: "MeSH", code: "D004715", locale: all, description_en: "Endometriosis", description_zh: "子宫内膜异位症"}
PMS:
  - {coding_system: "ICD-10", code: "N94.3", locale: all, description_en: "Premenstrual tension syndrome", description_zh: "经前期紧张综合征"}
  - {coding_system: "SNOMED CT", code: "192080009", locale: all, description_en: "Premenstrual syndrome (disorder)", description_zh: "经前期综合征（疾病）"}
  - {coding_system: "MeSH", code: "D011293", locale: all, description_en: "Premenstrual Syndrome", description_zh: "经前期综合征"}
PREMENSTRUAL_DYSPHORIC_DISORDER:
  - {coding_system: "ICD-10", code: "F32.81", locale: all, description_en: "Premenstrual dysphoric disorder", description_zh: "经前焦虑障碍"}
  - {coding_system: "SNOMED CT", code: "192080009", locale: all, description_en: "Premenstrual dysphoric disorder (disorder)", description_zh: "经前焦虑障碍（疾病）"}
NSAID_DRUGS:
  - {coding_system: "RxNorm", code: "5640", locale: all, description_en: "Ibuprofen", description_zh: "布洛芬"}
  - {coding_system: "RxNorm", code: "4337", locale: all, description_en: "Naproxen", description_zh: "萘普生"}
"""

# Authoritative sources cited by generated MedicalWebPage schemas
CITATIONS_YAML = """
ACOG_DYSMENORRHEA:
  name: "Dysmenorrhea: Painful Periods"
  url: "https://www.acog.org/womens-health/faqs/dysmenorrhea-painful-periods"
  publisher: "American College of Obstetricians and Gynecologists"
WHO_REPRODUCTIVE_HEALTH:
  name: "Sexual and Reproductive Health"
  url: "https://www.who.int/health-topics/sexual-and-reproductive-health"
  publisher: "World Health Organization"
NIH_DYSMENORRHEA:
  name: "Painful Menstrual Periods"
  url: "https://medlineplus.gov/ency/article/003150.htm"
  publisher: "National Institutes of Health"
MAYO_CLINIC_MENSTRUAL_CRAMPS:
  name: "Menstrual Cramps - Symptoms and Causes"
  url: "https://www.mayoclinic.org/diseases-conditions/menstrual-cramps/symptoms-causes/syc-20374938"
  publisher: "Mayo Clinic"
"""

# Base code fields and their schema.org coding system names
_BASE_CODING_SYSTEMS = (
    ('icd10', 'ICD-10'),
    ('snomed', 'SNOMED CT'),
    ('mesh', 'MeSH'),
)


@dataclass
class MedicalEntity:
    """Represents a coded medical entity"""
    key: str
    name: str
    name_zh: str
    alternate_names: List[str] = field(default_factory=list)
    icd10: Optional[str] = None
    snomed: Optional[str] = None
    mesh: Optional[str] = None
    rxnorm: List[str] = field(default_factory=list)
    category: Optional[str] = None
    related_conditions: List[str] = field(default_factory=list)
    associated_anatomy: List[str] = field(default_factory=list)
    possible_treatments: List[str] = field(default_factory=list)

    def localized_name(self, locale: str = "en") -> str:
        return self.name_zh if locale == "zh" and self.name_zh else self.name


@dataclass
class MultilingualCode:
    coding_system: str
    code: str
    locale: str = "all"
    description_en: Optional[str] = None
    description_zh: Optional[str] = None

    def description(self, locale: str = "en") -> str:
        if locale == "zh" and self.description_zh:
            return self.description_zh
        return self.description_en or self.code


@dataclass
class Citation:
    key: str
    name: str
    url: str
    publisher: str
    date_published: Optional[str] = None

    def to_schema(self) -> Dict[str, Any]:
        schema = {
            "@type": "CreativeWork",
            "name": self.name,
            "url": self.url,
            "publisher": {
                "@type": "Organization",
                "name": self.publisher,
            },
        }
        if self.date_published:
            schema["datePublished"] = self.date_published
        return schema


def _load_entities(source: str) -> Dict[str, MedicalEntity]:
    data = yaml.safe_load(source) or {}
    entities = {key: MedicalEntity(key=key, **info) for key, info in data.items()}
    logger.info(f"Loaded {len(entities)} medical entities")
    return entities


def _load_multilingual_codes(source: str) -> Dict[str, List[MultilingualCode]]:
    data = yaml.safe_load(source) or {}
    return {key: [MultilingualCode(**code) for code in codes or []] for key, codes in data.items()}


def _load_citations(source: str) -> Dict[str, Citation]:
    data = yaml.safe_load(source) or {}
    return {key: Citation(key=key, **info) for key, info in data.items()}


MEDICAL_ENTITIES: Dict[str, MedicalEntity] = _load_entities(ENTITY_KB_YAML)
MULTILINGUAL_MEDICAL_CODES: Dict[str, List[MultilingualCode]] = _load_multilingual_codes(MULTILINGUAL_CODES_YAML)
CITATIONS: Dict[str, Citation] = _load_citations(CITATIONS_YAML)


def get_entity(entity_key: str) -> MedicalEntity:
    """Look up an entity, failing loudly for unknown keys"""
    try:
        return MEDICAL_ENTITIES[entity_key]
    except KeyError:
        raise EntityNotFoundError(entity_key) from None


def get_citation(citation_key: str) -> Citation:
    """Look up a citation, failing loudly for unknown keys"""
    try:
        return CITATIONS[citation_key]
    except KeyError:
        raise CitationNotFoundError(citation_key) from None


def get_multilingual_codes(entity_key: str,
                           locale: str = "en",
                           coding_system: Optional[str] = None) -> List[MultilingualCode]:
    """
    Get the multilingual codes of an entity

    Args:
        entity_key: Entity key
        locale: Locale filter ("all" codes always included)
        coding_system: Optional coding system filter

    Returns:
        List of MultilingualCode
    """
    validate_locale(locale)
    get_entity(entity_key)

    codes = [
        code for code in MULTILINGUAL_MEDICAL_CODES.get(entity_key, [])
        if code.locale in ("all", locale)
    ]
    if coding_system:
        codes = [code for code in codes if code.coding_system == coding_system]
    return codes


def get_medical_codes(entity_key: str, locale: str = "en") -> List[Dict[str, str]]:
    """
    Build schema.org MedicalCode objects for an entity

    Base ICD-10 / SNOMED CT / MeSH codes come first, multilingual codes are
    merged in after them, deduplicated on (codingSystem, code).
    """
    entity = get_entity(entity_key)
    validate_locale(locale)

    codes = []
    seen = set()

    for attr, coding_system in _BASE_CODING_SYSTEMS:
        value = getattr(entity, attr)
        if value:
            codes.append({
                "@type": "MedicalCode",
                "code": value,
                "codingSystem": coding_system,
            })
            seen.add((coding_system, value))

    for code in get_multilingual_codes(entity_key, locale):
        if (code.coding_system, code.code) in seen:
            continue
        codes.append({
            "@type": "MedicalCode",
            "code": code.code,
            "codingSystem": code.coding_system,
            "description": code.description(locale),
        })
        seen.add((code.coding_system, code.code))

    return codes


def get_medical_condition_schema(entity_key: str, locale: str = "en") -> Dict[str, Any]:
    """
    Build a schema.org MedicalCondition object

    Args:
        entity_key: Entity key
        locale: Locale for the name and code descriptions

    Returns:
        JSON-LD ready dictionary
    """
    entity = get_entity(entity_key)
    validate_locale(locale)

    schema = {
        "@type": "MedicalCondition",
        "name": entity.localized_name(locale),
        "alternateName": list(entity.alternate_names),
        "code": get_medical_codes(entity_key, locale),
    }

    if entity.associated_anatomy:
        schema["associatedAnatomy"] = [
            {"@type": "AnatomicalStructure", "name": anatomy}
            for anatomy in entity.associated_anatomy
        ]

    treatments = [
        MEDICAL_ENTITIES[key].localized_name(locale)
        for key in entity.possible_treatments
        if key in MEDICAL_ENTITIES
    ]
    if treatments:
        schema["possibleTreatment"] = [
            {"@type": "MedicalTherapy", "name": name} for name in treatments
        ]

    return schema
