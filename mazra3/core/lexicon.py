"""Static vocabulary for mazra3.

Holds the gazetteers (crop, disease, pest), the intent keyword banks, the
month dictionary, the quantity units and the per-region planting calendar.

The built-in tables below are the defaults. A deployment can override any
section with a YAML file:

    crops:
      طماطم: [طماطم, بندورة]
    calendar:
      med:
        طماطم: [3, 4, 8, 9]

Sections present in the file replace the built-in section wholesale;
absent sections keep the defaults. The resulting ``Lexicon`` is frozen and
shared read-only by every component.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from ruamel.yaml import YAML

from .intent.taxonomy import EntityCategory, LexiconError

logger = logging.getLogger(__name__)


# =============================================================================
# Gazetteers: canonical name -> surface forms (misspellings, dialect variants)
# =============================================================================

CROP_SYNONYMS: dict[str, list[str]] = {
    "طماطم": ["طماطم", "بندوره", "بندورة"],
    "خيار": ["خيار"],
    "بطاطا": ["بطاطا", "بطاطس"],
    "قمح": ["قمح", "حنطه", "حنطة"],
    "فلفل": ["فلفل", "فليفله", "فليفلة"],
    "باذنجان": ["باذنجان", "بيتنجان"],
    "بصل": ["بصل"],
    "ثوم": ["ثوم"],
    "كوسا": ["كوسا", "كوسه"],
    "فاصوليا": ["فاصوليا", "لوبيا"],
    "ذرة": ["ذره", "ذرة", "درة"],
    "نعناع": ["نعناع", "نعنع"],
}

DISEASE_SYNONYMS: dict[str, list[str]] = {
    "اللفحة": [
        "لفحه",
        "اللفحه",
        "اللفحة",
        "لفحة مبكرة",
        "لفحة متاخرة",
        "لفحه مبكره",
        "لفحه متاخره",
    ],
    "البياض الدقيقي": ["البياض", "بياض دقيقي", "البياض الدقيقي"],
    "البياض الزغبي": ["البياض الزغبي", "زغبي"],
    "الذبول": ["ذبول", "الذبول", "ذبول فطري"],
}

PEST_SYNONYMS: dict[str, list[str]] = {
    "المن": ["من", "المن", "قمل نباتي"],
    "الذبابة البيضاء": ["ذبابة بيضاء", "الذبابة البيضاء"],
    "التربس": ["تربس"],
    "حافرة الاوراق": ["حافرة الورق", "حافرة الاوراق"],
    "توتا ابسولوتا": ["توتا", "توتا ابسولوتا"],
    "دودة ورق القطن": ["دودة ورق القطن"],
}

# =============================================================================
# Intent keyword banks (insertion order is the tie-break order)
# =============================================================================

INTENT_KEYWORDS: dict[str, list[str]] = {
    "planting_time": [
        "متى", "امتى", "وقت", "موعد", "ازرع", "زراعه", "زراعة",
        "مواعيد", "شتل", "شتله", "شتلة", "غرس",
    ],
    "irrigation": ["ري", "اسقي", "سقي", "ارو", "سقاية", "مياه", "ماء", "رش", "رشاش"],
    "disease_treat": [
        "علاج", "اعالج", "حل", "مكافحه", "مكافحة", "مرض", "امراض", "اعراض",
        "اللفحه", "البياض", "الذبول", "فطري", "وقايه", "وقاية", "اصابه", "اصابة",
    ],
    "pest_control": [
        "حشره", "حشرة", "افات", "آفات", "آفه", "افه", "مكافحة", "رش",
        "بيولوجي", "تربس", "المن", "من",
    ],
    "fertilization": ["تسميد", "سماد", "بوتاسيوم", "فوسفور", "نيتروجين", "كومبوست"],
    "spacing": ["مسافه", "مسافة", "تباعد", "بين", "خط", "سطر", "شتلة", "شتلات"],
    "harvest_time": ["حصاد", "حصد", "نضج"],
    "greeting": ["مرحبا", "مرحباً", "اهلا", "أهلا", "سلام", "هاي", "هلو"],
    "thanks": ["شكرا", "شكرًا", "مشكور", "تسلم"],
}

# =============================================================================
# Months (calendar names across dialects plus "month N" phrasing)
# =============================================================================

MONTH_NAMES: dict[str, int] = {
    "يناير": 1, "كانون الثاني": 1, "جانفي": 1,
    "فبراير": 2, "شباط": 2,
    "مارس": 3, "اذار": 3, "آذار": 3,
    "ابريل": 4, "أبريل": 4, "نيسان": 4, "افريل": 4,
    "مايو": 5, "ايار": 5,
    "يونيو": 6, "حزيران": 6,
    "يوليو": 7, "تموز": 7,
    "اغسطس": 8, "أغسطس": 8, "اب": 8, "آب": 8,
    "سبتمبر": 9, "ايلول": 9, "أيلول": 9,
    "اكتوبر": 10, "أكتوبر": 10, "تشرين الاول": 10,
    "نوفمبر": 11, "تشرين الثاني": 11,
    "ديسمبر": 12, "كانون الاول": 12,
}
for _n in range(1, 13):
    MONTH_NAMES[f"شهر{_n}"] = _n
    MONTH_NAMES[f"شهر {_n}"] = _n

# Display names for month numbers
MONTH_DISPLAY: tuple[str, ...] = (
    "-", "يناير", "فبراير", "مارس", "ابريل", "مايو", "يونيو",
    "يوليو", "اغسطس", "سبتمبر", "اكتوبر", "نوفمبر", "ديسمبر",
)

# =============================================================================
# Quantity units (volume, mass, area, length)
# =============================================================================

UNITS: list[str] = [
    "لتر", "مل", "ملل", "ملليلتر",
    "جم", "غ", "كجم", "كيلو", "غرام",
    "هكتار", "فدان", "دونم",
    "متر", "سم",
]

# =============================================================================
# Planting calendar: region -> crop -> favorable months
# =============================================================================

DEFAULT_REGION = "med"

REGION_NAMES: dict[str, str] = {
    "med": "المتوسط",
    "gulf_hot": "الخليج الحار",
    "highland_cool": "المرتفعات الباردة",
}

CALENDAR: dict[str, dict[str, list[int]]] = {
    "med": {
        "طماطم": [3, 4, 8, 9],
        "خيار": [3, 4],
        "بطاطا": [9, 10, 1, 2],
        "قمح": [10, 11, 12],
        "فلفل": [4],
        "باذنجان": [4, 5],
    },
    "gulf_hot": {
        "طماطم": [9, 10, 11],
        "خيار": [9, 10, 11],
        "بطاطا": [10, 11, 12],
        "قمح": [11, 12],
        "فلفل": [10, 11],
        "باذنجان": [10, 11],
    },
    "highland_cool": {
        "طماطم": [4, 5],
        "خيار": [4, 5],
        "بطاطا": [4, 5],
        "قمح": [9, 10],
        "فلفل": [5],
        "باذنجان": [5],
    },
}


# =============================================================================
# Lexicon value
# =============================================================================


def _freeze_table(table: Mapping[str, Any]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({str(k): tuple(str(s) for s in v) for k, v in table.items()})


def _freeze_calendar(
    calendar: Mapping[str, Mapping[str, Any]],
) -> Mapping[str, Mapping[str, tuple[int, ...]]]:
    frozen: dict[str, Mapping[str, tuple[int, ...]]] = {}
    for region, crops in calendar.items():
        months: dict[str, tuple[int, ...]] = {}
        for crop, values in crops.items():
            nums = tuple(int(m) for m in values)
            bad = [m for m in nums if not 1 <= m <= 12]
            if bad:
                raise LexiconError(f"Calendar {region}/{crop} has invalid months: {bad}")
            months[str(crop)] = nums
        frozen[str(region)] = MappingProxyType(months)
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class Lexicon:
    """Immutable bundle of every vocabulary table.

    Attributes:
        crops: Canonical crop -> synonyms
        diseases: Canonical disease -> synonyms
        pests: Canonical pest -> synonyms
        intents: Intent label -> trigger keywords (ordered)
        months: Month name/phrase -> month number
        units: Quantity unit tokens
        calendar: Region -> crop -> favorable planting months
        region_names: Region id -> display name
        default_region: Profile used for unknown regions
    """

    crops: Mapping[str, tuple[str, ...]]
    diseases: Mapping[str, tuple[str, ...]]
    pests: Mapping[str, tuple[str, ...]]
    intents: Mapping[str, tuple[str, ...]]
    months: Mapping[str, int]
    units: tuple[str, ...]
    calendar: Mapping[str, Mapping[str, tuple[int, ...]]]
    region_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    default_region: str = DEFAULT_REGION

    def __post_init__(self) -> None:
        if self.default_region not in self.calendar:
            raise LexiconError(f"Default region '{self.default_region}' has no calendar")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None = None) -> Lexicon:
        """Build a lexicon, overlaying ``data`` sections on the built-in tables.

        Args:
            data: Optional mapping with any of the sections crops, diseases,
                pests, intents, months, units, calendar, region_names,
                default_region

        Returns:
            Frozen Lexicon

        Raises:
            LexiconError: If a section has the wrong shape or invalid values
        """
        data = dict(data or {})
        mapping_sections = (
            "crops", "diseases", "pests", "intents", "months", "calendar", "region_names",
        )
        for section in mapping_sections:
            if section in data and not isinstance(data[section], Mapping):
                raise LexiconError(f"Section '{section}' must be a mapping")
        if "units" in data and isinstance(data["units"], (str, Mapping)):
            raise LexiconError("Section 'units' must be a list")

        months = data.get("months", MONTH_NAMES)
        try:
            month_table = {str(k): int(v) for k, v in months.items()}
        except (TypeError, ValueError) as e:
            raise LexiconError(f"Month numbers must be integers: {e}") from e
        bad = {k: v for k, v in month_table.items() if not 1 <= v <= 12}
        if bad:
            raise LexiconError(f"Month numbers out of range: {bad}")

        return cls(
            crops=_freeze_table(data.get("crops", CROP_SYNONYMS)),
            diseases=_freeze_table(data.get("diseases", DISEASE_SYNONYMS)),
            pests=_freeze_table(data.get("pests", PEST_SYNONYMS)),
            intents=_freeze_table(data.get("intents", INTENT_KEYWORDS)),
            months=MappingProxyType(month_table),
            units=tuple(str(u) for u in data.get("units", UNITS)),
            calendar=_freeze_calendar(data.get("calendar", CALENDAR)),
            region_names=MappingProxyType(dict(data.get("region_names", REGION_NAMES))),
            default_region=str(data.get("default_region", DEFAULT_REGION)),
        )

    @classmethod
    def default(cls) -> Lexicon:
        """The built-in lexicon."""
        return cls.from_dict()

    @classmethod
    def from_yaml(cls, path: Path) -> Lexicon:
        """Load a lexicon override file.

        Args:
            path: YAML file with one or more lexicon sections

        Returns:
            Frozen Lexicon

        Raises:
            LexiconError: If the file is missing, unreadable or malformed
        """
        path = Path(path)
        if not path.exists():
            raise LexiconError(f"Lexicon file not found: {path}")

        yaml = YAML(typ="safe")
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.load(f)
        except Exception as e:
            raise LexiconError(f"Failed to read lexicon file {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise LexiconError(f"Lexicon file {path} must contain a mapping")

        logger.info(f"Loaded lexicon overrides from {path}: {sorted(data)}")
        return cls.from_dict(data)

    def gazetteer(self, category: EntityCategory) -> Mapping[str, tuple[str, ...]]:
        """Synonym table for an entity category."""
        return {
            EntityCategory.CROP: self.crops,
            EntityCategory.DISEASE: self.diseases,
            EntityCategory.PEST: self.pests,
        }[category]

    @property
    def regions(self) -> tuple[str, ...]:
        return tuple(self.calendar)

    def resolve_region(self, region: str | None) -> str:
        """Map an arbitrary region id onto a known profile."""
        if region and region in self.calendar:
            return region
        return self.default_region

    def favorable_months(self, region: str | None, crop: str) -> tuple[int, ...]:
        """Favorable planting months for a crop (empty if not cataloged)."""
        return self.calendar[self.resolve_region(region)].get(crop, ())

    def region_name(self, region: str | None) -> str:
        resolved = self.resolve_region(region)
        return self.region_names.get(resolved, resolved)


__all__ = [
    "CALENDAR",
    "CROP_SYNONYMS",
    "DEFAULT_REGION",
    "DISEASE_SYNONYMS",
    "INTENT_KEYWORDS",
    "Lexicon",
    "LexiconError",
    "MONTH_DISPLAY",
    "MONTH_NAMES",
    "PEST_SYNONYMS",
    "REGION_NAMES",
    "UNITS",
]
