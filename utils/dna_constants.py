# utils/dna_constants.py

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

# Official axis order – every serialization and every engine uses this tuple.
AXES: Tuple[str, ...] = (
    "economic",
    "values",
    "environment",
    "regional",
    "international",
    "security",
)

AXIS_MIN = -1.0
AXIS_MAX = 1.0


class ActorKind(str, Enum):
    CITIZEN = "citizen"
    REPRESENTATIVE = "representative"
    PARTY = "party"
    COUNCILOR = "councilor"


class ItemKind(str, Enum):
    BILL = "bill"
    DECISION = "decision"


class Category(str, Enum):
    ECONOMY = "Economy"
    VALUES = "Values"
    ENVIRONMENT = "Environment"
    REGIONAL = "Regional"
    INTERNATIONAL = "International"
    SECURITY = "Security"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: object) -> "Category":
        """
        Accepts enum values, English names and the Finnish labels used by
        the bill tagger. Anything unknown is Other.
        """
        if isinstance(value, Category):
            return value
        key = str(value or "").strip().lower()
        return _CATEGORY_ALIASES.get(key, cls.OTHER)


_CATEGORY_ALIASES: Dict[str, Category] = {
    "economy": Category.ECONOMY,
    "talous": Category.ECONOMY,
    "values": Category.VALUES,
    "arvot": Category.VALUES,
    "environment": Category.ENVIRONMENT,
    "ympäristö": Category.ENVIRONMENT,
    "regional": Category.REGIONAL,
    "aluepolitiikka": Category.REGIONAL,
    "international": Category.INTERNATIONAL,
    "kansainvälisyys": Category.INTERNATIONAL,
    "security": Category.SECURITY,
    "turvallisuus": Category.SECURITY,
    "other": Category.OTHER,
    "muu": Category.OTHER,
}

# The one category -> axis table. Other has no axis.
CATEGORY_TO_AXIS: Dict[Category, str] = {
    Category.ECONOMY: "economic",
    Category.VALUES: "values",
    Category.ENVIRONMENT: "environment",
    Category.REGIONAL: "regional",
    Category.INTERNATIONAL: "international",
    Category.SECURITY: "security",
}

CORE_CATEGORIES: Tuple[Category, ...] = tuple(CATEGORY_TO_AXIS.keys())


def axis_for(category: Category) -> Optional[str]:
    return CATEGORY_TO_AXIS.get(category)


class VoteChoice(str, Enum):
    SUPPORT = "support"
    OPPOSE = "oppose"
    ABSTAIN = "abstain"

    @property
    def polarity(self) -> int:
        if self is VoteChoice.SUPPORT:
            return 1
        if self is VoteChoice.OPPOSE:
            return -1
        return 0

    @classmethod
    def parse(cls, value: object) -> "VoteChoice":
        if isinstance(value, VoteChoice):
            return value
        key = str(value or "").strip().lower()
        if key not in _VOTE_ALIASES:
            raise ValueError(f"Unknown vote choice: {value!r}")
        return _VOTE_ALIASES[key]


_VOTE_ALIASES: Dict[str, VoteChoice] = {
    "support": VoteChoice.SUPPORT,
    "for": VoteChoice.SUPPORT,
    "pro": VoteChoice.SUPPORT,
    "jaa": VoteChoice.SUPPORT,
    "oppose": VoteChoice.OPPOSE,
    "against": VoteChoice.OPPOSE,
    "ei": VoteChoice.OPPOSE,
    "abstain": VoteChoice.ABSTAIN,
    "neutral": VoteChoice.ABSTAIN,
    "tyhjää": VoteChoice.ABSTAIN,
    "poissa": VoteChoice.ABSTAIN,
}


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Item key used for survey-based (declared vs revealed) alerts.
SURVEY_ITEM_KEY = "survey"
