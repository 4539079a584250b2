"""Hidden test vectors for coding questions, keyed by question index.

Validators are static configuration loaded once at import from
``validators.json``; grading logic lives in :mod:`evaluation.coding` and the
execution mechanism in :mod:`sandbox`.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_KEYWORDS = ("algorithm", "complexity")


class HiddenTest(BaseModel):
    """Call the entry point with ``*args`` and expect ``expected`` back."""

    model_config = ConfigDict(frozen=True)

    args: tuple[Any, ...]
    expected: Any


class Validator(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_index: int
    tests: tuple[HiddenTest, ...]
    required_keywords: tuple[str, ...]


# ---------------------------------------------------------------------------
# Validator Loader
# ---------------------------------------------------------------------------


def load_validators_from_json(json_path: Path | None = None) -> dict[int, Validator]:
    """Load validators from the bundled JSON file."""
    json_path = json_path or Path(__file__).parent / "validators.json"
    if not json_path.exists():
        logger.error(f"validators.json not found at {json_path}")
        return {}

    with open(json_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    validators = [Validator(**item) for item in data]
    return {v.question_index: v for v in validators}


# Load once at startup
ALL_VALIDATORS = MappingProxyType(load_validators_from_json())


def get_validator(question_index: int) -> Validator | None:
    return ALL_VALIDATORS.get(question_index)


def required_keywords_for(question_index: int) -> tuple[str, ...]:
    validator = get_validator(question_index)
    return validator.required_keywords if validator else DEFAULT_REQUIRED_KEYWORDS
