from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from langchain_core.prompts import PromptTemplate


NOT_SPECIFIED = "Not specified"

# Substituted for optional fields the caller left blank.
DEFAULT_SOIL_TYPE = "Mixed"
DEFAULT_SEASON = "Current"
DEFAULT_STATE = "India"
DEFAULT_DISTRICT = "General"
DEFAULT_CLIMATE = "Temperate"
DEFAULT_AREA = "Small scale"
DEFAULT_REGION = "General market"
DEFAULT_CURRENT_PRICE = "Market survey required"
DEFAULT_MARKET_SEASON = "Current period"
DEFAULT_CROP = "General crops"
DEFAULT_PRIMARY_CROP = "Mixed farming"
DEFAULT_WEATHER = "Not specified"
DEFAULT_PREVIOUS_TREATMENTS = "None"
DEFAULT_IRRIGATION_TYPE = "Not specified"
DEFAULT_YEAR = "Current year"
DEFAULT_RISK_TOLERANCE = "Medium"
DEFAULT_SUSTAINABILITY_GOALS = "Standard"
DEFAULT_FARMER_CATEGORY = "General"
DEFAULT_EQUIPMENT = "Basic farming tools"
DEFAULT_EDUCATION_TOPIC = "sustainable farming practices"
DEFAULT_EXPERIENCE_LEVEL = "Beginner to Intermediate"
DEFAULT_FARM_SCALE = "Small to medium scale"
DEFAULT_LANGUAGE = "English"
DEFAULT_LEARNING_GOALS = "Improve farming practices and productivity"
DEFAULT_CHAT_CONTEXT = "General agricultural consultation"


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def format_value(value: Any, default: str = NOT_SPECIFIED, unit: str = "") -> str:
    """Render a field value for a prompt line; blank values become ``default``.

    Whole floats drop the trailing ``.0`` and containers are rendered as
    compact JSON with sorted keys so the output is stable.
    """
    if is_blank(value):
        return default
    if isinstance(value, bool):
        text = "Yes" if value else "No"
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    elif isinstance(value, (dict, list, tuple)):
        text = json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)
    else:
        text = str(value).strip()
    return f"{text}{unit}" if unit else text


FieldRow = Tuple[str, Any, str, str]


def field_lines(rows: Iterable[FieldRow]) -> str:
    """``(label, value, default, unit)`` rows to ``- Label: value`` lines."""
    return "\n".join(
        f"- {label}: {format_value(value, default, unit)}"
        for label, value, default, unit in rows
    )


def row(label: str, value: Any, default: str = NOT_SPECIFIED, unit: str = "") -> FieldRow:
    return (label, value, default, unit)


def numbered_sections(sections: Sequence[str]) -> str:
    return "\n".join(f"{index}. {section}" for index, section in enumerate(sections, 1))


def json_shape_instruction(shape: Mapping[str, str]) -> str:
    body = json.dumps(dict(shape), indent=2, ensure_ascii=False)
    return (
        "Respond with a single JSON object using exactly these keys "
        "(values describe the expected content):\n"
        f"{body}\n"
        "Do not add any text outside the JSON object."
    )


def extra_lines(extra: Optional[Dict[str, Any]]) -> str:
    if not extra:
        return ""
    return "\n".join(
        f"- {humanize(key)}: {format_value(value)}" for key, value in sorted(extra.items())
    )


def humanize(name: str) -> str:
    chars = []
    for char in name:
        if char.isupper():
            chars.append(" ")
        chars.append(char)
    words = "".join(chars).replace("_", " ").split()
    return " ".join(word.capitalize() for word in words)


def render(template: PromptTemplate, **values: str) -> str:
    return template.format(**values).strip()
