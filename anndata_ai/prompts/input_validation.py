from __future__ import annotations

from typing import Dict, Iterable


INPUT_SCHEMA_FALLBACK_MESSAGE = "The request body is not valid for this analysis."
MALFORMED_BODY_MESSAGE = "Request body must be a JSON object."


def format_input_validation_message(
    action_name: str, missing_fields: Iterable[str], field_labels: Dict[str, str]
) -> str:
    labels = [field_labels.get(field, field) for field in missing_fields]
    joined = ", ".join(labels)
    return f"{action_name} requires: {joined}."


def format_invalid_value_message(
    action_name: str, invalid_fields: Iterable[str], field_labels: Dict[str, str]
) -> str:
    labels = [field_labels.get(field, field) for field in invalid_fields]
    if not labels:
        return INPUT_SCHEMA_FALLBACK_MESSAGE
    joined = ", ".join(labels)
    return f"{action_name} received invalid values for: {joined}."
