"""Heuristic confidence hints attached to analysis responses.

The numbers are not calibrated probabilities. They start from a per-kind
baseline and are nudged by how complete the caller's input was, whether the
completion could be structured and how many domain terms it mentions. A
confidence reported by the model itself takes precedence when present.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..schemas import InterpretedResult
from .enums import AnalysisKind


BASELINE_CONFIDENCE: Dict[AnalysisKind, float] = {
    AnalysisKind.CROP_RECOMMENDATION: 0.85,
    AnalysisKind.DISEASE_DETECTION: 0.79,
    AnalysisKind.PEST_OUTBREAK: 0.83,
    AnalysisKind.YIELD_PREDICTION: 0.77,
    AnalysisKind.MARKET_ANALYSIS: 0.72,
    AnalysisKind.FERTILIZER_RECOMMENDATION: 0.89,
    AnalysisKind.CHAT: 0.81,
    AnalysisKind.GEOSPATIAL_ANALYSIS: 0.80,
    AnalysisKind.IRRIGATION_REQUIREMENT: 0.86,
    AnalysisKind.SOIL_REPORT: 0.88,
    AnalysisKind.CROP_SWAPPING: 0.72,
    AnalysisKind.LOAN_RECOMMENDATION: 0.75,
    AnalysisKind.GOVERNMENT_SCHEMES: 0.78,
    AnalysisKind.FARMER_EDUCATION: 0.80,
}
DEFAULT_BASELINE = 0.75

DOMAIN_KEYWORDS: Dict[AnalysisKind, Tuple[str, ...]] = {
    AnalysisKind.CROP_RECOMMENDATION: (
        "nitrogen", "phosphorus", "potassium", "soil", "climate", "yield",
        "cultivation", "harvest", "variety",
    ),
    AnalysisKind.DISEASE_DETECTION: (
        "disease", "symptom", "treatment", "pathogen", "fungal", "bacterial",
        "viral", "infection", "diagnosis",
    ),
    AnalysisKind.PEST_OUTBREAK: (
        "pest", "insect", "larva", "damage", "control", "management",
        "infestation", "predator",
    ),
    AnalysisKind.YIELD_PREDICTION: (
        "yield", "production", "harvest", "hectare", "season", "forecast",
        "estimate",
    ),
    AnalysisKind.MARKET_ANALYSIS: (
        "price", "market", "demand", "supply", "profit", "cost", "trend",
    ),
    AnalysisKind.FERTILIZER_RECOMMENDATION: (
        "fertilizer", "nutrient", "organic", "nitrogen", "phosphorus",
        "potassium", "application",
    ),
    AnalysisKind.GEOSPATIAL_ANALYSIS: (
        "location", "climate", "rainfall", "district", "soil", "region",
        "water",
    ),
    AnalysisKind.IRRIGATION_REQUIREMENT: (
        "water", "irrigation", "moisture", "rainfall", "efficiency",
        "schedule",
    ),
    AnalysisKind.SOIL_REPORT: (
        "soil", "fertilizer", "nutrient", "organic", "ph",
    ),
}

MODEL_CONFIDENCE_KEYS = ("confidence", "confidence_score")

UNSTRUCTURED_PENALTY = 0.05
MAX_COMPLETENESS_BONUS = 0.05
MAX_KEYWORD_BONUS = 0.05


def _as_probability(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().rstrip("%")
        try:
            value = float(text)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    number = float(value)
    if 1.0 < number <= 100.0:
        number = number / 100.0
    if 0.0 <= number <= 1.0:
        return number
    return None


def model_reported_confidence(data: Any) -> Optional[float]:
    """Look for a confidence the model reported, at the top level or one level down."""
    if not isinstance(data, Mapping):
        return None
    for key in MODEL_CONFIDENCE_KEYS:
        found = _as_probability(data.get(key))
        if found is not None:
            return found
    for value in data.values():
        if isinstance(value, Mapping):
            for key in MODEL_CONFIDENCE_KEYS:
                found = _as_probability(value.get(key))
                if found is not None:
                    return found
    return None


def keyword_coverage(text: str, keywords: Iterable[str]) -> float:
    keywords = tuple(keywords)
    if not keywords or not text:
        return 0.0
    lowered = text.lower()
    hits = sum(1 for keyword in keywords if keyword in lowered)
    return hits / len(keywords)


def estimate_confidence(
    kind: AnalysisKind,
    result: InterpretedResult,
    *,
    completeness: float = 1.0,
) -> float:
    reported = model_reported_confidence(result.data)
    if reported is not None:
        return round(reported, 2)
    score = BASELINE_CONFIDENCE.get(kind, DEFAULT_BASELINE)
    if not result.structured:
        score -= UNSTRUCTURED_PENALTY
    score += max(0.0, min(1.0, completeness)) * MAX_COMPLETENESS_BONUS
    score += keyword_coverage(result.text, DOMAIN_KEYWORDS.get(kind, ())) * (
        MAX_KEYWORD_BONUS
    )
    return round(max(0.0, min(1.0, score)), 2)
