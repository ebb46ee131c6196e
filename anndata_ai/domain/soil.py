from __future__ import annotations

from typing import Dict, List, Optional

from ..schemas import SoilAssessment, SoilReportRequest


PH_OPTIMAL = (6.0, 7.5)
PH_TOLERABLE = (5.5, 8.0)

# (adequate above, moderate above) in ppm
NUTRIENT_BANDS = {
    "nitrogen": (40.0, 20.0),
    "phosphorus": (15.0, 8.0),
    "potassium": (120.0, 80.0),
}

_OPTIONAL_READINGS = (
    "organic_matter",
    "calcium",
    "magnesium",
    "sulfur",
    "iron",
    "zinc",
    "manganese",
    "copper",
    "boron",
    "electrical_conductivity",
    "cation_exchange_capacity",
    "soil_texture",
)


def soil_health_score(report: SoilReportRequest) -> int:
    score = 70
    low, high = PH_OPTIMAL
    tol_low, tol_high = PH_TOLERABLE
    if low <= report.ph <= high:
        score += 20
    elif tol_low <= report.ph <= tol_high:
        score += 15
    else:
        score += 10
    if report.organic_matter is not None:
        score += 10 if report.organic_matter >= 2 else 5
    if report.electrical_conductivity is not None:
        score += 5 if report.electrical_conductivity < 2 else -5
    return min(100, score)


def nutrient_band(nutrient: str, value: float) -> str:
    adequate, moderate = NUTRIENT_BANDS[nutrient]
    if value > adequate:
        return "Adequate"
    if value > moderate:
        return "Moderate"
    return "Low"


def ph_status(ph: float) -> str:
    low, high = PH_OPTIMAL
    if low <= ph <= high:
        return "Optimal"
    return "Acidic" if ph < low else "Alkaline"


def nutrient_status(report: SoilReportRequest) -> Dict[str, str]:
    status = {
        nutrient: nutrient_band(nutrient, getattr(report, nutrient))
        for nutrient in NUTRIENT_BANDS
    }
    status["ph_status"] = ph_status(report.ph)
    return status


def improvement_suggestions(report: SoilReportRequest) -> List[str]:
    suggestions: List[str] = []
    low, high = PH_OPTIMAL
    if report.ph < low:
        suggestions.append("Apply lime to reduce soil acidity")
    elif report.ph > high:
        suggestions.append("Apply sulfur or organic matter to reduce alkalinity")
    if report.nitrogen < 30:
        suggestions.append(
            "Increase nitrogen through organic compost or urea application"
        )
    if report.phosphorus < 10:
        suggestions.append("Apply phosphate fertilizers or bone meal")
    if report.potassium < 100:
        suggestions.append("Add potash or wood ash for potassium enhancement")
    if report.organic_matter is None or report.organic_matter < 2:
        suggestions.append(
            "Increase organic matter through compost, manure, or cover crops"
        )
    return suggestions


def data_completeness(report: SoilReportRequest) -> float:
    # The four primary readings are always present once validated.
    provided = 4 + sum(
        1 for name in _OPTIONAL_READINGS if _is_provided(getattr(report, name))
    )
    return round(provided / (4 + len(_OPTIONAL_READINGS)), 3)


def _is_provided(value: Optional[object]) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def assess_soil(report: SoilReportRequest) -> SoilAssessment:
    return SoilAssessment(
        overall_score=soil_health_score(report),
        nutrient_status=nutrient_status(report),
        recommendations=improvement_suggestions(report),
        data_completeness=data_completeness(report),
    )
