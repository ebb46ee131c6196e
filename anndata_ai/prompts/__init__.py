from __future__ import annotations

from typing import Callable, Dict

from ..domain.enums import AnalysisKind
from ..schemas import AnalysisRequest
from .advisory import (
    build_chat_prompt,
    build_farmer_education_prompt,
    build_government_schemes_prompt,
    build_loan_recommendation_prompt,
    build_market_analysis_prompt,
)
from .agronomy import (
    build_crop_recommendation_prompt,
    build_crop_swapping_prompt,
    build_fertilizer_recommendation_prompt,
    build_geospatial_analysis_prompt,
    build_irrigation_requirement_prompt,
    build_soil_report_prompt,
    build_yield_prediction_prompt,
)
from .diagnosis import build_disease_detection_prompt, build_pest_outbreak_prompt


PROMPT_BUILDERS: Dict[AnalysisKind, Callable[..., str]] = {
    AnalysisKind.CROP_RECOMMENDATION: build_crop_recommendation_prompt,
    AnalysisKind.DISEASE_DETECTION: build_disease_detection_prompt,
    AnalysisKind.PEST_OUTBREAK: build_pest_outbreak_prompt,
    AnalysisKind.YIELD_PREDICTION: build_yield_prediction_prompt,
    AnalysisKind.MARKET_ANALYSIS: build_market_analysis_prompt,
    AnalysisKind.FERTILIZER_RECOMMENDATION: build_fertilizer_recommendation_prompt,
    AnalysisKind.CHAT: build_chat_prompt,
    AnalysisKind.GEOSPATIAL_ANALYSIS: build_geospatial_analysis_prompt,
    AnalysisKind.IRRIGATION_REQUIREMENT: build_irrigation_requirement_prompt,
    AnalysisKind.SOIL_REPORT: build_soil_report_prompt,
    AnalysisKind.CROP_SWAPPING: build_crop_swapping_prompt,
    AnalysisKind.LOAN_RECOMMENDATION: build_loan_recommendation_prompt,
    AnalysisKind.GOVERNMENT_SCHEMES: build_government_schemes_prompt,
    AnalysisKind.FARMER_EDUCATION: build_farmer_education_prompt,
}


def build_prompt(request: AnalysisRequest) -> str:
    """Render the prompt for a validated request; pure and deterministic."""
    return PROMPT_BUILDERS[request.kind](request)


__all__ = ["PROMPT_BUILDERS", "build_prompt"]
