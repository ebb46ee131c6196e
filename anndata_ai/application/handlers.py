from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..domain.enums import AnalysisKind
from ..domain.errors import ValidationError
from ..domain.soil import assess_soil
from ..prompts import PROMPT_BUILDERS
from ..prompts.common import is_blank
from ..prompts.input_validation import (
    MALFORMED_BODY_MESSAGE,
    format_input_validation_message,
    format_invalid_value_message,
)
from ..schemas import (
    AnalysisRequest,
    ChatRequest,
    CropRecommendationRequest,
    CropSwappingRequest,
    DiseaseDetectionRequest,
    FarmerEducationRequest,
    FertilizerRecommendationRequest,
    GenerationParameters,
    GeospatialAnalysisRequest,
    GovernmentSchemesRequest,
    IrrigationRequirementRequest,
    LoanRecommendationRequest,
    MarketAnalysisRequest,
    PestOutbreakRequest,
    SoilReportRequest,
    YieldPredictionRequest,
)


@dataclass(frozen=True)
class HandlerSpec:
    kind: AnalysisKind
    route: str
    title: str
    model: Type[AnalysisRequest]
    field_labels: Dict[str, str]
    message: str
    source: str
    parameters: GenerationParameters = field(default_factory=GenerationParameters)
    local_assessment: Optional[Callable[[Any], BaseModel]] = None

    @property
    def required_fields(self) -> Sequence[str]:
        return self.model.required_fields()

    @property
    def to_prompt(self) -> Callable[[AnalysisRequest], str]:
        return PROMPT_BUILDERS[self.kind]

    def wire_name(self, name: str) -> str:
        info = self.model.model_fields.get(name)
        return (info.alias if info is not None and info.alias else name)


SOIL_FIELD_LABELS = {
    "nitrogen": "nitrogen (ppm)",
    "phosphorus": "phosphorus (ppm)",
    "potassium": "potassium (ppm)",
    "ph": "ph",
}
CROP_RECOMMENDATION_FIELD_LABELS = {
    **SOIL_FIELD_LABELS,
    "temperature": "temperature (°C)",
    "humidity": "humidity (%)",
    "rainfall": "rainfall (mm)",
}
DIAGNOSIS_FIELD_LABELS = {
    "symptoms": "symptoms",
    "crop_type": "cropType",
}
YIELD_FIELD_LABELS = {
    "crop_type": "cropType",
    "area": "area (hectares)",
    "season": "season",
}
MARKET_FIELD_LABELS = {
    "crop_type": "cropType",
    "region": "region",
    "current_price": "currentPrice (per kg)",
}
CHAT_FIELD_LABELS = {"message": "message"}
GEOSPATIAL_FIELD_LABELS = {
    "crop_type": "cropType",
    "district": "district",
    "state": "state",
    "year": "year",
}
IRRIGATION_FIELD_LABELS = {
    "crop_type": "cropType",
    "growth_stage": "growthStage",
    "area": "area (hectares)",
}
CROP_SWAPPING_FIELD_LABELS = {
    "current_crop": "currentCrop",
    "farm_location": "farmLocation",
}
LOAN_FIELD_LABELS = {
    "farm_size": "farmSize (acres)",
    "income": "income",
    "loan_purpose": "loanPurpose",
    "credit_score": "creditScore (300-900)",
}
SCHEME_FIELD_LABELS = {
    "location": "location",
    "farm_size": "farmSize (acres)",
}

CHAT_PARAMETERS = GenerationParameters(max_new_tokens=800, min_new_tokens=20)
ADVISORY_PARAMETERS = GenerationParameters(max_new_tokens=1500)


HANDLER_SPECS: Dict[AnalysisKind, HandlerSpec] = {
    spec.kind: spec
    for spec in (
        HandlerSpec(
            kind=AnalysisKind.CROP_RECOMMENDATION,
            route="/crop-recommendation",
            title="Crop recommendation",
            model=CropRecommendationRequest,
            field_labels=CROP_RECOMMENDATION_FIELD_LABELS,
            message="Crop recommendations generated successfully",
            source="IBM Granite AI (Agricultural Analysis)",
        ),
        HandlerSpec(
            kind=AnalysisKind.DISEASE_DETECTION,
            route="/disease-detection",
            title="Disease detection",
            model=DiseaseDetectionRequest,
            field_labels=DIAGNOSIS_FIELD_LABELS,
            message="Disease analysis completed successfully",
            source="IBM Granite AI (Disease Analysis)",
        ),
        HandlerSpec(
            kind=AnalysisKind.PEST_OUTBREAK,
            route="/pest-outbreak",
            title="Pest outbreak analysis",
            model=PestOutbreakRequest,
            field_labels=DIAGNOSIS_FIELD_LABELS,
            message="Pest outbreak analysis completed successfully",
            source="IBM Granite AI (Pest Management)",
        ),
        HandlerSpec(
            kind=AnalysisKind.YIELD_PREDICTION,
            route="/yield-prediction",
            title="Yield prediction",
            model=YieldPredictionRequest,
            field_labels=YIELD_FIELD_LABELS,
            message="Yield prediction completed successfully",
            source="IBM Granite AI (Yield Analytics)",
        ),
        HandlerSpec(
            kind=AnalysisKind.MARKET_ANALYSIS,
            route="/market-analysis",
            title="Market analysis",
            model=MarketAnalysisRequest,
            field_labels=MARKET_FIELD_LABELS,
            message="Market analysis completed successfully",
            source="IBM Granite AI (Market Intelligence)",
        ),
        HandlerSpec(
            kind=AnalysisKind.FERTILIZER_RECOMMENDATION,
            route="/fertilizer-recommendation",
            title="Fertilizer recommendation",
            model=FertilizerRecommendationRequest,
            field_labels=SOIL_FIELD_LABELS,
            message="Fertilizer recommendations generated successfully",
            source="IBM Granite AI (Fertilizer Specialist)",
        ),
        HandlerSpec(
            kind=AnalysisKind.CHAT,
            route="/chat",
            title="Chat",
            model=ChatRequest,
            field_labels=CHAT_FIELD_LABELS,
            message="Chat response generated successfully",
            source="IBM Granite AI (AgriBot)",
            parameters=CHAT_PARAMETERS,
        ),
        HandlerSpec(
            kind=AnalysisKind.GEOSPATIAL_ANALYSIS,
            route="/geospatial-analysis",
            title="Geospatial analysis",
            model=GeospatialAnalysisRequest,
            field_labels=GEOSPATIAL_FIELD_LABELS,
            message="Geospatial analysis completed successfully",
            source="IBM Granite AI (Geospatial Analytics)",
        ),
        HandlerSpec(
            kind=AnalysisKind.IRRIGATION_REQUIREMENT,
            route="/irrigation-requirement",
            title="Irrigation requirement",
            model=IrrigationRequirementRequest,
            field_labels=IRRIGATION_FIELD_LABELS,
            message="Irrigation requirements calculated successfully",
            source="IBM Granite AI (Irrigation Specialist)",
        ),
        HandlerSpec(
            kind=AnalysisKind.SOIL_REPORT,
            route="/analyze-soil-report",
            title="Soil report analysis",
            model=SoilReportRequest,
            field_labels=SOIL_FIELD_LABELS,
            message="Soil report analyzed successfully",
            source="IBM Granite AI (Soil Analysis)",
            local_assessment=assess_soil,
        ),
        HandlerSpec(
            kind=AnalysisKind.CROP_SWAPPING,
            route="/crop-swapping-strategy",
            title="Crop swapping strategy",
            model=CropSwappingRequest,
            field_labels=CROP_SWAPPING_FIELD_LABELS,
            message="Crop swapping strategy generated successfully",
            source="IBM Granite AI (Crop Strategy)",
            parameters=ADVISORY_PARAMETERS,
        ),
        HandlerSpec(
            kind=AnalysisKind.LOAN_RECOMMENDATION,
            route="/loan-recommendation",
            title="Loan recommendation",
            model=LoanRecommendationRequest,
            field_labels=LOAN_FIELD_LABELS,
            message="Loan recommendations generated successfully",
            source="IBM Granite AI (Agricultural Finance)",
            parameters=ADVISORY_PARAMETERS,
        ),
        HandlerSpec(
            kind=AnalysisKind.GOVERNMENT_SCHEMES,
            route="/government-schemes",
            title="Government scheme lookup",
            model=GovernmentSchemesRequest,
            field_labels=SCHEME_FIELD_LABELS,
            message="Government schemes retrieved successfully",
            source="IBM Granite AI (Policy Advisor)",
            parameters=ADVISORY_PARAMETERS,
        ),
        HandlerSpec(
            kind=AnalysisKind.FARMER_EDUCATION,
            route="/farmer-education",
            title="Farmer education",
            model=FarmerEducationRequest,
            field_labels={},
            message="Educational content generated successfully",
            source="IBM Granite AI (Farmer Education)",
            parameters=ADVISORY_PARAMETERS,
        ),
    )
}


def get_handler_spec(kind: AnalysisKind) -> HandlerSpec:
    return HANDLER_SPECS[kind]


def find_missing_fields(spec: HandlerSpec, payload: Mapping[str, Any]) -> List[str]:
    """Required fields that are absent, null or blank; accepts camelCase or snake_case keys.

    Zero is a valid reading and never counts as missing.
    """
    missing = []
    for name in spec.required_fields:
        alias = spec.wire_name(name)
        # the camelCase key wins whenever present, as in model validation
        value = payload[alias] if alias in payload else payload.get(name)
        if is_blank(value):
            missing.append(name)
    return missing


def _invalid_fields(spec: HandlerSpec, exc: PydanticValidationError) -> List[str]:
    by_alias = {spec.wire_name(name): name for name in spec.model.model_fields}
    fields: List[str] = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        if not loc:
            continue
        name = by_alias.get(str(loc[0]), str(loc[0]))
        if name not in fields:
            fields.append(name)
    return fields


def parse_request(spec: HandlerSpec, payload: Any) -> AnalysisRequest:
    if not isinstance(payload, Mapping):
        raise ValidationError(MALFORMED_BODY_MESSAGE)
    missing = find_missing_fields(spec, payload)
    if missing:
        raise ValidationError(
            format_input_validation_message(spec.title, missing, spec.field_labels),
            missing_fields=missing,
        )
    try:
        return spec.model.model_validate(dict(payload))
    except PydanticValidationError as exc:
        invalid = _invalid_fields(spec, exc)
        raise ValidationError(
            format_invalid_value_message(spec.title, invalid, spec.field_labels),
            missing_fields=[],
        ) from exc
