from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..domain.enums import AnalysisKind, DecodingMethod, InterpretationStrategy
from ..domain.normalizers import EnumNormalizer


_NUMERIC_ANNOTATIONS = (float, int, Optional[float], Optional[int])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationParameters(BaseModel):
    """Decoding settings sent with a prompt; unset values fall back to defaults."""

    decoding_method: Optional[DecodingMethod] = None
    max_new_tokens: Optional[int] = Field(default=None, gt=0, le=8192)
    min_new_tokens: Optional[int] = Field(default=None, ge=0, le=8192)
    repetition_penalty: Optional[float] = Field(default=None, gt=0.0, le=2.0)
    temperature: Optional[float] = Field(default=None, gt=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, gt=0.0, le=1.0)
    stop_sequences: Optional[List[str]] = None

    @field_validator("decoding_method", mode="before")
    @classmethod
    def normalize_decoding_method(cls, value):
        return EnumNormalizer.normalize(DecodingMethod, value)

    def merged_over(self, defaults: "GenerationParameters") -> "GenerationParameters":
        """Fill every unset field from ``defaults``."""
        payload = defaults.model_dump(exclude_none=True)
        payload.update(self.model_dump(exclude_none=True))
        return GenerationParameters(**payload)


class AnalysisRequest(BaseModel):
    """Common base of the per-kind request bodies (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    kind: ClassVar[AnalysisKind]

    @field_validator("*", mode="before")
    @classmethod
    def reject_boolean_readings(cls, value, info):
        # lax mode would read true/false as 1/0
        if isinstance(value, bool):
            field = cls.model_fields.get(info.field_name)
            if field is not None and field.annotation in _NUMERIC_ANNOTATIONS:
                raise ValueError("expected a number, got a boolean")
        return value

    @classmethod
    def required_fields(cls) -> List[str]:
        return [name for name, field in cls.model_fields.items() if field.is_required()]

    def completeness(self) -> float:
        """Share of optional fields the caller filled in."""
        optional = [
            name
            for name, field in type(self).model_fields.items()
            if not field.is_required()
        ]
        if not optional:
            return 1.0
        filled = 0
        for name in optional:
            value = getattr(self, name)
            if value is None or value == "" or value == [] or value == {}:
                continue
            filled += 1
        return filled / len(optional)


class CropRecommendationRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.CROP_RECOMMENDATION

    nitrogen: float = Field(ge=0)
    phosphorus: float = Field(ge=0)
    potassium: float = Field(ge=0)
    temperature: float = Field(ge=-60, le=70)
    humidity: float = Field(ge=0, le=100)
    ph: float = Field(ge=0, le=14)
    rainfall: float = Field(ge=0)
    state: Optional[str] = None
    district: Optional[str] = None
    soil_type: Optional[str] = None
    climate: Optional[str] = None
    area: Optional[str] = None
    season: Optional[str] = None


class DiseaseDetectionRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.DISEASE_DETECTION

    symptoms: str
    crop_type: str
    affected_area: Optional[str] = None
    weather_conditions: Optional[str] = None
    severity: Optional[str] = None
    location: Optional[str] = None
    previous_treatments: Optional[str] = None
    images: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def has_images(self) -> bool:
        return bool(self.images)


class PestOutbreakRequest(DiseaseDetectionRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.PEST_OUTBREAK

    pest_type: Optional[str] = None
    damage_level: Optional[str] = None
    infestation_stage: Optional[str] = None


class YieldPredictionRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.YIELD_PREDICTION

    crop_type: str
    area: float = Field(gt=0, description="Cultivated area in hectares")
    season: str
    soil_type: Optional[str] = None
    irrigation_type: Optional[str] = None
    rainfall: Optional[float] = Field(default=None, ge=0)
    temperature: Optional[float] = Field(default=None, ge=-60, le=70)


class MarketAnalysisRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.MARKET_ANALYSIS

    crop_type: str
    region: str
    current_price: Optional[float] = Field(default=None, ge=0, description="INR per kg")
    season: Optional[str] = None


class FertilizerRecommendationRequest(AnalysisRequest):
    """Soil analysis; unknown extra readings are kept and passed to the prompt."""

    model_config = ConfigDict(extra="allow")

    kind: ClassVar[AnalysisKind] = AnalysisKind.FERTILIZER_RECOMMENDATION

    nitrogen: float = Field(ge=0)
    phosphorus: float = Field(ge=0)
    potassium: float = Field(ge=0)
    ph: float = Field(ge=0, le=14)
    organic_matter: Optional[float] = Field(default=None, ge=0, le=100)
    soil_type: Optional[str] = None
    crop_type: Optional[str] = None


class ChatRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.CHAT

    message: str = Field(min_length=1)
    context: Optional[Any] = None


class GeospatialAnalysisRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.GEOSPATIAL_ANALYSIS

    crop_type: str
    district: str
    state: str
    season: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2200)


class IrrigationRequirementRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.IRRIGATION_REQUIREMENT

    crop_type: str
    growth_stage: str
    soil_type: Optional[str] = None
    weather: Optional[Union[Dict[str, Any], str]] = None
    area: Optional[float] = Field(default=None, gt=0)


class SoilReportRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.SOIL_REPORT

    nitrogen: float = Field(ge=0)
    phosphorus: float = Field(ge=0)
    potassium: float = Field(ge=0)
    ph: float = Field(ge=0, le=14)
    organic_matter: Optional[float] = Field(default=None, ge=0, le=100)
    calcium: Optional[float] = Field(default=None, ge=0)
    magnesium: Optional[float] = Field(default=None, ge=0)
    sulfur: Optional[float] = Field(default=None, ge=0)
    iron: Optional[float] = Field(default=None, ge=0)
    zinc: Optional[float] = Field(default=None, ge=0)
    manganese: Optional[float] = Field(default=None, ge=0)
    copper: Optional[float] = Field(default=None, ge=0)
    boron: Optional[float] = Field(default=None, ge=0)
    electrical_conductivity: Optional[float] = Field(default=None, ge=0)
    cation_exchange_capacity: Optional[float] = Field(default=None, ge=0)
    soil_texture: Optional[str] = None
    crop_type: Optional[str] = None
    field_location: Optional[str] = None
    report_date: Optional[str] = None
    lab_name: Optional[str] = None


class SoilConditions(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True
    )

    nitrogen: Optional[float] = None
    phosphorus: Optional[float] = None
    potassium: Optional[float] = None
    ph: Optional[float] = None
    soil_type: Optional[str] = None


class MarketConditions(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True
    )

    current_price: Optional[str] = None
    demand_trend: Optional[str] = None
    competition: Optional[str] = None


class CropSwappingRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.CROP_SWAPPING

    current_crop: str
    farm_location: str
    current_yield: Optional[str] = None
    soil_conditions: Optional[SoilConditions] = None
    farm_size: Optional[str] = None
    season: Optional[str] = None
    market_conditions: Optional[MarketConditions] = None
    available_budget: Optional[str] = None
    risk_tolerance: Optional[str] = None
    sustainability_goals: Optional[str] = None


class LoanRecommendationRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.LOAN_RECOMMENDATION

    farm_size: float = Field(gt=0, description="Acres")
    income: float = Field(ge=0)
    loan_purpose: str
    credit_score: Optional[int] = Field(default=None, ge=300, le=900)
    collateral: Optional[str] = None
    farming_experience: Optional[float] = Field(default=None, ge=0)
    crop_type: Optional[str] = None
    location: Optional[str] = None


class GovernmentSchemesRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.GOVERNMENT_SCHEMES

    location: str
    farm_size: float = Field(gt=0, description="Acres")
    crop_type: Optional[str] = None
    farmer_category: Optional[str] = None
    income: Optional[float] = Field(default=None, ge=0)
    age: Optional[int] = Field(default=None, ge=0, le=130)
    equipment: Optional[str] = None


class FarmerEducationRequest(AnalysisRequest):
    kind: ClassVar[AnalysisKind] = AnalysisKind.FARMER_EDUCATION

    topic: Optional[str] = None
    experience_level: Optional[str] = None
    crop_type: Optional[str] = None
    farm_size: Optional[str] = None
    region: Optional[str] = None
    language: Optional[str] = None
    learning_goals: Optional[str] = None


class InterpretedResult(BaseModel):
    """Outcome of reading structure out of a raw completion."""

    structured: bool
    strategy: InterpretationStrategy
    data: Any = None
    text: str = ""


class SoilAssessment(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    nutrient_status: Dict[str, str] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)
    data_completeness: float = Field(ge=0.0, le=1.0)


class ResponseEnvelope(BaseModel):
    """Uniform success payload of every analysis endpoint."""

    success: bool = True
    message: str
    kind: AnalysisKind
    data: Any = None
    structured: bool
    interpretation: InterpretationStrategy
    raw_response: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    source: str
    model: str
    assessment: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class UpstreamHealth(BaseModel):
    available: bool
    backend: str
    model: str
    error: Optional[str] = None


class HealthResponse(BaseModel):
    success: bool = True
    message: str
    data: UpstreamHealth
    timestamp: datetime = Field(default_factory=_utcnow)
