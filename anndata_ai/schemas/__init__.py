from .models import (
    AnalysisRequest,
    ChatRequest,
    CropRecommendationRequest,
    CropSwappingRequest,
    DiseaseDetectionRequest,
    ErrorResponse,
    FarmerEducationRequest,
    FertilizerRecommendationRequest,
    GenerationParameters,
    GeospatialAnalysisRequest,
    GovernmentSchemesRequest,
    HealthResponse,
    InterpretedResult,
    IrrigationRequirementRequest,
    LoanRecommendationRequest,
    MarketAnalysisRequest,
    MarketConditions,
    PestOutbreakRequest,
    ResponseEnvelope,
    SoilAssessment,
    SoilConditions,
    SoilReportRequest,
    UpstreamHealth,
    YieldPredictionRequest,
)

__all__ = [
    "AnalysisRequest",
    "ChatRequest",
    "CropRecommendationRequest",
    "CropSwappingRequest",
    "DiseaseDetectionRequest",
    "ErrorResponse",
    "FarmerEducationRequest",
    "FertilizerRecommendationRequest",
    "GenerationParameters",
    "GeospatialAnalysisRequest",
    "GovernmentSchemesRequest",
    "HealthResponse",
    "InterpretedResult",
    "IrrigationRequirementRequest",
    "LoanRecommendationRequest",
    "MarketAnalysisRequest",
    "MarketConditions",
    "PestOutbreakRequest",
    "ResponseEnvelope",
    "SoilAssessment",
    "SoilConditions",
    "SoilReportRequest",
    "UpstreamHealth",
    "YieldPredictionRequest",
]
