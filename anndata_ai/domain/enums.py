from __future__ import annotations

from enum import Enum


class AnalysisKind(str, Enum):
    CROP_RECOMMENDATION = "crop_recommendation"
    DISEASE_DETECTION = "disease_detection"
    PEST_OUTBREAK = "pest_outbreak"
    YIELD_PREDICTION = "yield_prediction"
    MARKET_ANALYSIS = "market_analysis"
    FERTILIZER_RECOMMENDATION = "fertilizer_recommendation"
    CHAT = "chat"
    GEOSPATIAL_ANALYSIS = "geospatial_analysis"
    IRRIGATION_REQUIREMENT = "irrigation_requirement"
    SOIL_REPORT = "soil_report"
    CROP_SWAPPING = "crop_swapping"
    LOAN_RECOMMENDATION = "loan_recommendation"
    GOVERNMENT_SCHEMES = "government_schemes"
    FARMER_EDUCATION = "farmer_education"


class DecodingMethod(str, Enum):
    GREEDY = "greedy"
    SAMPLE = "sample"


class LLMBackend(str, Enum):
    WATSONX = "watsonx"
    HUGGINGFACE = "huggingface"


class InterpretationStrategy(str, Enum):
    EMBEDDED_JSON = "embedded_json"
    FULL_JSON = "full_json"
    KEY_VALUE = "key_value"
    RAW_TEXT = "raw_text"
