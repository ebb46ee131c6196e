import re
from enum import Enum
from typing import Any, Type

from .enums import AnalysisKind, DecodingMethod, LLMBackend


class EnumNormalizer:
    # alias -> canonical value, one table per enum
    ALIASES: dict[Type[Enum], dict[str, str]] = {
        DecodingMethod: {
            "greedy": "greedy",
            "deterministic": "greedy",
            "sample": "sample",
            "sampling": "sample",
            "do_sample": "sample",
        },
        LLMBackend: {
            "watsonx": "watsonx",
            "watsonx.ai": "watsonx",
            "ibm": "watsonx",
            "ibm_watson": "watsonx",
            "watson": "watsonx",
            "huggingface": "huggingface",
            "hugging_face": "huggingface",
            "hf": "huggingface",
        },
        AnalysisKind: {
            "crop recommendation": "crop_recommendation",
            "disease detection": "disease_detection",
            "pest outbreak": "pest_outbreak",
            "yield prediction": "yield_prediction",
            "market analysis": "market_analysis",
            "fertilizer recommendation": "fertilizer_recommendation",
            "geospatial analysis": "geospatial_analysis",
            "irrigation requirement": "irrigation_requirement",
            "analyze soil report": "soil_report",
            "soil report": "soil_report",
            "crop swapping strategy": "crop_swapping",
            "crop swapping": "crop_swapping",
            "loan recommendation": "loan_recommendation",
            "government schemes": "government_schemes",
            "farmer education": "farmer_education",
            "chat": "chat",
        },
    }

    @staticmethod
    def _canon_key(x: Any) -> str:
        # strip, lower-case, treat -/_ as spaces, collapse whitespace
        s = str(x).strip().lower()
        s = re.sub(r"[-_\s]+", " ", s)
        return s

    @classmethod
    def normalize(cls, enum_cls: Type[Enum], value: Any) -> Any:
        if value is None:
            return value

        if isinstance(value, enum_cls):
            return value.value

        key = cls._canon_key(value)
        aliases = cls.ALIASES.get(enum_cls, {})
        if key in aliases:
            return aliases[key]
        underscored = key.replace(" ", "_")
        return aliases.get(underscored, value)  # unmatched values go to pydantic as-is
