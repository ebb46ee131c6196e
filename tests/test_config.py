import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from pydantic import ValidationError as PydanticValidationError

from anndata_ai.domain.enums import DecodingMethod
from anndata_ai.infra.config import get_config
from anndata_ai.schemas import GenerationParameters


class ConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        get_config.cache_clear()

    def tearDown(self) -> None:
        get_config.cache_clear()

    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = get_config()
        self.assertEqual(cfg.llm_backend, "watsonx")
        self.assertEqual(cfg.llm_timeout_seconds, 30.0)
        self.assertEqual(cfg.api_prefix, "/api/ai")
        self.assertEqual(cfg.default_model, "ibm/granite-3-8b-instruct")
        self.assertEqual(cfg.cors_origin_list, ["*"])
        self.assertIsNone(cfg.watsonx_api_key)

    def test_env_overrides(self) -> None:
        env = {
            "LLM_BACKEND": "HF",
            "LLM_TIMEOUT_SECONDS": "12.5",
            "API_PREFIX": "api/v2/",
            "CORS_ORIGINS": "http://localhost:3000, https://anndata.example.org,",
            "HUGGINGFACE_MODEL": "ibm-granite/granite-3.1-2b-instruct",
            "WATSONX_URL": "https://eu-de.ml.cloud.ibm.com/",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = get_config()
        self.assertEqual(cfg.llm_backend, "huggingface")
        self.assertEqual(cfg.llm_timeout_seconds, 12.5)
        self.assertEqual(cfg.api_prefix, "/api/v2")
        self.assertEqual(
            cfg.cors_origin_list,
            ["http://localhost:3000", "https://anndata.example.org"],
        )
        self.assertEqual(cfg.default_model, "ibm-granite/granite-3.1-2b-instruct")
        self.assertEqual(cfg.watsonx_url, "https://eu-de.ml.cloud.ibm.com")

    def test_backend_aliases(self) -> None:
        for raw in ("IBM", "watsonx.ai", "Watsonx"):
            with self.subTest(raw=raw):
                get_config.cache_clear()
                with patch.dict(os.environ, {"LLM_BACKEND": raw}, clear=True):
                    self.assertEqual(get_config().llm_backend, "watsonx")

    def test_config_is_cached(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            self.assertIs(get_config(), get_config())

    def test_timeout_must_be_positive(self) -> None:
        with patch.dict(os.environ, {"LLM_TIMEOUT_SECONDS": "0"}, clear=True):
            with self.assertRaises(PydanticValidationError):
                get_config()


class GenerationParametersTests(unittest.TestCase):
    def test_decoding_method_aliases(self) -> None:
        self.assertEqual(
            GenerationParameters(decoding_method="Sampling").decoding_method,
            DecodingMethod.SAMPLE,
        )
        self.assertEqual(
            GenerationParameters(decoding_method="GREEDY").decoding_method,
            DecodingMethod.GREEDY,
        )

    def test_merge_keeps_overrides_and_fills_the_rest(self) -> None:
        defaults = GenerationParameters(
            decoding_method="greedy", max_new_tokens=2000, temperature=0.8
        )
        merged = GenerationParameters(max_new_tokens=800).merged_over(defaults)
        self.assertEqual(merged.max_new_tokens, 800)
        self.assertEqual(merged.temperature, 0.8)
        self.assertEqual(merged.decoding_method, DecodingMethod.GREEDY)

    def test_bounds(self) -> None:
        for kwargs in (
            {"max_new_tokens": 0},
            {"temperature": 0},
            {"temperature": 2.5},
            {"top_p": 1.5},
            {"repetition_penalty": 0},
            {"min_new_tokens": -1},
            {"decoding_method": "beam"},
        ):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(PydanticValidationError):
                    GenerationParameters(**kwargs)


if __name__ == "__main__":
    unittest.main()
