from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..domain.enums import DecodingMethod, LLMBackend
from ..schemas import GenerationParameters
from .text_generation import DEFAULT_TIMEOUT_SECONDS, TextGenerationClient, json_headers


HUGGINGFACE_BASE_URL = "https://api-inference.huggingface.co/models"
HUGGINGFACE_DEFAULT_MODEL = "ibm-granite/granite-3.3-8b-instruct"

HUGGINGFACE_DEFAULT_PARAMETERS = GenerationParameters(
    decoding_method=DecodingMethod.SAMPLE,
    max_new_tokens=500,
    temperature=0.7,
    top_p=0.9,
    repetition_penalty=1.1,
)


class HuggingFaceClient(TextGenerationClient):
    """Hugging Face serverless inference with a plain bearer API key."""

    backend = LLMBackend.HUGGINGFACE.value

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: str = HUGGINGFACE_BASE_URL,
        model: str = HUGGINGFACE_DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError(
                "HUGGINGFACE_API_KEY is not configured; cannot call Hugging Face"
            )
        super().__init__(
            default_model=model,
            default_parameters=HUGGINGFACE_DEFAULT_PARAMETERS,
            timeout=timeout,
            http_client=http_client,
        )
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")

    def model_url(self, model_id: str) -> str:
        return f"{self.base_url}/{model_id}"

    @staticmethod
    def parameters_payload(params: GenerationParameters) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "max_new_tokens": params.max_new_tokens,
            "temperature": params.temperature,
            "top_p": params.top_p,
            "repetition_penalty": params.repetition_penalty,
            "do_sample": params.decoding_method == DecodingMethod.SAMPLE,
            "return_full_text": False,
        }
        if params.stop_sequences:
            payload["stop"] = list(params.stop_sequences)
        return {key: value for key, value in payload.items() if value is not None}

    async def _generate(
        self, prompt: str, params: GenerationParameters, model_id: str
    ) -> str:
        payload = await self._post_json(
            self.model_url(model_id),
            headers=json_headers(self._api_key),
            json={"inputs": prompt, "parameters": self.parameters_payload(params)},
        )
        if isinstance(payload, list):
            first = payload[0] if payload else None
            generated = first.get("generated_text") if isinstance(first, dict) else None
        elif isinstance(payload, dict):
            generated = payload.get("generated_text")
        else:
            generated = None
        return self._require_text(generated)
