from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Mapping, Optional

import httpx

from ..domain.enums import DecodingMethod, LLMBackend
from ..domain.errors import UpstreamAuthError
from ..observability.logging_utils import log_event
from ..schemas import GenerationParameters
from .text_generation import DEFAULT_TIMEOUT_SECONDS, TextGenerationClient, json_headers


WATSONX_DEFAULT_URL = "https://us-south.ml.cloud.ibm.com"
WATSONX_IAM_URL = "https://iam.cloud.ibm.com/identity/token"
WATSONX_API_VERSION = "2024-05-31"
WATSONX_DEFAULT_MODEL = "ibm/granite-3-8b-instruct"
IAM_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"

# IAM answers 400 for an unknown or malformed API key
IAM_AUTH_STATUSES = (400, 401, 403)
TOKEN_REFRESH_MARGIN_SECONDS = 60.0
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600.0

WATSONX_DEFAULT_PARAMETERS = GenerationParameters(
    decoding_method=DecodingMethod.GREEDY,
    max_new_tokens=2000,
    min_new_tokens=50,
    repetition_penalty=1.05,
    temperature=0.8,
    top_p=0.95,
    stop_sequences=[],
)


def _token_lifetime(payload: Mapping[str, Any]) -> float:
    expires_in = payload.get("expires_in")
    if isinstance(expires_in, (int, float)) and expires_in > 0:
        return float(expires_in)
    expiration = payload.get("expiration")
    if isinstance(expiration, (int, float)) and expiration > 0:
        return max(0.0, float(expiration) - time.time())
    return DEFAULT_TOKEN_LIFETIME_SECONDS


class WatsonxClient(TextGenerationClient):
    """watsonx.ai text generation with an IAM bearer token cached per instance."""

    backend = LLMBackend.WATSONX.value

    def __init__(
        self,
        *,
        api_key: Optional[str],
        project_id: Optional[str],
        url: str = WATSONX_DEFAULT_URL,
        iam_url: str = WATSONX_IAM_URL,
        api_version: str = WATSONX_API_VERSION,
        model: str = WATSONX_DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValueError("WATSONX_API_KEY is not configured; cannot call watsonx.ai")
        if not project_id:
            raise ValueError(
                "WATSONX_PROJECT_ID is not configured; cannot call watsonx.ai"
            )
        super().__init__(
            default_model=model,
            default_parameters=WATSONX_DEFAULT_PARAMETERS,
            timeout=timeout,
            http_client=http_client,
        )
        self._api_key = api_key
        self.project_id = project_id
        self.url = url.rstrip("/")
        self.iam_url = iam_url
        self.api_version = api_version
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    @property
    def generation_url(self) -> str:
        return f"{self.url}/ml/v1/text/generation"

    async def _access_token(self) -> str:
        async with self._token_lock:
            now = time.monotonic()
            if self._token and now < self._token_expires_at:
                return self._token
            payload = await self._post_json(
                self.iam_url,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={"grant_type": IAM_GRANT_TYPE, "apikey": self._api_key},
                auth_statuses=IAM_AUTH_STATUSES,
            )
            token = payload.get("access_token") if isinstance(payload, dict) else None
            if not isinstance(token, str) or not token:
                raise UpstreamAuthError(
                    "IAM token response has no access_token", backend=self.backend
                )
            lifetime = _token_lifetime(payload)
            self._token = token
            self._token_expires_at = now + max(
                0.0, lifetime - TOKEN_REFRESH_MARGIN_SECONDS
            )
            log_event("llm.iam_token_refreshed", backend=self.backend, lifetime=lifetime)
            return token

    def invalidate_token(self) -> None:
        self._token = None
        self._token_expires_at = 0.0

    @staticmethod
    def parameters_payload(params: GenerationParameters) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "decoding_method": (params.decoding_method or DecodingMethod.GREEDY).value,
            "max_new_tokens": params.max_new_tokens,
            "min_new_tokens": params.min_new_tokens,
            "repetition_penalty": params.repetition_penalty,
            "temperature": params.temperature,
            "top_p": params.top_p,
            "stop_sequences": list(params.stop_sequences or []),
        }
        return {key: value for key, value in payload.items() if value is not None}

    async def _generate(
        self, prompt: str, params: GenerationParameters, model_id: str
    ) -> str:
        token = await self._access_token()
        body = {
            "input": prompt,
            "model_id": model_id,
            "project_id": self.project_id,
            "parameters": self.parameters_payload(params),
        }
        try:
            payload = await self._post_json(
                self.generation_url,
                headers=json_headers(token),
                json=body,
                params={"version": self.api_version},
            )
        except UpstreamAuthError:
            self.invalidate_token()
            raise
        results = payload.get("results") if isinstance(payload, dict) else None
        first = results[0] if isinstance(results, list) and results else None
        generated = first.get("generated_text") if isinstance(first, dict) else None
        return self._require_text(generated)
