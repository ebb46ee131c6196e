from typing import Optional

import httpx

from ..domain.enums import LLMBackend
from .config import AppConfig, get_config
from .huggingface import HuggingFaceClient
from .text_generation import TextGenerationClient
from .watsonx import WatsonxClient


def build_text_client(
    cfg: Optional[AppConfig] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
) -> TextGenerationClient:
    cfg = cfg or get_config()
    if cfg.llm_backend == LLMBackend.WATSONX.value:
        return WatsonxClient(
            api_key=cfg.watsonx_api_key,
            project_id=cfg.watsonx_project_id,
            url=cfg.watsonx_url,
            iam_url=cfg.watsonx_iam_url,
            api_version=cfg.watsonx_api_version,
            model=cfg.watsonx_model,
            timeout=cfg.llm_timeout_seconds,
            http_client=http_client,
        )
    if cfg.llm_backend == LLMBackend.HUGGINGFACE.value:
        return HuggingFaceClient(
            api_key=cfg.huggingface_api_key,
            base_url=cfg.huggingface_base_url,
            model=cfg.huggingface_model,
            timeout=cfg.llm_timeout_seconds,
            http_client=http_client,
        )
    raise ValueError(
        f"Unsupported LLM_BACKEND {cfg.llm_backend!r}; use 'watsonx' or 'huggingface'"
    )
