from typing import Any, Dict, List, Optional

from anndata_ai.domain.errors import UpstreamError
from anndata_ai.schemas import GenerationParameters, UpstreamHealth


class FakeTextClient:
    """In-process stand-in for a text generation backend."""

    backend = "fake"

    def __init__(
        self,
        completion: str = "",
        *,
        error: Optional[Exception] = None,
        default_model: str = "fake/granite-test",
    ):
        self.completion = completion
        self.error = error
        self.default_model = default_model
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def generate(
        self,
        prompt: str,
        params: Optional[GenerationParameters] = None,
        model_id: Optional[str] = None,
    ) -> str:
        self.calls.append({"prompt": prompt, "params": params, "model_id": model_id})
        if self.error is not None:
            raise self.error
        return self.completion

    async def health_check(self) -> UpstreamHealth:
        if isinstance(self.error, UpstreamError):
            return UpstreamHealth(
                available=False,
                backend=self.backend,
                model=self.default_model,
                error=self.error.reason,
            )
        return UpstreamHealth(
            available=True, backend=self.backend, model=self.default_model
        )

    async def aclose(self) -> None:
        self.closed = True
