from __future__ import annotations

from typing import Dict, Optional

from ..domain.enums import AnalysisKind


# Per-task model overrides. None means "use the backend's default model";
# every task resolves to the default today.
TASK_MODELS: Dict[AnalysisKind, Optional[str]] = {kind: None for kind in AnalysisKind}


def resolve_model(kind: AnalysisKind, default_model: str) -> str:
    return TASK_MODELS.get(kind) or default_model
