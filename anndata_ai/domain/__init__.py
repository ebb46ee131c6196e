from __future__ import annotations

from typing import Any


_LAZY_EXPORTS = {
    "assess_soil": "soil",
    "estimate_confidence": "confidence",
    "interpret": "interpreter",
}

__all__ = sorted(_LAZY_EXPORTS)


def __getattr__(name: str) -> Any:
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is not None:
        from importlib import import_module

        module = import_module(f"{__name__}.{module_name}")
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
