"""Render target loader for QR label output."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from label_engine.config import EngineConfig
from label_errors import ConfigurationError
from .base import RasterImage, RenderTarget

_TARGET_NAMES = {"document", "editor", "preview"}


def get_target(name: str, config: EngineConfig | None = None) -> RenderTarget:
    """Instantiate the render target registered as ``name``."""

    key = name.strip().lower()
    if key not in _TARGET_NAMES:
        available = ", ".join(sorted(_TARGET_NAMES))
        raise ConfigurationError(
            f"Unknown render target '{name}'. Available targets: {available}"
        )

    module = import_module(f"{__name__}.{key}")
    target_cls: type[RenderTarget] | None = getattr(module, "Target", None)
    if not target_cls or not issubclass(target_cls, RenderTarget):
        raise ConfigurationError(
            f"Render target '{name}' does not export a valid Target class"
        )
    return target_cls(config=config)


def list_targets() -> Iterable[str]:
    """Return the target identifiers."""

    return sorted(_TARGET_NAMES)


__all__ = ["RasterImage", "RenderTarget", "get_target", "list_targets"]
