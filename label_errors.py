"""Error taxonomy shared by the layout engine, render targets and generator."""

from __future__ import annotations


class LabelEngineError(Exception):
    """Base class for every error raised by the label engine."""


class ConfigurationError(LabelEngineError, ValueError):
    """Invalid dpi/zoom or malformed template configuration."""


class UnknownAnchor(LabelEngineError, ValueError):
    """A caption anchor outside the nine supported compass positions."""

    def __init__(self, anchor: str) -> None:
        super().__init__(f"Unknown label position '{anchor}'")
        self.anchor = anchor


class LayoutOverflow(LabelEngineError, UserWarning):
    """Content does not fit inside the label's padded area.

    Collected on the layout rather than raised; ``critical`` marks overflow
    that would make the printed label unusable (QR block leaving the label).
    """

    def __init__(self, element: str, overflow_mm: float, critical: bool = False) -> None:
        super().__init__(
            f"{element} overflows the label content area by {overflow_mm:.2f}mm"
        )
        self.element = element
        self.overflow_mm = overflow_mm
        self.critical = critical


class BatchQuantityExceeded(LabelEngineError, ValueError):
    """Requested batch size outside the permitted range."""

    def __init__(self, quantity: int, maximum: int) -> None:
        super().__init__(f"quantity must be between 1 and {maximum} (got {quantity})")
        self.quantity = quantity
        self.maximum = maximum


class RenderFailure(LabelEngineError, RuntimeError):
    """A render target could not draw a label."""


__all__ = [
    "BatchQuantityExceeded",
    "ConfigurationError",
    "LabelEngineError",
    "LayoutOverflow",
    "RenderFailure",
    "UnknownAnchor",
]
