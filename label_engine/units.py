"""Millimetre, device pixel and print point conversions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum

from label_errors import ConfigurationError
from label_engine.geometry import Rect

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0


class TargetKind(StrEnum):
    RASTER = "raster"
    DOCUMENT = "document"


def is_positive(value: float) -> bool:
    """True for finite values above zero; NaN and infinities fail."""

    return math.isfinite(value) and value > 0


def validate_resolution(dpi: float, zoom: float = 1.0) -> None:
    """Reject non-positive or non-finite dpi/zoom before any layout work happens."""

    if not is_positive(dpi):
        raise ConfigurationError(f"dpi must be positive (got {dpi})")
    if not is_positive(zoom):
        raise ConfigurationError(f"zoom must be positive (got {zoom})")


def mm_to_pixels(mm: float, dpi: float, zoom: float = 1.0) -> float:
    validate_resolution(dpi, zoom)
    return mm * (dpi / MM_PER_INCH) * zoom


def pixels_to_mm(pixels: float, dpi: float, zoom: float = 1.0) -> float:
    validate_resolution(dpi, zoom)
    return pixels / zoom * MM_PER_INCH / dpi


def mm_to_points(mm: float) -> float:
    return mm * POINTS_PER_INCH / MM_PER_INCH


def points_to_mm(points: float) -> float:
    return points * MM_PER_INCH / POINTS_PER_INCH


@dataclass(frozen=True)
class UnitConverter:
    """Projects millimetre geometry into one render target's units.

    Raster targets scale by ``dpi / 25.4 * zoom``; the document target works
    in points and ignores zoom entirely.
    """

    kind: TargetKind
    dpi: float = POINTS_PER_INCH
    zoom: float = 1.0

    def __post_init__(self) -> None:
        validate_resolution(self.dpi, self.zoom)

    @classmethod
    def raster(cls, dpi: float, zoom: float = 1.0) -> UnitConverter:
        return cls(TargetKind.RASTER, dpi, zoom)

    @classmethod
    def document(cls) -> UnitConverter:
        return cls(TargetKind.DOCUMENT)

    @property
    def is_raster(self) -> bool:
        return self.kind is TargetKind.RASTER

    def length(self, mm: float) -> float:
        if self.is_raster:
            return mm_to_pixels(mm, self.dpi, self.zoom)
        return mm_to_points(mm)

    def to_mm(self, value: float) -> float:
        if self.is_raster:
            return pixels_to_mm(value, self.dpi, self.zoom)
        return points_to_mm(value)

    def rect(self, rect_mm: Rect) -> Rect:
        return Rect(
            self.length(rect_mm.x),
            self.length(rect_mm.y),
            self.length(rect_mm.width),
            self.length(rect_mm.height),
        )

    def stroke(self, width: float) -> float:
        """Line width: ``width * zoom`` pixels or ``width`` points."""

        if self.is_raster:
            return width * self.zoom
        return width

    def font(self, size_pt: float) -> float:
        """Physical point size expressed in target units."""

        return self.length(points_to_mm(size_pt))
