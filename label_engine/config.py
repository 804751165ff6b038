"""Caller-facing engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from label_errors import ConfigurationError
from label_engine.units import is_positive

HARD_BATCH_QUANTITY_MAX = 1000
DEFAULT_ZOOM_CAP_MAX = 4.0


@dataclass(frozen=True)
class EngineConfig:
    """Options shared by all render targets and the batch generator.

    ``dpi`` overrides the template's own reference resolution when set.
    """

    dpi: int | None = None
    zoom_cap_max: float = DEFAULT_ZOOM_CAP_MAX
    batch_quantity_max: int = HARD_BATCH_QUANTITY_MAX
    qr_url_prefix: str = ""

    def __post_init__(self) -> None:
        if self.dpi is not None and not is_positive(self.dpi):
            raise ConfigurationError(f"dpi must be positive (got {self.dpi})")
        if not is_positive(self.zoom_cap_max):
            raise ConfigurationError(
                f"zoom cap must be positive (got {self.zoom_cap_max})"
            )
        if not 1 <= self.batch_quantity_max <= HARD_BATCH_QUANTITY_MAX:
            raise ConfigurationError(
                "batch quantity maximum must be between 1 and "
                f"{HARD_BATCH_QUANTITY_MAX} (got {self.batch_quantity_max})"
            )

    def effective_dpi(self, template_dpi: int) -> int:
        return self.dpi if self.dpi is not None else template_dpi

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from ``LABELS_*`` environment variables."""

        dpi_raw = os.getenv("LABELS_DPI", "").strip()
        try:
            return cls(
                dpi=int(dpi_raw) if dpi_raw else None,
                zoom_cap_max=float(
                    os.getenv("LABELS_ZOOM_CAP_MAX", "") or DEFAULT_ZOOM_CAP_MAX
                ),
                batch_quantity_max=int(
                    os.getenv("LABELS_BATCH_QUANTITY_MAX", "")
                    or HARD_BATCH_QUANTITY_MAX
                ),
                qr_url_prefix=os.getenv("LABELS_QR_URL_PREFIX", "").strip(),
            )
        except ValueError as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid LABELS_* setting: {exc}") from exc
