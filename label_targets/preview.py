"""Static preview target sized to a display budget."""

from __future__ import annotations

from label_engine.config import EngineConfig
from label_engine.layout import LabelLayout, ResolvedLayout
from label_engine.units import UnitConverter, is_positive, mm_to_pixels
from label_errors import ConfigurationError
from label_types import LabelTemplate, LabelTemplateField
from .base import RasterImage, RasterTarget
from .painter import PaintOptions

PREVIEW_DISPLAY_BUDGET_PX = 500
PREVIEW_MOBILE_BUDGET_PX = 300


class StaticPreview(RasterTarget):
    """Fits the whole label into ``display_budget_px`` horizontal pixels.

    The scale never exceeds the configured zoom cap, so tiny labels are not
    blown up past it.
    """

    name = "preview"

    def __init__(
        self,
        config: EngineConfig | None = None,
        display_budget_px: float = PREVIEW_DISPLAY_BUDGET_PX,
    ) -> None:
        super().__init__(config)
        if not is_positive(display_budget_px):
            raise ConfigurationError(
                f"display budget must be positive (got {display_budget_px})"
            )
        self.display_budget_px = display_budget_px

    def _scale(self, layout: LabelLayout) -> float:
        dpi = self.config.effective_dpi(layout.template.dpi)
        width_px = mm_to_pixels(layout.label_rect.width, dpi)
        return min(self.display_budget_px / width_px, self.config.zoom_cap_max)

    def scale_for(self, template: LabelTemplate) -> float:
        return self._scale(self.layout_for(template))

    def resolve(self, template: LabelTemplate) -> ResolvedLayout:
        layout = self.layout_for(template)
        converter = UnitConverter.raster(
            self.config.effective_dpi(template.dpi),
            self._scale(layout),
        )
        return layout.project(converter)

    def render(  # type: ignore[override]
        self,
        template: LabelTemplate,
        selected_field_id: str | None = None,
    ) -> RasterImage:
        options = PaintOptions(selected_field_id=selected_field_id)
        return self.render_resolved(self.resolve(template), options=options)

    def field_at(self, template: LabelTemplate, x: float, y: float) -> LabelTemplateField | None:
        return self.resolve(template).field_at(x, y)


Target = StaticPreview
