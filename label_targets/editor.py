"""Interactive editor target bound to a template edit session."""

from __future__ import annotations

import logging

from label_engine.config import EngineConfig
from label_engine.layout import LabelLayout, ResolvedLayout
from label_engine.units import validate_resolution
from label_errors import LayoutOverflow
from label_session import TemplateEditSession
from label_types import LabelTemplate, LabelTemplateField
from .base import RasterImage, RasterTarget
from .painter import PaintOptions

logger = logging.getLogger(__name__)


class InteractiveEditor(RasterTarget):
    """Renders the session's template at an adjustable zoom.

    The millimetre layout is recomputed only when the session revision
    changes; zooming re-projects the cached layout.
    """

    name = "editor"

    def __init__(
        self,
        session: TemplateEditSession | None = None,
        config: EngineConfig | None = None,
        zoom: float = 1.0,
    ) -> None:
        super().__init__(config)
        self.session = session or TemplateEditSession()
        self._zoom = 1.0
        self._layout: LabelLayout | None = None
        self._layout_revision = -1
        self._resolved: ResolvedLayout | None = None
        self._resolved_key: tuple[int, float] | None = None
        self.zoom = zoom

    @property
    def zoom(self) -> float:
        return self._zoom

    @zoom.setter
    def zoom(self, value: float) -> None:
        validate_resolution(1, value)
        capped = min(float(value), self.config.zoom_cap_max)
        if capped != value:
            logger.debug("Zoom %s clamped to %s", value, capped)
        self._zoom = capped

    def scale_for(self, template: LabelTemplate) -> float:
        return self._zoom

    def layout_for(self, template: LabelTemplate) -> LabelLayout:
        if template is not self.session.template:
            return super().layout_for(template)
        if self._layout is None or self._layout_revision != self.session.revision:
            self._layout = super().layout_for(template)
            self._layout_revision = self.session.revision
        return self._layout

    def resolved(self) -> ResolvedLayout:
        key = (self.session.revision, self._zoom)
        if self._resolved is None or self._resolved_key != key:
            self._resolved = self.resolve(self.session.template)
            self._resolved_key = key
        return self._resolved

    @property
    def warnings(self) -> tuple[LayoutOverflow, ...]:
        return self.resolved().warnings

    def select_at(self, x: float, y: float) -> LabelTemplateField | None:
        hit = self.resolved().field_at(x, y)
        return self.session.select_field(hit.id if hit else None)

    def render(self, template: LabelTemplate | None = None) -> RasterImage:  # type: ignore[override]
        """Render the session template, or ``template`` without editor state."""

        if template is not None and template is not self.session.template:
            return self.render_resolved(self.resolve(template))
        selected = self.session.selected_field
        options = PaintOptions(
            selected_field_id=selected.id if selected else None,
            outline_borderless=True,
            flag_overflow=True,
        )
        return self.render_resolved(self.resolved(), options=options)


Target = InteractiveEditor
