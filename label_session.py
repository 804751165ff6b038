"""In-progress template edits, passed explicitly to the editor target."""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any

from label_errors import ConfigurationError
from label_types import (
    FieldType,
    LabelTemplate,
    LabelTemplateField,
    field_from_dict,
    field_to_dict,
    template_from_dict,
    template_to_dict,
)

DEFAULT_FIELD_HEIGHT_MM = 4.0
MIN_FIELD_WIDTH_MM = 10.0
FIELD_ROW_PITCH_MM = 6.0


def new_template(name: str = "") -> LabelTemplate:
    return LabelTemplate(id=str(uuid.uuid4()), name=name)


class TemplateEditSession:
    """Holds one template under edit plus the current field selection.

    Every mutation replaces the (immutable) template and bumps ``revision``
    so render targets know when their cached layout is stale.
    """

    def __init__(self, template: LabelTemplate | None = None) -> None:
        self._template = template or new_template()
        self._revision = 0
        self._selected_id: str | None = None

    @property
    def template(self) -> LabelTemplate:
        return self._template

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def selected_field(self) -> LabelTemplateField | None:
        if self._selected_id is None:
            return None
        return self._template.field_by_id(self._selected_id)

    def _commit(self, template: LabelTemplate) -> LabelTemplate:
        self._template = template
        self._revision += 1
        return template

    def load(self, template: LabelTemplate) -> None:
        self._selected_id = None
        self._commit(template)

    def reset(self) -> None:
        self.load(new_template())

    def update_template(self, **changes: Any) -> LabelTemplate:
        if "fields" in changes or "id" in changes:
            raise ConfigurationError("Use the field operations to change fields")
        data = template_to_dict(self._template)
        data.update(changes)
        return self._commit(template_from_dict(data))

    def _require_field(self, field_id: str) -> LabelTemplateField:
        found = self._template.field_by_id(field_id)
        if found is None:
            raise KeyError(f"Unknown field '{field_id}'")
        return found

    def _default_geometry(self) -> tuple[float, float, float]:
        """Initial absolute position for a new field, clear of the QR block."""

        template = self._template
        qr_size = template.qr_size_mm
        count = len(template.fields)
        x = 2.0
        width = template.width_mm - 4.0
        position = template.qr_position.value
        if "left" in position:
            x = qr_size + 4.0
            width = template.width_mm - qr_size - 6.0
        elif "right" in position:
            width = template.width_mm - qr_size - 6.0
        y = count * FIELD_ROW_PITCH_MM + 2.0
        if position.startswith("top"):
            y = max(qr_size + 4.0, y)
        return x, y, max(width, MIN_FIELD_WIDTH_MM)

    def add_field(self, field_type: FieldType | str = FieldType.TEXT) -> LabelTemplateField:
        kind = FieldType(str(field_type))
        x, y, width = self._default_geometry()
        next_order = max((f.sort_order for f in self._template.fields), default=0) + 1
        created = LabelTemplateField(
            id=str(uuid.uuid4()),
            field_type=kind,
            field_name=f"Field {len(self._template.fields) + 1}",
            field_value="Sample text" if kind is FieldType.TEXT else "",
            position_x=x,
            position_y=y,
            width_mm=width,
            height_mm=DEFAULT_FIELD_HEIGHT_MM,
            sort_order=next_order,
        )
        self._commit(replace(self._template, fields=self._template.fields + (created,)))
        self._selected_id = created.id
        return created

    def update_field(self, field_id: str, **changes: Any) -> LabelTemplateField:
        current = self._require_field(field_id)
        if "id" in changes or "sort_order" in changes:
            raise ConfigurationError("Field id and sort_order change only via move/remove")
        data = field_to_dict(current)
        data.update(changes)
        updated = field_from_dict(data)
        fields = tuple(updated if f.id == field_id else f for f in self._template.fields)
        self._commit(replace(self._template, fields=fields))
        return updated

    def remove_field(self, field_id: str) -> None:
        self._require_field(field_id)
        remaining = [f for f in self._template.sorted_fields() if f.id != field_id]
        self._commit(replace(self._template, fields=_renumber(remaining)))
        if self._selected_id == field_id:
            self._selected_id = None

    def move_field(self, field_id: str, direction: str) -> bool:
        """Swap a field with its neighbour; returns False at either end."""

        self._require_field(field_id)
        if direction not in ("up", "down"):
            raise ConfigurationError(f"Invalid move direction '{direction}'")
        ordered = self._template.sorted_fields()
        index = next(i for i, f in enumerate(ordered) if f.id == field_id)
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(ordered):
            return False
        ordered[index], ordered[target] = ordered[target], ordered[index]
        self._commit(replace(self._template, fields=_renumber(ordered)))
        return True

    def select_field(self, field_id: str | None) -> LabelTemplateField | None:
        if field_id is not None:
            self._require_field(field_id)
        self._selected_id = field_id
        return self.selected_field


def _renumber(fields: list[LabelTemplateField]) -> tuple[LabelTemplateField, ...]:
    return tuple(replace(f, sort_order=i + 1) for i, f in enumerate(fields))
