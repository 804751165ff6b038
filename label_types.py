"""Label template, field and generated-label records."""

from __future__ import annotations

from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Mapping, TypeVar

from label_errors import ConfigurationError

SCHEMA_VERSION = 1
TRANSPARENT = "transparent"


class Orientation(StrEnum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class LayoutDirection(StrEnum):
    ROW = "row"
    ROW_REVERSE = "row-reverse"
    COLUMN = "column"
    COLUMN_REVERSE = "column-reverse"

    @property
    def is_row(self) -> bool:
        return self in (LayoutDirection.ROW, LayoutDirection.ROW_REVERSE)

    @property
    def is_reversed(self) -> bool:
        return self in (LayoutDirection.ROW_REVERSE, LayoutDirection.COLUMN_REVERSE)


class ItemsAlignment(StrEnum):
    START = "start"
    CENTER = "center"
    END = "end"


class QRPosition(StrEnum):
    CENTER = "center"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    LEFT = "left"
    RIGHT = "right"


class FieldLayout(StrEnum):
    FLOW = "flow"
    ABSOLUTE = "absolute"


class FieldType(StrEnum):
    TEXT = "text"
    BLANK = "blank"


class FontWeight(StrEnum):
    NORMAL = "normal"
    BOLD = "bold"


class TextAlign(StrEnum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class VerticalAlign(StrEnum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


@dataclass(frozen=True)
class Padding:
    top: float = 2.0
    right: float = 2.0
    bottom: float = 2.0
    left: float = 2.0


@dataclass(frozen=True)
class Border:
    enabled: bool = False
    width: float = 0.5
    color: str = "#000000"


@dataclass(frozen=True)
class LabelTemplateField:
    """One element of the field stack."""

    id: str
    field_type: FieldType = FieldType.TEXT
    field_name: str = ""
    field_value: str = ""
    position_x: float = 2.0
    position_y: float = 2.0
    width_mm: float = 20.0
    height_mm: float = 4.0
    font_size: float = 10.0
    font_weight: FontWeight = FontWeight.NORMAL
    text_color: str = "#000000"
    text_align: TextAlign = TextAlign.LEFT
    vertical_align: VerticalAlign = VerticalAlign.CENTER
    background_color: str = TRANSPARENT
    border_enabled: bool = False
    border_width: float = 0.5
    border_color: str = "#000000"
    padding_top: float = 2.0
    padding_right: float = 2.0
    padding_bottom: float = 2.0
    padding_left: float = 2.0
    show_label: bool = False
    label_text: str = ""
    label_position: str = "inside-top-left"
    label_font_size: float = 10.0
    label_color: str = "#666666"
    sort_order: int = 0
    is_required: bool = False

    @property
    def padding(self) -> Padding:
        return Padding(
            self.padding_top,
            self.padding_right,
            self.padding_bottom,
            self.padding_left,
        )

    @property
    def border(self) -> Border:
        return Border(self.border_enabled, self.border_width, self.border_color)

    @property
    def has_caption(self) -> bool:
        return self.show_label and bool(self.label_text.strip())


@dataclass(frozen=True)
class LabelTemplate:
    """Design-time description of one label type."""

    id: str
    name: str = ""
    description: str = ""
    width_mm: float = 40.0
    height_mm: float = 20.0
    orientation: Orientation = Orientation.PORTRAIT
    dpi: int = 300
    layout_direction: LayoutDirection = LayoutDirection.ROW
    items_alignment: ItemsAlignment = ItemsAlignment.CENTER
    qr_position: QRPosition = QRPosition.CENTER
    qr_size_mm: float = 15.0
    show_additional_info: bool = True
    field_layout: FieldLayout = FieldLayout.FLOW
    background_color: str = "#FFFFFF"
    text_color: str = "#000000"
    border_enabled: bool = True
    border_width: float = 0.5
    border_color: str = "#000000"
    padding_top: float = 2.0
    padding_right: float = 2.0
    padding_bottom: float = 2.0
    padding_left: float = 2.0
    field_vertical_gap: float = 2.0
    fields: tuple[LabelTemplateField, ...] = ()
    schema_version: int = SCHEMA_VERSION

    @property
    def padding(self) -> Padding:
        return Padding(
            self.padding_top,
            self.padding_right,
            self.padding_bottom,
            self.padding_left,
        )

    @property
    def border(self) -> Border:
        return Border(self.border_enabled, self.border_width, self.border_color)

    @property
    def qr_only(self) -> bool:
        return not self.show_additional_info

    def sorted_fields(self) -> list[LabelTemplateField]:
        return sorted(self.fields, key=lambda f: f.sort_order)

    def field_by_id(self, field_id: str) -> LabelTemplateField | None:
        return next((f for f in self.fields if f.id == field_id), None)


@dataclass(frozen=True)
class GeneratedLabel:
    """One minted label instance produced by the batch generator."""

    token: str
    source_template_id: str
    qr_payload: str
    page_index: int
    slot_index: int
    bound_data: dict[str, str] = field(default_factory=dict)
    created_at: str = ""


_E = TypeVar("_E", bound=StrEnum)

_TEMPLATE_ENUMS: dict[str, type[StrEnum]] = {
    "orientation": Orientation,
    "layout_direction": LayoutDirection,
    "items_alignment": ItemsAlignment,
    "qr_position": QRPosition,
    "field_layout": FieldLayout,
}
_FIELD_ENUMS: dict[str, type[StrEnum]] = {
    "field_type": FieldType,
    "font_weight": FontWeight,
    "text_align": TextAlign,
    "vertical_align": VerticalAlign,
}


def _coerce_enum(enum_cls: type[_E], key: str, value: Any) -> _E:
    text = str(value).strip().lower()
    if text in enum_cls._value2member_map_:
        return enum_cls(text)
    allowed = ", ".join(m.value for m in enum_cls)
    raise ConfigurationError(f"Invalid {key} '{value}'. Expected one of: {allowed}")


def _check_keys(cls: type, data: Mapping[str, Any], kind: str) -> None:
    known = {f.name for f in dataclass_fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown {kind} option(s): {', '.join(unknown)}")


def field_from_dict(data: Mapping[str, Any]) -> LabelTemplateField:
    _check_keys(LabelTemplateField, data, "field")
    if not data.get("id"):
        raise ConfigurationError("Field is missing an 'id'")
    values = dict(data)
    for key, enum_cls in _FIELD_ENUMS.items():
        if key in values:
            values[key] = _coerce_enum(enum_cls, key, values[key])
    if values.get("field_value") is None:
        values["field_value"] = ""
    if values.get("label_text") is None:
        values["label_text"] = ""
    return LabelTemplateField(**values)


def template_from_dict(data: Mapping[str, Any]) -> LabelTemplate:
    """Build a template, rejecting unknown keys and invalid enum values."""

    _check_keys(LabelTemplate, data, "template")
    if not data.get("id"):
        raise ConfigurationError("Template is missing an 'id'")
    version = int(data.get("schema_version", SCHEMA_VERSION))
    if version > SCHEMA_VERSION:
        raise ConfigurationError(
            f"Template schema version {version} is newer than supported "
            f"version {SCHEMA_VERSION}"
        )
    values = dict(data)
    for key, enum_cls in _TEMPLATE_ENUMS.items():
        if key in values:
            values[key] = _coerce_enum(enum_cls, key, values[key])
    values["fields"] = tuple(field_from_dict(f) for f in data.get("fields") or [])
    values["schema_version"] = version

    sort_orders = [f.sort_order for f in values["fields"]]
    if len(sort_orders) != len(set(sort_orders)):
        raise ConfigurationError("Field sort_order values must be unique")
    return LabelTemplate(**values)


def _plain(value: Any) -> Any:
    if isinstance(value, StrEnum):
        return value.value
    return value


def field_to_dict(item: LabelTemplateField) -> dict[str, Any]:
    return {f.name: _plain(getattr(item, f.name)) for f in dataclass_fields(item)}


def template_to_dict(template: LabelTemplate) -> dict[str, Any]:
    data = {
        f.name: _plain(getattr(template, f.name))
        for f in dataclass_fields(template)
        if f.name != "fields"
    }
    data["fields"] = [field_to_dict(f) for f in template.fields]
    return data


def generated_label_to_dict(label: GeneratedLabel) -> dict[str, Any]:
    return {
        "token": label.token,
        "source_template_id": label.source_template_id,
        "qr_payload": label.qr_payload,
        "page_index": label.page_index,
        "slot_index": label.slot_index,
        "bound_data": dict(label.bound_data),
        "created_at": label.created_at,
    }


def generated_label_from_dict(data: Mapping[str, Any]) -> GeneratedLabel:
    return GeneratedLabel(
        token=data["token"],
        source_template_id=data["source_template_id"],
        qr_payload=data.get("qr_payload", data["token"]),
        page_index=int(data.get("page_index", 0)),
        slot_index=int(data.get("slot_index", 0)),
        bound_data={str(k): str(v) for k, v in (data.get("bound_data") or {}).items()},
        created_at=data.get("created_at", ""),
    )


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


__all__ = [
    "Border",
    "FieldLayout",
    "FieldType",
    "FontWeight",
    "GeneratedLabel",
    "ItemsAlignment",
    "LabelTemplate",
    "LabelTemplateField",
    "LayoutDirection",
    "Orientation",
    "Padding",
    "QRPosition",
    "TRANSPARENT",
    "TextAlign",
    "VerticalAlign",
    "field_from_dict",
    "field_to_dict",
    "generated_label_from_dict",
    "generated_label_to_dict",
    "template_from_dict",
    "template_to_dict",
]
