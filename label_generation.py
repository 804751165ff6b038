"""Batch generation of printable QR labels."""

from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from label_engine.config import EngineConfig
from label_engine.layout import compute_layout
from label_errors import BatchQuantityExceeded, ConfigurationError, RenderFailure
from label_store import LabelStore
from label_targets.document import (
    BatchDocument,
    BatchDocumentTarget,
    LabelInstance,
    PagePreset,
)
from label_types import FieldType, GeneratedLabel, LabelTemplate, utc_timestamp

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "qr_"
TOKEN_RANDOM_BYTES = 5
QR_PATH_SEGMENT = "qr"

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z0-9_]+)\}")


@dataclass(frozen=True)
class BatchResult:
    document: BatchDocument
    labels: tuple[GeneratedLabel, ...]

    def describe(self) -> str:
        return (
            f"Generated {len(self.labels)} labels on "
            f"{self.document.page_count} page(s)."
        )


def validate_quantity(quantity: int, maximum: int) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        raise ConfigurationError(f"quantity must be an integer (got {quantity!r})")
    if quantity < 1 or quantity > maximum:
        raise BatchQuantityExceeded(quantity, maximum)


def mint_token(existing: set[str]) -> str:
    """Return a fresh token not already in ``existing`` and record it there."""

    while True:
        token = f"{TOKEN_PREFIX}{int(time.time())}_{secrets.token_hex(TOKEN_RANDOM_BYTES)}"
        if token not in existing:
            existing.add(token)
            return token
        logger.debug("Token collision on %s; minting again", token)


def qr_payload(token: str, url_prefix: str = "") -> str:
    prefix = url_prefix.strip().rstrip("/")
    if not prefix:
        return token
    return f"{prefix}/{QR_PATH_SEGMENT}/{token}"


def merge_placeholders(text: str, values: Mapping[str, str]) -> str:
    """Replace ``{key}`` with ``values[key]``; unknown keys are left as written."""

    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), text)


def record_values(record: Mapping[str, Any]) -> dict[str, str]:
    """Stringify a bound data row; missing values become empty strings."""

    return {str(k): "" if v is None else str(v) for k, v in record.items()}


def bind_field_values(
    template: LabelTemplate,
    record: Mapping[str, Any],
    token: str,
    index: int,
) -> dict[str, str]:
    """Return text per field id for the label at ``index`` (0-based)."""

    values = record_values(record)
    values["token"] = token
    values["qr_token"] = token
    values["index"] = str(index + 1)
    return {
        item.id: merge_placeholders(item.field_value, values)
        for item in template.fields
        if item.field_type is FieldType.TEXT
    }


def generate(
    template: LabelTemplate,
    quantity: int,
    bound_data: Sequence[Mapping[str, Any]] = (),
    *,
    config: EngineConfig | None = None,
    preset: PagePreset | str = PagePreset.ROLL,
    store: LabelStore | None = None,
) -> BatchResult:
    """Mint ``quantity`` labels for ``template`` and draw them into one PDF.

    Nothing is returned or stored unless every label draws successfully.
    """

    config = config or EngineConfig()
    validate_quantity(quantity, config.batch_quantity_max)
    rows = list(bound_data)
    if len(rows) > quantity:
        raise ConfigurationError(
            f"{len(rows)} data rows supplied for only {quantity} labels"
        )

    layout = compute_layout(template)
    critical = layout.critical_warnings
    if critical:
        raise critical[0]

    target = BatchDocumentTarget(config)
    resolved = layout.project(target.converter_for(template))

    tokens: set[str] = set()
    minted: list[tuple[str, str, dict[str, str]]] = []
    instances: list[LabelInstance] = []
    for index in range(quantity):
        token = mint_token(tokens)
        payload = qr_payload(token, config.qr_url_prefix)
        record = rows[index] if index < len(rows) else {}
        instances.append(
            LabelInstance(payload, bind_field_values(template, record, token, index))
        )
        minted.append((token, payload, record_values(record)))

    try:
        document = target.render_resolved(resolved, instances, preset)
    except RenderFailure:
        logger.error("Batch for template %s aborted; no labels were kept", template.id)
        raise

    created_at = utc_timestamp()
    labels = tuple(
        GeneratedLabel(
            token=token,
            source_template_id=template.id,
            qr_payload=payload,
            page_index=placement.page_index,
            slot_index=placement.slot_index,
            bound_data=data,
            created_at=created_at,
        )
        for (token, payload, data), placement in zip(minted, document.placements)
    )
    if store is not None:
        store.save_labels(labels)

    logger.info(
        "Generated %d labels for template %s on %d page(s)",
        len(labels),
        template.id,
        document.page_count,
    )
    return BatchResult(document=document, labels=labels)
