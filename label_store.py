"""Persistence boundary for templates and generated label records."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Sequence

from label_errors import ConfigurationError
from label_types import (
    GeneratedLabel,
    LabelTemplate,
    generated_label_from_dict,
    generated_label_to_dict,
    template_from_dict,
    template_to_dict,
)

logger = logging.getLogger(__name__)

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class LabelStore(ABC):
    """Where templates come from and where generated labels go."""

    @abstractmethod
    def get_template(self, template_id: str) -> LabelTemplate:
        """Return the template or raise ``KeyError``."""

    @abstractmethod
    def save_template(self, template: LabelTemplate) -> None:
        """Create or replace a template."""

    @abstractmethod
    def list_templates(self) -> list[LabelTemplate]:
        """Return every stored template ordered by name."""

    @abstractmethod
    def save_labels(self, labels: Sequence[GeneratedLabel]) -> None:
        """Persist generated label records."""

    @abstractmethod
    def get_label(self, token: str) -> GeneratedLabel:
        """Return the label record for ``token`` or raise ``KeyError``."""


class JsonFileStore(LabelStore):
    """One JSON document per template and per generated label under ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.templates_dir = self.root / "templates"
        self.labels_dir = self.root / "labels"
        self.templates_dir.mkdir(parents=True, exist_ok=True)
        self.labels_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, directory: Path, key: str) -> Path:
        if not key or not _SAFE_KEY_RE.match(key):
            raise KeyError(key)
        return directory / f"{key}.json"

    def _read(self, path: Path) -> dict:
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Corrupt store document {path}: {exc}") from exc

    def _write(self, path: Path, data: dict) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, sort_keys=True)
        tmp_path.replace(path)

    def get_template(self, template_id: str) -> LabelTemplate:
        path = self._path(self.templates_dir, template_id)
        if not path.is_file():
            raise KeyError(template_id)
        return template_from_dict(self._read(path))

    def save_template(self, template: LabelTemplate) -> None:
        self._write(self._path(self.templates_dir, template.id), template_to_dict(template))
        logger.debug("Saved template %s", template.id)

    def list_templates(self) -> list[LabelTemplate]:
        templates = [template_from_dict(self._read(p)) for p in self._documents(self.templates_dir)]
        return sorted(templates, key=lambda t: (t.name.lower(), t.id))

    def save_labels(self, labels: Sequence[GeneratedLabel]) -> None:
        for label in labels:
            self._write(self._path(self.labels_dir, label.token), generated_label_to_dict(label))
        logger.info("Stored %d generated labels under %s", len(labels), self.labels_dir)

    def get_label(self, token: str) -> GeneratedLabel:
        path = self._path(self.labels_dir, token)
        if not path.is_file():
            raise KeyError(token)
        return generated_label_from_dict(self._read(path))

    def has_label(self, token: str) -> bool:
        try:
            return self._path(self.labels_dir, token).is_file()
        except KeyError:
            return False

    @staticmethod
    def _documents(directory: Path) -> Iterable[Path]:
        return sorted(directory.glob("*.json"))


def load_template_file(path: str | Path) -> LabelTemplate:
    """Read a single template JSON document from disk."""

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Template file {path} is not valid JSON: {exc}") from exc
    return template_from_dict(data)
