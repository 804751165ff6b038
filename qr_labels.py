#!/usr/bin/env python3
"""Generate printable QR label batches from a template JSON document."""

import argparse
import csv
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from dotenv import load_dotenv

from label_engine.config import EngineConfig
from label_errors import LabelEngineError
from label_generation import generate
from label_store import JsonFileStore, load_template_file
from label_targets.document import PagePreset
from label_targets.preview import StaticPreview
from qr_labels_web import create_app, run_web_app


def configure_logging() -> None:
    level_name = os.getenv("LABELS_LOG_LEVEL", "WARNING").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise SystemExit(f"Invalid LABELS_LOG_LEVEL '{level_name}'.")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def read_data_rows(path: str) -> List[Dict[str, str]]:
    """Read CSV rows used to fill ``{column}`` placeholders, one per label."""

    try:
        with open(path, newline="", encoding="utf-8") as handle:
            return [
                {key: value or "" for key, value in row.items() if key}
                for row in csv.DictReader(handle)
            ]
    except OSError as exc:
        raise SystemExit(f"Cannot read --data file '{path}': {exc}") from exc


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for generating a QR label PDF."""

    parser = argparse.ArgumentParser(
        description="QR label template -> printable PDF batch"
    )
    parser.add_argument(
        "template",
        nargs="?",
        help="Path to a label template JSON document.",
    )
    parser.add_argument(
        "-q", "--quantity",
        type=int,
        default=None,
        help="Number of labels to mint (default: one per --data row, else 1).",
    )
    parser.add_argument("-o", "--output", default="labels.pdf")
    parser.add_argument(
        "--preset",
        default=os.getenv("LABELS_PRESET", PagePreset.ROLL.value),
        choices=[preset.value for preset in PagePreset],
        help=(
            "Page layout: one label per page (roll) or an A4 grid (sheet). "
            "Defaults to LABELS_PRESET from the environment/.env."
        ),
    )
    parser.add_argument(
        "--data",
        help="CSV file whose rows fill {column} placeholders in field values.",
    )
    parser.add_argument(
        "--preview",
        metavar="PNG",
        help="Also write a static preview image of the template.",
    )
    parser.add_argument(
        "--store",
        default=os.getenv("LABELS_STORE_DIR"),
        help=(
            "Directory for templates and generated label records "
            "(defaults to LABELS_STORE_DIR from the environment/.env)."
        ),
    )
    parser.add_argument(
        "--web",
        action="store_true",
        help="Start the web UI over the --store directory instead of generating.",
    )
    parser.add_argument(
        "--web-host",
        default="127.0.0.1",
        help="Host/IP for the web UI (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--web-port",
        type=int,
        default=5000,
        help="Port for the web UI (default: 5000).",
    )

    args = parser.parse_args(argv)
    configure_logging()

    try:
        config = EngineConfig.from_env()
        store = JsonFileStore(args.store) if args.store else None
        template = load_template_file(args.template) if args.template else None
    except OSError as exc:
        raise SystemExit(f"Cannot read template '{args.template}': {exc}") from exc
    except LabelEngineError as exc:
        raise SystemExit(str(exc)) from exc

    if args.web:
        if store is None:
            raise SystemExit("--web requires --store or LABELS_STORE_DIR.")
        if template is not None:
            store.save_template(template)
        run_web_app(create_app(store, config), host=args.web_host, port=args.web_port)
        return 0

    if template is None:
        parser.error("a template JSON document is required unless --web is given")

    rows = read_data_rows(args.data) if args.data else []
    quantity = args.quantity if args.quantity is not None else max(len(rows), 1)

    try:
        if args.preview:
            image = StaticPreview(config).render(template)
            Path(args.preview).write_bytes(image.png)
            print(f"Wrote preview {args.preview} ({image.width}x{image.height}px).")
        result = generate(
            template,
            quantity,
            rows,
            config=config,
            preset=args.preset,
            store=store,
        )
    except LabelEngineError as exc:
        raise SystemExit(str(exc)) from exc

    result.document.save(args.output)
    print(f"{result.describe()} Wrote {args.output}")
    return 0


if __name__ == "__main__":

    load_dotenv()

    main()
