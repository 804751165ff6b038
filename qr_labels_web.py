"""Web UI support for QR label design and generation."""

from __future__ import annotations

import argparse
import os
from io import BytesIO
from typing import Any

from dotenv import load_dotenv
from flask import Flask, abort, jsonify, request, send_file
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers import Response

from label_engine.config import EngineConfig
from label_engine.geometry import Rect
from label_engine.layout import ResolvedLayout
from label_errors import ConfigurationError, LabelEngineError, RenderFailure
from label_generation import generate
from label_session import TemplateEditSession
from label_store import JsonFileStore, LabelStore
from label_targets.document import PagePreset
from label_targets.editor import InteractiveEditor
from label_targets.preview import PREVIEW_DISPLAY_BUDGET_PX, StaticPreview
from label_types import LabelTemplate

__all__ = ["run_web_app", "create_app", "create_app_from_env"]


def _rect(rect: Rect | None) -> dict[str, float] | None:
    return rect.as_dict() if rect is not None else None


def layout_to_json(resolved: ResolvedLayout) -> dict[str, Any]:
    """Describe resolved geometry for clients that draw their own overlays."""

    fields = []
    for item in resolved.fields:
        caption = item.caption
        fields.append(
            {
                "id": item.field.id,
                "name": item.field.field_name,
                "outer": _rect(item.box.outer),
                "inner": _rect(item.box.inner),
                "content": _rect(item.content_rect),
                "caption": (
                    {
                        "anchor": caption.anchor.value,
                        "text": caption.text,
                        "rect": _rect(caption.caption_rect),
                        "content_opacity": caption.content_opacity,
                    }
                    if caption
                    else None
                ),
            }
        )
    width, height = resolved.size
    return {
        "template_id": resolved.template.id,
        "dpi": resolved.converter.dpi,
        "zoom": resolved.converter.zoom,
        "width": width,
        "height": height,
        "qr_only": resolved.template.qr_only,
        "label": _rect(resolved.label.outer),
        "content": _rect(resolved.content_rect),
        "qr": _rect(resolved.qr_rect),
        "fields_container": _rect(resolved.fields_container_rect),
        "fields": fields,
        "draw_order": [element.value for element in resolved.draw_order],
        "warnings": [
            {
                "element": warning.element,
                "overflow_mm": round(warning.overflow_mm, 3),
                "critical": warning.critical,
                "message": str(warning),
            }
            for warning in resolved.warnings
        ],
    }


def _float_arg(name: str, default: float) -> float:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"'{name}' must be a number (got '{raw}')") from exc


def _png_response(png: bytes) -> Response:
    return send_file(BytesIO(png), mimetype="image/png")


def create_app(store: LabelStore, config: EngineConfig | None = None) -> Flask:
    """Create the Flask app wired to the provided template store."""

    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY", "qr-labels-ui")
    engine_config = config or EngineConfig()

    def _template_or_404(template_id: str) -> LabelTemplate:
        try:
            return store.get_template(template_id)
        except KeyError:
            abort(404, description=f"Unknown template '{template_id}'")

    @app.errorhandler(RenderFailure)
    def render_failed(exc: RenderFailure) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        return jsonify(error=str(exc)), 500

    @app.errorhandler(LabelEngineError)
    def invalid_request(exc: LabelEngineError) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        return jsonify(error=str(exc)), 400

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        return jsonify(error=exc.description), exc.code or 500

    @app.route("/templates", methods=["GET"])
    def templates_index() -> Response:  # pyright: ignore[reportUnusedFunction]
        return jsonify(
            [
                {
                    "id": template.id,
                    "name": template.name,
                    "width_mm": template.width_mm,
                    "height_mm": template.height_mm,
                    "qr_only": template.qr_only,
                    "field_count": len(template.fields),
                }
                for template in store.list_templates()
            ]
        )

    @app.route("/templates/<template_id>/layout", methods=["GET"])
    def template_layout(template_id: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        template = _template_or_404(template_id)
        editor = InteractiveEditor(
            TemplateEditSession(template),
            engine_config,
            zoom=_float_arg("zoom", 1.0),
        )
        return jsonify(layout_to_json(editor.resolved()))

    @app.route("/templates/<template_id>/preview.png", methods=["GET"])
    def template_preview(template_id: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        template = _template_or_404(template_id)
        preview = StaticPreview(
            engine_config,
            display_budget_px=_float_arg("budget", PREVIEW_DISPLAY_BUDGET_PX),
        )
        return _png_response(preview.render(template).png)

    @app.route("/templates/<template_id>/preview/hit", methods=["GET"])
    def template_preview_hit(template_id: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        template = _template_or_404(template_id)
        preview = StaticPreview(
            engine_config,
            display_budget_px=_float_arg("budget", PREVIEW_DISPLAY_BUDGET_PX),
        )
        hit = preview.field_at(template, _float_arg("x", -1.0), _float_arg("y", -1.0))
        return jsonify(field_id=hit.id if hit else None)

    @app.route("/templates/<template_id>/editor.png", methods=["GET"])
    def template_editor(template_id: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        template = _template_or_404(template_id)
        session = TemplateEditSession(template)
        selected = request.args.get("selected")
        if selected:
            try:
                session.select_field(selected)
            except KeyError as exc:
                raise ConfigurationError(f"Unknown field '{selected}'") from exc
        editor = InteractiveEditor(session, engine_config, zoom=_float_arg("zoom", 1.0))
        return _png_response(editor.render().png)

    @app.route("/templates/<template_id>/generate", methods=["POST"])
    def template_generate(template_id: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        template = _template_or_404(template_id)
        raw_quantity = (request.form.get("quantity") or "").strip()
        try:
            quantity = int(raw_quantity)
        except ValueError as exc:
            raise ConfigurationError(
                f"quantity must be between 1 and {engine_config.batch_quantity_max}"
            ) from exc
        preset = request.form.get("preset") or PagePreset.ROLL.value

        result = generate(
            template,
            quantity,
            config=engine_config,
            preset=preset,
            store=store,
        )
        response = send_file(
            BytesIO(result.document.pdf),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=f"{template.name or template.id}-labels.pdf",
        )
        response.headers["X-Label-Count"] = str(len(result.labels))
        return response

    return app


def create_app_from_env() -> Flask:
    store = JsonFileStore(os.getenv("LABELS_STORE_DIR", "label_store"))
    return create_app(store, EngineConfig.from_env())


def run_web_app(app: Flask, host: str, port: int) -> None:
    """Serve ``app`` with Flask's development server."""

    use_reloader_env = os.getenv("USE_RELOADER")
    use_reloader = (
        str(use_reloader_env).lower() in {"1", "true", "yes", "on"}
        if use_reloader_env is not None
        else False
    )
    app.run(host=host, port=port, debug=False, use_reloader=use_reloader)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the web UI."""
    parser = argparse.ArgumentParser(description="QR label designer web UI")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host/IP for the web UI (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=4000,
        help="Port for the web UI (default: 4000).",
    )

    args = parser.parse_args(argv)
    try:
        app = create_app_from_env()
    except ConfigurationError as exc:
        raise SystemExit(str(exc)) from exc
    run_web_app(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    load_dotenv()
    main()
