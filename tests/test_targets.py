import unittest
from io import BytesIO
from unittest.mock import patch

import fitz
from PIL import Image

from label_engine.anchors import Anchor
from label_engine.config import EngineConfig
from label_engine.layout import compute_layout
from label_engine.units import mm_to_pixels
from label_errors import ConfigurationError, RenderFailure
from label_session import TemplateEditSession
from label_targets import get_target, list_targets
from label_targets.document import (
    BatchDocumentTarget,
    LabelInstance,
    PagePreset,
    parse_preset,
)
from label_targets.editor import InteractiveEditor
from label_targets.preview import PREVIEW_MOBILE_BUDGET_PX, StaticPreview
from label_targets.qr import encode_qr
from label_types import (
    FieldType,
    LabelTemplate,
    LabelTemplateField,
    Orientation,
)


def _template(**kwargs) -> LabelTemplate:
    fields = (
        LabelTemplateField(
            id="name",
            field_name="Name",
            field_value="Screws M4",
            height_mm=6,
            padding_top=0.5,
            padding_bottom=0.5,
            sort_order=1,
            show_label=True,
            label_text="Item",
            label_position="inside-center-center",
            label_font_size=5,
        ),
        LabelTemplateField(
            id="blank",
            field_type=FieldType.BLANK,
            field_name="Notes",
            height_mm=4,
            border_enabled=True,
            sort_order=2,
        ),
    )
    values = {"id": "tpl-1", "name": "Bin", "fields": fields}
    values.update(kwargs)
    return LabelTemplate(**values)


def _edges(resolved, factor: float) -> list[tuple[float, float, float, float]]:
    rects = [resolved.qr_rect] + resolved.field_rects
    return [
        (r.left / factor, r.top / factor, r.right / factor, r.bottom / factor)
        for r in rects
    ]


def _captioned_template(position: str) -> LabelTemplate:
    field = LabelTemplateField(
        id="qty",
        field_name="Quantity",
        field_value="42",
        height_mm=12,
        padding_top=1,
        padding_right=1,
        padding_bottom=1,
        padding_left=1,
        show_label=True,
        label_text="Qty",
        label_position=position,
        label_font_size=5,
    )
    return LabelTemplate(id="tpl-cap", name="Captions", height_mm=20, fields=(field,))


def _rect_edges(rect) -> tuple[float, float, float, float]:
    return rect.left, rect.top, rect.right, rect.bottom


class RegistryTests(unittest.TestCase):
    def test_list_targets(self) -> None:
        self.assertEqual(list(list_targets()), ["document", "editor", "preview"])

    def test_get_target(self) -> None:
        self.assertIsInstance(get_target("Preview"), StaticPreview)
        self.assertIsInstance(get_target("editor"), InteractiveEditor)
        self.assertIsInstance(get_target("document"), BatchDocumentTarget)

    def test_unknown_target(self) -> None:
        with self.assertRaises(ConfigurationError):
            get_target("plotter")


class CrossTargetConsistencyTests(unittest.TestCase):
    def test_editor_and_preview_agree_after_zoom_normalization(self) -> None:
        template = _template()
        editor = InteractiveEditor(TemplateEditSession(template), zoom=1.0)
        preview = StaticPreview()
        scale = preview.scale_for(template)
        editor_edges = _edges(editor.resolved(), 1.0)
        preview_edges = _edges(preview.resolve(template), scale)
        self.assertEqual(len(editor_edges), len(preview_edges))
        for ours, theirs in zip(editor_edges, preview_edges):
            for a, b in zip(ours, theirs):
                self.assertLessEqual(abs(a - b), 1.0)

    def test_document_matches_raster_at_72_dpi(self) -> None:
        template = _template()
        raster = InteractiveEditor(
            TemplateEditSession(template), EngineConfig(dpi=72), zoom=1.0
        ).resolved()
        document = BatchDocumentTarget().resolve(template)
        for ours, theirs in zip(_edges(raster, 1.0), _edges(document, 1.0)):
            for a, b in zip(ours, theirs):
                self.assertLessEqual(abs(a - b), 0.5 + 1e-9)

    def test_document_matches_raster_captions_at_300_dpi(self) -> None:
        points_to_px = 300 / 72
        for anchor in Anchor:
            with self.subTest(anchor=anchor.value):
                template = _captioned_template(anchor.value)
                raster = InteractiveEditor(
                    TemplateEditSession(template), EngineConfig(dpi=300), zoom=1.0
                ).resolved().fields[0]
                document = BatchDocumentTarget().resolve(template).fields[0]
                pairs = [
                    (raster.box.inner, document.box.inner),
                    (raster.caption.content_rect, document.caption.content_rect),
                    (raster.caption.caption_rect, document.caption.caption_rect),
                ]
                for ours, theirs in pairs:
                    for a, b in zip(_rect_edges(ours), _rect_edges(theirs)):
                        self.assertLessEqual(abs(a - b * points_to_px), 1.0)

    def test_raster_rects_are_pixel_snapped(self) -> None:
        resolved = StaticPreview().resolve(_template())
        for rect in [resolved.qr_rect] + resolved.field_rects:
            self.assertEqual(rect.x, round(rect.x))
            self.assertEqual(rect.right, round(rect.right))


class PreviewTests(unittest.TestCase):
    def test_scale_fits_budget(self) -> None:
        template = _template()
        preview = StaticPreview(display_budget_px=PREVIEW_MOBILE_BUDGET_PX)
        scale = preview.scale_for(template)
        self.assertAlmostEqual(scale * mm_to_pixels(40, 300), PREVIEW_MOBILE_BUDGET_PX)

    def test_scale_is_capped(self) -> None:
        template = _template(dpi=10)
        preview = StaticPreview(EngineConfig(zoom_cap_max=4))
        self.assertEqual(preview.scale_for(template), 4)

    def test_rejects_empty_budget(self) -> None:
        with self.assertRaises(ConfigurationError):
            StaticPreview(display_budget_px=0)
        with self.assertRaises(ConfigurationError):
            StaticPreview(display_budget_px=float("nan"))

    def test_field_at(self) -> None:
        template = _template()
        preview = StaticPreview()
        resolved = preview.resolve(template)
        x, y = resolved.fields[1].box.outer.center
        self.assertEqual(preview.field_at(template, x, y).id, "blank")
        self.assertIsNone(preview.field_at(template, 1, 1))

    def test_render_png(self) -> None:
        image = StaticPreview().render(_template())
        self.assertTrue(image.png.startswith(b"\x89PNG"))
        self.assertEqual(image.width, 500)
        with Image.open(BytesIO(image.png)) as img:
            self.assertEqual(img.size, (image.width, image.height))
            self.assertAlmostEqual(img.info["dpi"][0], image.ppi, delta=1)


class EditorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = TemplateEditSession(_template())
        self.editor = InteractiveEditor(self.session, EngineConfig(zoom_cap_max=6))

    def test_select_at_updates_session(self) -> None:
        x, y = self.editor.resolved().fields[0].box.outer.center
        hit = self.editor.select_at(x, y)
        self.assertEqual(hit.id, "name")
        self.assertEqual(self.session.selected_field.id, "name")
        self.assertIsNone(self.editor.select_at(-5, -5))
        self.assertIsNone(self.session.selected_field)

    def test_zoom_only_reprojects(self) -> None:
        with patch(
            "label_targets.base.compute_layout", wraps=compute_layout
        ) as mock_layout:
            first = self.editor.resolved()
            self.editor.zoom = 2.0
            second = self.editor.resolved()
            self.assertEqual(mock_layout.call_count, 1)
            self.assertAlmostEqual(second.size[0], first.size[0] * 2, delta=1)

            self.session.update_template(width_mm=50)
            self.editor.resolved()
            self.assertEqual(mock_layout.call_count, 2)

    def test_zoom_is_clamped(self) -> None:
        self.editor.zoom = 10
        self.assertEqual(self.editor.zoom, 6)
        with self.assertRaises(ConfigurationError):
            self.editor.zoom = 0
        with self.assertRaises(ConfigurationError):
            self.editor.zoom = float("nan")

    def test_render_with_selection_and_overflow(self) -> None:
        self.session.update_template(qr_size_mm=30)
        self.session.select_field("blank")
        image = self.editor.render()
        self.assertTrue(image.png.startswith(b"\x89PNG"))
        self.assertTrue(self.editor.warnings)
        self.assertEqual(image.width, round(mm_to_pixels(40, 300)))


class DocumentTargetTests(unittest.TestCase):
    def test_roll_has_one_label_per_page(self) -> None:
        labels = [LabelInstance(f"qr_{i}") for i in range(3)]
        document = BatchDocumentTarget().render(_template(), labels)
        self.assertEqual(document.page_count, 3)
        self.assertEqual([p.page_index for p in document.placements], [0, 1, 2])
        with fitz.open(stream=document.pdf, filetype="pdf") as doc:
            self.assertEqual(doc.page_count, 3)

    def test_sheet_packs_a4_grid(self) -> None:
        labels = [LabelInstance(f"qr_{i}") for i in range(60)]
        document = BatchDocumentTarget().render(_template(), labels, PagePreset.SHEET)
        self.assertEqual(document.page_count, 2)
        first, second = document.placements[0], document.placements[1]
        self.assertEqual(first.left, 20.0)
        self.assertAlmostEqual(second.left - first.left, first.width + 5.0)
        self.assertAlmostEqual(document.page_size[0], 595.2755905511812)

    def test_landscape_roll_rotates_tall_labels(self) -> None:
        template = _template(width_mm=20, height_mm=40, orientation=Orientation.LANDSCAPE)
        document = BatchDocumentTarget().render(template, [LabelInstance("qr_1")])
        self.assertTrue(document.placements[0].rotated)
        self.assertGreater(document.page_size[0], document.page_size[1])

    def test_label_too_big_for_sheet(self) -> None:
        template = _template(width_mm=400)
        with self.assertRaises(ConfigurationError):
            BatchDocumentTarget().render(template, [LabelInstance("qr_1")], "sheet")

    def test_unknown_preset(self) -> None:
        with self.assertRaises(ConfigurationError):
            parse_preset("tabloid")

    def test_draw_errors_become_render_failures(self) -> None:
        with patch(
            "label_targets.document.LabelPainter.paint",
            side_effect=ValueError("bad colour"),
        ):
            with self.assertRaises(RenderFailure) as ctx:
                BatchDocumentTarget().render(_template(), [LabelInstance("qr_1")])
        self.assertIsInstance(ctx.exception.__cause__, ValueError)


class QREncodingTests(unittest.TestCase):
    def test_matrix_is_square_without_quiet_zone(self) -> None:
        matrix = encode_qr("qr_1700000000_abcdef")
        self.assertGreaterEqual(len(matrix), 21)
        self.assertEqual((len(matrix) - 17) % 4, 0)
        self.assertTrue(all(len(row) == len(matrix) for row in matrix))
        self.assertTrue(matrix[0][0])

    def test_oversized_payload_fails(self) -> None:
        with self.assertRaises(RenderFailure):
            encode_qr("x" * 5000)

    def test_empty_payload_fails(self) -> None:
        with self.assertRaises(RenderFailure):
            encode_qr("")


if __name__ == "__main__":
    unittest.main()
