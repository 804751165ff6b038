import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from label_types import LabelTemplate, LabelTemplateField, template_to_dict
from qr_labels import main, read_data_rows


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        template = LabelTemplate(
            id="tpl-cli",
            name="Crates",
            fields=(
                LabelTemplateField(
                    id="crate",
                    field_name="Crate",
                    field_value="Crate {crate}",
                    height_mm=6,
                    padding_top=0.5,
                    padding_bottom=0.5,
                    sort_order=1,
                ),
            ),
        )
        self.template_path = self.root / "template.json"
        self.template_path.write_text(json.dumps(template_to_dict(template)), encoding="utf-8")
        self._env = patch.dict(os.environ, {"LABELS_LOG_LEVEL": "ERROR"}, clear=False)
        self._env.start()
        for key in ("LABELS_DPI", "LABELS_STORE_DIR", "LABELS_PRESET"):
            os.environ.pop(key, None)

    def tearDown(self) -> None:
        self._env.stop()
        self._tmp.cleanup()

    def test_generates_pdf_from_csv_rows(self) -> None:
        data = self.root / "rows.csv"
        data.write_text("crate\nA1\nA2\nA3\n", encoding="utf-8")
        output = self.root / "out.pdf"
        store_dir = self.root / "store"
        code = main([
            str(self.template_path),
            "--data", str(data),
            "-o", str(output),
            "--store", str(store_dir),
            "--preview", str(self.root / "preview.png"),
        ])
        self.assertEqual(code, 0)
        self.assertTrue(output.read_bytes().startswith(b"%PDF"))
        self.assertTrue((self.root / "preview.png").is_file())
        self.assertEqual(len(list((store_dir / "labels").glob("*.json"))), 3)

    def test_quantity_out_of_range_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main([str(self.template_path), "-q", "0", "-o", str(self.root / "x.pdf")])
        self.assertIn("quantity must be between 1 and 1000", str(ctx.exception.code))

    def test_missing_template_exits(self) -> None:
        with self.assertRaises(SystemExit):
            main([str(self.root / "missing.json")])

    @patch("qr_labels.run_web_app")
    def test_web_mode_saves_template(self, mock_run: Mock) -> None:
        store_dir = self.root / "store"
        code = main([
            str(self.template_path),
            "--web",
            "--store", str(store_dir),
            "--web-port", "5050",
        ])
        self.assertEqual(code, 0)
        self.assertTrue((store_dir / "templates" / "tpl-cli.json").is_file())
        self.assertEqual(mock_run.call_args.kwargs["port"], 5050)

    def test_web_mode_requires_store(self) -> None:
        with self.assertRaises(SystemExit):
            main(["--web"])

    def test_read_data_rows(self) -> None:
        data = self.root / "rows.csv"
        data.write_text("crate,owner\nA1,\n", encoding="utf-8")
        self.assertEqual(read_data_rows(str(data)), [{"crate": "A1", "owner": ""}])


if __name__ == "__main__":
    unittest.main()
