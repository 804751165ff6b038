import json
import tempfile
import unittest
from pathlib import Path

from label_errors import ConfigurationError
from label_store import JsonFileStore, load_template_file
from label_types import (
    SCHEMA_VERSION,
    GeneratedLabel,
    LabelTemplate,
    LabelTemplateField,
    QRPosition,
    template_from_dict,
    template_to_dict,
)


def _template(template_id: str = "tpl-1", name: str = "Bins") -> LabelTemplate:
    return LabelTemplate(
        id=template_id,
        name=name,
        qr_position=QRPosition.TOP_LEFT,
        fields=(LabelTemplateField(id="f1", field_name="Name", sort_order=1),),
    )


class TemplateSerializationTests(unittest.TestCase):
    def test_to_dict_is_plain_json(self) -> None:
        data = template_to_dict(_template())
        self.assertEqual(data["qr_position"], "top-left")
        self.assertEqual(data["fields"][0]["field_type"], "text")
        json.dumps(data)
        self.assertEqual(template_from_dict(data), _template())

    def test_unknown_keys_are_rejected(self) -> None:
        data = template_to_dict(_template())
        data["colour"] = "red"
        with self.assertRaises(ConfigurationError):
            template_from_dict(data)
        data = template_to_dict(_template())
        data["fields"][0]["wobble"] = True
        with self.assertRaises(ConfigurationError):
            template_from_dict(data)

    def test_invalid_enum_value(self) -> None:
        data = template_to_dict(_template())
        data["items_alignment"] = "stretch"
        with self.assertRaises(ConfigurationError):
            template_from_dict(data)

    def test_newer_schema_version(self) -> None:
        data = template_to_dict(_template())
        data["schema_version"] = SCHEMA_VERSION + 1
        with self.assertRaises(ConfigurationError):
            template_from_dict(data)

    def test_duplicate_sort_order(self) -> None:
        data = template_to_dict(_template())
        data["fields"].append(dict(data["fields"][0], id="f2"))
        with self.assertRaises(ConfigurationError):
            template_from_dict(data)


class JsonFileStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.store = JsonFileStore(self.root)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_templates(self) -> None:
        self.store.save_template(_template("b", "Zebra"))
        self.store.save_template(_template("a", "Apple"))
        self.assertEqual(self.store.get_template("b"), _template("b", "Zebra"))
        self.assertEqual([t.id for t in self.store.list_templates()], ["a", "b"])
        self.assertTrue((self.root / "templates" / "a.json").is_file())

    def test_missing_and_unsafe_ids(self) -> None:
        with self.assertRaises(KeyError):
            self.store.get_template("nope")
        with self.assertRaises(KeyError):
            self.store.get_template("../escape")
        with self.assertRaises(KeyError):
            self.store.get_label("nope")

    def test_labels(self) -> None:
        label = GeneratedLabel(
            token="qr_1700000000_ab",
            source_template_id="a",
            qr_payload="https://labels.example/qr/qr_1700000000_ab",
            page_index=0,
            slot_index=3,
            bound_data={"bin": "A1"},
            created_at="2026-10-17T09:00:00+00:00",
        )
        self.store.save_labels([label])
        self.assertEqual(self.store.get_label(label.token), label)
        self.assertTrue(self.store.has_label(label.token))
        self.assertFalse(self.store.has_label("../x"))

    def test_corrupt_document(self) -> None:
        (self.root / "templates" / "bad.json").write_text("{not json", encoding="utf-8")
        with self.assertRaises(ConfigurationError):
            self.store.get_template("bad")

    def test_load_template_file(self) -> None:
        path = self.root / "template.json"
        path.write_text(json.dumps(template_to_dict(_template())), encoding="utf-8")
        self.assertEqual(load_template_file(path), _template())


if __name__ == "__main__":
    unittest.main()
