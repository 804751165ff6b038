import unittest

from reportlab.pdfbase.pdfmetrics import stringWidth

from label_engine.text import (
    BOLD_FONT,
    ELLIPSIS,
    LINE_HEIGHT,
    REGULAR_FONT,
    ellipsize,
    fit_lines,
    font_for_weight,
    wrap_text_to_width,
)


class TextUtilsTests(unittest.TestCase):
    def test_wrap_text_to_width_empty(self) -> None:
        self.assertEqual(list(wrap_text_to_width("", "Helvetica", 12, 100)), [])
        self.assertEqual(list(wrap_text_to_width("Hello", "Helvetica", 12, 0)), [])

    def test_wrap_text_to_width_single_line(self) -> None:
        lines = list(wrap_text_to_width("Hello world", "Helvetica", 12, 1000))
        self.assertEqual(lines, ["Hello world"])

    def test_wrap_text_to_width_enforces_width(self) -> None:
        max_width = 30
        lines = list(wrap_text_to_width("Hello world", "Helvetica", 12, max_width))
        self.assertGreater(len(lines), 1)
        for line in lines:
            self.assertLessEqual(stringWidth(line, "Helvetica", 12), max_width)

    def test_wrap_breaks_long_words(self) -> None:
        lines = list(wrap_text_to_width("Supercalifragilistic", "Helvetica", 12, 40))
        self.assertGreater(len(lines), 1)
        self.assertEqual("".join(lines), "Supercalifragilistic")

    def test_ellipsize_keeps_fitting_text(self) -> None:
        self.assertEqual(ellipsize("Bin A1", "Helvetica", 10, 500), "Bin A1")

    def test_ellipsize_trims(self) -> None:
        text = ellipsize("Warehouse shelf twelve", "Helvetica", 10, 50)
        self.assertTrue(text.endswith(ELLIPSIS))
        self.assertLessEqual(stringWidth(text, "Helvetica", 10), 50)

    def test_fit_lines_never_shrinks_font(self) -> None:
        text = "one two three four five six seven eight nine ten"
        lines = fit_lines(text, "Helvetica", 10, 60, 10 * LINE_HEIGHT * 2)
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[-1].endswith(ELLIPSIS))

    def test_fit_lines_shows_at_least_one_line(self) -> None:
        lines = fit_lines("Hello world", "Helvetica", 10, 1000, 1)
        self.assertEqual(lines, ["Hello world"])

    def test_font_for_weight(self) -> None:
        self.assertEqual(font_for_weight("bold"), BOLD_FONT)
        self.assertEqual(font_for_weight("normal"), REGULAR_FONT)


if __name__ == "__main__":
    unittest.main()
