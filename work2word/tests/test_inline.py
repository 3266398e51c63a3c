"""Test cases for inline run building."""

import unittest

from work2word.inline import (
    CODE_FONT,
    LINK_COLOR,
    MATH_FONT,
    InlineRunBuilder,
    RunStyle,
)
from work2word.tokens import TokenKind, lex


def inline_tokens(markdown):
    return lex(markdown)[0].children


class ScanTextTest(unittest.TestCase):
    """Test the combined formula/code/bold scanner."""

    def setUp(self):
        """Set up test fixtures."""
        self.builder = InlineRunBuilder()

    def test_mixed_styles_in_order(self):
        """Test bold, formula and code runs keep their order and boundaries."""
        runs = self.builder.scan_text("**bold** and $x^2$ and `code`")
        self.assertEqual([r.text for r in runs], ["bold", " and ", "x²", " and ", "code"])
        self.assertTrue(runs[0].bold)
        self.assertFalse(runs[1].bold)
        self.assertEqual(runs[2].font, MATH_FONT)
        self.assertTrue(runs[2].italic)
        self.assertEqual(runs[4].font, CODE_FONT)
        self.assertIsNotNone(runs[4].shading)

    def test_build_runs_matches_scanner(self):
        """Test that lexed inline tokens give the same five runs."""
        runs = self.builder.build_runs(inline_tokens("**bold** and $x^2$ and `code`"))
        self.assertEqual([r.text for r in runs], ["bold", " and ", "x²", " and ", "code"])
        self.assertEqual([r.bold for r in runs], [True, False, False, False, False])

    def test_display_math(self):
        """Test that $$ delimiters take precedence over single dollars."""
        runs = self.builder.scan_text("see $$\\frac{a}{b}$$ here")
        self.assertEqual([r.text for r in runs], ["see ", "(a/b)", " here"])

    def test_dollar_inside_code_span(self):
        """Test that a code span starting first swallows dollar signs."""
        runs = self.builder.scan_text("`cost $5` and $y$")
        self.assertEqual(runs[0].text, "cost $5")
        self.assertEqual(runs[0].font, CODE_FONT)
        self.assertEqual(runs[-1].text, "y")
        self.assertEqual(runs[-1].font, MATH_FONT)

    def test_dollar_inside_bold(self):
        """Test that a bold span containing a dollar is not a formula."""
        runs = self.builder.scan_text("**costs $5** today")
        self.assertEqual(runs[0].text, "costs $5")
        self.assertTrue(runs[0].bold)

    def test_double_backtick_code(self):
        """Test code spans with matching backtick fences."""
        runs = self.builder.scan_text("use ``code`` now")
        self.assertEqual([r.text for r in runs], ["use ", "code", " now"])
        self.assertEqual(runs[1].font, CODE_FONT)

    def test_plain_text(self):
        """Test that text without markers is a single run."""
        runs = self.builder.scan_text("just text")
        self.assertEqual(len(runs), 1)
        self.assertEqual(runs[0].text, "just text")
        self.assertEqual(runs[0].font, "宋体")
        self.assertEqual(runs[0].size, 12)

    def test_hard_breaks_in_scanned_text(self):
        """Test trailing-space and backslash line breaks in raw paragraph text."""
        for text in ("line one  \nline two", "line one\\\nline two"):
            runs = self.builder.scan_text(text)
            self.assertEqual([(r.text, r.is_break) for r in runs],
                             [("line one", False), ("", True), ("line two", False)])
        runs = self.builder.scan_text("a\nb  \n$x$")
        self.assertEqual([(r.text, r.is_break) for r in runs], [("a b", False), ("", True), ("x", False)])

    def test_base_style_applies(self):
        """Test that the caller's base style is carried into plain runs."""
        runs = self.builder.scan_text("quoted", RunStyle(italic=True, color="666666"))
        self.assertTrue(runs[0].italic)
        self.assertEqual(runs[0].color, "666666")


class BuildRunsTest(unittest.TestCase):
    """Test run building from lexed inline tokens."""

    def setUp(self):
        """Set up test fixtures."""
        self.builder = InlineRunBuilder()

    def test_emphasis_and_strike(self):
        """Test italic and strike-through tokens."""
        runs = self.builder.build_runs(inline_tokens("*soft* ~~gone~~"))
        self.assertEqual(runs[0].text, "soft")
        self.assertTrue(runs[0].italic)
        self.assertEqual(runs[-1].text, "gone")
        self.assertTrue(runs[-1].strike)

    def test_link(self):
        """Test that links become coloured underlined runs."""
        runs = self.builder.build_runs(inline_tokens("[docs](https://example.com)"))
        self.assertEqual(len(runs), 1)
        self.assertEqual(runs[0].text, "docs")
        self.assertEqual(runs[0].color, LINK_COLOR)
        self.assertTrue(runs[0].underline)

    def test_hard_break(self):
        """Test that hard line breaks become break runs."""
        tokens = inline_tokens("one  \ntwo")
        self.assertIn(TokenKind.BR, [t.kind for t in tokens])
        runs = self.builder.build_runs(tokens)
        self.assertEqual([r.is_break for r in runs], [False, True, False])

    def test_soft_break_is_space(self):
        """Test that soft line breaks read as spaces."""
        runs = self.builder.build_runs(inline_tokens("one\ntwo"))
        self.assertEqual("".join(r.text for r in runs), "one two")


if __name__ == "__main__":
    unittest.main()
