"""Test cases for Markdown clean-up passes."""

import unittest

from work2word.normalize import (
    ensure_closed_code_blocks,
    normalize_fenced_math,
    normalize_markdown,
    normalize_table_breaks,
    sanitize_special_marks,
    strip_standalone_brackets,
)


class NormalizeTest(unittest.TestCase):
    """Test each pass on the shapes chat assistants produce."""

    def test_sanitize_special_marks(self):
        """Test removal of copied line-break glyphs."""
        self.assertEqual(sanitize_special_marks("a\u21b5b\u2028c\u2029d"), "ab c d")

    def test_close_code_blocks(self):
        """Test that an unterminated fence is closed."""
        self.assertEqual(ensure_closed_code_blocks("```py\nx = 1"), "```py\nx = 1\n```")
        self.assertEqual(ensure_closed_code_blocks("```\nx\n```"), "```\nx\n```")

    def test_fenced_math(self):
        """Test math fences becoming display formulas."""
        self.assertEqual(normalize_fenced_math("```math\na+b\n```"), "\n$$\na+b\n$$\n")

    def test_standalone_brackets(self):
        """Test bracketed display math and unclosed brackets."""
        self.assertEqual(strip_standalone_brackets("\\[\nx^2\n\\]"), "\n$$\nx^2\n$$\n")
        self.assertEqual(strip_standalone_brackets("[\nkeep"), "[\nkeep")
        self.assertEqual(strip_standalone_brackets("\\[\nkeep"), "\\[\nkeep")

    def test_table_breaks(self):
        """Test that <br> inside table rows becomes a space."""
        self.assertEqual(normalize_table_breaks("| a<br>b | c<BR/> |"), "| a b | c  |")
        self.assertEqual(normalize_table_breaks("line<br>break"), "line<br>break")

    def test_normalize_markdown(self):
        """Test the combined pass."""
        text = "答案\u21b5\n```math\n\\alpha\n```"
        self.assertEqual(normalize_markdown(text), "答案\n\n$$\n\\alpha\n$$")


if __name__ == "__main__":
    unittest.main()
