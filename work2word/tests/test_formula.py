"""Test cases for LaTeX to Unicode transcoding."""

import unittest

from work2word.formula import transcode


class TranscodeTest(unittest.TestCase):
    """Test the plain-text formula transcoder."""

    def test_documented_examples(self):
        """Test greek letters, scripts and fractions."""
        test_cases = [
            ("\\alpha^2", "α²"),
            ("\\frac{1}{2}", "(1/2)"),
            ("x_{1}", "x₁"),
            ("x^{n+1}", "xⁿ⁺¹"),
            ("a_2 + b_3", "a₂ + b₃"),
            ("\\sqrt{x}", "√(x)"),
            ("\\text{speed} = v", "speed = v"),
        ]

        for latex, expected in test_cases:
            self.assertEqual(transcode(latex), expected, f"Failed for input: {latex!r}")

    def test_commands_match_whole_names(self):
        """Test that a short command never matches inside a longer one."""
        self.assertEqual(transcode("x \\in A"), "x ∈ A")
        self.assertEqual(transcode("n \\to \\infty"), "n → ∞")
        self.assertEqual(transcode("\\leq"), "≤")

    def test_unknown_commands_pass_through(self):
        """Test that unrecognised commands are left verbatim."""
        self.assertEqual(transcode("\\mathcal{L}"), "\\mathcalL")
        self.assertEqual(transcode("\\foo + 1"), "\\foo + 1")

    def test_unmapped_script_characters(self):
        """Test that characters without a script glyph are kept."""
        self.assertEqual(transcode("x^{y}"), "xy")
        self.assertEqual(transcode("e^{-x}"), "e⁻x")

    def test_whitespace_and_empty_input(self):
        """Test whitespace collapsing and empty input."""
        self.assertEqual(transcode(""), "")
        self.assertEqual(transcode("  a   +\n b  "), "a + b")


if __name__ == "__main__":
    unittest.main()
