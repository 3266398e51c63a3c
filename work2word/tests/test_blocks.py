"""Test cases for block element building."""

import unittest

from work2word.blocks import BULLETS, BlockBuilder
from work2word.model import (
    Blockquote,
    CodeBlock,
    Heading,
    HorizontalRule,
    Image,
    ImagePlaceholder,
    ListItem,
    Paragraph,
    RawText,
    Table,
    runs_text,
)
from work2word.tokens import Token, TokenKind, lex


def build(markdown, images=None, style_sheet=None):
    builder = BlockBuilder(style_sheet, images)
    elements = []
    for token in lex(markdown):
        elements.extend(builder.build(token))
    return elements


class BlockBuilderTest(unittest.TestCase):
    """Test translation of block tokens into document elements."""

    def test_heading(self):
        """Test heading depth, font and bold run."""
        heading = build("## Results *now*")[0]
        self.assertIsInstance(heading, Heading)
        self.assertEqual(heading.depth, 2)
        self.assertEqual(len(heading.runs), 1)
        self.assertEqual(heading.runs[0].text, "Results now")
        self.assertTrue(heading.runs[0].bold)
        self.assertEqual(heading.runs[0].size, 16)
        self.assertEqual(heading.runs[0].font, "黑体")

    def test_paragraph_indent_and_runs(self):
        """Test paragraph first-line indent and scanned runs."""
        paragraph = build("Energy $E=mc^2$ is **key**.")[0]
        self.assertIsInstance(paragraph, Paragraph)
        self.assertEqual(paragraph.indent, 24)
        self.assertEqual(runs_text(paragraph.runs), "Energy E=mc² is key.")

    def test_paragraph_indent_follows_style_sheet(self):
        """Test that the indent is computed from the style sheet."""
        sheet = {"paragraph": {"firstLineIndent": 0}}
        self.assertEqual(build("plain", style_sheet=sheet)[0].indent, 0)

    def test_nested_list_flattens_in_order(self):
        """Test depth-first flattening with levels."""
        elements = build("- A\n- B\n  - C\n  - D\n- E")
        self.assertTrue(all(isinstance(e, ListItem) for e in elements))
        self.assertEqual(
            [(runs_text(e.runs[1:]), e.level) for e in elements],
            [("A", 0), ("B", 0), ("C", 1), ("D", 1), ("E", 0)],
        )
        self.assertEqual(elements[0].prefix, f"{BULLETS[0]} ")
        self.assertEqual(elements[2].prefix, f"{BULLETS[1]} ")

    def test_ordered_list_numbering(self):
        """Test ordered prefixes counting from the list start."""
        elements = build("2. two\n3. three")
        self.assertEqual([e.prefix for e in elements], ["2. ", "3. "])
        self.assertTrue(elements[0].ordered)

    def test_table(self):
        """Test header and body cells."""
        table = build("| Name | Score |\n| --- | --- |\n| Li | 90 |\n| Wang | 85 |")[0]
        self.assertIsInstance(table, Table)
        self.assertEqual([runs_text(c) for c in table.header_cells], ["Name", "Score"])
        self.assertTrue(table.header_cells[0][0].bold)
        self.assertEqual([[runs_text(c) for c in row] for row in table.body_rows],
                         [["Li", "90"], ["Wang", "85"]])

    def test_code_block_lines(self):
        """Test code splitting with empty lines kept as a space."""
        code = build("```\na = 1\n\nb = 2\n```")[0]
        self.assertIsInstance(code, CodeBlock)
        self.assertEqual(code.lines, ("a = 1", " ", "b = 2"))

    def test_blockquote(self):
        """Test quote runs are italic and grey."""
        quote = build("> careful *now*")[0]
        self.assertIsInstance(quote, Blockquote)
        self.assertEqual(runs_text(quote.runs), "careful now")
        self.assertTrue(all(run.italic for run in quote.runs))
        self.assertEqual(quote.runs[0].color, "666666")

    def test_rule_and_html(self):
        """Test horizontal rules and stripped HTML blocks."""
        elements = build("---\n\n<p>hello</p>")
        self.assertIsInstance(elements[0], HorizontalRule)
        self.assertIsInstance(elements[1], RawText)
        self.assertEqual(runs_text(elements[1].runs), "hello")

    def test_resolved_image(self):
        """Test that resolved bytes become an image element."""
        elements = build("![chart](c.png)", images={"c.png": b"data"})
        self.assertEqual(elements, [Image(b"data", alt_text="chart", original_ref="c.png")])

    def test_missing_image_placeholder(self):
        """Test that unresolved images keep their reference verbatim."""
        ref = "https://example.com/missing.png?size=large"
        with self.assertLogs("work2word.blocks", level="WARNING"):
            elements = build(f"![lost]({ref})", images={ref: None})
        self.assertIsInstance(elements[0], ImagePlaceholder)
        self.assertEqual(elements[0].original_ref, ref)
        self.assertEqual(elements[0].alt_text, "lost")
        self.assertEqual(elements[0].label, f"[图片: lost]({ref})")

    def test_image_between_text(self):
        """Test that text around an image becomes separate paragraphs."""
        elements = build("before ![x](x.png) after", images={"x.png": b"img"})
        self.assertEqual([type(e) for e in elements], [Paragraph, Image, Paragraph])
        self.assertEqual(runs_text(elements[0].runs), "before ")
        self.assertEqual(runs_text(elements[2].runs), " after")


    def test_paragraph_hard_break(self):
        """Test that a hard line break in a paragraph becomes a break run."""
        paragraph = build("line one  \nline two")[0]
        self.assertEqual([(r.text, r.is_break) for r in paragraph.runs],
                         [("line one", False), ("", True), ("line two", False)])

    def test_images_inside_list_quote_and_heading(self):
        """Test that nested images are emitted after the element holding them."""
        images = {"a.png": b"A", "b.png": b"B", "c.png": b"C"}
        elements = build("- item ![one](a.png)\n  - sub\n\n> see ![two](b.png)\n\n## Plot ![three](c.png)",
                         images=images)
        self.assertEqual([type(e) for e in elements],
                         [ListItem, Image, ListItem, Blockquote, Image, Heading, Image])
        self.assertEqual(runs_text(elements[0].runs), "● item ")
        self.assertEqual(elements[1].original_ref, "a.png")
        self.assertEqual(elements[4].data, b"B")
        self.assertEqual(elements[5].runs[0].text, "Plot ")
        self.assertEqual(elements[6].alt_text, "three")

    def test_image_in_table_cell_keeps_reference(self):
        """Test that a table cell image is labelled with its reference."""
        table = build("| h |\n| - |\n| ![d](three.png) |")[0]
        self.assertEqual(runs_text(table.body_rows[0][0]), "[图片: d](three.png)")

    def test_fallback_without_source(self):
        """Test that a token with no source text still yields one element."""
        elements = BlockBuilder().fallback(Token(TokenKind.HR))
        self.assertEqual(len(elements), 1)
        self.assertEqual(runs_text(elements[0].runs), "[hr]")


if __name__ == "__main__":
    unittest.main()
