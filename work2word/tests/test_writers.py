"""Test cases for the Word and PDF writers."""

import io
import unittest

import pdfplumber
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml.ns import qn
from docx.shared import Pt

from work2word.model import (
    Blockquote,
    CodeBlock,
    Heading,
    HorizontalRule,
    ImagePlaceholder,
    ListItem,
    Paragraph,
    RawText,
    Table,
    TextRun,
)
from work2word.writers import DocxWriter, PdfWriter

ELEMENTS = [
    Heading(1, (TextRun("Title", bold=True, font="黑体", size=22),)),
    Paragraph((TextRun("Body "), TextRun("code", font="Courier New", shading="F5F5F5"),
               TextRun(is_break=True), TextRun("next")), indent=24),
    Blockquote((TextRun("quoted", italic=True, color="666666"),)),
    CodeBlock(("a = 1", " ", "b = 2")),
    ListItem(False, 1, "○ ", (TextRun("○ "), TextRun("nested"))),
    Table(((TextRun("H1", bold=True),), (TextRun("H2", bold=True),)),
          (((TextRun("only"),),),)),
    HorizontalRule(),
    ImagePlaceholder("alt", "x.png"),
    RawText((TextRun("<raw> & text"),)),
]


class DocxWriterTest(unittest.TestCase):
    """Test the python-docx layout of each element."""

    def setUp(self):
        """Render the sample elements."""
        self.doc = Document(io.BytesIO(DocxWriter().render(ELEMENTS)))
        self.paragraphs = self.doc.paragraphs

    def test_heading(self):
        """Test heading style, alignment and spacing."""
        heading = self.paragraphs[0]
        self.assertEqual(heading.style.name, "Heading 1")
        self.assertEqual(heading.alignment, WD_ALIGN_PARAGRAPH.CENTER)
        self.assertEqual(heading.paragraph_format.space_before, Pt(12))
        self.assertEqual(heading.runs[0].font.size, Pt(22))

    def test_paragraph_runs(self):
        """Test indent, shading, east asian font and line breaks."""
        paragraph = self.paragraphs[1]
        self.assertEqual(paragraph.paragraph_format.first_line_indent, Pt(24))
        self.assertEqual(paragraph.text, "Body code\nnext")
        code = paragraph.runs[1]
        self.assertEqual(code.font.name, "Courier New")
        self.assertEqual(code._element.rPr.find(qn("w:shd")).get(qn("w:fill")), "F5F5F5")

    def test_blockquote_border(self):
        """Test the quote's left border and indent."""
        quote = self.paragraphs[2]
        self.assertEqual(quote.paragraph_format.left_indent, Pt(36))
        border = quote._p.pPr.find(qn("w:pBdr")).find(qn("w:left"))
        self.assertEqual(border.get(qn("w:color")), "CCCCCC")

    def test_code_lines(self):
        """Test one shaded paragraph per code line."""
        lines = self.paragraphs[3:6]
        self.assertEqual([p.text for p in lines], ["a = 1", " ", "b = 2"])
        for p in lines:
            self.assertEqual(p._p.pPr.find(qn("w:shd")).get(qn("w:fill")), "F8F8F8")

    def test_list_indent(self):
        """Test the level-based list indent."""
        item = self.paragraphs[6]
        self.assertEqual(item.text, "○ nested")
        self.assertEqual(item.paragraph_format.left_indent, Pt(72))
        self.assertEqual(item.paragraph_format.first_line_indent, Pt(-18))

    def test_ragged_table(self):
        """Test that short rows are filled to the widest row."""
        table = self.doc.tables[0]
        self.assertEqual(len(table.columns), 2)
        self.assertEqual([c.text for c in table.rows[0].cells], ["H1", "H2"])
        self.assertEqual([c.text for c in table.rows[1].cells], ["only", ""])

    def test_table_borders(self):
        """Test the grey grid applied on top of the table style."""
        borders = self.doc.tables[0]._tbl.tblPr.find(qn("w:tblBorders"))
        self.assertIsNotNone(borders)
        inside = borders.find(qn("w:insideH"))
        self.assertEqual(inside.get(qn("w:color")), "CCCCCC")
        self.assertEqual(inside.get(qn("w:val")), "single")

    def test_notes(self):
        """Test placeholder and raw text paragraphs."""
        texts = [p.text for p in self.paragraphs]
        self.assertIn("[图片: alt](x.png)", texts)
        self.assertIn("<raw> & text", texts)

    def test_unknown_element(self):
        """Test that unknown elements are rejected."""
        with self.assertRaises(TypeError):
            DocxWriter().render([object()])


class PdfWriterTest(unittest.TestCase):
    """Test the reportlab output."""

    def test_render(self):
        """Test that all element kinds render into a PDF."""
        data = PdfWriter().render(ELEMENTS)
        self.assertTrue(data.startswith(b"%PDF"))
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            self.assertEqual(pdf.metadata.get("Author"), "Work2Word")

    def test_markup_escapes_text(self):
        """Test that run text is escaped and styled."""
        writer = PdfWriter()
        markup = writer.markup([TextRun("a<b", bold=True, strike=True), TextRun(is_break=True)])
        self.assertTrue(markup.startswith("<b><strike><font "))
        self.assertIn("a&lt;b", markup)
        self.assertTrue(markup.endswith("<br/>"))
        self.assertEqual(writer.font_for("Courier New"), "Courier")
        self.assertEqual(writer.font_for("宋体"), writer.base_font)

    def test_chinese_text_is_extractable(self):
        """Test that CJK text survives in body, code block and code run fonts."""
        writer = PdfWriter()
        data = writer.render([
            Paragraph((TextRun("中文答案"),)),
            CodeBlock(("x = 1  # 计算面积",)),
            Paragraph((TextRun("代码片段", font="Courier New", shading="F5F5F5"),)),
        ])
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            text = "".join(page.extract_text() or "" for page in pdf.pages)
        for word in ("中文答案", "计算面积", "代码片段"):
            self.assertIn(word, text)
        self.assertEqual(writer.font_for("Courier New", "代码"), writer.base_font)

    def test_empty_document(self):
        """Test that an empty element list still yields a PDF."""
        self.assertTrue(PdfWriter().render([]).startswith(b"%PDF"))


if __name__ == "__main__":
    unittest.main()
