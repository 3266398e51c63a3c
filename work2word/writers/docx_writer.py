import io
from typing import Iterable

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Mm, Pt, RGBColor

from work2word.inline import CODE_FONT
from work2word.log import get_logger
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
    TextRun,
)
from work2word.styles import Alignment, StyleSheet

LOGGER = get_logger(__name__)

EMU_PER_PX = 9525
CODE_BLOCK_SIZE = 10
CODE_BLOCK_SHADING = "F8F8F8"
HEADER_SHADING = "F0F0F0"
BORDER_COLOR = "CCCCCC"
RULE_COLOR = "999999"
PLACEHOLDER_COLOR = "999999"

ALIGNMENTS = {
    Alignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    Alignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
    Alignment.RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
    Alignment.JUSTIFY: WD_ALIGN_PARAGRAPH.JUSTIFY,
}


def set_east_asia_font(run, name: str):
    run.font.name = name
    rpr = run._element.get_or_add_rPr()
    rfonts = rpr.find(qn("w:rFonts"))
    if rfonts is None:
        rfonts = OxmlElement("w:rFonts")
        rpr.insert(0, rfonts)
    rfonts.set(qn("w:eastAsia"), name)


def set_run_shading(run, fill: str):
    rpr = run._element.get_or_add_rPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    rpr.append(shd)


def set_paragraph_shading(paragraph, fill: str):
    ppr = paragraph._p.get_or_add_pPr()
    shd = ppr.find(qn("w:shd"))
    if shd is None:
        shd = OxmlElement("w:shd")
        ppr.append(shd)
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)


def set_paragraph_border(paragraph, edge: str, size: int, color: str, space: int = 1):
    ppr = paragraph._p.get_or_add_pPr()
    borders = ppr.find(qn("w:pBdr"))
    if borders is None:
        borders = OxmlElement("w:pBdr")
        ppr.append(borders)
    element = borders.find(qn(f"w:{edge}"))
    if element is None:
        element = OxmlElement(f"w:{edge}")
        borders.append(element)
    element.set(qn("w:val"), "single")
    element.set(qn("w:sz"), str(size))
    element.set(qn("w:color"), color)
    element.set(qn("w:space"), str(space))


def set_cell_shading(cell, fill: str):
    tcpr = cell._tc.get_or_add_tcPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    tcpr.append(shd)


def set_table_borders(table, size: int = 4, color: str = BORDER_COLOR):
    tbl_pr = table._tbl.tblPr
    borders = tbl_pr.find(qn("w:tblBorders"))
    if borders is None:
        borders = OxmlElement("w:tblBorders")
        # tblBorders must precede these in w:tblPr.
        for tag in ("w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook"):
            successor = tbl_pr.find(qn(tag))
            if successor is not None:
                successor.addprevious(borders)
                break
        else:
            tbl_pr.append(borders)
    for edge in ("top", "left", "bottom", "right", "insideH", "insideV"):
        element = borders.find(qn(f"w:{edge}"))
        if element is None:
            element = OxmlElement(f"w:{edge}")
            borders.append(element)
        element.set(qn("w:val"), "single")
        element.set(qn("w:sz"), str(size))
        element.set(qn("w:color"), color)
        element.set(qn("w:space"), "0")


class DocxWriter:
    """Lays the element list out as a Word document with python-docx."""

    def __init__(self, style_sheet: StyleSheet | None = None):
        self.style_sheet = StyleSheet.from_mapping(style_sheet)

    def render(self, elements: Iterable) -> bytes:
        doc = self.build_document(elements)
        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()

    def build_document(self, elements: Iterable):
        doc = Document()
        section = doc.sections[0]
        section.page_width = Mm(210)
        section.page_height = Mm(297)
        for element in elements:
            self.add_element(doc, element)
        return doc

    def add_element(self, doc, element):
        if isinstance(element, Heading):
            self._add_heading(doc, element)
        elif isinstance(element, Paragraph):
            self._add_paragraph(doc, element)
        elif isinstance(element, Blockquote):
            self._add_blockquote(doc, element)
        elif isinstance(element, CodeBlock):
            self._add_code(doc, element)
        elif isinstance(element, ListItem):
            self._add_list_item(doc, element)
        elif isinstance(element, Table):
            self._add_table(doc, element)
        elif isinstance(element, HorizontalRule):
            self._add_rule(doc)
        elif isinstance(element, Image):
            self._add_image(doc, element)
        elif isinstance(element, ImagePlaceholder):
            self._add_note(doc, element.label)
        elif isinstance(element, RawText):
            self.add_runs(doc.add_paragraph(), element.runs)
        else:
            raise TypeError(f"unsupported element: {type(element).__name__}")

    def add_runs(self, paragraph, runs: Iterable[TextRun]):
        for item in runs:
            if item.is_break:
                paragraph.add_run().add_break()
                continue
            run = paragraph.add_run(item.text)
            run.bold = item.bold or None
            run.italic = item.italic or None
            if item.strike:
                run.font.strike = True
            if item.underline:
                run.underline = True
            if item.color:
                run.font.color.rgb = RGBColor.from_string(item.color.upper())
            if item.font:
                set_east_asia_font(run, item.font)
            if item.size:
                run.font.size = Pt(item.size)
            if item.shading:
                set_run_shading(run, item.shading)

    def _add_heading(self, doc, element: Heading):
        style = self.style_sheet.heading(element.depth)
        style_name = f"Heading {min(max(element.depth, 1), 9)}"
        if style_name in {s.name for s in doc.styles}:
            paragraph = doc.add_paragraph(style=style_name)
        else:
            paragraph = doc.add_paragraph()
        self.add_runs(paragraph, element.runs)
        for run in paragraph.runs:
            run.font.color.rgb = RGBColor(0, 0, 0)
        fmt = paragraph.paragraph_format
        fmt.alignment = ALIGNMENTS[style.alignment]
        fmt.space_before = Pt(style.spacing_before)
        fmt.space_after = Pt(style.spacing_after)
        fmt.line_spacing = style.line_height

    def _add_paragraph(self, doc, element: Paragraph):
        style = self.style_sheet.paragraph
        paragraph = doc.add_paragraph()
        self.add_runs(paragraph, element.runs)
        fmt = paragraph.paragraph_format
        fmt.space_after = Pt(style.paragraph_spacing)
        fmt.line_spacing = style.line_height
        if element.indent > 0:
            fmt.first_line_indent = Pt(element.indent)

    def _add_blockquote(self, doc, element: Blockquote):
        paragraph = doc.add_paragraph()
        self.add_runs(paragraph, element.runs)
        fmt = paragraph.paragraph_format
        fmt.space_before = Pt(6)
        fmt.space_after = Pt(6)
        fmt.left_indent = Pt(36)
        set_paragraph_border(paragraph, "left", 10, BORDER_COLOR, space=10)

    def _add_code(self, doc, element: CodeBlock):
        last = len(element.lines) - 1
        for index, line in enumerate(element.lines):
            paragraph = doc.add_paragraph()
            run = paragraph.add_run(line)
            set_east_asia_font(run, CODE_FONT)
            run.font.size = Pt(CODE_BLOCK_SIZE)
            fmt = paragraph.paragraph_format
            fmt.space_before = Pt(6 if index == 0 else 0)
            fmt.space_after = Pt(6 if index == last else 0)
            fmt.line_spacing = 1.0
            fmt.left_indent = Pt(18)
            fmt.right_indent = Pt(18)
            set_paragraph_shading(paragraph, CODE_BLOCK_SHADING)

    def _add_list_item(self, doc, element: ListItem):
        paragraph = doc.add_paragraph()
        self.add_runs(paragraph, element.runs)
        fmt = paragraph.paragraph_format
        fmt.left_indent = Pt(36 * (element.level + 1))
        fmt.first_line_indent = Pt(-18)
        fmt.space_after = Pt(3)
        fmt.line_spacing = self.style_sheet.paragraph.line_height

    def _add_table(self, doc, element: Table):
        rows = ([element.header_cells] if element.header_cells else []) + list(element.body_rows)
        cols = max((len(row) for row in rows), default=0)
        if cols == 0:
            return
        table = doc.add_table(rows=0, cols=cols)
        try:
            table.style = doc.styles["Table Grid"]
        except KeyError:
            LOGGER.info("Template has no Table Grid style")
        set_table_borders(table)
        for row_index, row in enumerate(rows):
            is_header = bool(element.header_cells) and row_index == 0
            cells = table.add_row().cells
            for idx in range(cols):
                paragraph = cells[idx].paragraphs[0]
                if idx < len(row):
                    self.add_runs(paragraph, row[idx])
                if is_header:
                    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
                    set_cell_shading(cells[idx], HEADER_SHADING)

    def _add_rule(self, doc):
        paragraph = doc.add_paragraph()
        fmt = paragraph.paragraph_format
        fmt.space_before = Pt(12)
        fmt.space_after = Pt(12)
        set_paragraph_border(paragraph, "bottom", 6, RULE_COLOR)

    def _add_image(self, doc, element: Image):
        paragraph = doc.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        fmt = paragraph.paragraph_format
        fmt.space_before = Pt(10)
        fmt.space_after = Pt(10)
        try:
            paragraph.add_run().add_picture(
                io.BytesIO(element.data),
                width=Emu(element.width_px * EMU_PER_PX),
                height=Emu(element.height_px * EMU_PER_PX),
            )
        except Exception as exc:
            LOGGER.warning("Cannot embed image %s: %s", element.original_ref or element.alt_text, exc)
            p_element = paragraph._p
            p_element.getparent().remove(p_element)
            self._add_note(doc, f"[图片: {element.alt_text}]")

    def _add_note(self, doc, text: str):
        paragraph = doc.add_paragraph()
        run = paragraph.add_run(text)
        run.italic = True
        run.font.color.rgb = RGBColor.from_string(PLACEHOLDER_COLOR)
