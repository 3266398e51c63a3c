"""PDF output through reportlab's platypus layer.

The same element list that feeds the Word writer is turned into flowables.
reportlab's standard fonts cover Latin-1 only, so a Unicode TrueType font
is registered from the usual system locations when one exists; otherwise
the built-in ``STSong-Light`` CID font is used, which covers CJK text and
the Greek letters the formula transcoder emits.
"""
import io
import os
from typing import Iterable, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle as PdfStyle
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import (
    HRFlowable,
    Preformatted,
    SimpleDocTemplate,
    Spacer,
)
from reportlab.platypus import Image as PdfImage
from reportlab.platypus import Paragraph as PdfParagraph
from reportlab.platypus import Table as PdfTable
from reportlab.platypus import TableStyle

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
from work2word.settings import APP_NAME
from work2word.styles import Alignment, StyleSheet

LOGGER = get_logger(__name__)

MARGIN = 50
PX_TO_PT = 0.75
MONO_FONT = "Courier"
CID_FONT = "STSong-Light"
FONT_CANDIDATES = (
    (r"C:\Windows\Fonts\simsun.ttc", 0),
    (r"C:\Windows\Fonts\msyh.ttc", 0),
    (r"C:\Windows\Fonts\simhei.ttf", None),
    ("/usr/share/fonts/truetype/wqy/wqy-microhei.ttc", 0),
    ("/usr/share/fonts/truetype/wqy/wqy-zenhei.ttc", 0),
    ("/Library/Fonts/Arial Unicode.ttf", None),
)

ALIGNMENTS = {
    Alignment.LEFT: TA_LEFT,
    Alignment.CENTER: TA_CENTER,
    Alignment.RIGHT: TA_RIGHT,
    Alignment.JUSTIFY: TA_JUSTIFY,
}

_base_font = None


def is_latin1(text: str) -> bool:
    # The standard Type1 fonts only cover Latin-1.
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


def register_base_font() -> str:
    global _base_font
    if _base_font is not None:
        return _base_font
    for path, index in FONT_CANDIDATES:
        if not os.path.isfile(path):
            continue
        try:
            if index is None:
                pdfmetrics.registerFont(TTFont("Work2WordBody", path))
            else:
                pdfmetrics.registerFont(TTFont("Work2WordBody", path, subfontIndex=index))
        except Exception as exc:
            LOGGER.info("Skipping font %s: %s", path, exc)
            continue
        _base_font = "Work2WordBody"
        break
    else:
        pdfmetrics.registerFont(UnicodeCIDFont(CID_FONT))
        _base_font = CID_FONT
    # No separate bold/italic faces; map the variants so <b>/<i> markup resolves.
    pdfmetrics.registerFontFamily(_base_font, normal=_base_font, bold=_base_font,
                                  italic=_base_font, boldItalic=_base_font)
    LOGGER.info("PDF body font: %s", _base_font)
    return _base_font


class PdfWriter:
    def __init__(self, style_sheet: StyleSheet | None = None):
        self.style_sheet = StyleSheet.from_mapping(style_sheet)
        self.base_font = register_base_font()
        self.frame_width = A4[0] - 2 * MARGIN
        paragraph = self.style_sheet.paragraph
        self.body = PdfStyle(
            "Work2WordBody",
            fontName=self.base_font,
            fontSize=paragraph.font_size,
            leading=paragraph.font_size * paragraph.line_height,
            spaceAfter=paragraph.paragraph_spacing,
            alignment=TA_JUSTIFY,
        )
        self.note = PdfStyle("Work2WordNote", parent=self.body, textColor=colors.HexColor("#999999"),
                             firstLineIndent=0)
        self.code = PdfStyle(
            "Work2WordCode",
            fontName=MONO_FONT,
            fontSize=10,
            leading=12,
            backColor=colors.HexColor("#F8F8F8"),
            borderPadding=5,
            leftIndent=10,
            rightIndent=10,
            spaceBefore=6,
            spaceAfter=10,
        )
        self.code_cjk = PdfStyle("Work2WordCodeWide", parent=self.code, fontName=self.base_font)

    def render(self, elements: Iterable) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=f"{APP_NAME} Export",
            author=APP_NAME,
        )
        story = self.build_story(elements)
        doc.build(story or [Spacer(1, 1)])
        return buffer.getvalue()

    def build_story(self, elements: Iterable) -> List:
        story = []
        for element in elements:
            story.extend(self.flowables(element))
        return story

    def flowables(self, element) -> List:
        if isinstance(element, Heading):
            return [PdfParagraph(self.markup(element.runs), self._heading_style(element.depth))]
        if isinstance(element, Paragraph):
            style = PdfStyle("Work2WordParagraph", parent=self.body, firstLineIndent=element.indent)
            return [PdfParagraph(self.markup(element.runs), style)]
        if isinstance(element, Blockquote):
            return [self._blockquote(element)]
        if isinstance(element, CodeBlock):
            text = "\n".join(element.lines)
            style = self.code if is_latin1(text) else self.code_cjk
            return [Preformatted(text, style, maxLineLength=90, splitChars=" ")]
        if isinstance(element, ListItem):
            style = PdfStyle("Work2WordList", parent=self.body, alignment=TA_LEFT,
                             leftIndent=18 * (element.level + 1), firstLineIndent=-12, spaceAfter=3)
            return [PdfParagraph(self.markup(element.runs), style)]
        if isinstance(element, Table):
            return self._table(element)
        if isinstance(element, HorizontalRule):
            return [HRFlowable(width="100%", thickness=0.5, color=colors.HexColor("#999999"),
                               spaceBefore=12, spaceAfter=12)]
        if isinstance(element, Image):
            return self._image(element)
        if isinstance(element, ImagePlaceholder):
            return [PdfParagraph(f"<i>{escape(element.label)}</i>", self.note)]
        if isinstance(element, RawText):
            return [PdfParagraph(self.markup(element.runs), self.body)]
        raise TypeError(f"unsupported element: {type(element).__name__}")

    def font_for(self, name: str | None, text: str = "") -> str:
        if not name:
            return self.base_font
        if name in pdfmetrics.getRegisteredFontNames():
            return name
        if ("courier" in name.lower() or "mono" in name.lower()) and is_latin1(text):
            return MONO_FONT
        return self.base_font

    def markup(self, runs: Iterable[TextRun]) -> str:
        parts = []
        for run in runs:
            if run.is_break:
                parts.append("<br/>")
                continue
            if not run.text:
                continue
            attrs = [f'name="{self.font_for(run.font, run.text)}"']
            if run.size:
                attrs.append(f'size="{run.size:g}"')
            if run.color:
                attrs.append(f'color="#{run.color}"')
            if run.shading:
                attrs.append(f'backColor="#{run.shading}"')
            text = f"<font {' '.join(attrs)}>{escape(run.text)}</font>"
            if run.underline:
                text = f"<u>{text}</u>"
            if run.strike:
                text = f"<strike>{text}</strike>"
            if run.italic:
                text = f"<i>{text}</i>"
            if run.bold:
                text = f"<b>{text}</b>"
            parts.append(text)
        return "".join(parts)

    def _heading_style(self, depth: int) -> PdfStyle:
        style = self.style_sheet.heading(depth)
        return PdfStyle(
            f"Work2WordHeading{min(depth, 4)}",
            fontName=self.base_font,
            fontSize=style.font_size,
            leading=style.font_size * style.line_height,
            alignment=ALIGNMENTS[style.alignment],
            spaceBefore=style.spacing_before,
            spaceAfter=style.spacing_after,
        )

    def _blockquote(self, element: Blockquote):
        style = PdfStyle("Work2WordQuote", parent=self.body, firstLineIndent=0, spaceAfter=0,
                         textColor=colors.HexColor("#666666"))
        table = PdfTable([[PdfParagraph(self.markup(element.runs), style)]],
                         colWidths=[self.frame_width - 20], hAlign="RIGHT")
        table.setStyle(TableStyle([
            ("LINEBEFORE", (0, 0), (0, 0), 2, colors.HexColor("#CCCCCC")),
            ("LEFTPADDING", (0, 0), (0, 0), 10),
            ("TOPPADDING", (0, 0), (0, 0), 4),
            ("BOTTOMPADDING", (0, 0), (0, 0), 4),
        ]))
        return table

    def _table(self, element: Table) -> List:
        rows = ([element.header_cells] if element.header_cells else []) + list(element.body_rows)
        cols = max((len(row) for row in rows), default=0)
        if cols == 0:
            return []
        cell_style = PdfStyle("Work2WordCell", parent=self.body, firstLineIndent=0, spaceAfter=0,
                              alignment=TA_LEFT)
        head_style = PdfStyle("Work2WordHeadCell", parent=cell_style, alignment=TA_CENTER)
        data = []
        for row_index, row in enumerate(rows):
            style = head_style if element.header_cells and row_index == 0 else cell_style
            # reportlab needs rectangular data; short rows get empty cells here only.
            cells = [PdfParagraph(self.markup(row[idx]), style) if idx < len(row) else ""
                     for idx in range(cols)]
            data.append(cells)
        commands = [("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#CCCCCC")),
                    ("VALIGN", (0, 0), (-1, -1), "TOP")]
        if element.header_cells:
            commands.append(("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F0F0F0")))
        table = PdfTable(data, colWidths=[self.frame_width / cols] * cols,
                         repeatRows=1 if element.header_cells else 0)
        table.setStyle(TableStyle(commands))
        return [table, Spacer(1, 8)]

    def _image(self, element: Image) -> List:
        try:
            ImageReader(io.BytesIO(element.data)).getSize()
        except Exception as exc:
            LOGGER.warning("Cannot embed image %s: %s", element.original_ref or element.alt_text, exc)
            return [PdfParagraph(f"<i>{escape(f'[图片: {element.alt_text}]')}</i>", self.note)]
        width = min(element.width_px * PX_TO_PT, self.frame_width)
        height = element.height_px * PX_TO_PT * width / (element.width_px * PX_TO_PT)
        image = PdfImage(io.BytesIO(element.data), width=width, height=height)
        image.hAlign = "CENTER"
        return [Spacer(1, 10), image, Spacer(1, 10)]
