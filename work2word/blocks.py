import re
from typing import Callable, List, Mapping, Optional

from work2word.inline import InlineRunBuilder, RunStyle
from work2word.log import get_logger
from work2word.model import (
    BlockElement,
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
from work2word.styles import StyleSheet
from work2word.tokens import Token, TokenKind, plain_text

LOGGER = get_logger(__name__)

BULLETS = ("●", "○", "▪")
QUOTE_COLOR = "666666"
PLACEHOLDER_COLOR = "999999"
DEFAULT_ALT = "图片"

_TAG_RE = re.compile(r"<[^>]*>")


class BlockBuilder:
    """Turns one block token into document-model elements.

    ``images`` maps a reference to its resolved bytes (or ``None``). It is
    filled before building starts, so lookups here never block.
    """

    def __init__(self, style_sheet: StyleSheet | None = None, images: Mapping[str, Optional[bytes]] | None = None):
        self.style_sheet = StyleSheet.from_mapping(style_sheet)
        self.inline = InlineRunBuilder(self.style_sheet)
        self.images = images or {}
        self._handlers: dict[TokenKind, Callable[[Token], List[BlockElement]]] = {
            TokenKind.HEADING: self.build_heading,
            TokenKind.PARAGRAPH: self.build_paragraph,
            TokenKind.BLOCKQUOTE: self.build_blockquote,
            TokenKind.CODE: self.build_code,
            TokenKind.LIST: self.build_list,
            TokenKind.TABLE: self.build_table,
            TokenKind.HR: self.build_rule,
            TokenKind.HTML: self.build_html,
            TokenKind.SPACE: self.build_space,
            TokenKind.IMAGE: self.build_image,
        }

    def build(self, token: Token) -> List[BlockElement]:
        handler = self._handlers.get(token.kind, self.build_other)
        return handler(token)

    def fallback(self, token: Token) -> List[BlockElement]:
        text = token.raw or token.text
        if not text:
            return [self._kind_label(token)]
        return [RawText((self.inline.plain_run(text),))]

    def _kind_label(self, token: Token) -> RawText:
        label = f"[{token.attrs.get('type', token.kind.value)}]"
        return RawText((self.inline.plain_run(label, color=PLACEHOLDER_COLOR),))

    def build_heading(self, token: Token) -> List[BlockElement]:
        depth = int(token.attrs.get("depth", 1))
        style = self.style_sheet.heading(depth)
        words = _without_images(token.children)
        text = plain_text(words) if token.children else token.text
        run = TextRun(text=text, bold=True, font=style.font_family, size=style.font_size)
        return [Heading(depth, (run,))] + self._inline_images(token.children)

    def build_paragraph(self, token: Token) -> List[BlockElement]:
        if _has_image(token.children):
            return self._split_on_images(token.children, self._paragraph)
        runs = self.inline.scan_text(token.raw or token.text)
        return [self._paragraph(runs)]

    def _paragraph(self, runs) -> Paragraph:
        return Paragraph(tuple(runs), self.style_sheet.paragraph.first_line_indent_pt())

    def _split_on_images(self, children: List[Token], make, base: RunStyle = RunStyle()) -> List[BlockElement]:
        """Emit text around each image as its own element, images in between."""
        elements = []
        pending: List[Token] = []

        def flush():
            if pending and plain_text(pending).strip():
                runs = self.inline.build_runs(_trim_breaks(pending), base)
                if runs:
                    elements.append(make(runs))
            pending.clear()

        for child in children:
            if child.kind == TokenKind.IMAGE:
                flush()
                elements.append(self.image_element(child))
            else:
                pending.append(child)
        flush()
        return elements

    def _inline_images(self, children: List[Token]) -> List[BlockElement]:
        return [self.image_element(child) for child in children if child.kind == TokenKind.IMAGE]

    def image_element(self, token: Token) -> BlockElement:
        ref = token.attrs.get("href", "")
        alt = token.text or token.attrs.get("alt") or DEFAULT_ALT
        data = self.images.get(ref) if ref else None
        if data:
            return Image(data, alt_text=alt, original_ref=ref)
        LOGGER.warning("Image %r unavailable, inserting placeholder", ref)
        return ImagePlaceholder(alt, ref)

    def build_image(self, token: Token) -> List[BlockElement]:
        return [self.image_element(token)]

    def build_blockquote(self, token: Token) -> List[BlockElement]:
        quote = RunStyle(italic=True, color=QUOTE_COLOR)
        elements = []
        for child in token.children:
            if child.kind == TokenKind.PARAGRAPH and _has_image(child.children):
                elements.extend(self._split_on_images(child.children, lambda runs: Blockquote(tuple(runs)), quote))
            elif child.kind == TokenKind.PARAGRAPH:
                elements.append(Blockquote(tuple(self.inline.build_runs(child.children, quote))))
            elif child.kind == TokenKind.BLOCKQUOTE:
                elements.extend(self.build_blockquote(child))
            elif child.text.strip():
                elements.append(Blockquote(tuple(self.inline.scan_text(child.text, quote))))
        if not elements:
            text = token.text or token.raw
            elements.append(Blockquote((self.inline.plain_run(text, quote),)))
        return elements

    def build_code(self, token: Token) -> List[BlockElement]:
        text = token.text
        if text.endswith("\n"):
            text = text[:-1]
        lines = tuple(line if line else " " for line in text.split("\n"))
        return [CodeBlock(lines, token.attrs.get("lang", ""))]

    def build_list(self, token: Token, level: int = 0) -> List[BlockElement]:
        ordered = bool(token.attrs.get("ordered"))
        start = int(token.attrs.get("start", 1))
        bullet = BULLETS[level % len(BULLETS)]
        paragraph = self.style_sheet.paragraph
        elements = []
        for index, item in enumerate(token.children):
            prefix = f"{start + index}. " if ordered else f"{bullet} "
            runs = [TextRun(text=prefix, font=paragraph.font_family, size=paragraph.font_size)]
            runs.extend(self._item_runs(item))
            elements.append(ListItem(ordered, level, prefix, tuple(runs)))
            for child in item.children:
                if child.kind in (TokenKind.PARAGRAPH, TokenKind.HEADING):
                    elements.extend(self._inline_images(child.children))
            for child in item.children:
                if child.kind == TokenKind.LIST:
                    elements.extend(self.build_list(child, level + 1))
        return elements

    def _item_runs(self, item: Token) -> List[TextRun]:
        runs = []
        for child in item.children:
            if child.kind == TokenKind.LIST:
                continue
            if runs:
                runs.append(self.inline.plain_run(" "))
            if child.kind in (TokenKind.PARAGRAPH, TokenKind.HEADING) and child.children:
                runs.extend(self.inline.build_runs(_trim_breaks(_without_images(child.children))))
            elif child.kind == TokenKind.CODE:
                runs.append(self.inline.code_run(child.text.rstrip("\n")))
            elif child.text:
                runs.extend(self.inline.scan_text(child.text))
        if not runs and item.text:
            runs = self.inline.scan_text(item.text)
        return runs

    def build_table(self, token: Token) -> List[BlockElement]:
        header = tuple(self._cell_runs(cell, RunStyle(bold=True)) for cell in token.header)
        rows = tuple(tuple(self._cell_runs(cell) for cell in row) for row in token.rows)
        return [Table(header, rows)]

    def _cell_runs(self, cell: Token, base: RunStyle = RunStyle()) -> tuple:
        if cell.children:
            return tuple(self.inline.build_runs(cell.children, base))
        return (self.inline.plain_run(cell.text, base),)

    def build_rule(self, token: Token) -> List[BlockElement]:
        return [HorizontalRule()]

    def build_html(self, token: Token) -> List[BlockElement]:
        source = token.text or token.raw
        text = _TAG_RE.sub("", source).strip()
        if text:
            return [RawText((self.inline.plain_run(text),))]
        if source.strip():
            # Markup with no text content, e.g. a lone <br> or a comment.
            return [RawText((self.inline.plain_run(source.strip(), color=PLACEHOLDER_COLOR),))]
        return []

    def build_space(self, token: Token) -> List[BlockElement]:
        return []

    def build_other(self, token: Token) -> List[BlockElement]:
        text = token.text or token.raw
        if not text:
            return [self._kind_label(token)]
        return [RawText(tuple(self.inline.scan_text(text)))]


def _trim_breaks(tokens: List[Token]) -> List[Token]:
    kinds = (TokenKind.BR, TokenKind.SOFTBREAK)
    start, end = 0, len(tokens)
    while start < end and tokens[start].kind in kinds:
        start += 1
    while end > start and tokens[end - 1].kind in kinds:
        end -= 1
    return tokens[start:end]


def _has_image(tokens: List[Token]) -> bool:
    return any(token.kind == TokenKind.IMAGE for token in tokens)


def _without_images(tokens: List[Token]) -> List[Token]:
    return [token for token in tokens if token.kind != TokenKind.IMAGE]
