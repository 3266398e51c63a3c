import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from work2word.formula import transcode
from work2word.model import TextRun
from work2word.styles import StyleSheet
from work2word.tokens import Token, TokenKind, plain_text

MATH_FONT = "Cambria Math"
CODE_FONT = "Courier New"
CODE_SPAN_SHADING = "F5F5F5"
SCANNED_CODE_SHADING = "F0F0F0"
LINK_COLOR = "0563C1"

# One alternation, leftmost match wins: $$..$$, $..$, `code` with a matching
# fence, **bold**. A code span that starts before a "$" swallows it, so
# dollar signs inside code are never formula delimiters. A "$" that starts
# before a code span still opens a formula; this is accepted and unescaped.
INLINE_PATTERN = re.compile(
    r"(\$\$(.+?)\$\$)"
    r"|(\$(?!\$)(.+?)(?<!\$)\$)"
    r"|(`+)([^`]+?)\5(?!`)"
    r"|\*\*(.+?)\*\*",
    re.DOTALL,
)
HARD_BREAK_RE = re.compile(r"(?: {2,}|\\)\n")


@dataclass(frozen=True)
class RunStyle:
    """Per-call style applied on top of the block's defaults."""

    font: Optional[str] = None
    size: Optional[float] = None
    bold: bool = False
    italic: bool = False
    strike: bool = False
    color: Optional[str] = None


PLAIN = RunStyle()


class InlineRunBuilder:
    def __init__(self, style_sheet: StyleSheet | None = None):
        self.style_sheet = StyleSheet.from_mapping(style_sheet)

    def _font(self, base: RunStyle) -> str:
        return base.font or self.style_sheet.paragraph.font_family

    def _size(self, base: RunStyle) -> float:
        return base.size or self.style_sheet.paragraph.font_size

    def plain_run(self, text: str, base: RunStyle = PLAIN, **flags) -> TextRun:
        return TextRun(
            text=text,
            bold=flags.get("bold", base.bold),
            italic=flags.get("italic", base.italic),
            strike=flags.get("strike", base.strike),
            underline=flags.get("underline", False),
            color=flags.get("color", base.color),
            font=self._font(base),
            size=self._size(base),
        )

    def math_run(self, latex: str, base: RunStyle = PLAIN) -> TextRun:
        return TextRun(text=transcode(latex), italic=True, font=MATH_FONT, size=self._size(base))

    def code_run(self, text: str, base: RunStyle = PLAIN, shading: str = CODE_SPAN_SHADING) -> TextRun:
        return TextRun(text=text, font=CODE_FONT, size=self._size(base), shading=shading)

    def scan_text(self, text: str, base: RunStyle = PLAIN) -> List[TextRun]:
        """Split raw text into plain, formula, code and bold runs."""
        runs = []
        last = 0
        for match in INLINE_PATTERN.finditer(text):
            if match.start() > last:
                runs.extend(self._plain_lines(text[last:match.start()], base))
            if match.group(2) is not None:
                runs.append(self.math_run(match.group(2), base))
            elif match.group(4) is not None:
                runs.append(self.math_run(match.group(4), base))
            elif match.group(6) is not None:
                runs.append(self.code_run(match.group(6), base, SCANNED_CODE_SHADING))
            else:
                runs.append(self.plain_run(_flatten_newlines(match.group(7)), base, bold=True))
            last = match.end()
        if last < len(text):
            runs.extend(self._plain_lines(text[last:], base))
        if not runs:
            runs.append(self.plain_run(text, base))
        return runs

    def _plain_lines(self, text: str, base: RunStyle) -> List[TextRun]:
        # Two trailing spaces or a backslash before a newline force a line break.
        runs = []
        for index, line in enumerate(HARD_BREAK_RE.split(text)):
            if index:
                runs.append(TextRun(is_break=True))
            if line:
                runs.append(self.plain_run(_flatten_newlines(line), base))
        return runs

    def build_runs(self, tokens: Iterable[Token], base: RunStyle = PLAIN) -> List[TextRun]:
        runs = []
        for token in tokens:
            kind = token.kind
            if kind == TokenKind.TEXT:
                if token.text:
                    runs.extend(self.scan_text(token.text, base))
            elif kind in (TokenKind.STRONG, TokenKind.EM, TokenKind.DEL):
                runs.append(self._flagged_run(token, base))
            elif kind == TokenKind.CODESPAN:
                runs.append(self.code_run(token.text, base))
            elif kind == TokenKind.LINK:
                text = plain_text(token.children) if token.children else token.text
                runs.append(self.plain_run(text or token.attrs.get("href", ""), base,
                                           color=LINK_COLOR, underline=True))
            elif kind == TokenKind.BR:
                runs.append(TextRun(is_break=True))
            elif kind == TokenKind.SOFTBREAK:
                runs.append(self.plain_run(" ", base))
            elif kind == TokenKind.IMAGE:
                href = token.attrs.get("href", "")
                label = f"[图片: {token.text or '图片'}]" + (f"({href})" if href else "")
                runs.append(self.plain_run(label, base, italic=True, color="999999"))
            elif kind == TokenKind.HTML_INLINE:
                continue
            else:
                text = token.text or token.raw
                if text:
                    runs.extend(self.scan_text(text, base))
        return runs

    def _flagged_run(self, token: Token, base: RunStyle) -> TextRun:
        if token.children:
            text = plain_text(token.children)
        elif token.text:
            text = token.text
        else:
            text = _strip_delimiters(token.raw, token.kind)
        if token.kind == TokenKind.STRONG:
            return self.plain_run(text, base, bold=True)
        if token.kind == TokenKind.EM:
            return self.plain_run(text, base, italic=True)
        return self.plain_run(text, base, strike=True)


_DELIMITERS = {
    TokenKind.STRONG: re.compile(r"^(\*\*|__)|(\*\*|__)$"),
    TokenKind.EM: re.compile(r"^[*_]|[*_]$"),
    TokenKind.DEL: re.compile(r"^~~?|~~?$"),
}


def _strip_delimiters(raw: str, kind: TokenKind) -> str:
    return _DELIMITERS[kind].sub("", raw or "")


def _flatten_newlines(text: str) -> str:
    # Soft line breaks inside a paragraph read as spaces.
    return re.sub(r"[ \t]*\n[ \t]*", " ", text)
