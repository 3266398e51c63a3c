"""Markdown lexing into a closed token tree.

markdown-it-py does the parsing. Its syntax tree is folded into ``Token``
objects whose ``kind`` is one of ``TokenKind``; anything the converter has
no case for becomes ``TokenKind.OTHER`` so builders always have an explicit
fallback arm.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode


class TokenKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BLOCKQUOTE = "blockquote"
    CODE = "code"
    LIST = "list"
    LIST_ITEM = "list_item"
    TABLE = "table"
    CELL = "cell"
    HR = "hr"
    HTML = "html"
    SPACE = "space"
    IMAGE = "image"
    TEXT = "text"
    STRONG = "strong"
    EM = "em"
    DEL = "del"
    CODESPAN = "codespan"
    LINK = "link"
    BR = "br"
    SOFTBREAK = "softbreak"
    HTML_INLINE = "html_inline"
    OTHER = "other"


@dataclass
class Token:
    kind: TokenKind
    text: str = ""
    raw: str = ""
    children: List["Token"] = field(default_factory=list)
    attrs: Dict[str, Any] = field(default_factory=dict)
    header: List["Token"] = field(default_factory=list)
    rows: List[List["Token"]] = field(default_factory=list)

    def walk(self) -> Iterator["Token"]:
        yield self
        for child in self.children:
            yield from child.walk()
        for cell in self.header:
            yield from cell.walk()
        for row in self.rows:
            for cell in row:
                yield from cell.walk()


_INLINE_KINDS = {
    "text": TokenKind.TEXT,
    "strong": TokenKind.STRONG,
    "em": TokenKind.EM,
    "s": TokenKind.DEL,
    "code_inline": TokenKind.CODESPAN,
    "link": TokenKind.LINK,
    "image": TokenKind.IMAGE,
    "hardbreak": TokenKind.BR,
    "softbreak": TokenKind.SOFTBREAK,
    "html_inline": TokenKind.HTML_INLINE,
}

_parser = None


def get_parser() -> MarkdownIt:
    global _parser
    if _parser is None:
        _parser = MarkdownIt("commonmark").enable(["table", "strikethrough"])
    return _parser


def plain_text(tokens) -> str:
    parts = []
    for token in tokens:
        if token.kind in (TokenKind.BR, TokenKind.SOFTBREAK):
            parts.append(" ")
        elif token.children and token.kind != TokenKind.IMAGE:
            parts.append(plain_text(token.children))
        else:
            parts.append(token.text)
    return "".join(parts)


def _source_slice(lines: List[str], node: SyntaxTreeNode) -> str:
    if not node.map:
        return ""
    start, end = node.map
    return "\n".join(lines[start:end])


def _convert_inline(node: SyntaxTreeNode) -> Token:
    kind = _INLINE_KINDS.get(node.type, TokenKind.OTHER)
    if kind == TokenKind.IMAGE:
        alt = node.content or str(node.attrs.get("alt", "") or "")
        src = str(node.attrs.get("src", "") or "")
        return Token(kind, text=alt, raw=f"![{alt}]({src})",
                     attrs={"href": src, "alt": alt, "title": node.attrs.get("title")})
    if node.children:
        children = [_convert_inline(child) for child in node.children]
        text = plain_text(children)
        attrs = {}
        if kind == TokenKind.LINK:
            attrs = {"href": str(node.attrs.get("href", "") or ""), "title": node.attrs.get("title")}
        markup = node.markup or ""
        raw = markup + text + markup if kind != TokenKind.LINK else f"[{text}]({attrs['href']})"
        return Token(kind, text=text, raw=raw, children=children, attrs=attrs)
    if kind == TokenKind.LINK:
        href = str(node.attrs.get("href", "") or "")
        return Token(kind, text="", raw=f"[]({href})", attrs={"href": href})
    text = node.content or ""
    if kind in (TokenKind.BR, TokenKind.SOFTBREAK):
        text = ""
    elif kind == TokenKind.CODESPAN:
        return Token(kind, text=text, raw=f"{node.markup}{text}{node.markup}")
    return Token(kind, text=text, raw=text)


def _inline_children(node: SyntaxTreeNode) -> List[SyntaxTreeNode]:
    for child in node.children:
        if child.type == "inline":
            return list(child.children)
    return []


def _inline_source(node: SyntaxTreeNode) -> str:
    for child in node.children:
        if child.type == "inline":
            return child.content or ""
    return ""


def _cell(node: SyntaxTreeNode) -> Token:
    children = [_convert_inline(child) for child in _inline_children(node)]
    return Token(TokenKind.CELL, text=plain_text(children), raw=_inline_source(node),
                 children=children, attrs={"align": _cell_align(node)})


def _cell_align(node: SyntaxTreeNode) -> str:
    style = str(node.attrs.get("style", "") or "")
    if style.startswith("text-align:"):
        return style.split(":", 1)[1].strip()
    return ""


def _convert_table(node: SyntaxTreeNode, lines: List[str]) -> Token:
    header = []
    rows = []
    for section in node.children:
        for tr in section.children:
            cells = [_cell(cell) for cell in tr.children]
            if section.type == "thead":
                header = cells
            else:
                rows.append(cells)
    text = "\n".join(" | ".join(c.text for c in row) for row in [header] + rows if row)
    return Token(TokenKind.TABLE, text=text, raw=_source_slice(lines, node), header=header, rows=rows)


def _convert_block(node: SyntaxTreeNode, lines: List[str]) -> Token:
    raw = _source_slice(lines, node)
    kind = node.type
    if kind in ("heading", "paragraph"):
        children = [_convert_inline(child) for child in _inline_children(node)]
        token = Token(TokenKind(kind), text=plain_text(children), raw=_inline_source(node) or raw,
                      children=children)
        if kind == "heading":
            token.attrs["depth"] = int(node.tag[1:]) if node.tag[1:].isdigit() else 1
        return token
    if kind == "blockquote":
        children = [_convert_block(child, lines) for child in node.children]
        return Token(TokenKind.BLOCKQUOTE, text="\n".join(c.text for c in children), raw=raw,
                     children=children)
    if kind in ("fence", "code_block"):
        return Token(TokenKind.CODE, text=node.content or "", raw=raw,
                     attrs={"lang": (node.info or "").strip()})
    if kind in ("bullet_list", "ordered_list"):
        items = [_convert_block(child, lines) for child in node.children]
        start = node.attrs.get("start", 1) if kind == "ordered_list" else 1
        return Token(TokenKind.LIST, text="\n".join(i.text for i in items), raw=raw, children=items,
                     attrs={"ordered": kind == "ordered_list", "start": int(start)})
    if kind == "list_item":
        children = [_convert_block(child, lines) for child in node.children]
        return Token(TokenKind.LIST_ITEM, text="\n".join(c.text for c in children if c.kind != TokenKind.LIST),
                     raw=raw, children=children)
    if kind == "table":
        return _convert_table(node, lines)
    if kind == "hr":
        return Token(TokenKind.HR, raw=raw)
    if kind == "html_block":
        return Token(TokenKind.HTML, text=node.content or "", raw=raw)
    return Token(TokenKind.OTHER, text=node.content or raw, raw=raw, attrs={"type": kind})


def lex(markdown: str) -> List[Token]:
    root = SyntaxTreeNode(get_parser().parse(markdown))
    lines = markdown.splitlines()
    return [_convert_block(node, lines) for node in root.children]
