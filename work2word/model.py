"""Document model produced by one conversion pass.

Blocks form a flat, closed union. Nested lists are represented by repeated
``ListItem`` entries with increasing ``level`` rather than by child
elements, so writers only ever iterate one sequence. Every element is
immutable and holds no reference to its source token.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

IMAGE_BOX_PX = (400, 300)


@dataclass(frozen=True)
class TextRun:
    text: str = ""
    bold: bool = False
    italic: bool = False
    strike: bool = False
    underline: bool = False
    color: Optional[str] = None
    font: Optional[str] = None
    size: Optional[float] = None
    shading: Optional[str] = None
    is_break: bool = False


Runs = Tuple[TextRun, ...]


@dataclass(frozen=True)
class Heading:
    depth: int
    runs: Runs


@dataclass(frozen=True)
class Paragraph:
    runs: Runs
    # first-line indent in points
    indent: float = 0.0


@dataclass(frozen=True)
class Blockquote:
    runs: Runs


@dataclass(frozen=True)
class CodeBlock:
    lines: Tuple[str, ...]
    language: str = ""


@dataclass(frozen=True)
class ListItem:
    ordered: bool
    level: int
    prefix: str
    runs: Runs


@dataclass(frozen=True)
class Table:
    header_cells: Tuple[Runs, ...]
    body_rows: Tuple[Tuple[Runs, ...], ...]


@dataclass(frozen=True)
class HorizontalRule:
    pass


@dataclass(frozen=True)
class Image:
    data: bytes
    width_px: int = IMAGE_BOX_PX[0]
    height_px: int = IMAGE_BOX_PX[1]
    alt_text: str = ""
    original_ref: str = ""


@dataclass(frozen=True)
class ImagePlaceholder:
    alt_text: str
    original_ref: str

    @property
    def label(self) -> str:
        return f"[图片: {self.alt_text}]({self.original_ref})"


@dataclass(frozen=True)
class RawText:
    runs: Runs


BlockElement = Union[
    Heading,
    Paragraph,
    Blockquote,
    CodeBlock,
    ListItem,
    Table,
    HorizontalRule,
    Image,
    ImagePlaceholder,
    RawText,
]


def runs_text(runs) -> str:
    return "".join("\n" if run.is_break else run.text for run in runs)
