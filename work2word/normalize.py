"""Clean-up passes for Markdown pasted from chat assistants.

Each pass takes and returns the whole document text. ``normalize_markdown``
runs them in a fixed order; the converter applies it only when asked to.
"""
import re

_BREAK_MARKS = str.maketrans({"\u21b5": "", "\u2028": " ", "\u2029": " "})
_TABLE_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)


def sanitize_special_marks(text: str) -> str:
    # Visible return glyphs and Unicode line/paragraph separators copied from web pages.
    return text.translate(_BREAK_MARKS)


def ensure_closed_code_blocks(text: str) -> str:
    lines = text.splitlines()
    fences = sum(1 for line in lines if line.strip().startswith("```"))
    if fences % 2:
        lines.append("```")
    return "\n".join(lines)


def _math_block(body) -> list:
    return ["", "$$", *body, "$$", ""]


def normalize_fenced_math(text: str) -> str:
    out = []
    body = None
    for line in text.splitlines():
        stripped = line.strip()
        if body is None:
            if stripped.startswith("```math"):
                body = []
            else:
                out.append(line)
        elif stripped.startswith("```"):
            out.extend(_math_block(body))
            body = None
        else:
            body.append(line)
    if body:
        out.extend(_math_block(body))
    return "\n".join(out)


def strip_standalone_brackets(text: str) -> str:
    """Rewrite display math written as ``\\[`` ... ``\\]`` on their own lines."""
    out = []
    body = None
    opener = ""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped in ("[", r"\["):
            if body is None:
                body = []
                opener = line
            else:
                body.append(line)
            continue
        if stripped in ("]", r"\]"):
            if body is not None:
                out.extend(_math_block(body))
                body = None
            continue
        if body is None:
            out.append(line)
        else:
            body.append(line)
    if body is not None:
        # Never closed, keep the opening bracket and its lines as they were.
        out.append(opener)
        out.extend(body)
    return "\n".join(out)


def normalize_table_breaks(text: str) -> str:
    out = []
    for line in text.splitlines():
        if line.count("|") >= 2:
            line = _TABLE_BR_RE.sub(" ", line).replace("\\\\", " ")
        out.append(line)
    return "\n".join(out)


def normalize_markdown(text: str) -> str:
    text = sanitize_special_marks(text)
    text = ensure_closed_code_blocks(text)
    text = normalize_fenced_math(text)
    text = normalize_table_breaks(text)
    text = strip_standalone_brackets(text)
    return text
