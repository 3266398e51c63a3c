"""Approximate LaTeX math as plain Unicode text.

Used where the output format has no math typesetting of its own. This is a
display-only transcoding: nested fractions, stacked scripts and anything
beyond a single level of ``^{...}``/``_{...}`` come out flattened, and
unknown commands are left in place. Output is best-effort Unicode.
"""
import re

SYMBOLS = {
    # greek
    "alpha": "α", "beta": "β", "gamma": "γ", "delta": "δ",
    "epsilon": "ε", "zeta": "ζ", "eta": "η", "theta": "θ",
    "iota": "ι", "kappa": "κ", "lambda": "λ", "mu": "μ",
    "nu": "ν", "xi": "ξ", "pi": "π", "rho": "ρ",
    "sigma": "σ", "tau": "τ", "upsilon": "υ", "phi": "φ",
    "chi": "χ", "psi": "ψ", "omega": "ω",
    "Gamma": "Γ", "Delta": "Δ", "Theta": "Θ", "Lambda": "Λ",
    "Xi": "Ξ", "Pi": "Π", "Sigma": "Σ", "Phi": "Φ",
    "Psi": "Ψ", "Omega": "Ω",
    # operators and relations
    "times": "×", "div": "÷", "pm": "±", "mp": "∓",
    "cdot": "·", "ast": "∗", "star": "⋆",
    "leq": "≤", "geq": "≥", "le": "≤", "ge": "≥", "neq": "≠", "ne": "≠",
    "approx": "≈", "equiv": "≡", "sim": "∼", "simeq": "≃",
    "ll": "≪", "gg": "≫", "subset": "⊂", "supset": "⊃",
    "subseteq": "⊆", "supseteq": "⊇", "in": "∈", "ni": "∋",
    "notin": "∉", "cap": "∩", "cup": "∪",
    "land": "∧", "lor": "∨", "neg": "¬",
    "forall": "∀", "exists": "∃", "partial": "∂",
    "nabla": "∇", "infty": "∞", "emptyset": "∅",
    "sum": "∑", "prod": "∏", "int": "∫",
    "sqrt": "√", "angle": "∠", "perp": "⊥", "parallel": "∥",
    "triangle": "△", "square": "□", "circ": "∘",
    # arrows
    "rightarrow": "→", "leftarrow": "←", "Rightarrow": "⇒", "Leftarrow": "⇐",
    "leftrightarrow": "↔", "Leftrightarrow": "⇔", "to": "→",
    "uparrow": "↑", "downarrow": "↓",
    # dots
    "ldots": "…", "cdots": "⋯", "vdots": "⋮", "ddots": "⋱",
    "prime": "′", "degree": "°", "%": "%",
}

SUPERSCRIPTS = {
    "0": "⁰", "1": "¹", "2": "²", "3": "³", "4": "⁴",
    "5": "⁵", "6": "⁶", "7": "⁷", "8": "⁸", "9": "⁹",
    "+": "⁺", "-": "⁻", "=": "⁼", "(": "⁽", ")": "⁾",
    "n": "ⁿ", "i": "ⁱ",
}

SUBSCRIPTS = {
    "0": "₀", "1": "₁", "2": "₂", "3": "₃", "4": "₄",
    "5": "₅", "6": "₆", "7": "₇", "8": "₈", "9": "₉",
    "+": "₊", "-": "₋", "=": "₌", "(": "₍", ")": "₎",
    "a": "ₐ", "e": "ₑ", "o": "ₒ", "x": "ₓ",
    "i": "ᵢ", "j": "ⱼ", "n": "ₙ", "m": "ₘ",
}

# A command is a backslash plus a maximal letter run, so \in never eats \infty.
_COMMAND_RE = re.compile(r"\\([A-Za-z]+|%)")
_SUP_GROUP_RE = re.compile(r"\^\{([^}]+)\}")
_SUP_DIGIT_RE = re.compile(r"\^(\d)")
_SUB_GROUP_RE = re.compile(r"_\{([^}]+)\}")
_SUB_DIGIT_RE = re.compile(r"_(\d)")
_FRAC_RE = re.compile(r"\\frac\{([^}]+)\}\{([^}]+)\}")
_SQRT_RE = re.compile(r"\\sqrt\{([^}]+)\}")
_WRAPPER_RE = re.compile(r"\\(?:text|mathrm|mathbf)\{([^}]+)\}")
_BRACES_RE = re.compile(r"\{([^{}]+)\}")
_SPACE_RE = re.compile(r"\s+")


def _map_chars(text: str, table: dict) -> str:
    return "".join(table.get(ch, ch) for ch in text)


def _replace_symbol(match: re.Match) -> str:
    name = match.group(1)
    if name == "sqrt":
        tail = match.string[match.end():match.end() + 1]
        if tail == "{":
            return match.group(0)
    return SYMBOLS.get(name, match.group(0))


def transcode(latex: str) -> str:
    if not latex:
        return ""
    result = _COMMAND_RE.sub(_replace_symbol, latex)

    result = _SUP_GROUP_RE.sub(lambda m: _map_chars(m.group(1), SUPERSCRIPTS), result)
    result = _SUP_DIGIT_RE.sub(lambda m: SUPERSCRIPTS[m.group(1)], result)

    result = _SUB_GROUP_RE.sub(lambda m: _map_chars(m.group(1), SUBSCRIPTS), result)
    result = _SUB_DIGIT_RE.sub(lambda m: SUBSCRIPTS[m.group(1)], result)

    result = _FRAC_RE.sub(r"(\1/\2)", result)
    result = _SQRT_RE.sub(r"√(\1)", result)
    result = _WRAPPER_RE.sub(r"\1", result)
    result = _BRACES_RE.sub(r"\1", result)

    return _SPACE_RE.sub(" ", result).strip()
