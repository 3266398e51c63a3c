from work2word.converter import (
    ConversionResult,
    aconvert_to_format,
    convert_file,
    convert_to_format,
    run_conversion,
)
from work2word.errors import (
    ConversionCancelled,
    ConversionError,
    SourceReadError,
    UnsupportedFormatError,
    Work2WordError,
)
from work2word.formula import transcode as transcode_formula
from work2word.sources import read_source_file
from work2word.styles import StyleSheet, load_style_sheet, resolve_style

__version__ = "0.1.0"

__all__ = [
    "ConversionCancelled",
    "ConversionError",
    "ConversionResult",
    "SourceReadError",
    "StyleSheet",
    "UnsupportedFormatError",
    "Work2WordError",
    "aconvert_to_format",
    "convert_file",
    "convert_to_format",
    "load_style_sheet",
    "read_source_file",
    "resolve_style",
    "run_conversion",
    "transcode_formula",
]
