import asyncio
import os
from dataclasses import dataclass

from work2word.assembler import DocumentAssembler
from work2word.errors import (
    ConversionCancelled,
    ConversionError,
    SourceReadError,
    UnsupportedFormatError,
)
from work2word.images import ImageResolver
from work2word.log import disable_file_log, enable_file_log, get_logger
from work2word.normalize import normalize_markdown
from work2word.settings import (
    DEFAULT_FETCH_TIMEOUT,
    default_log_path,
    default_output_path,
    unique_output_path,
)
from work2word.sources import read_source_file
from work2word.styles import StyleSheet
from work2word.writers import DocxWriter, PdfWriter

LOGGER = get_logger(__name__)

FORMAT_ALIASES = {
    "md": "md",
    "markdown": "md",
    "docx": "docx",
    "doc": "docx",
    "word": "docx",
    "pdf": "pdf",
}
EXTENSIONS = {"md": "md", "docx": "docx", "pdf": "pdf"}
FAILURE_PREFIXES = {
    "md": "markdown export failed",
    "docx": "word conversion failed",
    "pdf": "pdf conversion failed",
}
WRITERS = {"docx": DocxWriter, "pdf": PdfWriter}


@dataclass(frozen=True)
class ConversionResult:
    path: str
    buffer: bytes | None = None


def normalize_format(fmt) -> str:
    key = str(fmt or "").strip().lower().lstrip(".")
    if key not in FORMAT_ALIASES:
        raise UnsupportedFormatError(fmt)
    return FORMAT_ALIASES[key]


def write_atomic(path: str, data: bytes):
    tmp_path = path + ".tmp"
    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


async def aconvert_to_format(
    markdown: str,
    fmt,
    output_path: str | None = None,
    style_sheet=None,
    *,
    asset_root=None,
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    normalize: bool = False,
    cancel_event=None,
    transport=None,
) -> ConversionResult:
    kind = normalize_format(fmt)
    prefix = FAILURE_PREFIXES[kind]
    path = output_path or default_output_path(EXTENSIONS[kind])
    directory = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(directory):
        raise ConversionError("write", f"{prefix}: output directory does not exist: {directory}")

    if kind == "md":
        buffer = None
        data = markdown.encode("utf-8")
    else:
        sheet = StyleSheet.from_mapping(style_sheet)
        text = normalize_markdown(markdown) if normalize else markdown
        try:
            async with ImageResolver(asset_root, timeout=fetch_timeout, transport=transport) as resolver:
                assembler = DocumentAssembler(sheet, resolver)
                elements = await assembler.assemble(text, cancel_event)
            if assembler.failed_tokens:
                LOGGER.warning("%d block(s) exported as plain text", len(assembler.failed_tokens))
            writer = WRITERS[kind](sheet)
            buffer = await asyncio.to_thread(writer.render, elements)
        except ConversionError:
            raise
        except Exception as exc:
            LOGGER.exception("Rendering %s failed", kind)
            raise ConversionError("transform", f"{prefix}: {exc}") from exc
        data = buffer

    try:
        await asyncio.to_thread(write_atomic, path, data)
    except OSError as exc:
        LOGGER.exception("Writing %s failed", path)
        raise ConversionError("write", f"{prefix}: {exc}") from exc
    LOGGER.info("Exported %s (%d bytes)", path, len(data))
    return ConversionResult(path, buffer)


def convert_to_format(markdown: str, fmt, output_path: str | None = None, style_sheet=None,
                      **options) -> ConversionResult:
    return asyncio.run(aconvert_to_format(markdown, fmt, output_path, style_sheet, **options))


def convert_file(input_path: str, fmt, output_path: str | None = None, style_sheet=None,
                 **options) -> ConversionResult:
    try:
        markdown = read_source_file(input_path)
    except SourceReadError as exc:
        raise ConversionError("read", str(exc)) from exc
    if output_path is None:
        ext = EXTENSIONS[normalize_format(fmt)]
        base = os.path.splitext(os.path.basename(input_path))[0]
        output_path = unique_output_path(os.path.dirname(os.path.abspath(input_path)), base, ext)
    return convert_to_format(markdown, fmt, output_path, style_sheet, **options)


def options_from_settings(settings: dict | None) -> dict:
    """Map the saved settings file onto conversion keyword arguments."""
    options = {}
    if not settings:
        return options
    if isinstance(settings.get("format_settings"), dict):
        options["style_sheet"] = settings["format_settings"]
    timeout = settings.get("fetch_timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
        options["fetch_timeout"] = float(timeout)
    if settings.get("asset_root"):
        options["asset_root"] = settings["asset_root"]
    if "normalize" in settings:
        options["normalize"] = bool(settings["normalize"])
    return options


def run_conversion(markdown: str | None = None, fmt="docx", output_path: str | None = None, *,
                   input_path: str | None = None, settings: dict | None = None,
                   log_file: str | None = None, **options) -> dict:
    if log_file is None and settings and settings.get("log_to_file"):
        log_file = default_log_path()
    handler = enable_file_log(log_file) if log_file else None
    try:
        options = {**options_from_settings(settings), **options}
        if output_path is None and settings and settings.get("output_dir"):
            ext = EXTENSIONS[normalize_format(fmt)]
            output_path = default_output_path(ext, settings["output_dir"])
        if input_path:
            result = convert_file(input_path, fmt, output_path, **options)
        else:
            result = convert_to_format(markdown or "", fmt, output_path, **options)
    except UnsupportedFormatError as exc:
        return {"ok": False, "title": "不支持的格式", "message": str(exc)}
    except ConversionCancelled as exc:
        return {"ok": False, "title": "已取消", "message": str(exc)}
    except ConversionError as exc:
        title = "读取失败" if exc.stage == "read" else "转换失败"
        return {"ok": False, "title": title, "message": str(exc)}
    finally:
        if handler is not None:
            disable_file_log(handler)
    return {"ok": True, "output_path": result.path, "buffer": result.buffer}
