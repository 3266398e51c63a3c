from typing import List, Sequence, Union

from work2word.blocks import BlockBuilder
from work2word.errors import ConversionCancelled
from work2word.images import ImageResolver
from work2word.log import get_logger
from work2word.model import BlockElement
from work2word.styles import StyleSheet
from work2word.tokens import Token, TokenKind, lex

LOGGER = get_logger(__name__)


def collect_image_refs(tokens: Sequence[Token]) -> List[str]:
    refs = []
    for token in tokens:
        for node in token.walk():
            if node.kind == TokenKind.IMAGE:
                ref = node.attrs.get("href", "")
                if ref and ref not in refs:
                    refs.append(ref)
    return refs


class DocumentAssembler:
    """Builds the flat element list for one conversion pass.

    Images are resolved up front, all references concurrently, then the
    top-level tokens are walked in order. A token whose handler raises is
    logged and replaced by a plain-text element built from its source.
    """

    def __init__(self, style_sheet: StyleSheet | None = None, resolver: ImageResolver | None = None,
                 builder_class=BlockBuilder):
        self.style_sheet = StyleSheet.from_mapping(style_sheet)
        self.resolver = resolver
        self.builder_class = builder_class
        self.failed_tokens: List[Token] = []

    async def assemble(self, source: Union[str, Sequence[Token]], cancel_event=None) -> List[BlockElement]:
        tokens = lex(source) if isinstance(source, str) else list(source)
        refs = collect_image_refs(tokens)

        if self.resolver is not None:
            images = await self.resolver.resolve_all(refs)
        else:
            async with ImageResolver() as resolver:
                images = await resolver.resolve_all(refs)
        if refs:
            missing = sum(1 for ref in refs if not images.get(ref))
            LOGGER.info("Resolved %d of %d images", len(refs) - missing, len(refs))

        builder = self.builder_class(self.style_sheet, images)
        elements: List[BlockElement] = []
        for token in tokens:
            if cancel_event is not None and cancel_event.is_set():
                raise ConversionCancelled()
            try:
                elements.extend(builder.build(token))
            except Exception:
                LOGGER.exception("Failed to build %s token, falling back to raw text", token.kind.value)
                self.failed_tokens.append(token)
                elements.extend(builder.fallback(token))
        return elements
