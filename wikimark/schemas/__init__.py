from wikimark.schemas.schemas import (
    WikiFormat,
    FormatVerdict,
    ParseResult,
    RenderRequest,
    DetectResponse,
)

__all__ = [
    "WikiFormat",
    "FormatVerdict",
    "ParseResult",
    "RenderRequest",
    "DetectResponse",
]
