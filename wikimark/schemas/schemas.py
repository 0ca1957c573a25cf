#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 models shared by the markup compiler and the HTTP layer.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Formats
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class WikiFormat(str, Enum):
    MEDIAWIKI = "mediawiki"
    NAMUMARK  = "namumark"
    PLAIN     = "plain"


# -----------------------------------------------------------------------------

class FormatVerdict(BaseModel):
    """Per-dialect detector scores.  Transient; only the orchestrator reads it."""

    model_config = ConfigDict(frozen=True)

    mediawiki: int = Field(default=0, ge=0)
    namumark: int = Field(default=0, ge=0)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Render results
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ParseResult(BaseModel):
    """Output of one compilation.  ``footnotes[i]`` is the body of marker ``[i+1]``."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    html: str = ""
    categories: list[str] = Field(default_factory=list)
    footnotes: list[str] = Field(default_factory=list)
    format: WikiFormat = WikiFormat.PLAIN


# -----------------------------------------------------------------------------

class RenderRequest(BaseModel):
    content: str = ""


# -----------------------------------------------------------------------------

class DetectResponse(BaseModel):
    format: WikiFormat
    scores: FormatVerdict
