#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoints — the page layer posts an article body, gets HTML back.

GET  /api/v1/render?content=...
POST /api/v1/render          {"content": "..."}
POST /api/v1/render/detect   {"content": "..."}
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from wikimark.core.config import get_settings
from wikimark.schemas import DetectResponse, ParseResult, RenderRequest
from wikimark.services.detector import classify, score
from wikimark.services.renderer import render


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/render", tags=["render"])


# -----------------------------------------------------------------------------

def _check_length(content: str) -> None:
    limit = get_settings().max_content_length
    if len(content) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"content exceeds {limit} characters",
        )


# -----------------------------------------------------------------------------

@router.get("", response_model=ParseResult)
async def render_query(content: str = Query(default="")):
    """Render a short snippet passed in the query string."""
    _check_length(content)
    return render(content)


@router.post("", response_model=ParseResult)
async def render_body(body: RenderRequest):
    """Render a full article body."""
    _check_length(body.content)
    return render(body.content)


@router.post("/detect", response_model=DetectResponse)
async def detect(body: RenderRequest):
    """Report the detected dialect and the raw scores behind it."""
    _check_length(body.content)
    return DetectResponse(format=classify(body.content), scores=score(body.content))


# -----------------------------------------------------------------------------
