# services/api/routers/pages.py
from fastapi import APIRouter, Depends, HTTPException, Response
from starlette.concurrency import run_in_threadpool
from typing import Annotated

from core.preview import PageNotFound, PreviewError, inspect_pages, render_page_png
from core.validation import decode_base64
from deps import get_settings
from schemas.page import PageInfo, PageRenderRequest, PagesInspectResponse, PdfPayload
from settings import Settings

router = APIRouter(
    prefix="/pages",
    tags=["pages"],
)

AppSettings = Annotated[Settings, Depends(get_settings)]


def _pdf_bytes(pdf_base64: str) -> bytes:
    try:
        return decode_base64(pdf_base64)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Failed to decode PDF data: {e}")


@router.post("/inspect", response_model=PagesInspectResponse)
async def inspect(payload: PdfPayload) -> PagesInspectResponse:
    """
    Page count and per-page size in points.

    The editor lays fields out as fractions of these sizes.
    """
    pdf_bytes = _pdf_bytes(payload.pdf_base64)
    try:
        pages = await run_in_threadpool(inspect_pages, pdf_bytes)
    except PreviewError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return PagesInspectResponse(
        page_count=len(pages),
        pages=[PageInfo(**p) for p in pages],
    )


@router.post("/render")
async def render(payload: PageRenderRequest, settings: AppSettings) -> Response:
    """
    PNG preview of a single page (1-based).
    """
    if payload.scale > settings.preview_max_scale:
        raise HTTPException(
            status_code=400,
            detail=f"scale must be <= {settings.preview_max_scale}, got {payload.scale}",
        )

    pdf_bytes = _pdf_bytes(payload.pdf_base64)
    try:
        png = await run_in_threadpool(render_page_png, pdf_bytes, payload.page, payload.scale)
    except PageNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreviewError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(content=png, media_type="image/png")
