"""Run a PDF renderer off the event loop and stream its bytes back."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterator

from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.concurrency import run_in_threadpool

from gestion_proyectos.services.reports import CancellationToken, ReportCancelled

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
DISCONNECT_POLL_SECONDS = 0.25
# nginx convention for "client closed request"
CLIENT_CLOSED_REQUEST = 499


def pdf_headers(filename: str, attachment: bool = False) -> dict[str, str]:
    disposition = f'attachment; filename="{filename}"' if attachment else f"inline; filename={filename}"
    return {
        "Content-Disposition": disposition,
        "Cache-Control": "no-cache",
    }


def _chunks(data: bytes) -> Iterator[bytes]:
    for start in range(0, len(data), CHUNK_SIZE):
        yield data[start : start + CHUNK_SIZE]


async def _watch_disconnect(request: Request, token: CancellationToken) -> None:
    while not token.cancelled:
        if await request.is_disconnected():
            logger.info("Client disconnected from %s; cancelling report", request.url.path)
            token.cancel()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


async def render_pdf_response(
    request: Request,
    render: Callable[[CancellationToken], bytes],
    filename: str,
    attachment: bool = False,
) -> Response:
    """Render in a worker thread while watching for the client going away."""
    token = CancellationToken()
    watcher = asyncio.create_task(_watch_disconnect(request, token))
    try:
        data = await run_in_threadpool(render, token)
    except ReportCancelled:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except Exception:
        logger.exception("PDF generation failed for %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "Error generando PDF"})
    finally:
        watcher.cancel()
    return StreamingResponse(
        _chunks(data), media_type="application/pdf", headers=pdf_headers(filename, attachment)
    )
