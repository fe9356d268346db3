"""Reports API router — attribute an existing grype JSON report to image layers."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from layervuln.core.attribution import attribute
from layervuln.core.exceptions import MalformedReportError
from layervuln.schemas.layers import LayerVulnerability
from layervuln.schemas.report import decode_report

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/layers", response_model=list[LayerVulnerability])
async def attribute_report(request: Request) -> list[LayerVulnerability]:
    """Accept a raw grype JSON report as the request body."""
    body = await request.body()
    try:
        return attribute(decode_report(body))
    except MalformedReportError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
