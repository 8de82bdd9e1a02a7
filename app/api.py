"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from app.schemas import (
    BinSummaryOut,
    DailySummaryOut,
    ReadingOut,
    ScoredBinOut,
    TopBinsResponse,
)
from services.errors import BinNotFoundError, ReadingValidationError
from services.readings import ReadingService, build_default_service

router = APIRouter()

_DAYS_DESCRIPTION = "Trailing window in days (default 7, at most 30)."


def get_service() -> ReadingService:
    return build_default_service()


@router.post(
    "/api/waste",
    status_code=status.HTTP_201_CREATED,
    response_model=ReadingOut,
    summary="Record a new waste reading.",
)
async def create_reading(
    payload: Any = Body(default=None),
    service: ReadingService = Depends(get_service),
) -> ReadingOut:
    try:
        reading = service.record(payload)
    except ReadingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ReadingOut.from_record(reading)


@router.get(
    "/api/waste/recent",
    response_model=List[ReadingOut],
    summary="Most recent readings, newest first.",
)
async def recent_readings(
    service: ReadingService = Depends(get_service),
) -> List[ReadingOut]:
    return [ReadingOut.from_record(reading) for reading in service.recent()]


@router.get(
    "/api/waste/daily",
    response_model=List[DailySummaryOut],
    summary="Daily totals over a trailing window, newest day first.",
)
async def daily_totals(
    days: Optional[str] = Query(None, description=_DAYS_DESCRIPTION),
    service: ReadingService = Depends(get_service),
) -> List[DailySummaryOut]:
    return [DailySummaryOut.from_summary(summary) for summary in service.daily(days)]


@router.get(
    "/api/bins/stats",
    response_model=List[BinSummaryOut],
    summary="Per-bin statistics over a trailing window, busiest bins first.",
)
async def bin_stats(
    days: Optional[str] = Query(None, description=_DAYS_DESCRIPTION),
    service: ReadingService = Depends(get_service),
) -> List[BinSummaryOut]:
    return [BinSummaryOut.from_summary(summary) for summary in service.bin_stats(days)]


@router.get(
    "/api/bins/score/{bin_id}",
    response_model=ScoredBinOut,
    summary="Segregation score for one bin.",
)
async def bin_score(
    bin_id: str,
    days: Optional[str] = Query(
        None, description="Optional trailing window; the whole history is scored when omitted."
    ),
    service: ReadingService = Depends(get_service),
) -> ScoredBinOut:
    try:
        scored = service.bin_score(bin_id, days)
    except BinNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return ScoredBinOut.from_scored(scored)


@router.get(
    "/api/admin/top",
    response_model=TopBinsResponse,
    summary="Top performers and offenders by all-time score.",
)
async def top_bins(
    service: ReadingService = Depends(get_service),
) -> TopBinsResponse:
    ranking = service.top_bins()
    return TopBinsResponse(
        performers=[ScoredBinOut.from_scored(item) for item in ranking.performers],
        offenders=[ScoredBinOut.from_scored(item) for item in ranking.offenders],
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint confirms the API is running.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"message": "Binlytics API is running"}
