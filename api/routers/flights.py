from __future__ import annotations

import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from compliance.errors import VerificationUnavailableError


router = APIRouter(prefix="/flights", tags=["flights"])


@router.get("/verification/{flight_number}")
async def get_flight_verification(flight_number: str, request: Request, date: Optional[datetime.date] = None):
    tools = request.app.state.flight_status_tools
    try:
        record = await tools.lookup(flight_number, date)
    except VerificationUnavailableError as exc:
        raise HTTPException(status_code=503, detail="flight_status_unavailable") from exc
    return {"flightNumber": flight_number.upper(), **record.model_dump(mode="json", by_alias=True, exclude_none=True)}
