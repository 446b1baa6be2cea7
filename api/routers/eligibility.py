from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Request

from compliance.errors import MalformedCaseError
from tools.compliance_tools import ComplianceTools


router = APIRouter(prefix="/eligibility", tags=["eligibility"])
logger = logging.getLogger(__name__)


def _tools(request: Request) -> ComplianceTools:
    return request.app.state.compliance_tools


def _malformed(exc: MalformedCaseError) -> HTTPException:
    logger.info("malformed_case", extra={"field": exc.field, "reason": exc.message})
    return HTTPException(status_code=422, detail=exc.to_detail())


@router.post("/check")
async def check_eligibility(request: Request, payload: Dict[str, Any] = Body(...)):
    payload = dict(payload)
    verification = payload.pop("verification", None)
    try:
        result = await _tools(request).evaluate(payload, verification)
    except MalformedCaseError as exc:
        raise _malformed(exc) from exc
    return result.model_dump(mode="json", by_alias=True)


@router.post("/check-with-lookup")
async def check_eligibility_with_lookup(request: Request, payload: Dict[str, Any] = Body(...)):
    payload = dict(payload)
    # The service performs its own lookup; a client-supplied record is ignored.
    payload.pop("verification", None)
    try:
        result = await _tools(request).evaluate_with_lookup(payload)
    except MalformedCaseError as exc:
        raise _malformed(exc) from exc
    return result.model_dump(mode="json", by_alias=True)
