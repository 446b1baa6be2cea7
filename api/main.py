from __future__ import annotations

import logging

from fastapi import FastAPI

from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.rate_limiting import RateLimitMiddleware
from api.routers import eligibility, flights
from compliance.audit_logger import AuditLogger
from settings import SETTINGS
from tools.compliance_tools import ComplianceTools
from tools.flight_status_tools import FlightStatusTools


def create_app() -> FastAPI:
    logging.basicConfig(level=logging.DEBUG if SETTINGS.debug else logging.INFO)
    app = FastAPI(title="Flight Claim Eligibility", version="0.1.0")
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.state.flight_status_tools = FlightStatusTools()
    app.state.audit_logger = AuditLogger()
    app.state.compliance_tools = ComplianceTools(
        flight_status=app.state.flight_status_tools,
        audit_logger=app.state.audit_logger,
    )

    api_prefix = "/api/v1"
    app.include_router(eligibility.router, prefix=api_prefix)
    app.include_router(flights.router, prefix=api_prefix)

    @app.get("/health")
    async def health():
        return {
            "ok": True,
            "service": "flight-claim-eligibility",
            "flight_status_source": "remote" if app.state.flight_status_tools.base_url else "mock",
        }

    return app


app = create_app()
