from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from compliance.assembler import evaluate
from compliance.audit_logger import AuditLogger
from compliance.confidence import VerificationInput
from compliance.errors import VerificationUnavailableError
from compliance.normalizer import FactNormalizer
from models.schemas import DisruptionCase, EligibilityResult, VerificationRecord

from .flight_status_tools import FlightStatusTools

logger = logging.getLogger(__name__)


class ComplianceTools:
    def __init__(
        self,
        flight_status: Optional[FlightStatusTools] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        self.normalizer = FactNormalizer()
        self.flight_status = flight_status or FlightStatusTools()
        self.audit_logger = audit_logger

    def normalize(self, payload: Dict[str, Any]) -> DisruptionCase:
        return self.normalizer.normalize(payload)

    async def evaluate(self, payload: Dict[str, Any], verification: VerificationInput = None) -> EligibilityResult:
        return self._evaluate_case(self.normalize(payload), verification)

    async def evaluate_with_lookup(self, payload: Dict[str, Any]) -> EligibilityResult:
        case = self.normalize(payload)
        verification = await self.verification_for(case)
        return self._evaluate_case(case, verification)

    async def verification_for(self, case: DisruptionCase) -> VerificationRecord:
        if not case.flight_number:
            return VerificationRecord(error="no flight number to verify")
        try:
            return await self.flight_status.lookup(case.flight_number, case.departure_date)
        except VerificationUnavailableError as exc:
            logger.warning("verification_unavailable", extra={"flight_number": case.flight_number, "error": str(exc)})
            return VerificationRecord(error=str(exc))

    def _evaluate_case(self, case: DisruptionCase, verification: VerificationInput) -> EligibilityResult:
        result = evaluate(case, verification)
        if self.audit_logger is not None:
            self.audit_logger.log_result(case, result)
        return result
