from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from compliance.errors import InvalidTransitionError
from models.schemas import DisruptionCase, DisruptionType, VerificationRecord, VerificationStatus
from settings import SETTINGS

logger = logging.getLogger(__name__)

# Inclusive (low, high) confidence range for each terminal status.
STATUS_BANDS: Dict[VerificationStatus, Tuple[int, int]] = {
    VerificationStatus.VERIFIED: (80, 100),
    VerificationStatus.UNVERIFIED: (40, 79),
    VerificationStatus.MANUAL: (0, 20),
    VerificationStatus.FAILED: (0, 0),
}

_CANCELLED = {"cancelled", "canceled", "cancellation"}
_ON_TIME = {"on time", "on_time", "ontime", "on-time"}

VerificationInput = Union[VerificationRecord, Dict[str, Any], None]


def transition(current: VerificationStatus, target: VerificationStatus) -> VerificationStatus:
    if current != VerificationStatus.PENDING:
        raise InvalidTransitionError(f"status already resolved to {current.value}")
    if target not in STATUS_BANDS:
        raise InvalidTransitionError(f"{target.value} is not a terminal status")
    return target


def clamp_to_band(confidence: int, status: VerificationStatus) -> int:
    low, high = STATUS_BANDS[status]
    return max(low, min(high, confidence))


@dataclass(frozen=True)
class ConfidenceAssessment:
    confidence: int
    status: VerificationStatus
    note: Optional[str] = None


def coerce_verification(verification: VerificationInput) -> Optional[VerificationRecord]:
    if verification is None or isinstance(verification, VerificationRecord):
        return verification
    try:
        return VerificationRecord.model_validate(verification)
    except ValidationError as exc:
        logger.warning("verification_record_invalid", extra={"error": str(exc)})
        return VerificationRecord(error="verification record could not be parsed")


def _normalized_status(record: VerificationRecord) -> str:
    return (record.actual_status or "").strip().lower()


class ConfidenceScorer:
    """Reconciles the passenger's account with an independent flight-status record."""

    def __init__(self, tolerance_minutes: Optional[int] = None, delay_threshold_minutes: Optional[int] = None):
        self.tolerance_minutes = tolerance_minutes if tolerance_minutes is not None else SETTINGS.verification_tolerance_minutes
        self.delay_threshold_minutes = (
            delay_threshold_minutes if delay_threshold_minutes is not None else SETTINGS.delay_threshold_minutes
        )

    def score(self, case: DisruptionCase, verification: VerificationInput) -> Tuple[int, VerificationStatus]:
        assessment = self.assess(case, verification)
        return assessment.confidence, assessment.status

    def assess(self, case: DisruptionCase, verification: VerificationInput) -> ConfidenceAssessment:
        confidence, target, note = self._reconcile(case, coerce_verification(verification))
        status = transition(VerificationStatus.PENDING, target)
        return ConfidenceAssessment(confidence=clamp_to_band(confidence, status), status=status, note=note)

    def _reconcile(
        self, case: DisruptionCase, record: Optional[VerificationRecord]
    ) -> Tuple[int, VerificationStatus, Optional[str]]:
        if record is None:
            return 0, VerificationStatus.FAILED, "No independent flight data; result relies on reported facts only."
        if record.is_error:
            return 0, VerificationStatus.FAILED, f"Flight verification failed: {record.error}"
        if not record.flight_found:
            return 40, VerificationStatus.UNVERIFIED, "Flight could not be found by the verification source."

        status = _normalized_status(record)
        cancelled = status in _CANCELLED

        if case.disruption_type == DisruptionType.CANCELLATION:
            if cancelled:
                return 100, VerificationStatus.VERIFIED, None
            if status:
                return 10, VerificationStatus.MANUAL, (
                    f"Passenger reports a cancellation but the flight is recorded as '{record.actual_status}'."
                )
            return 50, VerificationStatus.UNVERIFIED, "Flight found but its operating status was not reported."

        if cancelled:
            return 10, VerificationStatus.MANUAL, (
                f"Passenger reports a {case.disruption_type.value.replace('_', ' ')} but the flight is recorded as cancelled."
            )

        if case.disruption_type == DisruptionType.DELAY:
            return self._reconcile_delay(case, record, status)

        # Flight-status feeds cannot see individual boarding or seating events.
        return 60, VerificationStatus.UNVERIFIED, "Flight operated; the passenger-level event cannot be independently confirmed."

    def _reconcile_delay(
        self, case: DisruptionCase, record: VerificationRecord, status: str
    ) -> Tuple[int, VerificationStatus, Optional[str]]:
        claimed = case.delay_minutes
        reported = record.delay_minutes
        long_claim = claimed is not None and claimed >= self.delay_threshold_minutes

        if reported is None:
            if long_claim and status in _ON_TIME:
                return 15, VerificationStatus.MANUAL, "Passenger reports a long delay but the flight is recorded on time."
            return 60, VerificationStatus.UNVERIFIED, "Flight found but no arrival delay was reported."
        if claimed is None:
            return 50, VerificationStatus.UNVERIFIED, "No reported delay to compare with the recorded one."

        if long_claim and reported <= self.tolerance_minutes:
            return 15, VerificationStatus.MANUAL, (
                f"Passenger reports a {claimed} minute delay but the flight arrived on time ({reported:g} minutes)."
            )

        discrepancy = abs(claimed - reported)
        if discrepancy <= self.tolerance_minutes:
            if self.tolerance_minutes == 0:
                return 100, VerificationStatus.VERIFIED, None
            return round(100 - 20 * discrepancy / self.tolerance_minutes), VerificationStatus.VERIFIED, None

        penalty = int((discrepancy - self.tolerance_minutes) // 5)
        return 79 - penalty, VerificationStatus.UNVERIFIED, (
            f"Reported delay differs from recorded delay by {discrepancy:g} minutes (recorded {reported:g})."
        )
