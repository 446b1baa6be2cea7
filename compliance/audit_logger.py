from __future__ import annotations

import json
import os
from threading import Lock
from typing import Any, Dict

from models.schemas import DisruptionCase, EligibilityDecisionLog, EligibilityResult
from settings import SETTINGS


class AuditLogger:
    """Append-only JSONL record of every eligibility decision served."""

    def __init__(self, path: str | None = None) -> None:
        self.path = path or SETTINGS.audit_log_path
        self._lock = Lock()
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)

    def log_decision(self, record: EligibilityDecisionLog) -> None:
        self.log_json(record.model_dump(mode="json"))

    def log_result(self, case: DisruptionCase, result: EligibilityResult) -> EligibilityDecisionLog:
        record = EligibilityDecisionLog(
            flight_number=case.flight_number,
            disruption_type=case.disruption_type,
            route=f"{case.route.origin}-{case.route.destination}",
            regulation=result.regulation,
            is_eligible=result.is_eligible,
            compensation_amount=result.compensation_amount,
            currency=result.currency,
            confidence=result.confidence,
            verification_status=result.verification_status,
            caveats=result.caveats,
        )
        self.log_decision(record)
        return record

    def log_json(self, payload: Dict[str, Any]) -> None:
        line = json.dumps(payload, ensure_ascii=True)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(line + "\n")
