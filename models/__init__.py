from .schemas import (
    AlternativeFlight,
    BoardingType,
    CheckInStatus,
    DisruptionCase,
    DisruptionType,
    DistanceBand,
    EligibilityDecisionLog,
    EligibilityResult,
    NoticePeriodBand,
    RegulationCode,
    Route,
    SeatClass,
    VerificationRecord,
    VerificationStatus,
)

__all__ = [
    "AlternativeFlight",
    "BoardingType",
    "CheckInStatus",
    "DisruptionCase",
    "DisruptionType",
    "DistanceBand",
    "EligibilityDecisionLog",
    "EligibilityResult",
    "NoticePeriodBand",
    "RegulationCode",
    "Route",
    "SeatClass",
    "VerificationRecord",
    "VerificationStatus",
]
