from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class DisruptionType(str, Enum):
    DELAY = "delay"
    CANCELLATION = "cancellation"
    DENIED_BOARDING = "denied_boarding"
    DOWNGRADE = "downgrade"


class NoticePeriodBand(str, Enum):
    UNDER_7_DAYS = "<7d"
    SEVEN_TO_14_DAYS = "7-14d"
    OVER_14_DAYS = ">14d"


class BoardingType(str, Enum):
    VOLUNTARY = "voluntary"
    INVOLUNTARY = "involuntary"


class CheckInStatus(str, Enum):
    YES = "yes"
    NO = "no"
    UNSURE = "unsure"


class SeatClass(str, Enum):
    FIRST = "first"
    BUSINESS = "business"
    PREMIUM_ECONOMY = "premium_economy"
    ECONOMY = "economy"

    @property
    def rank(self) -> int:
        return _SEAT_CLASS_RANK[self]


_SEAT_CLASS_RANK = {
    SeatClass.FIRST: 4,
    SeatClass.BUSINESS: 3,
    SeatClass.PREMIUM_ECONOMY: 2,
    SeatClass.ECONOMY: 1,
}


class DistanceBand(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class RegulationCode(str, Enum):
    EU261 = "EU261"
    US_DOT = "US_DOT"
    APPR = "APPR"
    CARRIER_CONVENTION = "CARRIER_CONVENTION"
    NONE = "NONE"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    FAILED = "failed"
    MANUAL = "manual"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _FrozenCamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Route(_FrozenCamelModel):
    origin: str
    destination: str


class AlternativeFlight(_FrozenCamelModel):
    offered: bool = True
    # Negative values mean the alternative left before the original schedule.
    departure_delay_hours: Optional[float] = None
    arrival_delay_hours: Optional[float] = None


class DisruptionCase(_FrozenCamelModel):
    disruption_type: DisruptionType = DisruptionType.DELAY
    route: Route
    flight_number: Optional[str] = None
    airline: Optional[str] = None
    departure_date: Optional[date] = None
    notification_date: Optional[date] = None
    claim_date: Optional[date] = None
    delay_minutes: Optional[int] = None
    notice_period_band: Optional[NoticePeriodBand] = None
    alternative_flight: Optional[AlternativeFlight] = None
    boarding_type: Optional[BoardingType] = None
    volunteers_requested: Optional[bool] = None
    checked_in_on_time: Optional[CheckInStatus] = None
    seat_class_paid: Optional[SeatClass] = None
    seat_class_received: Optional[SeatClass] = None
    ticket_price: Optional[Decimal] = None
    currency: str = "EUR"
    reason_code: Optional[str] = None

    @property
    def carrier_code(self) -> Optional[str]:
        if not self.flight_number:
            return None
        prefix = ""
        for ch in self.flight_number:
            if ch.isdigit() and len(prefix) >= 2:
                break
            prefix += ch
        return prefix or None

    @property
    def alternative_offered(self) -> bool:
        return bool(self.alternative_flight and self.alternative_flight.offered)


class VerificationRecord(_CamelModel):
    flight_found: bool = False
    actual_status: Optional[str] = None
    # Feeds report fractional minutes; negative means an early arrival.
    delay_minutes: Optional[float] = Field(default=None, allow_inf_nan=False)
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return bool(self.error)


class EligibilityResult(_CamelModel):
    is_eligible: bool
    compensation_amount: Optional[Decimal] = None
    currency: Optional[str] = None
    regulation: RegulationCode
    confidence: int = Field(ge=0, le=100)
    verification_status: VerificationStatus
    reason: str
    additional_rights: List[str] = Field(default_factory=list)
    caveats: List[str] = Field(default_factory=list)
    distance_band: Optional[DistanceBand] = None

    @field_serializer("compensation_amount", when_used="json")
    def _amount_as_number(self, value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None


class EligibilityDecisionLog(BaseModel):
    flight_number: Optional[str] = None
    disruption_type: DisruptionType
    route: str
    regulation: RegulationCode
    is_eligible: bool
    compensation_amount: Optional[Decimal] = None
    currency: Optional[str] = None
    confidence: int
    verification_status: VerificationStatus
    caveats: List[str] = Field(default_factory=list)
