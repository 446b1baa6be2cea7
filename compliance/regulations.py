from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional, Tuple

from models.schemas import DistanceBand, RegulationCode, SeatClass


@dataclass(frozen=True)
class BandThreshold:
    band: DistanceBand
    amount: Decimal
    regulation_section: str


@dataclass(frozen=True)
class DeniedBoardingTier:
    # Upper bound of the alternative's arrival delay, in hours; None is open-ended.
    max_hours_domestic: Optional[float]
    max_hours_international: Optional[float]
    fare_multiple: Decimal
    cap: Decimal
    regulation_section: str

    def covers(self, arrival_delay_hours: float, domestic: bool) -> bool:
        limit = self.max_hours_domestic if domestic else self.max_hours_international
        return limit is None or arrival_delay_hours <= limit


@dataclass(frozen=True)
class DelayTier:
    # Fixed amount for an arrival delay in [min_hours, max_hours); None is open-ended.
    min_hours: float
    max_hours: Optional[float]
    amount: Decimal
    regulation_section: str

    def covers(self, hours: float) -> bool:
        return hours >= self.min_hours and (self.max_hours is None or hours < self.max_hours)


@dataclass(frozen=True, eq=False)
class Regulation:
    code: RegulationCode
    name: str
    currency: Optional[str]
    band_thresholds: Tuple[BandThreshold, ...] = ()
    denied_boarding_tiers: Tuple[DeniedBoardingTier, ...] = ()
    denied_boarding_no_compensation_hours: float = 0.0
    reroute_reduction_hours: Dict[DistanceBand, float] = field(default_factory=dict)
    # Keyed by whether the operating carrier is a large carrier.
    delay_tiers: Dict[bool, Tuple[DelayTier, ...]] = field(default_factory=dict)
    denied_boarding_amounts: Tuple[DelayTier, ...] = ()

    def amount_for_band(self, band: DistanceBand) -> BandThreshold:
        for threshold in self.band_thresholds:
            if threshold.band == band:
                return threshold
        raise KeyError(f"{self.code.value} has no amount for {band.value} haul")

    def delay_tier_for(self, hours: float, large_carrier: bool) -> Optional[DelayTier]:
        for tier in self.delay_tiers.get(large_carrier, ()):
            if tier.covers(hours):
                return tier
        return None

    def currency_for(self, ticket_currency: str) -> str:
        return self.currency or ticket_currency


EU261 = Regulation(
    code=RegulationCode.EU261,
    name="Regulation (EC) No 261/2004",
    currency="EUR",
    band_thresholds=(
        BandThreshold(DistanceBand.SHORT, Decimal("250"), "EU261-Art7(1)(a)"),
        BandThreshold(DistanceBand.MEDIUM, Decimal("400"), "EU261-Art7(1)(b)"),
        BandThreshold(DistanceBand.LONG, Decimal("600"), "EU261-Art7(1)(c)"),
    ),
    # Art. 7(2): 50% when re-routing arrives within these limits.
    reroute_reduction_hours={
        DistanceBand.SHORT: 2.0,
        DistanceBand.MEDIUM: 3.0,
        DistanceBand.LONG: 4.0,
    },
)

US_DOT = Regulation(
    code=RegulationCode.US_DOT,
    name="US DOT 14 CFR Part 250",
    currency="USD",
    denied_boarding_no_compensation_hours=1.0,
    denied_boarding_tiers=(
        DeniedBoardingTier(2.0, 4.0, Decimal("2"), Decimal("775"), "14-CFR-250.5(a)(2)"),
        DeniedBoardingTier(None, None, Decimal("4"), Decimal("1550"), "14-CFR-250.5(a)(3)"),
    ),
)

APPR = Regulation(
    code=RegulationCode.APPR,
    name="Air Passenger Protection Regulations (SOR/2019-150)",
    currency="CAD",
    delay_tiers={
        True: (
            DelayTier(3.0, 6.0, Decimal("400"), "APPR-19(2)(a)"),
            DelayTier(6.0, 9.0, Decimal("700"), "APPR-19(2)(b)"),
            DelayTier(9.0, None, Decimal("1000"), "APPR-19(2)(c)"),
        ),
        False: (
            DelayTier(3.0, 6.0, Decimal("125"), "APPR-19(1)(a)"),
            DelayTier(6.0, 9.0, Decimal("250"), "APPR-19(1)(b)"),
            DelayTier(9.0, None, Decimal("500"), "APPR-19(1)(c)"),
        ),
    },
    # Denied boarding amounts do not depend on carrier size.
    denied_boarding_amounts=(
        DelayTier(0.0, 6.0, Decimal("900"), "APPR-denied-boarding-1"),
        DelayTier(6.0, 9.0, Decimal("1800"), "APPR-denied-boarding-2"),
        DelayTier(9.0, None, Decimal("2400"), "APPR-denied-boarding-3"),
    ),
)

CARRIER_CONVENTION = Regulation(
    code=RegulationCode.CARRIER_CONVENTION,
    name="Carrier downgrade refund convention",
    currency=None,
)


# Ordered (paid, received) pairs; any other ordering is not a downgrade.
DOWNGRADE_CLASS_PERCENTAGES: Dict[Tuple[SeatClass, SeatClass], Decimal] = {
    (SeatClass.FIRST, SeatClass.BUSINESS): Decimal("0.30"),
    (SeatClass.FIRST, SeatClass.PREMIUM_ECONOMY): Decimal("0.50"),
    (SeatClass.FIRST, SeatClass.ECONOMY): Decimal("0.75"),
    (SeatClass.BUSINESS, SeatClass.PREMIUM_ECONOMY): Decimal("0.30"),
    (SeatClass.BUSINESS, SeatClass.ECONOMY): Decimal("0.50"),
    (SeatClass.PREMIUM_ECONOMY, SeatClass.ECONOMY): Decimal("0.30"),
}

DOWNGRADE_DISTANCE_MULTIPLIERS: Dict[DistanceBand, Decimal] = {
    DistanceBand.SHORT: Decimal("0.30"),
    DistanceBand.MEDIUM: Decimal("0.50"),
    DistanceBand.LONG: Decimal("0.75"),
}
