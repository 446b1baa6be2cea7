"""Compensation rules, one plain function per disruption type.

Each rule is looked up in ``RULES`` by the case's disruption type and returns a
``RuleOutcome`` for a single regulation. Rules never read configuration or
perform I/O themselves; everything they need arrives through ``RuleContext``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List, Optional

from compliance.errors import MalformedCaseError
from compliance.regulations import (
    DOWNGRADE_CLASS_PERCENTAGES,
    DOWNGRADE_DISTANCE_MULTIPLIERS,
    Regulation,
)
from models.schemas import (
    AlternativeFlight,
    BoardingType,
    CheckInStatus,
    DisruptionCase,
    DisruptionType,
    DistanceBand,
    NoticePeriodBand,
    RegulationCode,
)

CARE_OBLIGATION_NOTICE = (
    "Right to care while waiting: meals and refreshments, hotel accommodation and transport "
    "where an overnight stay is needed, and two free communications (calls or emails)."
)
REFUND_OR_REROUTE_NOTICE = "Right to choose between a full ticket refund and re-routing to the final destination."
LONG_DELAY_REFUND_NOTICE = "Delay of 5 hours or more: right to a full ticket refund if you chose not to travel."
VOLUNTEERS_BREACH_NOTICE = (
    "Carrier obligation breach: the airline must call for volunteers before denying boarding "
    "against a passenger's will; no call for volunteers was recorded."
)
UNSURE_CHECK_IN_PENALTY = 10

_EXTRAORDINARY = re.compile(
    r"\b(weather|storms?|thunderstorms?|snow|fog|ice|hurricane|typhoon|volcanic ash|security|terror\w*|bomb|"
    r"air traffic control|atc|strikes?|industrial action|bird strike|medical emergency|"
    r"political unrest|war)\b",
    re.IGNORECASE,
)
# Strikes by the carrier's own staff are within its control.
_CARRIER_STAFF_STRIKE = re.compile(
    r"\b(airline|carrier|crew|cabin crew|pilots?|staff|own staff|employees?)\s+strikes?\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class RuleContext:
    domestic: Optional[bool] = None
    large_carrier: Optional[bool] = None
    delay_threshold_minutes: int = 180
    claim_window_days: int = 7


@dataclass(frozen=True)
class RuleOutcome:
    regulation: Regulation
    is_eligible: bool
    amount: Optional[Decimal]
    currency: Optional[str]
    reason: str
    regulation_section: Optional[str] = None
    additional_rights: List[str] = field(default_factory=list)
    caveats: List[str] = field(default_factory=list)
    confidence_adjustment: int = 0


def money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def is_extraordinary(reason_code: Optional[str]) -> bool:
    if not reason_code:
        return False
    if _CARRIER_STAFF_STRIKE.search(reason_code):
        return False
    return bool(_EXTRAORDINARY.search(reason_code))


def _format_minutes(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{hours}h {rest}m"
    if hours:
        return f"{hours}h"
    return f"{rest}m"


def _ineligible(regulation: Regulation, reason: str, **extra) -> RuleOutcome:
    return RuleOutcome(regulation=regulation, is_eligible=False, amount=None, currency=None, reason=reason, **extra)


def delay_rule(case: DisruptionCase, band: DistanceBand, regulation: Regulation, context: RuleContext) -> RuleOutcome:
    if case.delay_minutes is None:
        return _ineligible(regulation, "Arrival delay was not provided, so the 3-hour threshold cannot be checked.")

    rights: List[str] = []
    if case.delay_minutes >= 120:
        rights.append(CARE_OBLIGATION_NOTICE)
    if case.delay_minutes >= 300:
        rights.append(LONG_DELAY_REFUND_NOTICE)

    if case.delay_minutes < context.delay_threshold_minutes:
        return _ineligible(
            regulation,
            f"Arrival delay of {_format_minutes(case.delay_minutes)} is below the "
            f"{_format_minutes(context.delay_threshold_minutes)} compensation threshold.",
            additional_rights=rights,
        )
    if is_extraordinary(case.reason_code):
        return _ineligible(
            regulation,
            f"Delay reason '{case.reason_code}' is an extraordinary circumstance outside the airline's control.",
            additional_rights=rights,
        )
    if regulation.code == RegulationCode.APPR:
        return _appr_delay_outcome(case.delay_minutes / 60.0, "Arrival delay", regulation, context, rights, [])

    tier = regulation.amount_for_band(band)
    return RuleOutcome(
        regulation=regulation,
        is_eligible=True,
        amount=money(tier.amount),
        currency=regulation.currency_for(case.currency),
        reason=(
            f"Arrival delay of {_format_minutes(case.delay_minutes)} on a {band.value} haul flight "
            f"qualifies under {tier.regulation_section}."
        ),
        regulation_section=tier.regulation_section,
        additional_rights=rights,
    )


def _alternative_within(alternative: Optional[AlternativeFlight], max_hours_early: float, max_hours_late: float) -> bool:
    if alternative is None or not alternative.offered:
        return False
    # Arrival timing is what the passenger experiences; without it no reduction applies.
    if alternative.arrival_delay_hours is None or alternative.arrival_delay_hours > max_hours_late:
        return False
    departure = alternative.departure_delay_hours
    return departure is None or departure >= -max_hours_early


def cancellation_rule(
    case: DisruptionCase, band: DistanceBand, regulation: Regulation, context: RuleContext
) -> RuleOutcome:
    rights = [CARE_OBLIGATION_NOTICE, REFUND_OR_REROUTE_NOTICE]
    if is_extraordinary(case.reason_code):
        return _ineligible(
            regulation,
            f"Cancellation reason '{case.reason_code}' is an extraordinary circumstance outside the airline's control.",
            additional_rights=rights,
        )
    if regulation.code == RegulationCode.APPR:
        return _appr_cancellation(case, regulation, context, rights)

    tier = regulation.amount_for_band(band)
    baseline = money(tier.amount)
    currency = regulation.currency_for(case.currency)
    caveats: List[str] = []
    notice = case.notice_period_band
    if notice is None:
        notice = NoticePeriodBand.UNDER_7_DAYS
        caveats.append("Notice period unknown; treated as less than 7 days before departure.")
    alternative = case.alternative_flight if case.alternative_offered else None

    if notice == NoticePeriodBand.OVER_14_DAYS:
        if alternative is not None:
            return _ineligible(
                regulation,
                "Cancellation was notified more than 14 days before departure.",
                regulation_section="EU261-Art5(1)(c)(i)",
                additional_rights=rights,
                caveats=caveats,
            )
        return RuleOutcome(
            regulation=regulation,
            is_eligible=True,
            amount=baseline,
            currency=currency,
            reason=(
                "Cancellation was notified more than 14 days ahead, but no alternative transport was offered, "
                f"so the full {band.value} haul amount applies."
            ),
            regulation_section=tier.regulation_section,
            additional_rights=rights,
            caveats=caveats,
        )

    if notice == NoticePeriodBand.SEVEN_TO_14_DAYS and _alternative_within(alternative, 2, 4):
        return _ineligible(
            regulation,
            "Cancellation notified 7-14 days ahead with re-routing departing no more than 2h early "
            "and arriving no more than 4h late.",
            regulation_section="EU261-Art5(1)(c)(ii)",
            additional_rights=rights,
            caveats=caveats,
        )

    if notice == NoticePeriodBand.UNDER_7_DAYS and _alternative_within(alternative, 1, 2):
        return RuleOutcome(
            regulation=regulation,
            is_eligible=True,
            amount=money(baseline * Decimal("0.5")),
            currency=currency,
            reason=(
                "Cancellation notified less than 7 days ahead; re-routing departed no more than 1h early and "
                f"arrived no more than 2h late, so the {band.value} haul amount is reduced by 50%."
            ),
            regulation_section="EU261-Art7(2)",
            additional_rights=rights,
            caveats=caveats,
        )

    return RuleOutcome(
        regulation=regulation,
        is_eligible=True,
        amount=baseline,
        currency=currency,
        reason=f"Cancellation with {notice.value} notice on a {band.value} haul flight qualifies for the full amount.",
        regulation_section=tier.regulation_section,
        additional_rights=rights,
        caveats=caveats,
    )


def _alternative_arrival_hours(case: DisruptionCase) -> Optional[float]:
    if case.alternative_offered and case.alternative_flight.arrival_delay_hours is not None:
        return max(case.alternative_flight.arrival_delay_hours, 0.0)
    if case.delay_minutes is not None:
        return case.delay_minutes / 60.0
    return None


def denied_boarding_rule(
    case: DisruptionCase, band: DistanceBand, regulation: Regulation, context: RuleContext
) -> RuleOutcome:
    rights: List[str] = []
    if case.volunteers_requested is not True:
        rights.append(VOLUNTEERS_BREACH_NOTICE)

    if case.boarding_type != BoardingType.INVOLUNTARY:
        return _ineligible(
            regulation,
            "Seat was given up voluntarily; any compensation is privately negotiated with the airline.",
            additional_rights=rights,
        )
    if case.checked_in_on_time == CheckInStatus.NO:
        return _ineligible(
            regulation,
            "Passenger did not check in on time, which forfeits denied boarding compensation.",
            additional_rights=rights,
        )

    adjustment = 0
    caveats: List[str] = []
    if case.checked_in_on_time in (None, CheckInStatus.UNSURE):
        adjustment = -UNSURE_CHECK_IN_PENALTY
        caveats.append("On-time check-in is unconfirmed; assumed in the passenger's favour.")

    arrival_hours = _alternative_arrival_hours(case)
    if regulation.code == RegulationCode.US_DOT:
        outcome = _us_dot_denied_boarding(case, regulation, context, arrival_hours, rights, caveats)
    elif regulation.code == RegulationCode.APPR:
        outcome = _appr_denied_boarding(regulation, arrival_hours, rights, caveats)
    else:
        outcome = _eu261_denied_boarding(case, band, regulation, arrival_hours, rights, caveats)
    if adjustment:
        return replace(outcome, confidence_adjustment=adjustment)
    return outcome


def _us_dot_denied_boarding(
    case: DisruptionCase,
    regulation: Regulation,
    context: RuleContext,
    arrival_hours: Optional[float],
    rights: List[str],
    caveats: List[str],
) -> RuleOutcome:
    rights = rights + [REFUND_OR_REROUTE_NOTICE]
    if case.ticket_price is None:
        return _ineligible(
            regulation,
            "US DOT denied boarding compensation is a multiple of the one-way fare; ticket price is missing.",
            additional_rights=rights,
            caveats=caveats,
        )
    if case.currency != regulation.currency:
        caveats = caveats + [f"Ticket price given in {case.currency}; US DOT caps are applied in USD."]

    if arrival_hours is not None and arrival_hours <= regulation.denied_boarding_no_compensation_hours:
        return _ineligible(
            regulation,
            f"Alternative flight arrived within 1 hour of the original schedule ({arrival_hours:.1f}h).",
            regulation_section="14-CFR-250.5(a)(1)",
            additional_rights=rights,
            caveats=caveats,
        )

    domestic = context.domestic is True
    if context.domestic is None:
        caveats = caveats + ["Could not confirm a domestic itinerary; international delay limits applied."]
    # No alternative transport at all lands in the open-ended top tier.
    hours = arrival_hours if arrival_hours is not None else math.inf
    tier = next(t for t in regulation.denied_boarding_tiers if t.covers(hours, domestic))
    uncapped = case.ticket_price * tier.fare_multiple
    amount = money(min(uncapped, tier.cap))
    scope = "domestic" if domestic else "international"
    capped = " (capped)" if uncapped > tier.cap else ""
    delay_text = f"{arrival_hours:.1f}h late" if arrival_hours is not None else "with no alternative offered"
    return RuleOutcome(
        regulation=regulation,
        is_eligible=True,
        amount=amount,
        currency=regulation.currency,
        reason=(
            f"Involuntary denied boarding on a {scope} itinerary, alternative arriving {delay_text}: "
            f"{int(tier.fare_multiple * 100)}% of the one-way fare up to {tier.cap}{capped}."
        ),
        regulation_section=tier.regulation_section,
        additional_rights=rights,
        caveats=caveats,
    )


def _eu261_denied_boarding(
    case: DisruptionCase,
    band: DistanceBand,
    regulation: Regulation,
    arrival_hours: Optional[float],
    rights: List[str],
    caveats: List[str],
) -> RuleOutcome:
    rights = rights + [CARE_OBLIGATION_NOTICE, REFUND_OR_REROUTE_NOTICE]
    tier = regulation.amount_for_band(band)
    amount = money(tier.amount)
    limit = regulation.reroute_reduction_hours.get(band)
    if arrival_hours is not None and limit is not None and arrival_hours <= limit:
        return RuleOutcome(
            regulation=regulation,
            is_eligible=True,
            amount=money(amount * Decimal("0.5")),
            currency=regulation.currency,
            reason=(
                f"Involuntary denied boarding on a {band.value} haul flight; re-routing arrived within "
                f"{limit:g}h, so the amount is reduced by 50%."
            ),
            regulation_section="EU261-Art7(2)",
            additional_rights=rights,
            caveats=caveats,
        )
    return RuleOutcome(
        regulation=regulation,
        is_eligible=True,
        amount=amount,
        currency=regulation.currency,
        reason=f"Involuntary denied boarding on a {band.value} haul flight qualifies under EU261 Article 4(3).",
        regulation_section=tier.regulation_section,
        additional_rights=rights,
        caveats=caveats,
    )


def _appr_delay_outcome(
    hours: float,
    event: str,
    regulation: Regulation,
    context: RuleContext,
    rights: List[str],
    caveats: List[str],
) -> RuleOutcome:
    large = context.large_carrier
    if large is None:
        large = True
        caveats = caveats + ["Carrier size unknown; large carrier APPR amounts applied."]
    tier = regulation.delay_tier_for(hours, large)
    if tier is None:
        return _ineligible(
            regulation,
            f"{event} of {hours:.1f}h is below the 3h APPR compensation threshold.",
            additional_rights=rights,
            caveats=caveats,
        )
    size = "large" if large else "small"
    return RuleOutcome(
        regulation=regulation,
        is_eligible=True,
        amount=money(tier.amount),
        currency=regulation.currency,
        reason=f"{event} of {hours:.1f}h within a {size} carrier's control qualifies under {tier.regulation_section}.",
        regulation_section=tier.regulation_section,
        additional_rights=rights,
        caveats=caveats,
    )


def _appr_cancellation(
    case: DisruptionCase, regulation: Regulation, context: RuleContext, rights: List[str]
) -> RuleOutcome:
    if case.notice_period_band == NoticePeriodBand.OVER_14_DAYS:
        return _ineligible(
            regulation,
            "Cancellation was notified more than 14 days before departure; APPR compensation does not apply.",
            regulation_section="APPR-19(1)",
            additional_rights=rights,
        )
    caveats: List[str] = []
    hours = _alternative_arrival_hours(case)
    if hours is None:
        # Passengers who are not rebooked and take a refund get the lowest tier.
        hours = 3.0
        caveats.append("Arrival delay at destination unknown; lowest APPR tier applied.")
    return _appr_delay_outcome(hours, "Cancellation arrival delay", regulation, context, rights, caveats)


def _appr_denied_boarding(
    regulation: Regulation,
    arrival_hours: Optional[float],
    rights: List[str],
    caveats: List[str],
) -> RuleOutcome:
    rights = rights + [CARE_OBLIGATION_NOTICE, REFUND_OR_REROUTE_NOTICE]
    # No alternative transport at all lands in the open-ended top tier.
    hours = arrival_hours if arrival_hours is not None else math.inf
    tier = next(t for t in regulation.denied_boarding_amounts if t.covers(hours))
    delay_text = f"{arrival_hours:.1f}h late" if arrival_hours is not None else "with no alternative offered"
    return RuleOutcome(
        regulation=regulation,
        is_eligible=True,
        amount=money(tier.amount),
        currency=regulation.currency,
        reason=f"Involuntary denied boarding with the alternative arriving {delay_text} qualifies under {tier.regulation_section}.",
        regulation_section=tier.regulation_section,
        additional_rights=rights,
        caveats=caveats,
    )


def downgrade_rule(
    case: DisruptionCase, band: DistanceBand, regulation: Regulation, context: RuleContext
) -> RuleOutcome:
    # No extraordinary-circumstances exemption exists for downgrades.
    pair = (case.seat_class_paid, case.seat_class_received)
    percentage = DOWNGRADE_CLASS_PERCENTAGES.get(pair)
    if percentage is None:
        raise MalformedCaseError("seatClassReceived", "cabin pair is not a downgrade")
    if case.ticket_price is None:
        raise MalformedCaseError("ticketPrice", "required for downgrade claims")
    multiplier = DOWNGRADE_DISTANCE_MULTIPLIERS[band]
    amount = money(case.ticket_price * percentage * multiplier)

    rights: List[str] = []
    if case.claim_date is not None and case.departure_date is not None:
        days_late = (case.claim_date - case.departure_date).days
        if days_late > context.claim_window_days:
            rights.append(
                f"Reduced rights: claim asserted {days_late} days after the downgrade, outside the "
                f"{context.claim_window_days}-day window; the airline may negotiate a lower refund."
            )

    caveats: List[str] = []
    if regulation.currency and case.currency != regulation.currency:
        caveats.append(
            f"Refund is a share of the fare and is stated in the ticket currency ({case.currency}), "
            f"not in {regulation.currency}."
        )

    paid, received = pair
    cited = "EU261 Article 10(2)" if regulation.code == RegulationCode.EU261 else "the carrier downgrade refund convention"
    return RuleOutcome(
        regulation=regulation,
        is_eligible=True,
        amount=amount,
        currency=case.currency,
        reason=(
            f"Downgraded from {paid.value} to {received.value}: {percentage * 100:g}% of the fare "
            f"x {multiplier} {band.value} haul multiplier under {cited}."
        ),
        regulation_section="EU261-Art10(2)" if regulation.code == RegulationCode.EU261 else None,
        additional_rights=rights,
        caveats=caveats,
    )


Rule = Callable[[DisruptionCase, DistanceBand, Regulation, RuleContext], RuleOutcome]

RULES: Dict[DisruptionType, Rule] = {
    DisruptionType.DELAY: delay_rule,
    DisruptionType.CANCELLATION: cancellation_rule,
    DisruptionType.DENIED_BOARDING: denied_boarding_rule,
    DisruptionType.DOWNGRADE: downgrade_rule,
}


def apply_rule(case: DisruptionCase, band: DistanceBand, regulation: Regulation, context: RuleContext) -> RuleOutcome:
    return RULES[case.disruption_type](case, band, regulation, context)
