from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

import pytest

from compliance.compensation_rules import (
    CARE_OBLIGATION_NOTICE,
    LONG_DELAY_REFUND_NOTICE,
    REFUND_OR_REROUTE_NOTICE,
    RULES,
    VOLUNTEERS_BREACH_NOTICE,
    RuleContext,
    apply_rule,
    cancellation_rule,
    delay_rule,
    denied_boarding_rule,
    downgrade_rule,
    is_extraordinary,
)
from compliance.regulations import (
    APPR,
    CARRIER_CONVENTION,
    DOWNGRADE_CLASS_PERCENTAGES,
    DOWNGRADE_DISTANCE_MULTIPLIERS,
    EU261,
    US_DOT,
)
from models.schemas import (
    AlternativeFlight,
    BoardingType,
    CheckInStatus,
    DisruptionCase,
    DisruptionType,
    DistanceBand,
    NoticePeriodBand,
    Route,
    SeatClass,
)

CTX = RuleContext()


def _case(disruption_type, origin="CDG", destination="MUC", **kwargs):
    return DisruptionCase(disruption_type=disruption_type, route=Route(origin=origin, destination=destination), **kwargs)


def _alt(departure=None, arrival=None):
    return AlternativeFlight(offered=True, departure_delay_hours=departure, arrival_delay_hours=arrival)


def test_every_disruption_type_has_a_rule():
    assert set(RULES) == set(DisruptionType)


# Delay


@pytest.mark.parametrize("band", list(DistanceBand))
@pytest.mark.parametrize("minutes", [0, 60, 120, 179])
def test_delay_under_three_hours_is_never_eligible(band, minutes):
    outcome = delay_rule(_case(DisruptionType.DELAY, delay_minutes=minutes), band, EU261, CTX)
    assert outcome.is_eligible is False
    assert outcome.amount is None


@pytest.mark.parametrize(
    "band,amount",
    [(DistanceBand.SHORT, Decimal("250.00")), (DistanceBand.MEDIUM, Decimal("400.00")), (DistanceBand.LONG, Decimal("600.00"))],
)
def test_delay_band_amounts(band, amount):
    outcome = delay_rule(_case(DisruptionType.DELAY, delay_minutes=180), band, EU261, CTX)
    assert outcome.is_eligible is True
    assert outcome.amount == amount
    assert outcome.currency == "EUR"


def test_delay_below_threshold_reason_names_the_delay():
    outcome = delay_rule(_case(DisruptionType.DELAY, delay_minutes=150), DistanceBand.SHORT, EU261, CTX)
    assert "2h 30m" in outcome.reason
    assert "3h" in outcome.reason


def test_delay_extraordinary_reason_is_exempt():
    outcome = delay_rule(
        _case(DisruptionType.DELAY, delay_minutes=240, reason_code="Heavy snow at departure"), DistanceBand.SHORT, EU261, CTX
    )
    assert outcome.is_eligible is False
    assert "extraordinary" in outcome.reason


def test_delay_missing_minutes_is_ineligible():
    outcome = delay_rule(_case(DisruptionType.DELAY), DistanceBand.SHORT, EU261, CTX)
    assert outcome.is_eligible is False
    assert "not provided" in outcome.reason


def test_delay_care_and_refund_rights():
    outcome = delay_rule(_case(DisruptionType.DELAY, delay_minutes=310), DistanceBand.LONG, EU261, CTX)
    assert CARE_OBLIGATION_NOTICE in outcome.additional_rights
    assert LONG_DELAY_REFUND_NOTICE in outcome.additional_rights
    assert outcome.amount == Decimal("600.00")


def test_delay_threshold_comes_from_context():
    outcome = delay_rule(
        _case(DisruptionType.DELAY, delay_minutes=150), DistanceBand.SHORT, EU261, RuleContext(delay_threshold_minutes=120)
    )
    assert outcome.is_eligible is True


@pytest.mark.parametrize(
    "reason,expected",
    [
        ("ATC restrictions", True),
        ("air traffic control strike", True),
        ("Thunderstorms over the Alps", True),
        ("storm", True),
        ("security alert", True),
        ("bird strike on approach", True),
        ("pilot strike", False),
        ("Airline staff strike", False),
        ("crew strike", False),
        ("technical issue", False),
        ("service problem", False),
        (None, False),
    ],
)
def test_is_extraordinary(reason, expected):
    assert is_extraordinary(reason) is expected


# Cancellation


def test_cancellation_over_14_days_without_alternative_is_full_baseline():
    case = _case(DisruptionType.CANCELLATION, notice_period_band=NoticePeriodBand.OVER_14_DAYS)
    outcome = cancellation_rule(case, DistanceBand.MEDIUM, EU261, CTX)
    assert outcome.is_eligible is True
    assert outcome.amount == Decimal("400.00")


@pytest.mark.parametrize("alternative", [_alt(), _alt(-10, 20), _alt(0, 0.5)])
def test_cancellation_over_14_days_with_any_alternative_is_ineligible(alternative):
    case = _case(DisruptionType.CANCELLATION, notice_period_band=NoticePeriodBand.OVER_14_DAYS, alternative_flight=alternative)
    outcome = cancellation_rule(case, DistanceBand.MEDIUM, EU261, CTX)
    assert outcome.is_eligible is False


def test_cancellation_7_to_14_days_with_close_alternative_is_ineligible():
    case = _case(
        DisruptionType.CANCELLATION, notice_period_band=NoticePeriodBand.SEVEN_TO_14_DAYS, alternative_flight=_alt(-2, 4)
    )
    assert cancellation_rule(case, DistanceBand.SHORT, EU261, CTX).is_eligible is False


def test_cancellation_7_to_14_days_with_late_alternative_is_full_amount():
    case = _case(
        DisruptionType.CANCELLATION, notice_period_band=NoticePeriodBand.SEVEN_TO_14_DAYS, alternative_flight=_alt(-1, 4.5)
    )
    outcome = cancellation_rule(case, DistanceBand.SHORT, EU261, CTX)
    assert outcome.is_eligible is True
    assert outcome.amount == Decimal("250.00")


def test_cancellation_under_7_days_with_close_alternative_is_halved():
    case = _case(DisruptionType.CANCELLATION, notice_period_band=NoticePeriodBand.UNDER_7_DAYS, alternative_flight=_alt(-0.5, 1.5))
    outcome = cancellation_rule(case, DistanceBand.MEDIUM, EU261, CTX)
    assert outcome.is_eligible is True
    assert outcome.amount == Decimal("200.00")
    assert outcome.regulation_section == "EU261-Art7(2)"


def test_cancellation_under_7_days_alternative_leaving_too_early_is_full():
    case = _case(DisruptionType.CANCELLATION, notice_period_band=NoticePeriodBand.UNDER_7_DAYS, alternative_flight=_alt(-1.5, 1))
    assert cancellation_rule(case, DistanceBand.MEDIUM, EU261, CTX).amount == Decimal("400.00")


def test_cancellation_alternative_without_arrival_time_is_not_reduced():
    case = _case(DisruptionType.CANCELLATION, notice_period_band=NoticePeriodBand.UNDER_7_DAYS, alternative_flight=_alt(0, None))
    assert cancellation_rule(case, DistanceBand.LONG, EU261, CTX).amount == Decimal("600.00")


def test_cancellation_unknown_notice_is_treated_as_short_notice():
    outcome = cancellation_rule(_case(DisruptionType.CANCELLATION, alternative_flight=_alt(0, 1)), DistanceBand.SHORT, EU261, CTX)
    assert outcome.amount == Decimal("125.00")
    assert any("Notice period unknown" in caveat for caveat in outcome.caveats)


@pytest.mark.parametrize("notice", list(NoticePeriodBand))
def test_cancellation_rights_always_listed_and_never_added(notice):
    case = _case(DisruptionType.CANCELLATION, notice_period_band=notice)
    outcome = cancellation_rule(case, DistanceBand.SHORT, EU261, CTX)
    assert CARE_OBLIGATION_NOTICE in outcome.additional_rights
    assert REFUND_OR_REROUTE_NOTICE in outcome.additional_rights
    assert outcome.amount in (None, Decimal("250.00"))


def test_cancellation_extraordinary_reason_is_exempt():
    case = _case(DisruptionType.CANCELLATION, notice_period_band=NoticePeriodBand.UNDER_7_DAYS, reason_code="volcanic ash cloud")
    outcome = cancellation_rule(case, DistanceBand.SHORT, EU261, CTX)
    assert outcome.is_eligible is False
    assert CARE_OBLIGATION_NOTICE in outcome.additional_rights


# Denied boarding


def _bumped(**kwargs):
    values = {
        "boarding_type": BoardingType.INVOLUNTARY,
        "checked_in_on_time": CheckInStatus.YES,
        "volunteers_requested": True,
        "ticket_price": Decimal("300"),
        "currency": "USD",
    }
    values.update(kwargs)
    return _case(DisruptionType.DENIED_BOARDING, origin="JFK", destination="LAX", **values)


@pytest.mark.parametrize("regulation", [EU261, US_DOT])
@pytest.mark.parametrize("alternative", [None, _alt(0, 0.5), _alt(0, 3), _alt(0, 10)])
def test_voluntary_surrender_is_never_eligible(regulation, alternative):
    case = _bumped(boarding_type=BoardingType.VOLUNTARY, alternative_flight=alternative)
    outcome = denied_boarding_rule(case, DistanceBand.LONG, regulation, RuleContext(domestic=True))
    assert outcome.is_eligible is False


def test_late_check_in_forfeits_claim():
    outcome = denied_boarding_rule(_bumped(checked_in_on_time=CheckInStatus.NO), DistanceBand.LONG, US_DOT, RuleContext(domestic=True))
    assert outcome.is_eligible is False


def test_unsure_check_in_passes_with_confidence_penalty():
    case = _bumped(checked_in_on_time=CheckInStatus.UNSURE, alternative_flight=_alt(0, 1.5))
    outcome = denied_boarding_rule(case, DistanceBand.LONG, US_DOT, RuleContext(domestic=True))
    assert outcome.is_eligible is True
    assert outcome.confidence_adjustment == -10


def test_missing_volunteer_call_is_recorded_as_breach():
    without = denied_boarding_rule(_bumped(volunteers_requested=None), DistanceBand.LONG, US_DOT, RuleContext(domestic=True))
    with_call = denied_boarding_rule(_bumped(), DistanceBand.LONG, US_DOT, RuleContext(domestic=True))
    assert VOLUNTEERS_BREACH_NOTICE in without.additional_rights
    assert VOLUNTEERS_BREACH_NOTICE not in with_call.additional_rights


@pytest.mark.parametrize(
    "arrival,domestic,price,amount",
    [
        (1.5, True, "300", Decimal("600.00")),
        (3, True, "300", Decimal("1200.00")),
        (3, False, "300", Decimal("600.00")),
        (5, False, "300", Decimal("1200.00")),
        (1.5, True, "500", Decimal("775.00")),
        (5, False, "500", Decimal("1550.00")),
    ],
)
def test_us_dot_tiers(arrival, domestic, price, amount):
    case = _bumped(alternative_flight=_alt(0, arrival), ticket_price=Decimal(price))
    outcome = denied_boarding_rule(case, DistanceBand.LONG, US_DOT, RuleContext(domestic=domestic))
    assert outcome.is_eligible is True
    assert outcome.amount == amount
    assert outcome.currency == "USD"


def test_us_dot_within_one_hour_pays_nothing():
    case = _bumped(alternative_flight=_alt(0, 1))
    outcome = denied_boarding_rule(case, DistanceBand.LONG, US_DOT, RuleContext(domestic=True))
    assert outcome.is_eligible is False


def test_us_dot_without_alternative_uses_top_tier():
    case = _bumped(ticket_price=Decimal("100"))
    outcome = denied_boarding_rule(case, DistanceBand.LONG, US_DOT, RuleContext(domestic=True))
    assert outcome.amount == Decimal("400.00")


def test_us_dot_falls_back_to_delay_minutes():
    case = _bumped(delay_minutes=90)
    outcome = denied_boarding_rule(case, DistanceBand.LONG, US_DOT, RuleContext(domestic=True))
    assert outcome.amount == Decimal("600.00")


def test_us_dot_missing_price_is_ineligible():
    case = _bumped(ticket_price=None, alternative_flight=_alt(0, 3))
    outcome = denied_boarding_rule(case, DistanceBand.LONG, US_DOT, RuleContext(domestic=True))
    assert outcome.is_eligible is False
    assert "ticket price" in outcome.reason


def test_us_dot_unknown_domestic_uses_international_limits():
    case = _bumped(alternative_flight=_alt(0, 3))
    outcome = denied_boarding_rule(case, DistanceBand.LONG, US_DOT, RuleContext(domestic=None))
    assert outcome.amount == Decimal("600.00")
    assert any("international" in caveat for caveat in outcome.caveats)


def test_us_dot_flags_non_usd_fare():
    case = _bumped(currency="EUR", alternative_flight=_alt(0, 3))
    outcome = denied_boarding_rule(case, DistanceBand.LONG, US_DOT, RuleContext(domestic=False))
    assert any("USD" in caveat for caveat in outcome.caveats)


@pytest.mark.parametrize(
    "band,arrival,amount",
    [
        (DistanceBand.LONG, 3, Decimal("300.00")),
        (DistanceBand.LONG, 5, Decimal("600.00")),
        (DistanceBand.SHORT, 2, Decimal("125.00")),
        (DistanceBand.SHORT, 2.5, Decimal("250.00")),
        (DistanceBand.MEDIUM, 3, Decimal("200.00")),
    ],
)
def test_eu261_denied_boarding_reroute_reduction(band, arrival, amount):
    case = _bumped(alternative_flight=_alt(0, arrival))
    outcome = denied_boarding_rule(case, band, EU261, RuleContext(domestic=True))
    assert outcome.amount == amount
    assert outcome.currency == "EUR"


# Downgrade


@pytest.mark.parametrize("band", list(DistanceBand))
@pytest.mark.parametrize("pair", list(DOWNGRADE_CLASS_PERCENTAGES))
def test_downgrade_amount_is_exact_product(pair, band):
    paid, received = pair
    price = Decimal("1234.56")
    case = _case(DisruptionType.DOWNGRADE, seat_class_paid=paid, seat_class_received=received, ticket_price=price)
    outcome = downgrade_rule(case, band, EU261, CTX)
    expected = (price * DOWNGRADE_CLASS_PERCENTAGES[pair] * DOWNGRADE_DISTANCE_MULTIPLIERS[band]).quantize(Decimal("0.01"), ROUND_HALF_UP)
    assert outcome.is_eligible is True
    assert outcome.amount == expected


def test_downgrade_business_to_economy_long_haul():
    case = _case(
        DisruptionType.DOWNGRADE,
        seat_class_paid=SeatClass.BUSINESS,
        seat_class_received=SeatClass.ECONOMY,
        ticket_price=Decimal("2000"),
    )
    outcome = downgrade_rule(case, DistanceBand.LONG, EU261, CTX)
    assert outcome.amount == Decimal("750.00")


def test_downgrade_ignores_extraordinary_reason():
    case = _case(
        DisruptionType.DOWNGRADE,
        seat_class_paid=SeatClass.FIRST,
        seat_class_received=SeatClass.BUSINESS,
        ticket_price=Decimal("1000"),
        reason_code="storm",
    )
    assert downgrade_rule(case, DistanceBand.SHORT, EU261, CTX).is_eligible is True


def test_downgrade_late_claim_keeps_amount_with_reduced_rights():
    values = {
        "seat_class_paid": SeatClass.BUSINESS,
        "seat_class_received": SeatClass.PREMIUM_ECONOMY,
        "ticket_price": Decimal("1000"),
        "departure_date": date(2024, 3, 1),
    }
    on_time = downgrade_rule(_case(DisruptionType.DOWNGRADE, claim_date=date(2024, 3, 8), **values), DistanceBand.MEDIUM, EU261, CTX)
    late = downgrade_rule(_case(DisruptionType.DOWNGRADE, claim_date=date(2024, 3, 12), **values), DistanceBand.MEDIUM, EU261, CTX)
    assert on_time.additional_rights == []
    assert late.is_eligible is True
    assert late.amount == on_time.amount == Decimal("150.00")
    assert any("Reduced rights" in right for right in late.additional_rights)


def test_downgrade_under_carrier_convention_uses_ticket_currency():
    case = _case(
        DisruptionType.DOWNGRADE,
        origin="LAX",
        destination="NRT",
        seat_class_paid=SeatClass.FIRST,
        seat_class_received=SeatClass.ECONOMY,
        ticket_price=Decimal("4000"),
        currency="USD",
    )
    outcome = apply_rule(case, DistanceBand.LONG, CARRIER_CONVENTION, CTX)
    assert outcome.amount == Decimal("2250.00")
    assert outcome.currency == "USD"


def test_downgrade_flags_fare_currency_differing_from_regulation():
    case = _case(
        DisruptionType.DOWNGRADE,
        origin="LHR",
        destination="JFK",
        seat_class_paid=SeatClass.BUSINESS,
        seat_class_received=SeatClass.ECONOMY,
        ticket_price=Decimal("2000"),
        currency="GBP",
    )
    outcome = downgrade_rule(case, DistanceBand.LONG, EU261, CTX)
    assert outcome.amount == Decimal("750.00")
    assert outcome.currency == "GBP"
    assert any("GBP" in caveat and "EUR" in caveat for caveat in outcome.caveats)


def test_downgrade_in_regulation_currency_has_no_currency_caveat():
    case = _case(
        DisruptionType.DOWNGRADE,
        seat_class_paid=SeatClass.BUSINESS,
        seat_class_received=SeatClass.ECONOMY,
        ticket_price=Decimal("2000"),
    )
    assert downgrade_rule(case, DistanceBand.LONG, EU261, CTX).caveats == []


# APPR


@pytest.mark.parametrize(
    "minutes,large,amount,section",
    [
        (180, True, "400.00", "APPR-19(2)(a)"),
        (400, True, "700.00", "APPR-19(2)(b)"),
        (540, True, "1000.00", "APPR-19(2)(c)"),
        (200, False, "125.00", "APPR-19(1)(a)"),
        (360, False, "250.00", "APPR-19(1)(b)"),
        (700, False, "500.00", "APPR-19(1)(c)"),
    ],
)
def test_appr_delay_tiers_by_carrier_size(minutes, large, amount, section):
    case = _case(DisruptionType.DELAY, origin="YYZ", destination="YVR", delay_minutes=minutes)
    outcome = delay_rule(case, DistanceBand.LONG, APPR, RuleContext(large_carrier=large))
    assert outcome.is_eligible is True
    assert outcome.amount == Decimal(amount)
    assert outcome.currency == "CAD"
    assert outcome.regulation_section == section
    assert outcome.caveats == []


def test_appr_delay_unknown_carrier_size_assumes_large():
    case = _case(DisruptionType.DELAY, origin="YYZ", destination="YVR", delay_minutes=200)
    outcome = delay_rule(case, DistanceBand.LONG, APPR, CTX)
    assert outcome.amount == Decimal("400.00")
    assert any("Carrier size unknown" in caveat for caveat in outcome.caveats)


def test_appr_delay_outside_carrier_control_is_exempt():
    case = _case(DisruptionType.DELAY, origin="YYZ", destination="YVR", delay_minutes=400, reason_code="snow storm")
    assert delay_rule(case, DistanceBand.LONG, APPR, RuleContext(large_carrier=True)).is_eligible is False


def test_appr_cancellation_uses_rebooked_arrival_delay():
    case = _case(
        DisruptionType.CANCELLATION,
        origin="YUL",
        destination="CDG",
        notice_period_band=NoticePeriodBand.UNDER_7_DAYS,
        alternative_flight=_alt(0, 7),
    )
    outcome = cancellation_rule(case, DistanceBand.LONG, APPR, RuleContext(large_carrier=True))
    assert outcome.amount == Decimal("700.00")
    assert outcome.currency == "CAD"


def test_appr_cancellation_with_early_notice_is_not_compensated():
    case = _case(DisruptionType.CANCELLATION, origin="YUL", destination="CDG", notice_period_band=NoticePeriodBand.OVER_14_DAYS)
    outcome = cancellation_rule(case, DistanceBand.LONG, APPR, RuleContext(large_carrier=True))
    assert outcome.is_eligible is False
    assert outcome.regulation_section == "APPR-19(1)"


def test_appr_cancellation_rebooked_close_to_schedule_is_not_compensated():
    case = _case(
        DisruptionType.CANCELLATION,
        origin="YUL",
        destination="YYZ",
        notice_period_band=NoticePeriodBand.UNDER_7_DAYS,
        alternative_flight=_alt(0, 2),
    )
    assert cancellation_rule(case, DistanceBand.SHORT, APPR, RuleContext(large_carrier=True)).is_eligible is False


def test_appr_cancellation_without_arrival_time_gets_lowest_tier():
    case = _case(DisruptionType.CANCELLATION, origin="YUL", destination="YYZ", notice_period_band=NoticePeriodBand.UNDER_7_DAYS)
    outcome = cancellation_rule(case, DistanceBand.SHORT, APPR, RuleContext(large_carrier=False))
    assert outcome.amount == Decimal("125.00")
    assert any("lowest APPR tier" in caveat for caveat in outcome.caveats)


@pytest.mark.parametrize(
    "alternative,amount",
    [(_alt(0, 3), "900.00"), (_alt(0, 6), "1800.00"), (_alt(0, 12), "2400.00"), (None, "2400.00")],
)
def test_appr_denied_boarding_amounts(alternative, amount):
    case = _bumped(alternative_flight=alternative, currency="CAD")
    outcome = denied_boarding_rule(case, DistanceBand.SHORT, APPR, RuleContext(large_carrier=False))
    assert outcome.is_eligible is True
    assert outcome.amount == Decimal(amount)
    assert outcome.currency == "CAD"
