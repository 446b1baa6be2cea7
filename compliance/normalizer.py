"""Normalize versioned intake payloads into a canonical ``DisruptionCase``.

The intake forms have renamed and added fields over time. Every alias and
legacy encoding is resolved here so that the compensation rules only ever see
one shape. Fields are validated in a fixed order and the first invalid one is
reported through ``MalformedCaseError``.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from compliance.errors import MalformedCaseError
from models.schemas import (
    AlternativeFlight,
    BoardingType,
    CheckInStatus,
    DisruptionCase,
    DisruptionType,
    NoticePeriodBand,
    Route,
    SeatClass,
)

_AIRPORT_CODE = re.compile(r"^[A-Z]{3}$")
_FLIGHT_NUMBER = re.compile(r"^(?:[A-Z]{2,3}|[A-Z]\d|\d[A-Z])\d{1,4}$")
_HOURS_PART = re.compile(r"(\d+(?:\.\d+)?)\s*(?:h|hr|hrs|hour|hours)\b", re.IGNORECASE)
_MINUTES_PART = re.compile(r"(\d+(?:\.\d+)?)\s*(?:m|min|mins|minute|minutes)\b", re.IGNORECASE)
_HH_MM = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_BARE_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*$")
_PRICE_SYMBOLS = re.compile(r"[€$£\s,]")
_PRICE_CODE = re.compile(r"^[A-Z]{3}|[A-Z]{3}$")
_PRICE_AMOUNT = re.compile(r"^\d+(?:\.\d+)?$")

_DISRUPTION_ALIASES = {
    "delay": DisruptionType.DELAY,
    "delayed": DisruptionType.DELAY,
    "cancellation": DisruptionType.CANCELLATION,
    "cancelled": DisruptionType.CANCELLATION,
    "canceled": DisruptionType.CANCELLATION,
    "deniedboarding": DisruptionType.DENIED_BOARDING,
    "overbooking": DisruptionType.DENIED_BOARDING,
    "bumped": DisruptionType.DENIED_BOARDING,
    "downgrade": DisruptionType.DOWNGRADE,
    "downgrading": DisruptionType.DOWNGRADE,
    "downgraded": DisruptionType.DOWNGRADE,
}

_NOTICE_ALIASES = {
    "<7d": NoticePeriodBand.UNDER_7_DAYS,
    "<7days": NoticePeriodBand.UNDER_7_DAYS,
    "lessthan7days": NoticePeriodBand.UNDER_7_DAYS,
    "under7days": NoticePeriodBand.UNDER_7_DAYS,
    "immediate": NoticePeriodBand.UNDER_7_DAYS,
    "7-14d": NoticePeriodBand.SEVEN_TO_14_DAYS,
    "7-14days": NoticePeriodBand.SEVEN_TO_14_DAYS,
    "7to14days": NoticePeriodBand.SEVEN_TO_14_DAYS,
    "short": NoticePeriodBand.SEVEN_TO_14_DAYS,
    ">14d": NoticePeriodBand.OVER_14_DAYS,
    ">14days": NoticePeriodBand.OVER_14_DAYS,
    "morethan14days": NoticePeriodBand.OVER_14_DAYS,
    "over14days": NoticePeriodBand.OVER_14_DAYS,
    "adequate": NoticePeriodBand.OVER_14_DAYS,
}

_SEAT_CLASS_ALIASES = {
    "first": SeatClass.FIRST,
    "firstclass": SeatClass.FIRST,
    "business": SeatClass.BUSINESS,
    "businessclass": SeatClass.BUSINESS,
    "club": SeatClass.BUSINESS,
    "premiumeconomy": SeatClass.PREMIUM_ECONOMY,
    "premium": SeatClass.PREMIUM_ECONOMY,
    "economyplus": SeatClass.PREMIUM_ECONOMY,
    "economy": SeatClass.ECONOMY,
    "economyclass": SeatClass.ECONOMY,
    "basiceconomy": SeatClass.ECONOMY,
    "coach": SeatClass.ECONOMY,
}

_CURRENCY_SYMBOLS = {"€": "EUR", "$": "USD", "£": "GBP"}

_TRUE_WORDS = {"true", "yes", "y", "1", "on"}
_FALSE_WORDS = {"false", "no", "n", "0", "off"}
_UNSURE_WORDS = {"unsure", "not sure", "not_sure", "unknown", "maybe", "dont know", "don't know"}


def _compact(value: str) -> str:
    return re.sub(r"[\s_]+", "", value.strip().lower())


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first(payload: Mapping[str, Any], *names: str) -> Tuple[Optional[str], Any]:
    for name in names:
        value = payload.get(name)
        if not _blank(value):
            return name, value
    return None, None


def parse_duration_minutes(text: str) -> Optional[int]:
    """Parse "3 hours 20 minutes", "3.5 hours", "180 minutes", "3h20m" or "03:20".

    A bare number is read as hours, which is how the legacy delay field was filled in.
    """
    if text is None:
        return None
    raw = str(text).strip()
    if not raw:
        return None
    hh_mm = _HH_MM.match(raw)
    if hh_mm:
        return int(hh_mm.group(1)) * 60 + int(hh_mm.group(2))
    bare = _BARE_NUMBER.match(raw)
    if bare:
        total = float(bare.group(1)) * 60
        return int(round(total)) if math.isfinite(total) else None
    spaced = re.sub(r"(\d)([a-zA-Z])", r"\1 \2", raw)
    spaced = re.sub(r"([a-zA-Z])(\d)", r"\1 \2", spaced)
    hours = _HOURS_PART.search(spaced)
    minutes = _MINUTES_PART.search(spaced)
    if not hours and not minutes:
        return None
    total = 0.0
    if hours:
        total += float(hours.group(1)) * 60
    if minutes:
        total += float(minutes.group(1))
    if not math.isfinite(total):
        return None
    return int(round(total))


def _parse_date(field: str, value: Any) -> Optional[date]:
    if _blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        return datetime.fromisoformat(raw).date()
    except ValueError as exc:
        raise MalformedCaseError(field, f"not an ISO date: {value!r}") from exc


def _parse_bool(field: str, value: Any) -> Optional[bool]:
    if _blank(value):
        return None
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise MalformedCaseError(field, f"expected a yes/no value, got {value!r}")


def _parse_hours(field: str, value: Any) -> Optional[float]:
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise MalformedCaseError(field, "expected a number of hours")
    if isinstance(value, (int, float)):
        hours = float(value)
    else:
        text = str(value).strip()
        try:
            hours = float(text)
        except ValueError:
            hours = None
        if hours is None:
            minutes = parse_duration_minutes(text)
            if minutes is None:
                raise MalformedCaseError(field, f"unrecognised duration: {value!r}")
            return minutes / 60.0
    # NaN would slip through every later hours comparison.
    if not math.isfinite(hours):
        raise MalformedCaseError(field, f"expected a finite number of hours, got {value!r}")
    return hours


def _delay_total(field: str, hours: Any, minutes: Any) -> int:
    try:
        hours, minutes = float(hours), float(minutes)
    except (TypeError, ValueError) as exc:
        raise MalformedCaseError(field, "hours/minutes must be numbers") from exc
    if not (math.isfinite(hours) and math.isfinite(minutes)):
        raise MalformedCaseError(field, "hours/minutes must be finite numbers")
    if hours < 0 or minutes < 0:
        raise MalformedCaseError(field, "delay cannot be negative")
    return int(round(hours * 60 + minutes))


def notice_band_from_days(days: int) -> NoticePeriodBand:
    if days < 7:
        return NoticePeriodBand.UNDER_7_DAYS
    if days <= 14:
        return NoticePeriodBand.SEVEN_TO_14_DAYS
    return NoticePeriodBand.OVER_14_DAYS


class FactNormalizer:
    def normalize(self, payload: Mapping[str, Any]) -> DisruptionCase:
        if not isinstance(payload, Mapping):
            raise MalformedCaseError("payload", "expected a JSON object")

        disruption_type = self._disruption_type(payload)
        route = self._route(payload)
        flight_number = self._flight_number(payload)
        _, airline = _first(payload, "airline", "operatingCarrier", "operating_carrier", "carrierName")

        departure_date = _parse_date(*self._named(payload, "departureDate", "departure_date", "flightDate", "date"))
        notification_date = _parse_date(
            *self._named(payload, "notificationDate", "notification_date", "cancellationNoticeDate", "noticeDate")
        )
        claim_date = _parse_date(*self._named(payload, "claimDate", "claim_date", "submittedAt", "assertedOn"))

        delay_minutes = self._delay_minutes(payload)
        if disruption_type == DisruptionType.DELAY and delay_minutes is None:
            raise MalformedCaseError("delayMinutes", "required for delay claims")

        notice_band = self._notice_band(payload, departure_date, notification_date)
        alternative = self._alternative_flight(payload)

        boarding_type = self._boarding_type(payload)
        if disruption_type == DisruptionType.DENIED_BOARDING and boarding_type is None:
            raise MalformedCaseError("boardingType", "required for denied boarding claims")
        volunteers = _parse_bool(*self._named(payload, "volunteersRequested", "volunteers_requested", "volunteersAsked"))
        checked_in = self._checked_in(payload)

        paid, received = self._seat_classes(payload, disruption_type)
        ticket_price, symbol_currency = self._ticket_price(payload)
        if disruption_type == DisruptionType.DOWNGRADE and ticket_price is None:
            raise MalformedCaseError("ticketPrice", "required for downgrade claims")
        currency = self._currency(payload, symbol_currency)

        _, reason = _first(payload, "reasonCode", "reason_code", "delayReason", "cancellationReason", "downgradeReason", "reason")

        return DisruptionCase(
            disruption_type=disruption_type,
            route=route,
            flight_number=flight_number,
            airline=str(airline).strip() if airline is not None else None,
            departure_date=departure_date,
            notification_date=notification_date,
            claim_date=claim_date,
            delay_minutes=delay_minutes,
            notice_period_band=notice_band,
            alternative_flight=alternative,
            boarding_type=boarding_type,
            volunteers_requested=volunteers,
            checked_in_on_time=checked_in,
            seat_class_paid=paid,
            seat_class_received=received,
            ticket_price=ticket_price,
            currency=currency,
            reason_code=str(reason).strip() if reason is not None else None,
        )

    @staticmethod
    def _named(payload: Mapping[str, Any], *names: str) -> Tuple[str, Any]:
        name, value = _first(payload, *names)
        return name or names[0], value

    def _disruption_type(self, payload: Mapping[str, Any]) -> DisruptionType:
        name, value = _first(payload, "disruptionType", "disruption_type", "type")
        if value is None:
            return DisruptionType.DELAY
        found = _DISRUPTION_ALIASES.get(_compact(str(value)).replace("-", ""))
        if found is None:
            raise MalformedCaseError(name or "disruptionType", f"unknown disruption type: {value!r}")
        return found

    def _route(self, payload: Mapping[str, Any]) -> Route:
        nested = payload.get("route") if isinstance(payload.get("route"), Mapping) else {}
        origin = self._airport_code(
            "origin", nested.get("origin"), payload, "departureAirport", "departure_airport", "origin", "from"
        )
        destination = self._airport_code(
            "destination", nested.get("destination"), payload, "arrivalAirport", "arrival_airport", "destination", "to"
        )
        if origin == destination:
            raise MalformedCaseError("destination", "must differ from origin")
        return Route(origin=origin, destination=destination)

    def _airport_code(self, field: str, nested_value: Any, payload: Mapping[str, Any], *names: str) -> str:
        value = nested_value
        if _blank(value):
            name, value = _first(payload, *names)
            field = name or field
        if _blank(value):
            raise MalformedCaseError(field, "airport code is required")
        code = str(value).strip().upper()
        if not _AIRPORT_CODE.match(code):
            raise MalformedCaseError(field, f"expected a 3-letter airport code, got {value!r}")
        return code

    def _flight_number(self, payload: Mapping[str, Any]) -> Optional[str]:
        name, value = _first(payload, "flightNumber", "flight_number", "flight")
        if value is None:
            return None
        number = re.sub(r"[\s-]+", "", str(value)).upper()
        if not _FLIGHT_NUMBER.match(number):
            raise MalformedCaseError(name or "flightNumber", f"expected carrier code plus 1-4 digits, got {value!r}")
        return number

    def _delay_minutes(self, payload: Mapping[str, Any]) -> Optional[int]:
        structured = payload.get("delay")
        if isinstance(structured, Mapping):
            return _delay_total("delay", structured.get("hours") or 0, structured.get("minutes") or 0)

        if not _blank(payload.get("delayHours")):
            return _delay_total("delayHours", payload["delayHours"], payload.get("delayMinutes") or 0)

        name, value = _first(payload, "delayMinutes", "delay_minutes")
        if value is not None:
            if isinstance(value, bool):
                raise MalformedCaseError(name, "expected whole minutes")
            try:
                raw = float(value)
            except (TypeError, ValueError):
                raw = None
            if raw is None:
                parsed = parse_duration_minutes(str(value))
                if parsed is None:
                    raise MalformedCaseError(name, f"expected whole minutes, got {value!r}")
                minutes = parsed
            elif not math.isfinite(raw):
                raise MalformedCaseError(name, f"expected a finite number of minutes, got {value!r}")
            else:
                minutes = int(round(raw))
            if minutes < 0:
                raise MalformedCaseError(name, "delay cannot be negative")
            return minutes

        name, value = _first(payload, "delayDuration", "delay_duration")
        if value is not None:
            parsed = parse_duration_minutes(str(value))
            if parsed is None:
                raise MalformedCaseError(name, f"unrecognised delay duration: {value!r}")
            return parsed
        return None

    def _notice_band(
        self,
        payload: Mapping[str, Any],
        departure_date: Optional[date],
        notification_date: Optional[date],
    ) -> Optional[NoticePeriodBand]:
        # Dates, when both known, always beat the passenger's own selection.
        if departure_date is not None and notification_date is not None:
            return notice_band_from_days((departure_date - notification_date).days)
        name, value = _first(payload, "noticePeriodBand", "notice_period_band", "noticePeriod", "noticeGiven")
        if value is None:
            return None
        if isinstance(value, NoticePeriodBand):
            return value
        key = _compact(str(value))
        band = _NOTICE_ALIASES.get(key)
        if band is None:
            raise MalformedCaseError(name, f"unknown notice period: {value!r}")
        return band

    def _alternative_flight(self, payload: Mapping[str, Any]) -> Optional[AlternativeFlight]:
        nested = payload.get("alternativeFlight", payload.get("alternative_flight"))
        if isinstance(nested, Mapping):
            offered = _parse_bool("alternativeFlight.offered", nested.get("offered"))
            departure = _parse_hours(
                "alternativeFlight.departureDelayHours",
                nested.get("departureDelayHours", nested.get("departure_delay_hours")),
            )
            early = _parse_hours("alternativeFlight.departureHoursEarly", nested.get("departureHoursEarly"))
            if departure is None and early is not None:
                departure = -abs(early)
            arrival = _parse_hours(
                "alternativeFlight.arrivalDelayHours",
                nested.get("arrivalDelayHours", nested.get("arrival_delay_hours")),
            )
            if offered is False:
                return None
            # An empty object is what some form versions send when nothing was offered.
            if offered is None and departure is None and arrival is None:
                return None
            return AlternativeFlight(offered=True, departure_delay_hours=departure, arrival_delay_hours=arrival)
        if nested is not None and not isinstance(nested, Mapping):
            raise MalformedCaseError("alternativeFlight", "expected an object")

        offered = _parse_bool(*self._named(payload, "alternativeOffered", "alternative_offered"))
        if not offered:
            return None
        name, timing = _first(payload, "alternativeArrivalDelay", "alternativeTiming")
        arrival = _parse_hours(name or "alternativeTiming", timing)
        departure = _parse_hours("alternativeDepartureDelay", payload.get("alternativeDepartureDelay"))
        return AlternativeFlight(offered=True, departure_delay_hours=departure, arrival_delay_hours=arrival)

    def _boarding_type(self, payload: Mapping[str, Any]) -> Optional[BoardingType]:
        name, value = _first(payload, "boardingType", "boarding_type", "deniedBoardingType")
        if value is None:
            return None
        word = _compact(str(value))
        if word in {"voluntary", "volunteered", "volunteer"}:
            return BoardingType.VOLUNTARY
        if word in {"involuntary", "bumped", "forced", "denied"}:
            return BoardingType.INVOLUNTARY
        raise MalformedCaseError(name, f"expected voluntary or involuntary, got {value!r}")

    def _checked_in(self, payload: Mapping[str, Any]) -> Optional[CheckInStatus]:
        name, value = _first(payload, "checkedInOnTime", "checked_in_on_time", "checkedIn")
        if value is None:
            return None
        if isinstance(value, bool):
            return CheckInStatus.YES if value else CheckInStatus.NO
        word = str(value).strip().lower()
        if word in _UNSURE_WORDS:
            return CheckInStatus.UNSURE
        if word in _TRUE_WORDS:
            return CheckInStatus.YES
        if word in _FALSE_WORDS:
            return CheckInStatus.NO
        raise MalformedCaseError(name, f"expected yes, no or unsure, got {value!r}")

    def _seat_class(self, field: str, value: Any) -> Optional[SeatClass]:
        if _blank(value):
            return None
        found = _SEAT_CLASS_ALIASES.get(_compact(str(value)).replace("-", ""))
        if found is None:
            raise MalformedCaseError(field, f"unknown cabin class: {value!r}")
        return found

    def _seat_classes(
        self, payload: Mapping[str, Any], disruption_type: DisruptionType
    ) -> Tuple[Optional[SeatClass], Optional[SeatClass]]:
        paid = self._seat_class(*self._named(payload, "seatClassPaid", "seat_class_paid", "bookedClass", "paidClass"))
        received = self._seat_class(
            *self._named(payload, "seatClassReceived", "seat_class_received", "actualClass", "receivedClass")
        )
        if disruption_type != DisruptionType.DOWNGRADE:
            return paid, received
        if paid is None:
            raise MalformedCaseError("seatClassPaid", "required for downgrade claims")
        if received is None:
            raise MalformedCaseError("seatClassReceived", "required for downgrade claims")
        if received.rank >= paid.rank:
            raise MalformedCaseError(
                "seatClassReceived",
                f"{received.value} is not lower than {paid.value}; this is not a downgrade",
            )
        return paid, received

    def _ticket_price(self, payload: Mapping[str, Any]) -> Tuple[Optional[Decimal], Optional[str]]:
        name, value = _first(payload, "ticketPrice", "ticket_price", "fare")
        if value is None:
            return None, None
        if isinstance(value, bool):
            raise MalformedCaseError(name, "expected an amount")
        symbol_currency = None
        if isinstance(value, (int, float, Decimal)):
            amount_text = str(value)
        else:
            text = str(value).strip()
            if text.startswith("-"):
                raise MalformedCaseError(name, "must be a positive amount")
            for symbol, code in _CURRENCY_SYMBOLS.items():
                if symbol in text:
                    symbol_currency = code
                    break
            amount_text = _PRICE_SYMBOLS.sub("", text)
            iso = _PRICE_CODE.search(amount_text)
            if iso is not None:
                symbol_currency = symbol_currency or iso.group(0)
                amount_text = _PRICE_CODE.sub("", amount_text, count=1)
            if not _PRICE_AMOUNT.match(amount_text):
                raise MalformedCaseError(name, f"not an amount: {value!r}")
        try:
            price = Decimal(amount_text)
        except InvalidOperation as exc:
            raise MalformedCaseError(name, f"not an amount: {value!r}") from exc
        if not price.is_finite() or price <= 0:
            raise MalformedCaseError(name, "must be a positive amount")
        round_trip = _parse_bool(*self._named(payload, "roundTrip", "round_trip", "isRoundTrip"))
        if round_trip:
            price = price / 2
        return price, symbol_currency

    def _currency(self, payload: Mapping[str, Any], symbol_currency: Optional[str]) -> str:
        name, value = _first(payload, "currency", "ticketCurrency")
        if value is None:
            return symbol_currency or "EUR"
        code = str(value).strip().upper()
        if not re.match(r"^[A-Z]{3}$", code):
            raise MalformedCaseError(name, f"expected an ISO currency code, got {value!r}")
        return code


def normalize_case(payload: Dict[str, Any]) -> DisruptionCase:
    return FactNormalizer().normalize(payload)
