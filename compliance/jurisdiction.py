from __future__ import annotations

from typing import List

from compliance.airports import is_canadian_airport, is_eu261_airport, is_us_airport
from compliance.carriers import find_carrier
from compliance.regulations import APPR, CARRIER_CONVENTION, EU261, US_DOT, Regulation
from models.schemas import DisruptionCase, DisruptionType

# UK CAA, Swiss FOCA and Norwegian rules mirror EU261 and are covered by it.
_APPR_TYPES = {DisruptionType.DELAY, DisruptionType.CANCELLATION, DisruptionType.DENIED_BOARDING}


class JurisdictionSelector:
    def eu261_applies(self, case: DisruptionCase) -> bool:
        if is_eu261_airport(case.route.origin):
            return True
        if not is_eu261_airport(case.route.destination):
            return False
        carrier = find_carrier(code=case.carrier_code, name=case.airline)
        return carrier is not None and carrier.is_eu261_based

    def us_dot_applies(self, case: DisruptionCase) -> bool:
        # US DOT only mandates compensation for involuntary bumping.
        if case.disruption_type != DisruptionType.DENIED_BOARDING:
            return False
        return is_us_airport(case.route.origin) or is_us_airport(case.route.destination)

    def appr_applies(self, case: DisruptionCase) -> bool:
        # Flights to, from and within Canada, whoever operates them.
        if case.disruption_type not in _APPR_TYPES:
            return False
        return is_canadian_airport(case.route.origin) or is_canadian_airport(case.route.destination)

    def select(self, case: DisruptionCase) -> List[Regulation]:
        regulations: List[Regulation] = []
        if self.eu261_applies(case):
            regulations.append(EU261)
        if self.us_dot_applies(case):
            regulations.append(US_DOT)
        if self.appr_applies(case):
            regulations.append(APPR)
        if case.disruption_type == DisruptionType.DOWNGRADE and not regulations:
            regulations.append(CARRIER_CONVENTION)
        return regulations
