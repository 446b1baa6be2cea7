from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from compliance.airports import EU261_COUNTRIES


@dataclass(frozen=True)
class Carrier:
    iata: str
    icao: str
    name: str
    country: str
    # APPR large carrier: 2 million or more passengers in each of the two prior years.
    large: bool = True

    @property
    def is_eu261_based(self) -> bool:
        return self.country in EU261_COUNTRIES


_CARRIER_ROWS = [
    ("LH", "DLH", "Lufthansa", "DE"),
    ("EW", "EWG", "Eurowings", "DE"),
    ("BA", "BAW", "British Airways", "GB"),
    ("VS", "VIR", "Virgin Atlantic", "GB"),
    ("U2", "EZY", "easyJet", "GB"),
    ("LS", "EXS", "Jet2", "GB"),
    ("AF", "AFR", "Air France", "FR"),
    ("KL", "KLM", "KLM", "NL"),
    ("FR", "RYR", "Ryanair", "IE"),
    ("EI", "EIN", "Aer Lingus", "IE"),
    ("IB", "IBE", "Iberia", "ES"),
    ("VY", "VLG", "Vueling", "ES"),
    ("AZ", "ITY", "ITA Airways", "IT"),
    ("SK", "SAS", "SAS", "SE"),
    ("DY", "NOZ", "Norwegian", "NO"),
    ("AY", "FIN", "Finnair", "FI"),
    ("LX", "SWR", "Swiss", "CH"),
    ("OS", "AUA", "Austrian", "AT"),
    ("SN", "BEL", "Brussels Airlines", "BE"),
    ("TP", "TAP", "TAP Air Portugal", "PT"),
    ("A3", "AEE", "Aegean", "GR"),
    ("LO", "LOT", "LOT Polish", "PL"),
    ("W6", "WZZ", "Wizz Air", "HU"),
    ("AA", "AAL", "American Airlines", "US"),
    ("DL", "DAL", "Delta", "US"),
    ("UA", "UAL", "United", "US"),
    ("WN", "SWA", "Southwest", "US"),
    ("B6", "JBU", "JetBlue", "US"),
    ("AS", "ASA", "Alaska Airlines", "US"),
    ("NK", "NKS", "Spirit", "US"),
    ("F9", "FFT", "Frontier", "US"),
    ("HA", "HAL", "Hawaiian", "US"),
    ("AC", "ACA", "Air Canada", "CA"),
    ("WS", "WJA", "WestJet", "CA"),
    ("PD", "POE", "Porter Airlines", "CA"),
    ("TS", "TSC", "Air Transat", "CA"),
    ("F8", "FLE", "Flair Airlines", "CA"),
    ("PB", "SPR", "PAL Airlines", "CA", False),
    ("EK", "UAE", "Emirates", "AE"),
    ("QR", "QTR", "Qatar Airways", "QA"),
    ("TK", "THY", "Turkish Airlines", "TR"),
    ("SQ", "SIA", "Singapore Airlines", "SG"),
    ("CX", "CPA", "Cathay Pacific", "HK"),
    ("NH", "ANA", "All Nippon Airways", "JP"),
    ("JL", "JAL", "Japan Airlines", "JP"),
    ("QF", "QFA", "Qantas", "AU"),
]

CARRIERS: Dict[str, Carrier] = {}
for _row in _CARRIER_ROWS:
    _carrier = Carrier(*_row)
    CARRIERS[_carrier.iata] = _carrier
    CARRIERS[_carrier.icao] = _carrier


def find_carrier(code: Optional[str] = None, name: Optional[str] = None) -> Optional[Carrier]:
    """Look a carrier up by designator first, then by a loose name match."""
    if code:
        carrier = CARRIERS.get(code.strip().upper())
        if carrier is not None:
            return carrier
    if name:
        needle = name.strip().lower()
        if needle:
            for carrier in CARRIERS.values():
                if carrier.name.lower() in needle or needle == carrier.name.lower():
                    return carrier
    return None
