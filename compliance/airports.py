from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class Airport:
    code: str
    name: str
    country: str
    latitude: float
    longitude: float


# EU member states, EEA states, Switzerland and the United Kingdom.
EU261_COUNTRIES = frozenset(
    {
        "AT", "BE", "BG", "CY", "CZ", "DE", "DK", "EE", "ES", "FI", "FR", "GR", "HR", "HU", "IE",
        "IT", "LT", "LU", "LV", "MT", "NL", "PL", "PT", "RO", "SE", "SI", "SK",
        "IS", "LI", "NO",
        "CH",
        "GB",
    }
)

US_COUNTRY = "US"
CANADA_COUNTRY = "CA"


_AIRPORT_ROWS = [
    # United Kingdom and Ireland
    ("LHR", "London Heathrow", "GB", 51.4700, -0.4543),
    ("LGW", "London Gatwick", "GB", 51.1537, -0.1821),
    ("STN", "London Stansted", "GB", 51.8860, 0.2389),
    ("MAN", "Manchester", "GB", 53.3537, -2.2750),
    ("BHX", "Birmingham", "GB", 52.4539, -1.7480),
    ("EDI", "Edinburgh", "GB", 55.9500, -3.3725),
    ("GLA", "Glasgow", "GB", 55.8719, -4.4331),
    ("DUB", "Dublin", "IE", 53.4213, -6.2701),
    # Continental Europe and EEA
    ("CDG", "Paris Charles de Gaulle", "FR", 49.0097, 2.5479),
    ("ORY", "Paris Orly", "FR", 48.7262, 2.3652),
    ("NCE", "Nice Cote d'Azur", "FR", 43.6584, 7.2159),
    ("LYS", "Lyon Saint-Exupery", "FR", 45.7256, 5.0811),
    ("FRA", "Frankfurt", "DE", 50.0379, 8.5622),
    ("MUC", "Munich", "DE", 48.3538, 11.7861),
    ("BER", "Berlin Brandenburg", "DE", 52.3667, 13.5033),
    ("DUS", "Dusseldorf", "DE", 51.2895, 6.7668),
    ("HAM", "Hamburg", "DE", 53.6304, 9.9882),
    ("AMS", "Amsterdam Schiphol", "NL", 52.3105, 4.7683),
    ("BRU", "Brussels", "BE", 50.9014, 4.4844),
    ("MAD", "Madrid Barajas", "ES", 40.4983, -3.5676),
    ("BCN", "Barcelona El Prat", "ES", 41.2974, 2.0833),
    ("AGP", "Malaga", "ES", 36.6749, -4.4991),
    ("PMI", "Palma de Mallorca", "ES", 39.5517, 2.7388),
    ("LIS", "Lisbon", "PT", 38.7742, -9.1342),
    ("OPO", "Porto", "PT", 41.2481, -8.6814),
    ("FCO", "Rome Fiumicino", "IT", 41.8003, 12.2389),
    ("MXP", "Milan Malpensa", "IT", 45.6306, 8.7281),
    ("VCE", "Venice Marco Polo", "IT", 45.5053, 12.3519),
    ("VIE", "Vienna", "AT", 48.1103, 16.5697),
    ("ZRH", "Zurich", "CH", 47.4582, 8.5555),
    ("GVA", "Geneva", "CH", 46.2381, 6.1090),
    ("CPH", "Copenhagen", "DK", 55.6180, 12.6508),
    ("ARN", "Stockholm Arlanda", "SE", 59.6498, 17.9238),
    ("OSL", "Oslo Gardermoen", "NO", 60.1976, 11.1004),
    ("HEL", "Helsinki Vantaa", "FI", 60.3172, 24.9633),
    ("KEF", "Reykjavik Keflavik", "IS", 63.9850, -22.6056),
    ("ATH", "Athens", "GR", 37.9364, 23.9445),
    ("WAW", "Warsaw Chopin", "PL", 52.1657, 20.9671),
    ("KRK", "Krakow", "PL", 50.0777, 19.7848),
    ("PRG", "Prague", "CZ", 50.1008, 14.2600),
    ("BUD", "Budapest", "HU", 47.4298, 19.2611),
    ("OTP", "Bucharest Otopeni", "RO", 44.5711, 26.0850),
    ("SOF", "Sofia", "BG", 42.6967, 23.4114),
    ("LCA", "Larnaca", "CY", 34.8751, 33.6249),
    ("MLA", "Malta", "MT", 35.8575, 14.4775),
    # United States
    ("JFK", "New York John F. Kennedy", "US", 40.6413, -73.7781),
    ("EWR", "Newark Liberty", "US", 40.6895, -74.1745),
    ("LGA", "New York LaGuardia", "US", 40.7769, -73.8740),
    ("BOS", "Boston Logan", "US", 42.3656, -71.0096),
    ("IAD", "Washington Dulles", "US", 38.9531, -77.4565),
    ("PHL", "Philadelphia", "US", 39.8744, -75.2424),
    ("ORD", "Chicago O'Hare", "US", 41.9742, -87.9073),
    ("DTW", "Detroit Metropolitan", "US", 42.2162, -83.3554),
    ("MSP", "Minneapolis-Saint Paul", "US", 44.8848, -93.2223),
    ("ATL", "Atlanta Hartsfield-Jackson", "US", 33.6407, -84.4277),
    ("MIA", "Miami", "US", 25.7959, -80.2870),
    ("MCO", "Orlando", "US", 28.4312, -81.3081),
    ("DFW", "Dallas/Fort Worth", "US", 32.8998, -97.0403),
    ("IAH", "Houston George Bush", "US", 29.9902, -95.3368),
    ("DEN", "Denver", "US", 39.8561, -104.6737),
    ("PHX", "Phoenix Sky Harbor", "US", 33.4342, -112.0116),
    ("LAS", "Las Vegas Harry Reid", "US", 36.0840, -115.1537),
    ("LAX", "Los Angeles", "US", 33.9416, -118.4085),
    ("SFO", "San Francisco", "US", 37.6213, -122.3790),
    ("SEA", "Seattle-Tacoma", "US", 47.4502, -122.3088),
    ("HNL", "Honolulu", "US", 21.3187, -157.9225),
    # Rest of world
    ("YYZ", "Toronto Pearson", "CA", 43.6777, -79.6248),
    ("YUL", "Montreal Trudeau", "CA", 45.4706, -73.7408),
    ("YVR", "Vancouver", "CA", 49.1967, -123.1815),
    ("YYC", "Calgary", "CA", 51.1215, -114.0076),
    ("YEG", "Edmonton", "CA", 53.3097, -113.5800),
    ("YOW", "Ottawa Macdonald-Cartier", "CA", 45.3225, -75.6692),
    ("YWG", "Winnipeg Richardson", "CA", 49.9100, -97.2399),
    ("YHZ", "Halifax Stanfield", "CA", 44.8808, -63.5086),
    ("YYT", "St. John's", "CA", 47.6186, -52.7519),
    ("YFB", "Iqaluit", "CA", 63.7564, -68.5558),
    ("MEX", "Mexico City", "MX", 19.4361, -99.0719),
    ("CUN", "Cancun", "MX", 21.0365, -86.8771),
    ("GRU", "Sao Paulo Guarulhos", "BR", -23.4356, -46.4731),
    ("IST", "Istanbul", "TR", 41.2753, 28.7519),
    ("TLV", "Tel Aviv Ben Gurion", "IL", 32.0055, 34.8854),
    ("CAI", "Cairo", "EG", 30.1219, 31.4056),
    ("RAK", "Marrakesh Menara", "MA", 31.6069, -8.0363),
    ("JNB", "Johannesburg O. R. Tambo", "ZA", -26.1392, 28.2460),
    ("DXB", "Dubai", "AE", 25.2532, 55.3657),
    ("DOH", "Doha Hamad", "QA", 25.2731, 51.6081),
    ("DEL", "Delhi Indira Gandhi", "IN", 28.5562, 77.1000),
    ("BOM", "Mumbai", "IN", 19.0896, 72.8656),
    ("BKK", "Bangkok Suvarnabhumi", "TH", 13.6900, 100.7501),
    ("SIN", "Singapore Changi", "SG", 1.3644, 103.9915),
    ("HKG", "Hong Kong", "HK", 22.3080, 113.9185),
    ("PEK", "Beijing Capital", "CN", 40.0799, 116.6031),
    ("ICN", "Seoul Incheon", "KR", 37.4602, 126.4407),
    ("NRT", "Tokyo Narita", "JP", 35.7720, 140.3929),
    ("HND", "Tokyo Haneda", "JP", 35.5494, 139.7798),
    ("SYD", "Sydney Kingsford Smith", "AU", -33.9399, 151.1753),
    ("MEL", "Melbourne Tullamarine", "AU", -37.6690, 144.8410),
    ("AKL", "Auckland", "NZ", -37.0082, 174.7850),
]

AIRPORTS: Dict[str, Airport] = {row[0]: Airport(*row) for row in _AIRPORT_ROWS}


def get_airport(code: str) -> Optional[Airport]:
    return AIRPORTS.get((code or "").strip().upper())


def is_eu261_airport(code: str) -> bool:
    airport = get_airport(code)
    return airport is not None and airport.country in EU261_COUNTRIES


def is_us_airport(code: str) -> bool:
    airport = get_airport(code)
    return airport is not None and airport.country == US_COUNTRY


def is_canadian_airport(code: str) -> bool:
    airport = get_airport(code)
    return airport is not None and airport.country == CANADA_COUNTRY
