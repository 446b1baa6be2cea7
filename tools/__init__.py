from .compliance_tools import ComplianceTools
from .flight_status_tools import FlightStatusTools

__all__ = [
    "ComplianceTools",
    "FlightStatusTools",
]
