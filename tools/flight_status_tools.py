from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Optional

import httpx
from pydantic import ValidationError

from compliance.errors import VerificationUnavailableError
from models.schemas import VerificationRecord
from settings import SETTINGS

logger = logging.getLogger(__name__)


class FlightStatusTools:
    """Looks up independent flight-status records used to verify a passenger's account.

    With ``FLIGHT_STATUS_API_URL`` configured the record comes from the remote
    status service; otherwise a small in-memory table is used for local runs.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else SETTINGS.flight_status_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else SETTINGS.flight_status_api_key
        self._transport = transport
        self._statuses: Dict[str, Dict[str, object]] = {
            "LH1234": {"flight_found": True, "actual_status": "landed", "delay_minutes": 200},
            "BA2490": {"flight_found": True, "actual_status": "cancelled"},
            "AF1680": {"flight_found": True, "actual_status": "on_time", "delay_minutes": 0},
            "U22087": {"flight_found": True, "actual_status": "landed"},
            "UA857": {"flight_found": True, "actual_status": "landed", "delay_minutes": 35},
        }

    async def lookup(self, flight_number: str, departure_date: Optional[date] = None) -> VerificationRecord:
        number = flight_number.strip().upper().replace(" ", "")
        if not self.base_url:
            known = self._statuses.get(number)
            if known is None:
                return VerificationRecord(flight_found=False)
            return VerificationRecord(**known)
        return await self._fetch(number, departure_date)

    async def _fetch(self, flight_number: str, departure_date: Optional[date]) -> VerificationRecord:
        params = {"date": departure_date.isoformat()} if departure_date else {}
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(
                timeout=SETTINGS.flight_status_timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.get(f"{self.base_url}/flights/{flight_number}", params=params, headers=headers)
                if resp.status_code == 404:
                    return VerificationRecord(flight_found=False)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("flight_status_lookup_failed", extra={"flight_number": flight_number, "error": repr(exc)})
            raise VerificationUnavailableError(f"flight status lookup failed for {flight_number}") from exc
        except ValueError as exc:
            raise VerificationUnavailableError(f"flight status response was not JSON for {flight_number}") from exc

        try:
            return VerificationRecord.model_validate(data)
        except ValidationError as exc:
            raise VerificationUnavailableError(f"unexpected flight status payload for {flight_number}") from exc
