# telehealth/client/api_client.py
from typing import Any, Dict, Optional

import requests

from telehealth.core.errors import ERRORS_BY_CODE, AuthInvalid, TelehealthError, TransportError
from telehealth.core.logger import get_module_logger

logger = get_module_logger("client.api")

DEFAULT_TIMEOUT = 10


class ApiClient:
    """
    Thin ``requests`` wrapper around the telehealth HTTP API.

    Error responses are turned back into the matching ``TelehealthError``
    subclass; timeouts and connection failures become ``TransportError``.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT, session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def set_auth_token(self, token: str) -> None:
        self.http.headers["Authorization"] = f"Bearer {token}"

    def clear_auth_token(self) -> None:
        self.http.headers.pop("Authorization", None)

    @property
    def has_auth_token(self) -> bool:
        return "Authorization" in self.http.headers

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout:
            raise TransportError(f"{method} {path} timed out")
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {str(e)}")

        if response.ok:
            try:
                return response.json()
            except ValueError:
                raise TransportError(f"{method} {path} returned an unreadable response")

        try:
            body = response.json()
        except ValueError:
            body = {}
        detail = body.get("detail") if isinstance(body, dict) else None
        error_cls = ERRORS_BY_CODE.get(body.get("error")) if isinstance(body, dict) else None
        if error_cls is None:
            if response.status_code == 401:
                error_cls = AuthInvalid
            elif response.status_code >= 500:
                error_cls = TransportError
            else:
                error_cls = TelehealthError
        err = error_cls(detail if isinstance(detail, str) else None)
        err.status_code = response.status_code
        raise err

    # auth
    def authenticate(self, credential: str, provider: str = "google") -> Dict[str, Any]:
        return self._request("POST", "/auth/authenticate", json={"credential": credential, "provider": provider})

    def verify_token(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/verify")

    def get_me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")["data"]

    # doctors / appointments
    def get_bookable_slots(self, doctor_id: str, date: str) -> list:
        return self._request("GET", f"/doctors/{doctor_id}/slots", params={"date": date})["slots"]

    def book(self, doctor_id: str, date: str, slot: dict, type: str, reason: str) -> Dict[str, Any]:
        payload = {"doctorId": doctor_id, "date": date, "slot": slot, "type": type, "reason": reason}
        return self._request("POST", "/appointments/", json=payload)["data"]

    def cancel(self, appointment_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        return self._request("PATCH", f"/appointments/{appointment_id}/cancel", json={"reason": reason})["data"]

    def video_room(self, appointment_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/appointments/{appointment_id}/video-room")
