"""Thin HTTP client for the SecureVet API.

Holds no business rules: every decision (who may claim, who sees what)
is made by the backend. It only attaches the bearer token, maps calls to
endpoints and raises ``ClinicAPIError`` on non-2xx responses.
"""
from typing import Any, Dict, Optional

import httpx


class ClinicAPIError(Exception):
    def __init__(self, status_code: int, detail: str, code: Optional[str] = None):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.code = code


class ClinicClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=10.0)
        self.token = token

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.http.request(method, path, headers=headers, **kwargs)

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if response.status_code == 401:
                # session is gone; force a fresh login
                self.token = None
            raise ClinicAPIError(
                response.status_code,
                body.get("detail") or "API request failed",
                body.get("code"),
            )
        return response.json()

    # -------------------------
    # Auth
    # -------------------------
    def register(self, name: str, email: str, password: str, phone: str = "") -> Dict:
        return self._request(
            "POST", "/auth/register", json={"name": name, "email": email, "password": password, "phone": phone}
        )

    def login(self, email: str, password: str, code: Optional[str] = None) -> Dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password, "code": code})
        if data.get("token"):
            self.token = data["token"]
        return data

    def me(self) -> Dict:
        return self._request("GET", "/auth/me")

    # -------------------------
    # Appointments
    # -------------------------
    def appointments(self) -> list:
        return self._request("GET", "/appointments/")["items"]

    def appointment(self, appointment_id: str) -> Dict:
        return self._request("GET", f"/appointments/{appointment_id}")

    def request_appointment(self, pet_id: str, date: str, time: str, reason: str) -> Dict:
        return self._request(
            "POST", "/appointments/", json={"pet_id": pet_id, "date": date, "time": time, "reason": reason}
        )["appointment"]

    def book_for_client(self, client_id: str, pet_id: str, date: str, time: str, reason: str) -> Dict:
        payload = {"client_id": client_id, "pet_id": pet_id, "date": date, "time": time, "reason": reason}
        return self._request("POST", "/appointments/book", json=payload)["appointment"]

    def claim(self, appointment_id: str) -> Dict:
        return self._request("PUT", f"/appointments/{appointment_id}/assign")["appointment"]

    def complete(self, appointment_id: str) -> Dict:
        return self._request("PUT", f"/appointments/{appointment_id}/complete")

    # -------------------------
    # Pets & records
    # -------------------------
    def pets(self, owner_id: Optional[str] = None) -> list:
        params = {"owner_id": owner_id} if owner_id else None
        return self._request("GET", "/pets/", params=params)["items"]

    def add_pet(self, name: str, type: str = "Dog", owner_id: Optional[str] = None, **extra) -> Dict:
        payload = {"name": name, "type": type, "owner_id": owner_id, **extra}
        return self._request("POST", "/pets/", json=payload)["pet"]

    def records(self, pet_id: Optional[str] = None) -> list:
        params = {"pet_id": pet_id} if pet_id else None
        return self._request("GET", "/records/", params=params)["items"]

    def add_record(self, pet_id: str, diagnosis: str, treatment: str = "", notes: str = "") -> Dict:
        payload = {"pet_id": pet_id, "diagnosis": diagnosis, "treatment": treatment, "notes": notes}
        return self._request("POST", "/records/", json=payload)["record"]
