"""
hr_portal.clients.email

Transactional e-mail client (Resend REST API).
"""

from __future__ import annotations

from typing import Any

import httpx


class EmailError(Exception):
    pass


class EmailClient:
    def __init__(self, *, api_key: str, sender: str, http: httpx.AsyncClient) -> None:
        self._api_key = api_key
        self._sender = sender
        self._http = http

    async def send_text(self, *, to: str, subject: str, text: str) -> dict[str, Any]:
        try:
            r = await self._http.post(
                "/emails",
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={"from": self._sender, "to": [to], "subject": subject, "text": text},
            )
        except httpx.HTTPError as e:
            raise EmailError(f"E-mail API unreachable: {e}") from e
        if r.is_error:
            raise EmailError(f"Resend error {r.status_code}: {r.text}")
        try:
            return r.json()
        except ValueError:
            return {}
