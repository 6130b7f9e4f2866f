"""HTTP client for node transaction submission."""

from __future__ import annotations

from dataclasses import dataclass

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from chain_cli.errors import TransportError


@dataclass
class SubmissionClient:
    base_url: str
    timeout: float = 10.0
    retries: int = 2

    def __post_init__(self) -> None:
        self._session = requests.Session()
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=0,
            status=max(0, int(self.retries)),
            status_forcelist=(502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("POST",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def submit_tx(self, path: str, tx_bytes: bytes, *, protocol_magic: int) -> dict:
        try:
            response = self._session.post(
                self._url(path),
                data=tx_bytes,
                headers={
                    "content-type": "application/json",
                    "x-protocol-magic": str(protocol_magic),
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"transaction submission failed: {exc}") from exc

        if response.status_code >= 400:
            detail: object | None = None
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                detail = body.get("detail")
            if isinstance(detail, str):
                message = f"node rejected transaction: {response.status_code} {detail}"
            else:
                message = f"node rejected transaction: {response.status_code} {response.text}"
            raise TransportError(message, status_code=response.status_code, detail=detail)

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError("node returned a non-JSON response") from exc
        return payload if isinstance(payload, dict) else {"result": payload}
