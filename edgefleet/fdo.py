"""Client for the FDO onboarding server's ownership voucher management."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Sequence

import requests


class FDOError(RuntimeError):
    """Raised when the onboarding server rejects a request.

    ``body`` holds the decoded response body, if there was one.
    """

    def __init__(self, message: str, body: Any = None) -> None:
        super().__init__(message)
        self.body = body


def _decode(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class FDOClient:
    """Uploads and removes ownership vouchers on the onboarding server."""

    def __init__(
        self,
        base_url: str,
        api_version: str,
        authorization_bearer: str,
        headers: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url
        self.api_version = api_version
        self.authorization_bearer = authorization_bearer
        self.headers = dict(headers or {})
        self._session = session or requests.Session()
        self._log = logger or logging.getLogger(__name__)

    def _url(self, suffix: str) -> str:
        return f"{self.base_url}/management/{self.api_version}/{suffix}"

    def _headers(self, content_type: str, extra: Optional[Mapping[str, str]] = None) -> dict:
        return {
            **self.headers,
            "Content-Type": content_type,
            "Authorization": f"Bearer {self.authorization_bearer}",
            **(extra or {}),
            "Accept": "application/json",
        }

    def _handle(self, response: requests.Response, ok_status: int, action: str) -> Any:
        body = _decode(response)
        if response.status_code == ok_status:
            self._log.info("Ownershipvouchers got %s successfully", action)
            return body
        if response.status_code == 400:
            self._log.error("Ownershipvouchers couldn't be %s, bad request", action)
            raise FDOError("bad request", body)
        self._log.error(
            "Ownershipvouchers couldn't be %s, unknown error with status code: %d",
            action,
            response.status_code,
        )
        raise FDOError(f"unknown error with status code: {response.status_code}", body)

    def batch_upload(self, ovs: bytes, num_of_ovs: int) -> Any:
        """Upload concatenated CBOR ownership vouchers and return the decoded reply."""
        if not ovs or num_of_ovs <= 0:
            self._log.error("No ownership vouchers provided")
            raise FDOError("no ownership vouchers provided")
        headers = self._headers(
            "application/cbor", {"X-Number-Of-Vouchers": str(num_of_ovs)}
        )
        try:
            response = self._session.post(
                self._url("ownership_voucher"), data=bytes(ovs), headers=headers
            )
        except requests.RequestException as exc:
            self._log.error("Failed to perform api call to upload vouchers: %s", exc)
            raise FDOError(str(exc)) from exc
        return self._handle(response, 201, "created")

    def batch_delete(self, fdo_uuid_list: Sequence[str]) -> Any:
        """Delete ownership vouchers by their FDO GUIDs and return the decoded reply."""
        if not fdo_uuid_list:
            self._log.error("No FDO UUIDs provided")
            raise FDOError("no FDO UUIDs provided")
        body = json.dumps(list(fdo_uuid_list))
        try:
            response = self._session.post(
                self._url("ownership_voucher/delete"),
                data=body,
                headers=self._headers("application/json"),
            )
        except requests.RequestException as exc:
            self._log.error("Failed to perform api call to remove vouchers: %s", exc)
            raise FDOError(str(exc)) from exc
        return self._handle(response, 200, "removed")