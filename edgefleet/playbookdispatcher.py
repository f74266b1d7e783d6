"""Client for the playbook dispatcher, which runs playbooks on connected hosts."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import requests

_DISPATCH_PATH = "/internal/dispatch"
_MULTI_STATUS = 207


class DispatcherError(RuntimeError):
    """Raised when the playbook dispatcher rejects a dispatch."""


@dataclass
class DispatcherPayload:
    """One playbook to run on one recipient."""

    recipient: str
    playbook_url: str
    account: str

    def to_dict(self) -> dict[str, str]:
        return {
            "recipient": self.recipient,
            "url": self.playbook_url,
            "account": self.account,
        }


@dataclass
class DispatchResponse:
    """The dispatcher's answer for one dispatched run."""

    status_code: int = 0
    playbook_dispatcher_id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DispatchResponse":
        return cls(
            status_code=int(data.get("code", 0)),
            playbook_dispatcher_id=data.get("id", ""),
        )


class PlaybookDispatcherClient:
    """Sends playbook runs to the dispatcher on behalf of one incoming request."""

    def __init__(
        self,
        url: str,
        psk: str,
        headers: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.url = url
        self.psk = psk
        self.headers = dict(headers or {})
        self._session = session or requests.Session()
        self._log = logger or logging.getLogger(__name__)

    def execute_dispatcher(self, payload: DispatcherPayload) -> list[DispatchResponse]:
        """Dispatch a single playbook run and return the dispatcher's answers."""
        body = json.dumps([payload.to_dict()])
        url = self.url + _DISPATCH_PATH
        self._log.info(
            "PlaybookDispatcher ExecuteDispatcher Request Started",
            extra={"url": url, "payload": body},
        )
        headers = {
            "Content-Type": "application/json",
            **self.headers,
            "Authorization": f"PSK {self.psk}",
        }
        response = self._session.post(url, data=body, headers=headers)
        self._log.info(
            "PlaybookDispatcher ExecuteDispatcher Response",
            extra={"statusCode": response.status_code, "responseBody": response.text},
        )
        if response.status_code != _MULTI_STATUS:
            raise DispatcherError(
                "error calling playbook dispatcher, got status code "
                f"{response.status_code} and body {response.text}"
            )
        try:
            return [DispatchResponse.from_dict(item) for item in response.json()]
        except (ValueError, AttributeError, TypeError) as exc:
            self._log.error("Error while trying to unmarshal dispatcher response: %s", exc)
            raise DispatcherError("invalid playbook dispatcher response") from exc