"""Client for the host inventory service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

import requests

INVENTORY_API = "api/inventory/v1/hosts"
ORDER_BY = "updated"
ORDER_HOW = "DESC"
FIELDS = (
    "host_type,operating_system,greenboot_status,greenboot_fallback_detected,"
    "rpm_ostree_deployments,rhc_client_id,rhc_config_state"
)
FILTER_PARAMS = (
    "?staleness=fresh&filter[system_profile][host_type]=edge&fields[system_profile]="
    + FIELDS
)


class InventoryError(RuntimeError):
    """Raised when the inventory service answers with an error."""


@dataclass
class Params:
    """Paging, ordering and filtering options for a device listing."""

    per_page: str = ""
    page: str = ""
    order_by: str = ""
    order_how: str = ""
    hostname_or_id: str = ""
    device_status: str = ""


@dataclass
class OSTreeDeployment:
    checksum: str = ""
    booted: bool = False


@dataclass
class SystemProfile:
    rhc_client_id: str = ""
    rpm_ostree_deployments: list[OSTreeDeployment] = field(default_factory=list)


@dataclass
class InventoryDevice:
    """A host as described by the inventory service."""

    id: str = ""
    display_name: str = ""
    last_seen: str = ""
    update_available: bool = False
    ostree: SystemProfile = field(default_factory=SystemProfile)


@dataclass
class InventoryResponse:
    """A page of hosts returned by the inventory service."""

    total: int = 0
    count: int = 0
    result: list[InventoryDevice] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InventoryResponse":
        devices = []
        for item in data.get("results") or []:
            profile = item.get("system_profile") or {}
            devices.append(
                InventoryDevice(
                    id=item.get("id", ""),
                    display_name=item.get("display_name", ""),
                    last_seen=item.get("updated", ""),
                    update_available=bool(item.get("update_available", False)),
                    ostree=SystemProfile(
                        rhc_client_id=profile.get("rhc_client_id", ""),
                        rpm_ostree_deployments=[
                            OSTreeDeployment(
                                checksum=d.get("checksum", ""), booted=bool(d.get("booted", False))
                            )
                            for d in profile.get("rpm_ostree_deployments") or []
                        ],
                    ),
                )
            )
        return cls(total=data.get("total", 0), count=data.get("count", 0), result=devices)


class InventoryClient:
    """Queries the inventory service for edge hosts."""

    def __init__(
        self,
        base_url: str,
        headers: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url
        self.headers = dict(headers or {})
        self._session = session or requests.Session()
        self._log = logger or logging.getLogger(__name__)

    def build_url(self, params: Optional[Params] = None) -> str:
        """Return the host listing URL for the given options, or "" if the base is invalid."""
        try:
            parts = urlsplit(self.base_url)
        except ValueError:
            self._log.error("Couldn't parse inventory host %s", self.base_url)
            return ""
        path = parts.path + INVENTORY_API
        if parts.netloc and not path.startswith("/"):
            path = "/" + path

        query = {
            "filter[system_profile][host_type]": "edge",
            "fields[system_profile]": f"fields[system_profile]={FIELDS}",
        }
        if params is not None:
            optional = {
                "per_page": params.per_page,
                "page": params.page,
                "order_by": params.order_by,
                "order_how": params.order_how,
                "hostname_or_id": params.hostname_or_id,
            }
            query.update({key: value for key, value in optional.items() if value})
        encoded = urlencode(sorted(query.items()))
        url = urlunsplit((parts.scheme, parts.netloc, path, encoded, parts.fragment))
        self._log.debug("Inventory URL built: %s", url)
        return url

    def _get(self, url: str) -> requests.Response:
        headers = {"Content-Type": "application/json", **self.headers}
        self._log.info("Inventory request started", extra={"url": url})
        response = self._session.get(url, headers=headers)
        self._log.info(
            "Inventory response",
            extra={"statusCode": response.status_code, "responseBody": response.text},
        )
        return response

    @staticmethod
    def _parse(response: requests.Response) -> InventoryResponse:
        try:
            return InventoryResponse.from_dict(response.json())
        except (ValueError, AttributeError) as exc:
            raise InventoryError("invalid inventory response") from exc

    def _checked(self, url: str) -> InventoryResponse:
        response = self._get(url)
        if response.status_code != 200:
            raise InventoryError(
                "error requesting InventoryResponse, got status code "
                f"{response.status_code} and body {response.text}"
            )
        return self._parse(response)

    def return_devices(self, params: Optional[Params] = None) -> InventoryResponse:
        """List edge hosts without filtering by tag or id."""
        return self._parse(self._get(self.build_url(params)))

    def return_devices_by_id(self, device_id: str) -> InventoryResponse:
        """List edge hosts matching a hostname or id."""
        url = f"{self.base_url}/{INVENTORY_API}{FILTER_PARAMS}&hostname_or_id={device_id}"
        return self._checked(url)

    def return_devices_by_tag(self, tag: str) -> InventoryResponse:
        """List edge hosts carrying a tag."""
        url = f"{self.base_url}/{INVENTORY_API}{FILTER_PARAMS}?tags={tag}"
        return self._checked(url)