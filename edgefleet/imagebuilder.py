"""Client for the image builder service, which composes commits and installers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

import requests

from edgefleet.models import (
    IMAGE_TYPE_COMMIT,
    IMAGE_TYPE_INSTALLER,
    Image,
    ImageStatus,
    InstalledPackage,
)

_API_PREFIX = "/api/image-builder/v1"
_INSTALLER_OSTREE_REF = "rhel/8/x86_64/edge"
_UPLOAD_TYPE = "aws.s3"

_COMPOSE_SUCCESS = "success"
_COMPOSE_FAILURE = "failure"


class ImageBuilderError(RuntimeError):
    """Raised when the image builder rejects or fails a request."""


@dataclass
class OSTree:
    """OSTree information for an image request."""

    ref: str = ""
    url: str = ""

    def to_dict(self) -> dict[str, str]:
        data = {"ref": self.ref}
        if self.url:
            data["url"] = self.url
        return data


@dataclass
class Customizations:
    """Packages baked into an image."""

    packages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"packages": list(self.packages)}


@dataclass
class UploadRequest:
    """Upload options accepted by the image builder."""

    type: str = _UPLOAD_TYPE
    options: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"options": dict(self.options), "type": self.type}


@dataclass
class ImageRequest:
    """The image-related part of a compose request."""

    architecture: str
    image_type: str
    ostree: Optional[OSTree] = None
    upload_request: UploadRequest = field(default_factory=UploadRequest)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "architecture": self.architecture,
            "image_type": self.image_type,
            "upload_request": self.upload_request.to_dict(),
        }
        if self.ostree is not None:
            data["ostree"] = self.ostree.to_dict()
        return data


@dataclass
class ComposeRequest:
    """A request to compose one or more images."""

    distribution: str
    image_requests: list[ImageRequest]
    customizations: Customizations = field(default_factory=Customizations)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body sent to the image builder."""
        return {
            "customizations": self.customizations.to_dict(),
            "distribution": self.distribution,
            "image_requests": [req.to_dict() for req in self.image_requests],
        }


@dataclass
class ComposeStatus:
    """The build status of a compose and, once uploaded, where it lives."""

    status: str = ""
    upload_url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ComposeStatus":
        image_status = data.get("image_status") or {}
        upload_status = image_status.get("upload_status") or {}
        options = upload_status.get("options") or {}
        return cls(
            status=image_status.get("status", ""),
            upload_url=options.get("url", ""),
        )


def _installed_package(data: Mapping[str, Any]) -> InstalledPackage:
    return InstalledPackage(
        arch=data.get("arch", ""),
        name=data.get("name", ""),
        release=data.get("release", ""),
        sigmd5=data.get("sigmd5", ""),
        signature=data.get("signature", ""),
        type=data.get("type", ""),
        version=data.get("version", ""),
        epoch=data.get("epoch", ""),
    )


class ImageBuilderClient:
    """Talks to the image builder API on behalf of one incoming request."""

    def __init__(
        self,
        base_url: str,
        headers: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
        save: Optional[Callable[[Any], None]] = None,
    ) -> None:
        self.base_url = base_url
        self.headers = dict(headers or {})
        self._session = session or requests.Session()
        self._log = logger or logging.getLogger(__name__)
        self._save = save

    def _request(self, method: str, url: str, body: Optional[str] = None) -> requests.Response:
        headers = {**self.headers, "Content-Type": "application/json"}
        self._log.info("Image Builder request started", extra={"url": url})
        response = self._session.request(method, url, data=body, headers=headers)
        self._log.info(
            "Image Builder response",
            extra={"statusCode": response.status_code, "responseBody": response.text},
        )
        return response

    def _compose(self, compose_request: ComposeRequest) -> str:
        body = json.dumps(compose_request.to_dict())
        response = self._request("POST", f"{self.base_url}{_API_PREFIX}/compose", body)
        if response.status_code != 201:
            raise ImageBuilderError("image is not being created by image builder")
        try:
            return response.json()["id"]
        except (ValueError, KeyError, TypeError) as exc:
            self._log.error("Error unmarshalling response JSON: %s", exc)
            raise ImageBuilderError("invalid compose response") from exc

    def _compose_status(self, job_id: str) -> ComposeStatus:
        response = self._request("GET", f"{self.base_url}{_API_PREFIX}/composes/{job_id}")
        if response.status_code != 200:
            raise ImageBuilderError("request for status was not successful")
        try:
            return ComposeStatus.from_dict(response.json())
        except (ValueError, AttributeError) as exc:
            raise ImageBuilderError("invalid compose status response") from exc

    def compose_commit(self, image: Image) -> Image:
        """Start building the image's commit and mark it as building."""
        commit = image.commit
        ostree: Optional[OSTree] = None
        if commit.ostree_ref or commit.ostree_parent_commit:
            ostree = OSTree(ref=commit.ostree_ref, url=commit.ostree_parent_commit)
        compose_request = ComposeRequest(
            distribution=image.distribution,
            customizations=Customizations(packages=image.get_packages_list()),
            image_requests=[
                ImageRequest(
                    architecture=commit.arch,
                    image_type=IMAGE_TYPE_COMMIT,
                    ostree=ostree,
                )
            ],
        )
        try:
            job_id = self._compose(compose_request)
        except ImageBuilderError as exc:
            self._log.error("Error sending request to image builder: %s", exc)
            raise
        commit.compose_job_id = job_id
        commit.status = ImageStatus.BUILDING.value
        image.status = ImageStatus.BUILDING.value
        return image

    def compose_installer(self, image: Image) -> Image:
        """Start building the image's installer; the outcome is saved either way."""
        repo = image.commit.repo
        compose_request = ComposeRequest(
            distribution=image.distribution,
            customizations=Customizations(packages=[]),
            image_requests=[
                ImageRequest(
                    architecture=image.commit.arch,
                    image_type=IMAGE_TYPE_INSTALLER,
                    ostree=OSTree(ref=_INSTALLER_OSTREE_REF, url=repo.url if repo else ""),
                )
            ],
        )
        error: Optional[ImageBuilderError] = None
        try:
            job_id = self._compose(compose_request)
        except ImageBuilderError as exc:
            error = exc
            image.installer.status = ImageStatus.ERROR.value
            image.status = ImageStatus.ERROR.value
        else:
            image.installer.compose_job_id = job_id
            image.installer.status = ImageStatus.BUILDING.value
            image.status = ImageStatus.BUILDING.value

        if self._save is not None:
            for record in (image, image.installer):
                try:
                    self._save(record)
                except Exception as exc:  # a failed save is reported, not fatal
                    self._log.error("Error saving %s: %s", type(record).__name__, exc)
        if error is not None:
            raise error
        return image

    def get_commit_status(self, image: Image) -> Image:
        """Update the commit status from the image builder."""
        status = self._compose_status(image.commit.compose_job_id)
        if status.status == _COMPOSE_SUCCESS:
            self._log.info("Set image status with success")
            image.commit.status = ImageStatus.SUCCESS.value
            image.commit.image_build_tar_url = status.upload_url
        elif status.status == _COMPOSE_FAILURE:
            self._log.info("Set image status with error")
            image.commit.status = ImageStatus.ERROR.value
            image.status = ImageStatus.ERROR.value
        return image

    def get_installer_status(self, image: Image) -> Image:
        """Update the installer status from the image builder."""
        status = self._compose_status(image.installer.compose_job_id)
        self._log.info("Got installer status %s", status.status)
        if status.status == _COMPOSE_SUCCESS:
            image.installer.status = ImageStatus.SUCCESS.value
            image.installer.image_build_iso_url = status.upload_url
        elif status.status == _COMPOSE_FAILURE:
            image.installer.status = ImageStatus.ERROR.value
            image.status = ImageStatus.ERROR.value
        return image

    def get_metadata(self, image: Image) -> Image:
        """Record the commit hash and installed packages of a finished compose."""
        job_id = image.commit.compose_job_id
        response = self._request(
            "GET", f"{self.base_url}{_API_PREFIX}/composes/{job_id}/metadata"
        )
        if response.status_code != 200:
            raise ImageBuilderError("image metadata not found")
        try:
            metadata = response.json()
            packages = [_installed_package(p) for p in metadata.get("packages") or []]
            ostree_commit = metadata.get("ostree_commit", "")
        except (ValueError, AttributeError) as exc:
            self._log.error("Error while trying to unmarshal metadata: %s", exc)
            raise ImageBuilderError("invalid metadata response") from exc
        image.commit.installed_packages.extend(packages)
        image.commit.ostree_commit = ostree_commit
        return image