"""Domain models for images, commits, devices, updates and onboarding."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional


class ValidationError(ValueError):
    """Raised when a request body does not pass validation."""


class ImageStatus(str, Enum):
    CREATED = "CREATED"
    BUILDING = "BUILDING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


class RepoStatus(str, Enum):
    BUILDING = "BUILDING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


class UpdateStatus(str, Enum):
    CREATED = "CREATED"
    BUILDING = "BUILDING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


class DispatchRecordStatus(str, Enum):
    CREATED = "CREATED"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    ERROR = "ERROR"
    COMPLETE = "COMPLETE"


DISTRIBUTION_CANT_BE_NIL_MESSAGE = "distribution can't be empty"
ARCHITECTURE_CANT_BE_EMPTY_MESSAGE = "architecture can't be empty"
NAME_CANT_BE_INVALID_MESSAGE = (
    "name must start with alphanumeric characters and can contain underscore and hyphen characters"
)
IMAGE_TYPE_NOT_ACCEPTED = "this image type is not accepted"
IMAGE_NAME_ALREADY_EXISTS = "this image name is already in use"
NO_OUTPUT_TYPES = "an output type is required"
MISSING_INSTALLER = "installer info must be provided"
MISSING_USERNAME_ERROR = "username must be provided"
MISSING_SSH_KEY_ERROR = "SSH key must be provided"
INVALID_SSH_KEY_ERROR = "SSH Key supports RSA or DSS or ED25519 or ECDSA-SHA2 algorithms"

REPO_NAME_CANT_BE_INVALID_MESSAGE = NAME_CANT_BE_INVALID_MESSAGE
REPO_URL_CANT_BE_NIL_MESSAGE = "repository URL can't be empty"
REPO_NAME_CANT_BE_NIL_MESSAGE = "repository name can't be empty"

DEVICES_CANT_BE_EMPTY_MESSAGE = "devices can not be empty"

IMAGE_TYPE_INSTALLER = "rhel-edge-installer"
IMAGE_TYPE_COMMIT = "rhel-edge-commit"

REQUIRED_PACKAGES = (
    "ansible",
    "rhc",
    "rhc-worker-playbook",
    "subscription-manager",
    "subscription-manager-plugin-ostree",
    "insights-client",
)

_VALID_SSH_PREFIX = re.compile(
    r"(ssh-(rsa|dss|ed25519)|ecdsa-sha2-nistp(256|384|521)) \S+", re.ASCII
)
_VALID_NAME = re.compile(r"[A-Za-z0-9]+[A-Za-z0-9\s_-]*", re.ASCII)
_ACCEPTED_IMAGE_TYPES = frozenset({IMAGE_TYPE_COMMIT, IMAGE_TYPE_INSTALLER})


@dataclass(kw_only=True)
class Model:
    """Fields shared by every stored record."""

    id: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


@dataclass(kw_only=True)
class Repo(Model):
    """The HTTP delivery location of a commit."""

    url: str = ""
    status: str = ""


@dataclass(kw_only=True)
class Package(Model):
    name: str = ""


@dataclass(kw_only=True)
class InstalledPackage(Model):
    name: str = ""
    arch: str = ""
    release: str = ""
    sigmd5: str = ""
    signature: str = ""
    type: str = ""
    version: str = ""
    epoch: str = ""


@dataclass(kw_only=True)
class Commit(Model):
    """An OSTree commit produced by the image builder."""

    name: str = ""
    account: str = ""
    image_build_hash: str = ""
    image_build_parent_hash: str = ""
    image_build_tar_url: str = ""
    ostree_commit: str = ""
    ostree_parent_commit: str = ""
    ostree_ref: str = ""
    build_date: str = ""
    build_number: int = 0
    blueprint_toml: str = ""
    arch: str = ""
    installed_packages: list[InstalledPackage] = field(default_factory=list)
    compose_job_id: str = ""
    status: str = ""
    repo_id: Optional[int] = None
    repo: Optional[Repo] = None


@dataclass(kw_only=True)
class Installer(Model):
    """An ISO installer built for an image."""

    account: str = ""
    image_build_iso_url: str = ""
    compose_job_id: str = ""
    status: str = ""
    username: str = ""
    ssh_key: str = ""
    checksum: str = ""


@dataclass(kw_only=True)
class Image(Model):
    """An image request, which produces an OSTree commit."""

    name: str = ""
    account: str = ""
    distribution: str = ""
    description: str = ""
    status: str = ""
    version: int = 1
    image_type: str = ""
    output_types: list[str] = field(default_factory=list)
    commit_id: int = 0
    commit: Optional[Commit] = None
    installer_id: Optional[int] = None
    installer: Optional[Installer] = None
    image_set_id: Optional[int] = None
    packages: list[Package] = field(default_factory=list)

    def validate_request(self, name_in_use: Optional[Callable[[str], bool]] = None) -> None:
        """Raise ValidationError if the request is not acceptable.

        ``name_in_use`` is asked whether an image name is already taken; it is
        consulted only for a first version of an image.
        """
        if not self.distribution:
            raise ValidationError(DISTRIBUTION_CANT_BE_NIL_MESSAGE)
        if not _VALID_NAME.fullmatch(self.name):
            raise ValidationError(NAME_CANT_BE_INVALID_MESSAGE)
        if self.commit is None or not self.commit.arch:
            raise ValidationError(ARCHITECTURE_CANT_BE_EMPTY_MESSAGE)
        if not self.output_types:
            raise ValidationError(NO_OUTPUT_TYPES)
        if any(out not in _ACCEPTED_IMAGE_TYPES for out in self.output_types):
            raise ValidationError(IMAGE_TYPE_NOT_ACCEPTED)
        if self.version == 1 and name_in_use is not None and name_in_use(self.name):
            raise ValidationError(IMAGE_NAME_ALREADY_EXISTS)

        if self.has_output_type(IMAGE_TYPE_INSTALLER):
            if self.installer is None:
                raise ValidationError(MISSING_INSTALLER)
            if not self.installer.username:
                raise ValidationError(MISSING_USERNAME_ERROR)
            if not self.installer.ssh_key:
                raise ValidationError(MISSING_SSH_KEY_ERROR)
            if not _VALID_SSH_PREFIX.match(self.installer.ssh_key):
                raise ValidationError(INVALID_SSH_KEY_ERROR)

    def has_output_type(self, image_type: str) -> bool:
        return image_type in self.output_types

    def get_packages_list(self) -> list[str]:
        """Return the required base packages followed by the image's own."""
        return [*REQUIRED_PACKAGES, *(p.name for p in self.packages)]


@dataclass(kw_only=True)
class ImageSet(Model):
    name: str = ""
    version: int = 1
    account: str = ""
    images: list[Image] = field(default_factory=list)


@dataclass(kw_only=True)
class PackageDiff:
    added: list[InstalledPackage] = field(default_factory=list)
    removed: list[InstalledPackage] = field(default_factory=list)
    upgraded: list[InstalledPackage] = field(default_factory=list)


@dataclass(kw_only=True)
class ImageUpdateAvailable:
    image: Image = field(default_factory=Image)
    package_diff: PackageDiff = field(default_factory=PackageDiff)


@dataclass(kw_only=True)
class ImageInfo:
    image: Image = field(default_factory=Image)
    updates_available: Optional[list[ImageUpdateAvailable]] = None
    rollback: Optional[Image] = None


@dataclass(kw_only=True)
class Device(Model):
    """An edge device referenced by its inventory UUID."""

    uuid: str = ""
    desired_hash: str = ""
    rhc_client_id: str = ""
    connected: bool = True


@dataclass(kw_only=True)
class EdgeDevice:
    """Inventory data for a device combined with the stored record."""

    device: Optional[Device] = None
    device_name: str = ""
    last_seen: str = ""


@dataclass(kw_only=True)
class DeviceDetails:
    device: EdgeDevice = field(default_factory=EdgeDevice)
    image: Optional[ImageInfo] = None
    update_transactions: Optional[list["UpdateTransaction"]] = None


@dataclass(kw_only=True)
class DeviceDetailsList:
    total: int = 0
    count: int = 0
    devices: list[DeviceDetails] = field(default_factory=list)


@dataclass(kw_only=True)
class ThirdPartyRepo(Model):
    """A custom repository supplied by an account."""

    name: str = ""
    url: str = ""
    description: str = ""
    account: str = ""

    def validate_request(self) -> None:
        """Raise ValidationError if the repository request is not acceptable."""
        if not self.name:
            raise ValidationError(REPO_NAME_CANT_BE_NIL_MESSAGE)
        if not self.url:
            raise ValidationError(REPO_URL_CANT_BE_NIL_MESSAGE)
        if not _VALID_NAME.fullmatch(self.name):
            raise ValidationError(REPO_NAME_CANT_BE_INVALID_MESSAGE)


@dataclass(kw_only=True)
class DispatchRecord(Model):
    """One playbook dispatch to one device."""

    playbook_url: str = ""
    device_id: int = 0
    device: Optional[Device] = None
    status: str = ""
    playbook_dispatcher_id: str = ""


@dataclass(kw_only=True)
class UpdateTransaction(Model):
    """A commit together with the devices it is to be deployed to."""

    commit: Optional[Commit] = None
    commit_id: int = 0
    account: str = ""
    old_commits: list[Commit] = field(default_factory=list)
    devices: list[Device] = field(default_factory=list)
    tag: str = ""
    status: str = ""
    repo_id: int = 0
    repo: Optional[Repo] = None
    dispatch_records: list[DispatchRecord] = field(default_factory=list)

    def validate_request(self) -> None:
        """Raise ValidationError if no devices are given."""
        if not self.devices:
            raise ValidationError(DEVICES_CANT_BE_EMPTY_MESSAGE)


@dataclass(kw_only=True)
class OwnershipVoucherData(Model):
    protocol_version: int = 0
    guid: str = ""
    device_name: str = ""
    fdo_device_id: int = 0


@dataclass(kw_only=True)
class SSHKey(Model):
    key: str = ""
    fdo_user_id: int = 0


@dataclass(kw_only=True)
class FDOUser(Model):
    username: str = ""
    ssh_keys: list[SSHKey] = field(default_factory=list)
    fdo_device_id: int = 0


@dataclass(kw_only=True)
class FDODevice(Model):
    ownership_voucher_data: Optional[OwnershipVoucherData] = None
    connected: bool = False
    uuid: str = ""
    subscription_identity_certificate: str = ""
    initial_user: Optional[FDOUser] = None