# edgefleet

Building blocks for a service that manages fleets of edge devices: data
models for images, commits, installers, devices, updates and FDO ownership
vouchers, the checks applied to incoming requests, and HTTP clients (built on
`requests`) for the services such a fleet manager talks to.

## Installation

```
pip install edgefleet
```

To run the tests:

```
pip install "edgefleet[test]"
pytest
```

## Modules

- `edgefleet.models`: dataclasses such as `Image`, `ImageSet`, `Commit`,
  `Repo`, `Package`, `InstalledPackage`, `Installer`, `Device`, `EdgeDevice`,
  `DeviceDetails`, `UpdateTransaction`, `DispatchRecord`, `ThirdPartyRepo` and
  the FDO records `FDODevice`, `OwnershipVoucherData`, `FDOUser` and `SSHKey`;
  the status enums `ImageStatus`, `RepoStatus`, `UpdateStatus` and
  `DispatchRecordStatus`. `Image.validate_request()`,
  `ThirdPartyRepo.validate_request()` and `UpdateTransaction.validate_request()`
  raise `ValidationError` with a message describing the first problem found.
  `Image.get_packages_list()` returns the required base packages followed by
  the image's own packages.
- `edgefleet.errors`: `APIError` and its subclasses `InternalServerError`,
  `BadRequest` and `NotFound`, each with a code, an HTTP status and a title;
  `to_dict()` gives the JSON body (`Code`, `Status`, `Title`).
- `edgefleet.headers`: `outgoing_headers(request_id, identity, auth)` returns
  the `x-rh-insights-request-id` header and, when `auth` is true, an
  `x-rh-identity` header holding the base64-encoded JSON identity.
- `edgefleet.imagebuilder`: `ImageBuilderClient(base_url, headers=None,
  session=None, logger=None, save=None)` with `compose_commit`,
  `compose_installer`, `get_commit_status`, `get_installer_status` and
  `get_metadata`. Each takes an `Image`, updates it and returns it; failures
  raise `ImageBuilderError`. If `save` is given, `compose_installer` passes the
  image and its installer to it after every attempt.
- `edgefleet.inventory`: `InventoryClient(base_url, headers=None,
  session=None, logger=None)` with `build_url(params)`, `return_devices(params)`,
  `return_devices_by_id(device_id)` and `return_devices_by_tag(tag)`, returning
  `InventoryResponse` objects; error statuses raise `InventoryError`.
- `edgefleet.playbookdispatcher`: `PlaybookDispatcherClient(url, psk,
  headers=None, session=None, logger=None)`; `execute_dispatcher(payload)` sends
  one `DispatcherPayload` and returns a list of `DispatchResponse`, raising
  `DispatcherError` unless the reply is 207 Multi-Status.
- `edgefleet.fdo`: `FDOClient(base_url, api_version, authorization_bearer,
  headers=None, session=None, logger=None)` with `batch_upload(ovs, num_of_ovs)`
  and `batch_delete(fdo_uuid_list)`, returning the decoded JSON reply or
  raising `FDOError` (its `body` holds the reply, if any).
- `edgefleet.logsetup`: `level_for(name)` maps `"DEBUG"` and `"ERROR"` to
  their logging levels and anything else to INFO; `init_logger(level_name,
  stream)` attaches a handler with caller details to the root logger, writing
  to stdout by default.

## Example

```python
from edgefleet.fdo import FDOClient
from edgefleet.headers import outgoing_headers
from edgefleet.models import Commit, Image, ValidationError

image = Image(
    name="kiosk",
    distribution="rhel-8",
    commit=Commit(arch="x86_64"),
    output_types=["rhel-edge-commit"],
)
try:
    image.validate_request(name_in_use=lambda name: False)
except ValidationError as exc:
    print("rejected:", exc)

print(image.get_packages_list())

client = FDOClient(
    "http://localhost:8080",
    "v1",
    authorization_bearer="token",
    headers=outgoing_headers("request-1", None, auth=False),
)
```

`validate_request` takes a callable that reports whether an image name is
already taken, so the check can be backed by whatever store holds your images;
it is consulted only when the image's version is 1.

## What this package does not do

It provides no HTTP server or routes, no command-line tools, and no database
layer: models are plain dataclasses that are not stored anywhere by the
package, and the only persistence hook is the optional `save` callable of
`ImageBuilderClient`. It does not consume message queues or ship logs to a
remote service.