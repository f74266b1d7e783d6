import json
import re

import pytest
import responses

from edgefleet.imagebuilder import (
    ComposeRequest,
    ComposeStatus,
    Customizations,
    ImageBuilderClient,
    ImageBuilderError,
    ImageRequest,
    OSTree,
)
from edgefleet.models import Commit, Image, Installer, Package, Repo

BASE = "http://imagebuilder.test"
COMPOSE_URL = f"{BASE}/api/image-builder/v1/compose"
JOB_ID = "compose-job-id-returned-from-image-builder"


def _image(packages=None, **commit_kwargs):
    return Image(
        distribution="rhel-8",
        packages=packages if packages is not None else [Package(name="vim"), Package(name="ansible")],
        commit=Commit(arch="x86_64", repo=Repo(), **commit_kwargs),
    )


def _client(**kwargs):
    return ImageBuilderClient(BASE, headers={"x-rh-insights-request-id": "req-1"}, **kwargs)


def test_compose_image():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, COMPOSE_URL, json={"id": JOB_ID}, status=201)
        img = _client().compose_commit(_image())
    assert img.commit.compose_job_id == JOB_ID
    assert img.commit.status == "BUILDING"
    assert img.status == "BUILDING"


def test_compose_installer():
    saved = []
    img = _image()
    img.installer = Installer()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, COMPOSE_URL, json={"id": JOB_ID}, status=201)
        img = _client(save=saved.append).compose_installer(img)
    assert img.installer.compose_job_id == JOB_ID
    assert img.installer.status == "BUILDING"
    assert saved == [img, img.installer]


def test_compose_image_when_ostree_parent_commit_is_empty():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, COMPOSE_URL, json={"id": JOB_ID}, status=201)
        img = _client().compose_commit(_image(packages=[]))
        body = json.loads(rsps.calls[0].request.body)
    assert "ostree" not in body["image_requests"][0]
    assert img.commit.compose_job_id == JOB_ID


def test_compose_commit_sends_packages_and_ostree():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, COMPOSE_URL, json={"id": JOB_ID}, status=201)
        image = _image(ostree_ref="ref/a", ostree_parent_commit="http://repo.example.com")
        _client().compose_commit(image)
        request = rsps.calls[0].request
        body = json.loads(request.body)
    assert body["customizations"]["packages"] == image.get_packages_list()
    assert body["image_requests"][0]["ostree"] == {"ref": "ref/a", "url": "http://repo.example.com"}
    assert body["image_requests"][0]["image_type"] == "rhel-edge-commit"
    assert body["image_requests"][0]["upload_request"] == {"options": {}, "type": "aws.s3"}
    assert request.headers["x-rh-insights-request-id"] == "req-1"


def test_compose_commit_rejected():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, COMPOSE_URL, json={}, status=500)
        with pytest.raises(ImageBuilderError, match="image is not being created by image builder"):
            _client().compose_commit(_image())


def test_compose_installer_failure_marks_error_and_saves():
    saved = []
    img = _image()
    img.installer = Installer()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, COMPOSE_URL, json={}, status=400)
        with pytest.raises(ImageBuilderError):
            _client(save=saved.append).compose_installer(img)
    assert img.installer.status == "ERROR"
    assert img.status == "ERROR"
    assert len(saved) == 2


def test_compose_installer_uses_repo_url():
    img = _image()
    img.commit.repo = Repo(url="http://repo.example.com/r")
    img.installer = Installer()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, COMPOSE_URL, json={"id": JOB_ID}, status=201)
        result = _client().compose_installer(img)
        body = json.loads(rsps.calls[0].request.body)
    assert result.installer.compose_job_id == JOB_ID
    assert body["image_requests"][0]["ostree"] == {
        "ref": "rhel/8/x86_64/edge",
        "url": "http://repo.example.com/r",
    }
    assert body["customizations"]["packages"] == []


def test_get_commit_status_success():
    tar_url = "https://bucket.example.com/commit.tar"
    img = _image()
    img.commit.compose_job_id = JOB_ID
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{BASE}/api/image-builder/v1/composes/{JOB_ID}",
            json={"image_status": {"status": "success", "upload_status": {"options": {"url": tar_url}}}},
        )
        img = _client().get_commit_status(img)
    assert img.commit.status == "SUCCESS"
    assert img.commit.image_build_tar_url == tar_url


def test_get_commit_status_failure():
    img = _image()
    img.commit.compose_job_id = JOB_ID
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{BASE}/api/image-builder/v1/composes/{JOB_ID}",
            json={"image_status": {"status": "failure"}},
        )
        img = _client().get_commit_status(img)
    assert img.commit.status == "ERROR"
    assert img.status == "ERROR"


def test_get_installer_status_success_and_error():
    iso_url = "https://bucket.example.com/installer.iso"
    img = _image()
    img.installer = Installer(compose_job_id="inst")
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{BASE}/api/image-builder/v1/composes/inst",
            json={"image_status": {"status": "success", "upload_status": {"options": {"url": iso_url}}}},
        )
        img = _client().get_installer_status(img)
    assert img.installer.status == "SUCCESS"
    assert img.installer.image_build_iso_url == iso_url

    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, re.compile(r".*/composes/inst$"), json={}, status=404)
        with pytest.raises(ImageBuilderError, match="request for status was not successful"):
            _client().get_installer_status(img)


def test_get_metadata():
    img = _image()
    img.commit.compose_job_id = JOB_ID
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{BASE}/api/image-builder/v1/composes/{JOB_ID}/metadata",
            json={
                "ostree_commit": "abc123",
                "packages": [
                    {"name": "vim", "arch": "x86_64", "version": "8.0", "release": "1"},
                    {"name": "wget", "arch": "x86_64", "version": "1.19", "release": "2", "epoch": "1"},
                ],
            },
        )
        img = _client().get_metadata(img)
    assert img.commit.ostree_commit == "abc123"
    assert [p.name for p in img.commit.installed_packages] == ["vim", "wget"]
    assert img.commit.installed_packages[1].epoch == "1"


def test_get_metadata_not_found():
    img = _image()
    img.commit.compose_job_id = JOB_ID
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, re.compile(r".*/metadata$"), status=404)
        with pytest.raises(ImageBuilderError, match="image metadata not found"):
            _client().get_metadata(img)


def test_compose_status_from_dict_without_upload():
    status = ComposeStatus.from_dict({"image_status": {"status": "building"}})
    assert status == ComposeStatus(status="building", upload_url="")


def test_compose_request_to_dict_round_trips_through_json():
    req = ComposeRequest(
        distribution="rhel-8",
        customizations=Customizations(packages=["vim"]),
        image_requests=[ImageRequest(architecture="x86_64", image_type="rhel-edge-commit", ostree=OSTree(ref="r"))],
    )
    data = json.loads(json.dumps(req.to_dict()))
    assert data["distribution"] == "rhel-8"
    assert data["image_requests"][0]["ostree"] == {"ref": "r"}
    assert data["customizations"] == {"packages": ["vim"]}