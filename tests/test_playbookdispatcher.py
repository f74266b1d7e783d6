import json

import pytest
import responses

from edgefleet.playbookdispatcher import (
    DispatcherError,
    DispatcherPayload,
    DispatchResponse,
    PlaybookDispatcherClient,
)

BASE = "http://dispatcher.example.com"
DISPATCH_URL = BASE + "/internal/dispatch"
PLAYBOOK_URL = "http://example.com/playbook.yml"


def _payload():
    return DispatcherPayload(
        recipient="recipient-1",
        playbook_url=PLAYBOOK_URL,
        account="account-1",
    )


def test_execute_dispatcher_parses_multi_status():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.POST,
            DISPATCH_URL,
            json=[{"code": 201, "id": "run-1"}, {"code": 404, "id": "abc"}],
            status=207,
        )
        client = PlaybookDispatcherClient(BASE, "secret")
        result = client.execute_dispatcher(_payload())
    assert result == [
        DispatchResponse(status_code=201, playbook_dispatcher_id="run-1"),
        DispatchResponse(status_code=404, playbook_dispatcher_id="abc"),
    ]


def test_execute_dispatcher_sends_single_payload_list():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, DISPATCH_URL, json=[], status=207)
        client = PlaybookDispatcherClient(BASE, "secret")
        result = client.execute_dispatcher(_payload())
        sent = json.loads(rsps.calls[0].request.body)
    assert result == []
    assert sent == [
        {"recipient": "recipient-1", "url": PLAYBOOK_URL, "account": "account-1"}
    ]


def test_execute_dispatcher_sends_headers():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, DISPATCH_URL, json=[], status=207)
        client = PlaybookDispatcherClient(
            BASE, "secret", headers={"x-rh-insights-request-id": "req-1"}
        )
        result = client.execute_dispatcher(_payload())
        request = rsps.calls[0].request
    assert result == []
    assert request.headers["Authorization"] == "PSK secret"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["x-rh-insights-request-id"] == "req-1"


@pytest.mark.parametrize("status", [200, 400, 500])
def test_execute_dispatcher_rejects_other_status(status):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, DISPATCH_URL, body="oops", status=status)
        client = PlaybookDispatcherClient(BASE, "secret")
        with pytest.raises(DispatcherError) as info:
            client.execute_dispatcher(_payload())
    assert str(status) in str(info.value)
    assert "oops" in str(info.value)


def test_execute_dispatcher_invalid_json():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, DISPATCH_URL, body="not json", status=207)
        client = PlaybookDispatcherClient(BASE, "secret")
        with pytest.raises(DispatcherError):
            client.execute_dispatcher(_payload())