import json

import pytest

from trackwire.codec import encode_transport
from trackwire.models import Alias, Batch, Group, Page, Screen, Track, UserId
from trackwire.settings import MAX_MESSAGE_BYTES

USER = UserId(user_id="usr_1")


def test_health(api_client):
    resp = api_client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_accepts_each_kind_on_its_path(api_client, collector_app, sample_messages, sample_batch):
    for message in [*sample_messages, sample_batch]:
        resp = api_client.post(
            f"/v1/{message.kind.value}",
            content=encode_transport(message),
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"success": True}

    received = [stored.to_message() for stored in collector_app.state.received]
    assert received == [*sample_messages, sample_batch]


def test_path_decides_kind(api_client, collector_app):
    # Same body, two destinations: the path, not the shape, picks the kind
    body = {"userId": "usr_1", "name": "Home", "properties": {}}

    assert api_client.post("/v1/page", json=body).status_code == 200
    assert api_client.post("/v1/screen", json=body).status_code == 200

    page, screen = (stored.to_message() for stored in collector_app.state.received)
    assert isinstance(page, Page)
    assert isinstance(screen, Screen)


def test_stored_records_are_tagged(api_client, collector_app):
    api_client.post("/v1/group", json={"userId": "usr_1", "groupId": "grp_1", "traits": {}})

    (stored,) = collector_app.state.received
    assert stored.type.value == "group"
    assert stored.to_message() == Group(user=USER, group_id="grp_1")


@pytest.mark.parametrize(
    "path, body",
    [
        ("/v1/track", {"userId": "usr_1", "properties": {}}),  # no event
        ("/v1/alias", {"previousId": "old"}),  # no identity
        ("/v1/track", {"userId": "usr_1", "event": "", "properties": {}}),
        ("/v1/batch", {"batch": [{"type": "nope", "userId": "usr_1"}]}),
    ],
)
def test_rejects_malformed_body(api_client, collector_app, path, body):
    resp = api_client.post(path, json=body)

    assert resp.status_code == 400
    assert collector_app.state.received == []


def test_unknown_kind(api_client):
    resp = api_client.post("/v1/unknown_kind", json={"userId": "usr_1"})
    assert resp.status_code == 422


def test_rejects_large_payload(api_client):
    """Body above the per-message cap should be rejected with 413."""
    big_string = "a" * (MAX_MESSAGE_BYTES + 1)
    payload = {"userId": "usr_1", "event": "Big", "properties": {"data": big_string}}

    resp = api_client.post(
        "/v1/track",
        content=json.dumps(payload),
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 413


def test_batch_items_keep_their_kinds(api_client, collector_app):
    batch = Batch(
        batch=[
            Track(user=USER, event="Foo"),
            Alias(user=USER, previous_id="old"),
        ]
    )
    api_client.post("/v1/batch", content=encode_transport(batch), headers={"Content-Type": "application/json"})

    (stored,) = collector_app.state.received
    assert stored.to_message() == batch


def test_rejects_large_chunked_payload(api_client, collector_app):
    """Without Content-Length the received body is measured instead."""
    payload = {"userId": "usr_1", "event": "Big", "properties": {"data": "a" * (MAX_MESSAGE_BYTES + 1)}}
    body = json.dumps(payload).encode()

    resp = api_client.post(
        "/v1/track",
        content=iter([body[:100], body[100:]]),
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 413
    assert collector_app.state.received == []


def test_invalid_content_length(api_client, collector_app):
    body = json.dumps({"userId": "usr_1", "event": "Foo", "properties": {}}).encode()

    resp = api_client.post(
        "/v1/track",
        content=body,
        headers={"Content-Type": "application/json", "Content-Length": "lots"},
    )
    assert resp.status_code == 400
    assert collector_app.state.received == []
