"""Tests for the target REST client, using a mocked requests session."""

import json
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from itsm_migration.clients.exceptions import (
    ApiError,
    AuthenticationError,
    ClientConnectionError,
    RateLimitError,
    ResourceNotFoundError,
)
from itsm_migration.clients.itsm_client import ItsmClient
from itsm_migration.mappings import target_model
from itsm_migration.models import AttachmentChild, Projection, UserCommentChild

pytestmark = pytest.mark.unit

TARGET = {"url": "https://itsm.example.com/", "username": "svc", "password": "secret", "timeout": 5}


def _response(status: int = 200, body: Any = None, headers: dict[str, str] | None = None) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.reason = "Reason"
    response.headers = headers or {}
    response.content = b"" if body is None else json.dumps(body).encode()
    response.json.return_value = body
    return response


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session: MagicMock) -> ItsmClient:
    return ItsmClient(target_config=TARGET, session=session)


def _sent_payload(session: MagicMock, call_index: int = -1) -> dict[str, Any]:
    return json.loads(session.request.call_args_list[call_index].kwargs["data"])


def test_requires_target_url(session: MagicMock) -> None:
    with pytest.raises(ValueError, match="Target URL"):
        ItsmClient(target_config={"url": ""}, session=session)


def test_builds_api_url_and_caches_classes(client: ItsmClient, session: MagicMock) -> None:
    session.request.return_value = _response(body={"id": "cls-1", "name": target_model.INCIDENT_CLASS})

    client.get_class(target_model.INCIDENT_CLASS)
    client.get_class(target_model.INCIDENT_CLASS)

    assert session.request.call_count == 1
    method, url = session.request.call_args.args
    assert method == "GET"
    assert url == "https://itsm.example.com/api/v1/classes/System.WorkItem.Incident"
    assert session.request.call_args.kwargs["timeout"] == 5


def test_create_object_posts_class_id_and_properties(client: ItsmClient, session: MagicMock) -> None:
    session.request.side_effect = [
        _response(body={"id": "cls-1"}),
        _response(status=201, body={"id": "guid-1", "displayId": "IR9001"}),
    ]

    created = client.create_object(target_model.INCIDENT_CLASS, {"Title": "Mouse"})

    assert created == {"id": "guid-1", "displayId": "IR9001"}
    assert _sent_payload(session) == {"classId": "cls-1", "properties": {"Title": "Mouse"}}


def test_create_object_without_identifier_is_an_error(client: ItsmClient, session: MagicMock) -> None:
    session.request.side_effect = [_response(body={"id": "cls-1"}), _response(status=201, body={})]

    with pytest.raises(ApiError):
        client.create_object(target_model.INCIDENT_CLASS, {})


def test_find_users_keeps_exact_matches_only(client: ItsmClient, session: MagicMock) -> None:
    session.request.return_value = _response(
        body=[{"id": "u1", "displayName": "Smith, John"}, {"id": "u2", "displayName": "Smith, Johnny"}],
    )

    users = client.find_users_by_display_name("Smith, John")

    assert users == [{"id": "u1", "displayName": "Smith, John"}]
    assert session.request.call_args.kwargs["params"] == {"displayName": "Smith, John"}


def test_commit_projection_payload(client: ItsmClient, session: MagicMock) -> None:
    session.request.side_effect = lambda method, url, **kwargs: (
        _response(body={}) if url.endswith("/projections") else _response(body={"id": url.rsplit("/", 1)[-1]})
    )
    projection = Projection(
        seed="guid-1",
        seed_class=target_model.INCIDENT_CLASS,
        children=[UserCommentChild(id="c1", comment="hi", entered_by="Jane"), AttachmentChild(ref="att-1")],
    )

    client.commit_projection(projection)

    payload = _sent_payload(session)
    assert payload["seed"] == {"id": "guid-1", "classId": "System.WorkItem.Incident"}
    comment, attachment = payload["children"]
    assert comment["properties"] == {"Id": "c1", "DisplayName": "c1", "Comment": "hi", "EnteredBy": "Jane"}
    assert comment["classId"] == "System.WorkItem.TroubleTicket.UserCommentLog"
    assert attachment == {"relationshipId": "System.WorkItemHasFileAttachment", "id": "att-1"}


def test_create_attachment_sends_multipart(client: ItsmClient, session: MagicMock) -> None:
    session.request.side_effect = [_response(body={"id": "cls-att"}), _response(body={"id": "att-1"})]

    created = client.create_attachment("a.txt", b"hello", {"DisplayName": "a.txt", "Size": 5})

    assert created == {"id": "att-1"}
    kwargs = session.request.call_args.kwargs
    assert kwargs["files"] == {"content": ("a.txt", b"hello", "application/octet-stream")}
    assert kwargs["data"]["classId"] == "cls-att"
    assert json.loads(kwargs["data"]["properties"]) == {"DisplayName": "a.txt", "Size": 5}


@pytest.mark.parametrize(
    ("status", "error"),
    [
        (401, AuthenticationError),
        (403, AuthenticationError),
        (404, ResourceNotFoundError),
        (429, RateLimitError),
        (500, ApiError),
    ],
)
def test_error_statuses_map_to_exceptions(client: ItsmClient, session: MagicMock, status: int, error) -> None:
    session.request.return_value = _response(status=status, body={"message": "nope"})

    with pytest.raises(error, match="nope"):
        client.get_enumerations()


def test_rate_limit_carries_retry_after(client: ItsmClient, session: MagicMock) -> None:
    session.request.return_value = _response(status=429, headers={"Retry-After": "30"})

    with pytest.raises(RateLimitError) as exc_info:
        client.get_enumerations()

    assert exc_info.value.retry_after == 30


def test_transport_errors_become_connection_errors(client: ItsmClient, session: MagicMock) -> None:
    session.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(ClientConnectionError, match="refused"):
        client.get_enumerations()


def test_session_uses_bearer_token_when_configured() -> None:
    client = ItsmClient(target_config={"url": "https://itsm.example.com", "api_token": "tok"})

    assert client.session.headers["Authorization"] == "Bearer tok"
    assert client.session.auth is None


def test_get_related_objects_queries_by_relationship(client: ItsmClient, session: MagicMock) -> None:
    session.request.side_effect = [_response(body={"id": "rel-7"}), _response(body=[{"id": "att-1"}])]

    related = client.get_related_objects("guid-1", target_model.HAS_ATTACHMENT)

    assert related == [{"id": "att-1"}]
    _, url = session.request.call_args.args
    assert url == "https://itsm.example.com/api/v1/objects/guid-1/related"
    assert session.request.call_args.kwargs["params"] == {"relationshipId": "rel-7"}
