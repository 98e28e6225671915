#!/usr/bin/env python3
"""Tests for chat request validation."""

import uuid

import pytest
from pydantic import ValidationError

from gz_stream.models import ChatErrorResponse, ChatMessage, ChatRequest


def test_minimal_request_defaults():
    request = ChatRequest(messages=[ChatMessage(role="user", content="Hallo")])

    assert request.phase == "module"
    assert request.include_coaching is True
    assert request.to_payload() == {
        "messages": [{"role": "user", "content": "Hallo"}],
        "phase": "module",
        "includeCoaching": True,
    }


def test_wire_names_are_accepted():
    workshop_id = uuid.uuid4()
    request = ChatRequest.model_validate({
        "messages": [{"role": "user", "content": "Weiter", "timestamp": 1700000000000}],
        "workshopId": str(workshop_id),
        "currentModule": "gz-geschaeftsmodell",
        "phase": "validation",
        "includeCoaching": False,
        "previousPhaseData": {"zielgruppe": "Studierende"},
    })

    assert request.workshop_id == workshop_id
    assert request.current_module == "gz-geschaeftsmodell"
    payload = request.to_payload()
    assert payload["workshopId"] == str(workshop_id)
    assert payload["includeCoaching"] is False
    assert payload["previousPhaseData"] == {"zielgruppe": "Studierende"}
    assert payload["messages"][0]["timestamp"] == 1700000000000


@pytest.mark.parametrize("body", [
    {"messages": []},
    {"messages": [{"role": "user", "content": ""}]},
    {"messages": [{"role": "system", "content": "Du bist Greta"}]},
    {"messages": [{"role": "user", "content": "x"}], "phase": "export"},
    {"messages": [{"role": "user", "content": "x"}], "workshopId": "not-a-uuid"},
])
def test_invalid_requests(body):
    with pytest.raises(ValidationError):
        ChatRequest.model_validate(body)


def test_error_response_defaults_and_extras():
    body = ChatErrorResponse.model_validate({
        "error": "Rate limit exceeded",
        "retryAfter": 12,
        "limit": 10,
    })

    assert body.retry_after == 12
    assert body.model_dump(by_alias=True, exclude_none=True)["limit"] == 10
    assert ChatErrorResponse().error == "Request failed"
