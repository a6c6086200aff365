import json
import pytest
from starlette.requests import Request

from callsignal.core.error_handler import custom_exception_handler, unhandled_exception_handler
from callsignal.core.exceptions import CallNotActiveException, NotificationFailedException


def make_request(path="/acceptCall"):
    return Request({
        "type": "http",
        "method": "POST",
        "scheme": "http",
        "server": ("test", 80),
        "path": path,
        "query_string": b"",
        "headers": [],
    })


@pytest.mark.asyncio
async def test_unhandled_errors_render_as_internal_server_error():
    response = await unhandled_exception_handler(make_request(), RuntimeError("boom"))

    assert response.status_code == 500
    assert json.loads(response.body) == {"error": "Internal server error", "details": "boom"}

@pytest.mark.asyncio
async def test_api_errors_include_details_only_when_present():
    conflict = await custom_exception_handler(make_request(), CallNotActiveException())
    failed = await custom_exception_handler(
        make_request("/sendRingingNotification"), NotificationFailedException(details="FCM unreachable")
    )

    assert conflict.status_code == 409
    assert json.loads(conflict.body) == {"error": "Call no longer active or invalid call ID."}
    assert failed.status_code == 500
    assert json.loads(failed.body) == {"error": "Notification could not be sent", "details": "FCM unreachable"}
