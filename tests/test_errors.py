import json

import pytest
from sqlalchemy.exc import OperationalError

from labmonitor.errors import AppError, NotFoundError, build_error_payload, store_unavailable_handler

pytestmark = pytest.mark.unit


def test_not_found_payload_shape():
    error = NotFoundError("Task", "abc")

    assert isinstance(error, AppError)
    assert error.status_code == 404
    assert error.payload == {
        "error": {
            "code": "NOT_FOUND",
            "message": "Task abc not found",
            "details": {"entity": "Task", "id": "abc"},
        }
    }


def test_payload_omits_missing_details():
    assert build_error_payload("X", "y") == {"error": {"code": "X", "message": "y"}}


@pytest.mark.asyncio
async def test_store_unavailable_handler_returns_503():
    response = await store_unavailable_handler(None, OperationalError("SELECT 1", {}, ConnectionError("refused")))

    assert response.status_code == 503
    assert json.loads(response.body)["error"]["code"] == "STORE_UNAVAILABLE"
