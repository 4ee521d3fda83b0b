import pytest

from asgi_fsdav.constants import RESPONSE_DATA_BLOCK_SIZE
from asgi_fsdav.exceptions import DAVExceptionPreconditionFailed
from asgi_fsdav.response import (
    DAVResponse,
    DAVResponseMethodNotAllowed,
    DAVResponseText,
    DAVResponseType,
    get_response_body_generator,
)

from .testkit_asgi import create_dav_request_object, get_response_content


class FakeSend:
    def __init__(self):
        self.messages = list()

    async def __call__(self, message: dict):
        self.messages.append(message)


@pytest.mark.asyncio
async def test_get_response_body_generator():
    content = b"x" * (RESPONSE_DATA_BLOCK_SIZE * 2 + 1)
    chunks = [item async for item in get_response_body_generator(content)]
    assert [len(data) for data, _ in chunks] == [
        RESPONSE_DATA_BLOCK_SIZE,
        RESPONSE_DATA_BLOCK_SIZE,
        1,
    ]
    assert [more_body for _, more_body in chunks] == [True, True, False]

    chunks = [item async for item in get_response_body_generator()]
    assert chunks == [(b"", False)]


def test_response_headers():
    response = DAVResponse(204)
    assert response.headers[b"DAV"] == b"1, 2"
    assert b"Content-Type" not in response.headers
    assert response.content_length == 0

    response = DAVResponse(207, content=b"<a/>", response_type=DAVResponseType.XML)
    assert response.headers[b"Content-Type"] == b"application/xml; charset=utf-8"
    assert response.content_length == 4


@pytest.mark.asyncio
async def test_response_text():
    response = DAVResponseText(404)
    assert response.status == 404
    assert response.headers[b"Content-Type"] == b"text/plain; charset=utf-8"
    assert await get_response_content(response) == b"Not Found"

    response = DAVResponseText.from_exception(DAVExceptionPreconditionFailed())
    assert response.status == 412
    assert await get_response_content(response) == b"Precondition Failed"

    response = DAVResponseMethodNotAllowed("PROPPATCH")
    assert response.status == 405
    assert await get_response_content(response) == b"Method Not Allowed: PROPPATCH"


@pytest.mark.asyncio
async def test_send_in_one_call():
    request = create_dav_request_object("GET", "/")
    request.send = FakeSend()

    response = DAVResponseText(200, "hello")
    await response.send_in_one_call(request)

    start, body = request.send.messages
    assert start["type"] == "http.response.start"
    assert start["status"] == 200
    headers = dict(start["headers"])
    assert headers[b"Content-Length"] == b"5"
    assert headers[b"DAV"] == b"1, 2"
    assert body == {"type": "http.response.body", "body": b"hello", "more_body": False}


@pytest.mark.asyncio
async def test_send_in_one_call_head():
    request = create_dav_request_object("HEAD", "/")
    request.send = FakeSend()

    response = DAVResponse(200, content=b"hello", content_length=5)
    await response.send_in_one_call(request)

    start, body = request.send.messages
    assert dict(start["headers"])[b"Content-Length"] == b"5"
    assert body["body"] == b""
    assert body["more_body"] is False
