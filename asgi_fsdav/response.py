import pprint
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from logging import getLogger

from asgi_fsdav.constants import (
    DAV_COMPLIANCE_CLASSES,
    RESPONSE_DATA_BLOCK_SIZE,
    DAVMethod,
    DAVResponseBodyGenerator,
)
from asgi_fsdav.exceptions import DAVExceptionHTTP
from asgi_fsdav.request import DAVRequest

logger = getLogger(__name__)


class DAVResponseType(Enum):
    UNDECIDED = 0
    TEXT = 1
    XML = 2


async def get_response_body_generator(
    content: bytes | None = None,
    block_size: int = RESPONSE_DATA_BLOCK_SIZE,
) -> DAVResponseBodyGenerator:
    if content is None:
        # return empty response
        yield b"", False
        return

    start = 0
    more_body = True
    while more_body:
        data = content[start : start + block_size]
        start += len(data)
        more_body = start < len(content)

        yield data, more_body


@dataclass(slots=True)
class DAVResponse:
    """provider.implement => provider.DAVProvider => WebDAV => Server"""

    status: int
    headers: dict[bytes, bytes] = field(default_factory=dict)

    content: bytes | DAVResponseBodyGenerator = b""
    content_body_generator: DAVResponseBodyGenerator = field(init=False)
    content_length: int | None = None

    response_type: DAVResponseType = DAVResponseType.UNDECIDED

    def __post_init__(self) -> None:
        self.status = int(self.status)
        self.headers.update({b"DAV": DAV_COMPLIANCE_CLASSES})

        if self.response_type == DAVResponseType.TEXT:
            self.headers.update(
                {
                    b"Content-Type": b"text/plain; charset=utf-8",
                }
            )
        elif self.response_type == DAVResponseType.XML:
            self.headers.update(
                {
                    b"Content-Type": b"application/xml; charset=utf-8",
                }
            )

        if isinstance(self.content, bytes):
            self.content_body_generator = get_response_body_generator(self.content)

            if self.content_length is None:
                self.content_length = len(self.content)
        else:
            self.content_body_generator = self.content

    async def send_in_one_call(self, request: DAVRequest) -> None:
        logger.debug(self.__repr__())

        if isinstance(self.content_length, int):
            self.headers.update(
                {
                    b"Content-Length": str(self.content_length).encode("utf-8"),
                }
            )

        # send header
        await request.send(
            {
                "type": "http.response.start",
                "status": self.status,
                "headers": list(self.headers.items()),
                "trailers": False,
            }
        )

        # HEAD: headers only
        if request.method == DAVMethod.HEAD:
            await self.content_body_generator.aclose()
            await request.send(
                {
                    "type": "http.response.body",
                    "body": b"",
                    "more_body": False,
                }
            )
            return

        # send data
        async for data, more_body in self.content_body_generator:
            await request.send(
                {
                    "type": "http.response.body",
                    "body": data,
                    "more_body": more_body,
                }
            )

    def __repr__(self) -> str:
        fields = [
            self.status,
            self.content_length,
            (
                "bytes"
                if isinstance(self.content, bytes)
                else "DAVResponseBodyGenerator"
            ),
        ]
        s = "|".join([str(field) for field in fields])

        s += f"\n{pprint.pformat(self.headers)}"
        return s


class DAVResponseText(DAVResponse):
    """short plain-text reason, never contains path or traceback"""

    def __init__(
        self,
        status: int,
        message: str | None = None,
        headers: dict[bytes, bytes] | None = None,
    ):
        if message is None:
            message = HTTPStatus(status).phrase

        super().__init__(
            status=status,
            headers=headers if headers is not None else dict(),
            content=message.encode("utf-8"),
            response_type=DAVResponseType.TEXT,
        )

    @classmethod
    def from_exception(cls, e: DAVExceptionHTTP) -> "DAVResponseText":
        return cls(status=e.status, message=e.message)


class DAVResponseMethodNotAllowed(DAVResponseText):
    def __init__(self, method: DAVMethod | str):
        if isinstance(method, DAVMethod):
            method = method.value

        super().__init__(405, f"Method Not Allowed: {method}")
