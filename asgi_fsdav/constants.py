from collections.abc import AsyncGenerator, Iterable
from dataclasses import dataclass
from enum import Enum, auto
from functools import cache
from time import time
from typing import Any, TypeAlias

import arrow

# Common ---

ASGIHeaders: TypeAlias = Iterable[tuple[bytes, bytes]]


class DAVUpperEnumAbc(Enum):
    """自动大写化枚举类
    .name 可以是:大写/小写/大小写混合
    .value 为 .name 的自动大写化的字符串

    默认值为空,需要继承实现;默认不会自动匹配默认值
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._value_ = self._name_.upper()

    @classmethod
    def _missing_(cls, value: Any) -> "DAVUpperEnumAbc":
        if not isinstance(value, str):
            raise ValueError(f"Invalid {cls.__name__} value: {value}")

        try:
            return cls[value.upper()]
        except KeyError:
            return cls[cls.default_value(value).upper()]

    @classmethod
    def default_value(cls, value: Any) -> str:
        raise ValueError(f"Invalid {cls.__name__} value: {value}")

    @classmethod
    @cache
    def names(cls) -> list[str]:
        return [item.name for item in cls]


# WebDAV protocol ---
class DAVMethod(DAVUpperEnumAbc):
    # default/fallback
    UNKNOWN = auto()

    # the order of Allow header
    OPTIONS = auto()
    # rfc4918:9.4
    GET = auto()
    HEAD = auto()
    # rfc4918:9.7
    PUT = auto()
    # rfc4918:9.6
    DELETE = auto()
    # rfc4918:9.1
    PROPFIND = auto()
    # rfc4918:9.3
    MKCOL = auto()
    # rfc4918:9.8
    COPY = auto()
    # rfc4918:9.9
    MOVE = auto()
    # rfc4918:9.10
    LOCK = auto()
    # rfc4918:9.11
    UNLOCK = auto()

    @classmethod
    def default_value(cls, value: Any) -> str:
        return "UNKNOWN"

    @classmethod
    @cache
    def names_supported(cls) -> list[str]:
        return [s for s in cls.names() if s != "UNKNOWN"]


# https://www.rfc-editor.org/rfc/rfc4918#section-18
DAV_COMPLIANCE_CLASSES = b"1, 2"


class DAVHeaders:
    data: dict[bytes, bytes]

    def __init__(self, data: ASGIHeaders | None = None):
        if data is None:
            self.data = dict()
            return

        self.data = dict(data)

    def get(self, key: bytes) -> bytes | None:
        return self.data.get(key)

    def __getitem__(self, key: bytes) -> bytes | None:
        return self.data.get(key)

    def __setitem__(self, key: bytes, value: bytes) -> None:
        self.data[key] = value

    def __contains__(self, item: bytes) -> bool:
        return item in self.data

    def update(self, new_data: dict[bytes, bytes]) -> None:
        self.data.update(new_data)

    def list(self) -> list[tuple[bytes, bytes]]:
        return list(self.data.items())

    def __repr__(self) -> str:  # pragma: no cover
        return self.data.__repr__()


class DAVPath:
    """Decoded, normalized URL path

    `raw` always starts with '/' and never ends with '/' (except the root).
    A '..' part removes the previous part; at the top level it is dropped, so
    a DAVPath can never point above its root.
    """

    raw: str

    parts: list[str]
    count: int  # len(parts)

    def _update_value(self, parts: list[str], count: int) -> None:
        self.raw = "/" + "/".join(parts)
        self.parts = parts
        self.count = count

    def __init__(
        self,
        path: str | bytes | None = None,
        parts: list[str] | None = None,
        count: int | None = None,
    ):
        if path is None and parts is not None and count is not None:
            self._update_value(parts=parts, count=count)
            return

        elif not isinstance(path, (str, bytes)):
            raise TypeError(f"Except path for DAVPath:{path}")

        if isinstance(path, bytes):
            path = str(path, encoding="utf-8")

        parts = list()
        for item in path.replace("\\", "/").split("/"):
            if len(item) == 0 or item == ".":
                continue

            if item == "..":
                if len(parts) > 0:
                    parts.pop()
                continue

            parts.append(item)

        self._update_value(parts=parts, count=len(parts))

    @property
    def parent(self) -> "DAVPath":
        if self.count == 0:
            return self

        return DAVPath(parts=self.parts[: self.count - 1], count=self.count - 1)

    @property
    def name(self) -> str:
        if self.count == 0:
            return "/"

        return self.parts[self.count - 1]

    def startswith(self, path: "DAVPath") -> bool:
        return self.parts[: path.count] == path.parts

    def add_child(self, child: "DAVPath | str") -> "DAVPath":
        if not isinstance(child, DAVPath):
            child = DAVPath(child)

        return DAVPath(
            parts=self.parts + child.parts,
            count=self.count + child.count,
        )

    def __hash__(self) -> int:
        return hash(self.raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DAVPath):
            return False

        return self.raw == other.raw

    def __lt__(self, other: "DAVPath") -> bool:
        return self.raw < other.raw

    def __repr__(self) -> str:
        return f"DAVPath('{self.raw}')"

    def __str__(self) -> str:
        return self.raw


class DAVDepth(Enum):
    d0 = "0"
    d1 = "1"
    infinity = "infinity"


class DAVTime:
    timestamp: float

    def __init__(self, timestamp: float | None = None):
        if timestamp is None:
            timestamp = time()

        self.timestamp = timestamp
        self.arrow = arrow.get(timestamp)

    def iso_8601(self) -> str:
        # https://www.rfc-editor.org/rfc/rfc4918#section-15.1
        # creationdate: date-time production of RFC3339
        return self.arrow.format("YYYY-MM-DDTHH:mm:ss[Z]")

    def http_date(self) -> str:
        # https://datatracker.ietf.org/doc/html/rfc7232#section-2.2
        # Last-Modified = HTTP-date
        #
        # Last-Modified: Tue, 15 Nov 1994 12:45:26 GMT
        return self.arrow.format("ddd, DD MMM YYYY HH:mm:ss [GMT]")

    def __repr__(self) -> str:
        return self.arrow.isoformat()


# Lock ---
class DAVLockScope(Enum):
    """
    https://tools.ietf.org/html/rfc4918
    14.13.  lockscope XML Element

         <!ELEMENT lockscope (exclusive | shared) >
    """

    exclusive = "exclusive"
    shared = "shared"


DEFAULT_LOCK_TIMEOUT = "Second-604800"

# Response ---
RESPONSE_DATA_BLOCK_SIZE = 64 * 1024


# (body<bytes>, more_body<bool>)
DAVResponseBodyGenerator: TypeAlias = AsyncGenerator[tuple[bytes, bool], None]


# Authentication ---

DEFAULT_USERNAME = "username"
DEFAULT_PASSWORD = "password"
DEFAULT_REALM = "ASGI-FSDAV"


@dataclass(slots=True)
class DAVUser:
    username: str
    password: str

    def __str__(self) -> str:
        return self.username


# Storage ---

DEFAULT_ROOT_PATH = "./webdav-root"


# Development ---


class LoggingLevel(Enum):
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


@dataclass(slots=True)
class AppEntryParameters:
    bind_host: str | None = None
    bind_port: int | None = None

    config_file: str | None = None
    admin_user: tuple[str, str] | None = None
    root_path: str | None = None

    logging_display_datetime: bool = True
    logging_use_colors: bool = True
