import urllib.parse
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path

from asgiref.typing import ASGIReceiveCallable, ASGISendCallable, HTTPScope

from asgi_fsdav.constants import (
    DEFAULT_LOCK_TIMEOUT,
    DAVDepth,
    DAVHeaders,
    DAVLockScope,
    DAVMethod,
    DAVPath,
    DAVUser,
)
from asgi_fsdav.exceptions import DAVExceptionBadRequest
from asgi_fsdav.helpers import get_dict_from_xml, receive_all_data_in_one_call
from asgi_fsdav.resolver import DAVPathResolver

logger = getLogger(__name__)

# percent-encode only what is outside the URL charset, raw UTF-8 bytes included
_URL_SAFE_CHARS = ":/?#[]@!$&'()*+,;=%~"


@dataclass(slots=True)
class DAVRequest:
    """Information from Request
    Server => WebDAV => DAVProvider => provider.implement
    """

    # init data
    scope: HTTPScope
    receive: ASGIReceiveCallable
    send: ASGISendCallable

    # client info
    client_ip_address: str = field(init=False)
    client_user_agent: str = field(init=False)

    # header's info ---
    method: DAVMethod = field(init=False)
    headers: DAVHeaders = field(init=False)
    url_path: str = field(init=False)  # percent-encoded
    destination: str | None = None
    depth: DAVDepth = DAVDepth.d1
    overwrite: bool = True
    timeout: str = DEFAULT_LOCK_TIMEOUT

    # resolved info - update in update_resolved_info()
    src_path: DAVPath = field(init=False)
    src_fs_path: Path = field(init=False)
    dst_path: DAVPath | None = None
    dst_fs_path: Path | None = None

    # lock info --- (body)
    lock_scope: DAVLockScope = DAVLockScope.exclusive
    lock_owner: str | None = None

    # session info - update in DAVAuth.pick_out_user()
    user: DAVUser | None = None
    authorization_method: str = ""

    def __post_init__(self) -> None:
        self.method = DAVMethod(self.scope.get("method", "UNKNOWN"))
        self.headers = DAVHeaders(self.scope.get("headers", []))
        user_agent = self.headers.get(b"user-agent")
        if user_agent is None:
            self.client_user_agent = ""
        else:
            self.client_user_agent = user_agent.decode("utf-8", errors="replace")

        self._parser_client_ip_address()

        # path, keep it percent-encoded, decode it in DAVPathResolver
        raw_path = self.scope.get("raw_path")
        if raw_path:
            self.url_path = urllib.parse.quote(
                raw_path.split(b"?", maxsplit=1)[0], safe=_URL_SAFE_CHARS
            )
        else:
            self.url_path = urllib.parse.quote(self.scope.get("path", "/"))

        destination = self.headers.get(b"destination")
        if destination is not None:
            self.destination = urllib.parse.quote(destination, safe=_URL_SAFE_CHARS)

        # depth
        """
        https://www.rfc-editor.org/rfc/rfc4918#section-10.2
        10.2.  Depth Header

            Depth = "Depth" ":" ("0" | "1" | "infinity")

        only 0 and 1 are supported, missing/other value => 1
        """
        depth = self.headers.get(b"depth")
        if depth is not None and depth.strip() == b"0":
            self.depth = DAVDepth.d0
        elif depth is not None and depth.strip().lower() == b"infinity":
            # only keep it for LOCK's response, PROPFIND treat it as 1
            self.depth = DAVDepth.infinity

        # overwrite
        """
        https://tools.ietf.org/html/rfc4918#page-77
        10.6.  Overwrite Header
              Overwrite = "Overwrite" ":" ("T" | "F")
        """
        overwrite = self.headers.get(b"overwrite")
        if overwrite is not None:
            self.overwrite = overwrite.strip().upper() == b"T"

        # timeout
        """
        https://tools.ietf.org/html/rfc4918#page-78
        10.7.  Timeout Request Header

              TimeOut = "Timeout" ":" 1#TimeType
              TimeType = ("Second-" DAVTimeOutVal | "Infinite")

        the lock is advisory, echo the first TimeType back to client
        """
        timeout = self.headers.get(b"timeout")
        if timeout:
            self.timeout = timeout.decode("latin-1").split(",")[0].strip()

        return

    def _parser_client_ip_address(self) -> None:
        ip_address = self.headers.get(b"x-real-ip")
        if ip_address is not None:
            self.client_ip_address = ip_address.decode("utf-8", errors="replace")
            return

        ip_address = self.headers.get(b"x-forwarded-for")
        if ip_address is not None:
            ip_address = ip_address.decode("utf-8", errors="replace")
            self.client_ip_address = ip_address.split(",")[0]
            return

        ip_address_client = self.scope.get("client")
        if ip_address_client is None:
            self.client_ip_address = ""
        else:
            self.client_ip_address = ip_address_client[0]

        return

    @property
    def path(self) -> DAVPath | str:
        try:
            return self.src_path
        except AttributeError:
            return self.url_path

    def update_resolved_info(self, resolver: DAVPathResolver) -> None:
        self.src_path, self.src_fs_path = resolver.resolve(self.url_path)
        if self.destination is not None:
            self.dst_path, self.dst_fs_path = resolver.resolve_destination(
                self.destination
            )

    async def _parser_body_lock(self) -> None:
        body = await receive_all_data_in_one_call(self.receive)
        if len(body) == 0:
            # LOCK accept empty body, it's a refresh
            return

        data = get_dict_from_xml(body, "lockinfo")
        if data is None:
            raise DAVExceptionBadRequest("Bad Request: invalid lockinfo")

        lock_scope = data.get("DAV::lockscope")
        if isinstance(lock_scope, dict) and "DAV::shared" in lock_scope:
            self.lock_scope = DAVLockScope.shared

        lock_owner = data.get("DAV::owner")
        if isinstance(lock_owner, dict):
            # <D:owner><D:href>...</D:href></D:owner>
            lock_owner = lock_owner.get("DAV::href")
        if lock_owner is not None:
            self.lock_owner = str(lock_owner)

        return

    async def parser_body(self) -> None:
        match self.method:
            case DAVMethod.LOCK:
                await self._parser_body_lock()

            case _:
                pass

        return

    def __repr__(self) -> str:
        simple_fields = ["method", "path"]

        if self.method == DAVMethod.PROPFIND:
            simple_fields += ["depth"]

        elif self.method in (DAVMethod.COPY, DAVMethod.MOVE):
            simple_fields += ["destination", "overwrite"]

        elif self.method == DAVMethod.LOCK:
            simple_fields += ["depth", "timeout", "lock_scope", "lock_owner"]

        simple = "|".join([str(getattr(self, name)) for name in simple_fields])
        return f"{self.user}|{simple}"
