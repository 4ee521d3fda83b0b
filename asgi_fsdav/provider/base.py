import urllib.parse
from logging import getLogger

from asgi_fsdav.config import Config
from asgi_fsdav.constants import (
    DAV_COMPLIANCE_CLASSES,
    DAVDepth,
    DAVMethod,
    DAVPath,
    DAVResponseBodyGenerator,
)
from asgi_fsdav.exceptions import DAVExceptionBadRequest, DAVExceptionForbidden
from asgi_fsdav.helpers import get_xml_from_dict
from asgi_fsdav.lock import create_lock_discovery_data, create_lock_token
from asgi_fsdav.property import DAVProperty, DAVPropertyBasicData
from asgi_fsdav.request import DAVRequest
from asgi_fsdav.response import DAVResponse, DAVResponseText, DAVResponseType

logger = getLogger(__name__)


class DAVProvider:
    """
    do_xxx(): request => DAVResponse, the protocol side
    _do_xxx(): request => http status/data, the storage side, raise DAVException
        or OSError when it fails
    """

    def __init__(self, config: Config):
        self.config = config

    def __repr__(self):
        raise NotImplementedError

    """
    https://tools.ietf.org/html/rfc4918#page-35
    9.1.  PROPFIND Method

    Depth: 0 and 1 only, every request is treated as allprop.
    """

    async def do_propfind(self, request: DAVRequest) -> DAVResponse:
        dav_properties = await self._do_propfind(request)
        if len(dav_properties) == 0:
            return DAVResponseText(404)

        message = self.create_propfind_response(dav_properties)
        return DAVResponse(
            status=207, content=message, response_type=DAVResponseType.XML
        )

    async def _do_propfind(self, request: DAVRequest) -> dict[DAVPath, DAVProperty]:
        # len(dav_properties) == 0 --> 404 Not Found
        raise NotImplementedError

    @staticmethod
    def create_propfind_response(dav_properties: dict[DAVPath, DAVProperty]) -> bytes:
        response = list()
        for dav_property in dav_properties.values():
            response.append(
                {
                    "D:href": urllib.parse.quote(
                        dav_property.href_path.raw, encoding="utf-8"
                    ),
                    "D:propstat": {
                        "D:prop": dav_property.basic_data.as_dict(),
                        "D:status": "HTTP/1.1 200 OK",
                    },
                }
            )

        data = {
            "D:multistatus": {
                "@xmlns:D": "DAV:",
                "D:response": response,
            }
        }
        return get_xml_from_dict(data)

    """
    https://tools.ietf.org/html/rfc4918#page-46
    9.3.1.  MKCOL Status Codes

       201 (Created) - The collection was created.

       405 (Method Not Allowed) - MKCOL can only be executed on an unmapped
       URL.

       409 (Conflict) - A collection cannot be made at the Request-URI until
       one or more intermediate collections have been created.

    Intermediate collections are created here, 409 is only for a parent that
    is a file.
    """

    async def do_mkcol(self, request: DAVRequest) -> DAVResponse:
        http_status = await self._do_mkcol(request)
        return DAVResponse(http_status)

    async def _do_mkcol(self, request: DAVRequest) -> int:
        raise NotImplementedError

    """
    https://tools.ietf.org/html/rfc4918#page-48
    9.4.  GET, HEAD for Collections

    GET on a collection is 405 here, there is no dir browser.
    """

    async def do_get(self, request: DAVRequest) -> DAVResponse:
        property_basic_data, data = await self._do_get(request)
        headers = property_basic_data.get_get_head_response_headers()
        return DAVResponse(
            200,
            headers=headers,
            content=data,
            content_length=property_basic_data.content_length,
        )

    async def _do_get(
        self, request: DAVRequest
    ) -> tuple[DAVPropertyBasicData, DAVResponseBodyGenerator]:
        raise NotImplementedError

    async def do_head(self, request: DAVRequest) -> DAVResponse:
        property_basic_data = await self._do_head(request)
        headers = property_basic_data.get_get_head_response_headers()
        return DAVResponse(
            200,
            headers=headers,
            content_length=property_basic_data.content_length,
        )

    async def _do_head(self, request: DAVRequest) -> DAVPropertyBasicData:
        raise NotImplementedError

    """
    https://tools.ietf.org/html/rfc4918#page-48
    9.6.  DELETE Requirements

       The DELETE method on a collection MUST act as if a "Depth: infinity"
       header was used on it.
    """

    async def do_delete(self, request: DAVRequest) -> DAVResponse:
        if request.src_path.count == 0:
            raise DAVExceptionForbidden("Forbidden: can not delete the root")

        http_status = await self._do_delete(request)
        return DAVResponse(http_status)

    async def _do_delete(self, request: DAVRequest) -> int:
        raise NotImplementedError

    """
    https://tools.ietf.org/html/rfc4918#page-50
    9.7.  PUT Requirements

       A PUT request to an existing collection MAY be treated as an error
       (405 Method Not Allowed).

    Missing parent collections are created.
    """

    async def do_put(self, request: DAVRequest) -> DAVResponse:
        http_status = await self._do_put(request)
        return DAVResponse(http_status)

    async def _do_put(self, request: DAVRequest) -> int:
        raise NotImplementedError

    """
    https://tools.ietf.org/html/rfc4918#page-51
    9.8.5.  COPY Status Codes
    https://tools.ietf.org/html/rfc4918#page-56
    9.9.4.  MOVE Status Codes

       201 (Created) - a new resource was created at the destination.

       204 (No Content) - the destination was already mapped.

       403 (Forbidden) - the source and destination resources are the same.

       412 (Precondition Failed) - the Overwrite header is "F" and the
       destination URL is already mapped to a resource.

    A destination inside the source, or above it, is refused with 403 too:
    overwriting a parent collection would delete the source first.
    """

    @staticmethod
    def _check_destination(request: DAVRequest) -> None:
        if request.dst_path is None or request.dst_fs_path is None:
            raise DAVExceptionBadRequest("Bad Request: Destination header missing")

        if request.dst_path.startswith(request.src_path):
            # same resource, or into its own subtree
            raise DAVExceptionForbidden(
                "Forbidden: destination is inside the source"
            )

        if request.src_path.startswith(request.dst_path):
            # onto one of its own parents
            raise DAVExceptionForbidden(
                "Forbidden: destination is a parent of the source"
            )

    async def do_copy(self, request: DAVRequest) -> DAVResponse:
        self._check_destination(request)

        http_status = await self._do_copy(request)
        return DAVResponse(http_status)

    async def _do_copy(self, request: DAVRequest) -> int:
        raise NotImplementedError

    async def do_move(self, request: DAVRequest) -> DAVResponse:
        self._check_destination(request)

        http_status = await self._do_move(request)
        return DAVResponse(http_status)

    async def _do_move(self, request: DAVRequest) -> int:
        raise NotImplementedError

    """
    https://tools.ietf.org/html/rfc4918#page-61
    9.10.6.  LOCK Responses

       200 (OK) - The LOCK request succeeded and the value of the DAV:
       lockdiscovery property is included in the response body.
    """

    async def do_lock(self, request: DAVRequest) -> DAVResponse:
        token = create_lock_token()
        logger.debug(f"advisory lock token: {request.src_path}, {token}")

        data = create_lock_discovery_data(
            token=token,
            lock_scope=request.lock_scope,
            depth=(
                DAVDepth.d0.value
                if request.depth == DAVDepth.d0
                else DAVDepth.infinity.value
            ),
            timeout=request.timeout,
            owner=request.lock_owner,
        )
        return DAVResponse(
            status=200,
            headers={
                b"Lock-Token": f"<{token}>".encode("utf-8"),
            },
            content=get_xml_from_dict(data),
            response_type=DAVResponseType.XML,
        )

    """
    https://tools.ietf.org/html/rfc4918#page-68
    9.11.1.  UNLOCK Status Codes

       204 (No Content) - Normal success response
    """

    async def do_unlock(self, request: DAVRequest) -> DAVResponse:
        return DAVResponse(204)

    @staticmethod
    async def get_options(_: DAVRequest) -> DAVResponse:
        headers = {
            b"Allow": ", ".join(DAVMethod.names_supported()).encode("utf-8"),
            b"DAV": DAV_COMPLIANCE_CLASSES,
        }
        return DAVResponse(status=200, headers=headers)
