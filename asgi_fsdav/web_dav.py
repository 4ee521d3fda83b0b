from logging import getLogger

from asgi_fsdav.config import Config
from asgi_fsdav.constants import DAVMethod
from asgi_fsdav.provider.file_system import FileSystemProvider
from asgi_fsdav.request import DAVRequest
from asgi_fsdav.response import DAVResponse, DAVResponseMethodNotAllowed

logger = getLogger(__name__)


class WebDAV:
    def __init__(self, config: Config):
        self.provider = FileSystemProvider(config)
        self.resolver = self.provider.resolver
        logger.info(f"Mapping Prefix: / => {self.provider}")

    async def do_options(self, request: DAVRequest) -> DAVResponse:
        return await self.provider.get_options(request)

    async def distribute(self, request: DAVRequest) -> DAVResponse:
        if request.method == DAVMethod.UNKNOWN:
            return DAVResponseMethodNotAllowed(request.scope.get("method", ""))

        # URL/Destination => path in root_path
        request.update_resolved_info(self.resolver)

        # parser body
        await request.parser_body()
        logger.debug(request)

        provider = self.provider

        # call method
        # high freq interface ---
        if request.method == DAVMethod.HEAD:
            response = await provider.do_head(request)

        elif request.method == DAVMethod.GET:
            response = await provider.do_get(request)

        elif request.method == DAVMethod.PROPFIND:
            response = await provider.do_propfind(request)

        elif request.method == DAVMethod.LOCK:
            response = await provider.do_lock(request)

        elif request.method == DAVMethod.UNLOCK:
            response = await provider.do_unlock(request)

        # low freq interface ---
        elif request.method == DAVMethod.MKCOL:
            response = await provider.do_mkcol(request)

        elif request.method == DAVMethod.DELETE:
            response = await provider.do_delete(request)

        elif request.method == DAVMethod.PUT:
            response = await provider.do_put(request)

        elif request.method == DAVMethod.COPY:
            response = await provider.do_copy(request)

        elif request.method == DAVMethod.MOVE:
            response = await provider.do_move(request)

        # other interface ---
        elif request.method == DAVMethod.OPTIONS:
            response = await provider.get_options(request)

        else:  # pragma: no cover
            response = DAVResponseMethodNotAllowed(request.method)

        return response
