import logging.config
import sys
from logging import getLogger

from asgiref.typing import (
    ASGI3Application,
    ASGIReceiveCallable,
    ASGISendCallable,
    HTTPScope,
    Scope,
)

from asgi_fsdav import __version__
from asgi_fsdav.auth import DAVAuth, DAVCredentialStore
from asgi_fsdav.config import (
    Config,
    get_config,
    reinit_config_from_dict,
    reinit_config_from_file,
)
from asgi_fsdav.constants import AppEntryParameters, DAVMethod
from asgi_fsdav.exceptions import (
    DAVExceptionConfig,
    DAVExceptionHTTP,
    DAVExceptionInternal,
    DAVExceptionProviderInitFailed,
    convert_os_error_to_dav_exception,
)
from asgi_fsdav.log import ACCESS_LOGGER_NAME, get_dav_logging_config
from asgi_fsdav.middleware.cors import ASGIMiddlewareCORS
from asgi_fsdav.request import DAVRequest
from asgi_fsdav.response import DAVResponse, DAVResponseText
from asgi_fsdav.web_dav import WebDAV

logger = getLogger(__name__)
access_logger = getLogger(ACCESS_LOGGER_NAME)


_service_abnormal_exit_message = "ASGI FS-DAV Server has stopped working!"


class Server:
    def __init__(
        self, config: Config, credential_store: DAVCredentialStore | None = None
    ):
        logger.info(f"ASGI FS-DAV Server(v{__version__}) starting...")
        self.dav_auth = DAVAuth(config, credential_store=credential_store)
        try:
            self.web_dav = WebDAV(config)

        except DAVExceptionProviderInitFailed as e:
            logger.critical(e)
            logger.info(_service_abnormal_exit_message)
            sys.exit(1)

    async def __call__(
        self, scope: Scope, receive: ASGIReceiveCallable, send: ASGISendCallable
    ) -> None:
        if scope["type"] != "http":  # pragma: no cover
            logger.warning(f"Unsupported ASGI scope type: {scope['type']}")
            return

        request, response = await self.handle(scope, receive, send)

        access_logger.info(
            '%s - "%s %s" %s %s - %s',
            request.client_ip_address,
            request.method.value,
            request.path,
            response.status,
            request.authorization_method,  # Basic
            request.client_user_agent,
        )
        logger.debug(request.headers)
        await response.send_in_one_call(request)

    async def handle(
        self, scope: HTTPScope, receive: ASGIReceiveCallable, send: ASGISendCallable
    ) -> tuple[DAVRequest, DAVResponse]:
        request = DAVRequest(scope, receive, send)

        # capability discovery, no credential required
        if request.method == DAVMethod.OPTIONS:
            return request, await self.web_dav.do_options(request)

        # check user auth
        request.user, message = self.dav_auth.pick_out_user(request)
        if request.user is None:
            logger.debug(request)
            return request, self.dav_auth.create_response_401(request, message)

        # process WebDAV request
        try:
            response = await self.web_dav.distribute(request)

        except DAVExceptionHTTP as e:
            logger.debug(f"{request}: {e.status} {e.message}")
            response = DAVResponseText.from_exception(e)

        except OSError as e:
            dav_exception = convert_os_error_to_dav_exception(e)
            if isinstance(dav_exception, DAVExceptionInternal):
                logger.exception(f"{request}: {e}")
            else:
                logger.debug(f"{request}: {e}")

            response = DAVResponseText.from_exception(dav_exception)

        except Exception as e:
            logger.exception(f"{request}: {e}")
            response = DAVResponseText.from_exception(DAVExceptionInternal())

        logger.debug(response)
        return request, response


def get_asgi_app(
    aep: AppEntryParameters,
    config_obj: dict | None = None,
    credential_store: DAVCredentialStore | None = None,
) -> ASGI3Application:
    """create ASGI app"""
    logging.config.dictConfig(get_dav_logging_config())

    # init config
    try:
        if aep.config_file is not None:
            reinit_config_from_file(aep.config_file)
        if config_obj is not None:
            reinit_config_from_dict(config_obj)

    except DAVExceptionConfig as e:
        logger.critical(e)
        logger.info(_service_abnormal_exit_message)
        sys.exit(1)

    config = get_config()
    config.update_from_app_args_and_env_and_default_value(aep=aep)

    logging.config.dictConfig(
        get_dav_logging_config(
            level=config.logging.level.value,
            display_datetime=(
                config.logging.display_datetime and aep.logging_display_datetime
            ),
            use_colors=config.logging.use_colors and aep.logging_use_colors,
        )
    )
    logger.debug(config.to_dict())

    # create ASGI app
    app = Server(config, credential_store=credential_store)

    # CORS
    if config.cors.enable:
        app = ASGIMiddlewareCORS(
            app=app,
            allow_origins=config.cors.allow_origins,
            allow_methods=config.cors.allow_methods,
            allow_headers=config.cors.allow_headers,
            expose_headers=config.cors.expose_headers,
            preflight_max_age=config.cors.preflight_max_age,
        )

    logger.info(
        "ASGI FS-DAV Server running on http://{}:{} (Press CTRL+C to quit)".format(
            aep.bind_host if aep.bind_host is not None else "?",
            aep.bind_port if aep.bind_port is not None else "?",
        )
    )
    return app


def convert_aep_to_uvicorn_kwargs(aep: AppEntryParameters) -> dict:
    return {
        "app": get_asgi_app(aep=aep),
        "host": aep.bind_host,
        "port": aep.bind_port,
        "use_colors": aep.logging_use_colors,
        "lifespan": "off",
        "log_level": "warning",
        "access_log": False,
        "forwarded_allow_ips": "*",
    }
