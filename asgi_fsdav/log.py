import logging
import sys
from copy import copy

import click

ACCESS_LOGGER_NAME = "asgi_fsdav.access"

_LEVEL_COLORS = {
    logging.DEBUG: "cyan",
    logging.INFO: "green",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
}


def get_status_color(status: int) -> str:
    if status >= 500:
        return "red"
    if status >= 400:
        return "yellow"
    if status >= 200:
        return "cyan"

    return "bright_red"


class DAVFormatter(logging.Formatter):
    """coloured levelname, only when stderr is a terminal"""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        use_colors: bool = True,
    ):
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self.use_colors = use_colors and sys.stderr.isatty()

    def formatMessage(self, record: logging.LogRecord) -> str:
        if self.use_colors:
            record = copy(record)
            record.levelname = click.style(
                record.levelname, fg=_LEVEL_COLORS.get(record.levelno, "bright_red")
            )

        return super().formatMessage(record)


class DAVAccessFormatter(DAVFormatter):
    """
    An access record carries its fields in args:
        (client_addr, method, path, status_code, auth_method, user_agent)
    they are exposed to the format string by name.
    """

    def formatMessage(self, record: logging.LogRecord) -> str:
        client_addr, method, path, status_code, auth_method, user_agent = record.args

        status = str(status_code)
        if self.use_colors:
            status = click.style(status, fg=get_status_color(status_code))

        record = copy(record)
        record.__dict__.update(
            {
                "client_addr": client_addr or "-",
                "request_line": f"{method} {path}",
                "status_code": status,
                "auth_method": auth_method or "-",
                "user_agent": user_agent,
            }
        )
        return super().formatMessage(record)


def get_dav_logging_config(
    level: str = "INFO", display_datetime: bool = True, use_colors: bool = True
) -> dict:
    prefix = "%(asctime)s " if display_datetime else ""
    default_format = prefix + "%(levelname)s: [%(name)s] %(message)s"
    access_format = (
        prefix + "%(levelname)s: %(client_addr)s "
        '"%(request_line)s" %(status_code)s %(auth_method)s - %(user_agent)s'
    )

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": DAVFormatter,
                "fmt": default_format,
                "use_colors": use_colors,
            },
            "access": {
                "()": DAVAccessFormatter,
                "fmt": access_format,
                "use_colors": use_colors,
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
            },
            "access": {
                "formatter": "access",
                "class": "logging.StreamHandler",
            },
        },
        "loggers": {
            "asgi_fsdav": {
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
            ACCESS_LOGGER_NAME: {
                "handlers": ["access"],
                "level": level,
                "propagate": False,
            },
            "uvicorn": {"handlers": ["default"], "level": level},
            "uvicorn.error": {"level": level},
        },
    }
