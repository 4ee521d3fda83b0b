from logging import getLogger

import click
import uvicorn

from asgi_fsdav import __version__
from asgi_fsdav.constants import DEFAULT_ROOT_PATH, AppEntryParameters
from asgi_fsdav.server import convert_aep_to_uvicorn_kwargs

logger = getLogger(__name__)


def convert_click_kwargs_to_aep(kwargs: dict) -> AppEntryParameters:
    """command line => AppEntryParameters, None means not given"""
    return AppEntryParameters(
        bind_host=kwargs["host"],
        bind_port=kwargs["port"],
        config_file=kwargs["config"],
        admin_user=kwargs["user"],
        root_path=kwargs["root_path"],
        logging_display_datetime=kwargs["logging_display_datetime"],
        logging_use_colors=kwargs["logging_use_colors"],
    )


@click.command("runserver", help="Serve a local directory over WebDAV.")
@click.version_option(__version__, "-V", "--version", message="%(version)s")
@click.option("-H", "--host", default="127.0.0.1", show_default=True)
@click.option(
    "-P", "--port", type=click.IntRange(0, 65535), default=8000, show_default=True
)
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file, .json or .toml",
)
@click.option(
    "-u",
    "--user",
    type=(str, str),
    metavar="USERNAME PASSWORD",
    help="Account with the highest priority.",
)
@click.option(
    "-r",
    "--root-path",
    type=click.Path(file_okay=False),
    help=f"Directory served at '/'.  [default: {DEFAULT_ROOT_PATH}]",
)
@click.option(
    "--logging-display-datetime/--logging-no-display-datetime", default=True
)
@click.option("--logging-use-colors/--logging-no-use-colors", default=True)
def main(**kwargs):
    aep = convert_click_kwargs_to_aep(kwargs)
    uvicorn_kwargs = convert_aep_to_uvicorn_kwargs(aep)
    logger.debug(f"uvicorn's kwargs:{uvicorn_kwargs}")

    uvicorn.run(**uvicorn_kwargs)
