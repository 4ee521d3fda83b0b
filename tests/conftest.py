from pathlib import Path

import pytest

from asgi_fsdav.config import Config
from asgi_fsdav.server import Server

from .testkit_asgi import PASSWORD, USERNAME


@pytest.fixture
def root_path(tmp_path: Path) -> Path:
    path = tmp_path.joinpath("webdav-root")
    path.mkdir()
    return path


@pytest.fixture
def config(root_path: Path) -> Config:
    return Config.from_dict(
        {
            "account_mapping": [
                {"username": USERNAME, "password": PASSWORD},
            ],
            "root_path": root_path.as_posix(),
        }
    )


@pytest.fixture
def server(config: Config) -> Server:
    return Server(config)
