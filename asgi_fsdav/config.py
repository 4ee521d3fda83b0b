import json
import sys
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dataclass_wizard import EnvWizard, JSONWizard

from asgi_fsdav.constants import (
    DEFAULT_PASSWORD,
    DEFAULT_REALM,
    DEFAULT_ROOT_PATH,
    DEFAULT_USERNAME,
    AppEntryParameters,
    DAVMethod,
    LoggingLevel,
)
from asgi_fsdav.exceptions import DAVExceptionConfig, DAVExceptionConfigFileNotFound

logger = getLogger(__name__)


class EnvConfig(EnvWizard):
    class _(EnvWizard.Meta):
        env_prefix = "WEBDAV_"

    username: str | None = None
    password: str | None = None

    root_path: str | None = None
    logging_level: str | None = None


@dataclass
class User:
    username: str
    password: str


@dataclass
class HTTPBasicAuth:
    realm: str = DEFAULT_REALM


@dataclass
class CORS:
    enable: bool = True
    allow_origins: list[str] = field(default_factory=lambda: ["*"])
    allow_methods: list[str] = field(
        default_factory=lambda: list(DAVMethod.names_supported())
    )
    allow_headers: list[str] = field(
        default_factory=lambda: [
            "Content-Type",
            "Authorization",
            "Depth",
            "Destination",
            "Overwrite",
            "If",
            "Lock-Token",
            "Timeout",
        ]
    )
    expose_headers: list[str] = field(
        default_factory=lambda: ["DAV", "ETag", "Lock-Token", "Content-Length"]
    )
    preflight_max_age: int = 600


@dataclass
class Logging:
    level: LoggingLevel = LoggingLevel.INFO
    display_datetime: bool = True
    use_colors: bool = True


@dataclass
class Config(JSONWizard):
    # auth
    account_mapping: list[User] = field(default_factory=list)
    http_basic_auth: HTTPBasicAuth = field(default_factory=HTTPBasicAuth)

    # storage
    root_path: str | None = None

    # response
    cors: CORS = field(default_factory=CORS)

    # other
    logging: Logging = field(default_factory=Logging)

    def _update_from_env_config(self):
        env_config = EnvConfig()

        # account_mapping
        if env_config.username is not None and env_config.password is not None:
            self.account_mapping.insert(
                0,
                User(username=env_config.username, password=env_config.password),
            )
            logger.info(f"Add user from ENV: {self.account_mapping[0].username}")

        # storage
        if env_config.root_path is not None:
            self.root_path = env_config.root_path
            logger.info(f"Set root path from ENV to {self.root_path}")

        # other
        if env_config.logging_level is not None:
            try:
                self.logging.level = LoggingLevel(env_config.logging_level.upper())
                logger.info(f"Set logging level from ENV to {self.logging.level}")
            except ValueError:
                logger.error(f"Invalid logging level: {env_config.logging_level}")

    def _update_from_app_args(self, aep: AppEntryParameters):
        # account_mapping
        if aep.admin_user is not None:
            self.account_mapping.insert(
                0,
                User(username=aep.admin_user[0], password=aep.admin_user[1]),
            )
            logger.info(f"Add user from CLI: {self.account_mapping[0].username}")

        # storage
        if aep.root_path is not None:
            self.root_path = aep.root_path

    def _fix_config(self):
        # account_mapping
        if len(self.account_mapping) == 0:
            self.account_mapping.append(
                User(username=DEFAULT_USERNAME, password=DEFAULT_PASSWORD)
            )
            logger.warning(f"Add default user: {DEFAULT_USERNAME}/{DEFAULT_PASSWORD}")

        # storage
        if self.root_path is None:
            self.root_path = DEFAULT_ROOT_PATH
            logger.warning(f"Use default root path: {DEFAULT_ROOT_PATH}")

    def update_from_app_args_and_env_and_default_value(self, aep: AppEntryParameters):
        """
        CLI Args > Environment Variable > Configuration File > Default Value
        """
        self._update_from_env_config()
        self._update_from_app_args(aep)
        self._fix_config()


_config: Config = Config()


def get_config() -> Config:
    return _config


def reinit_config_from_dict(data: dict) -> Config:
    global _config

    logger.debug("Load config value from python object(dict)")
    _config = Config.from_dict(data)

    return _config


def reinit_config_from_file(file_name: str) -> Config:
    file = Path(file_name)
    match file.suffix:
        case ".json":
            load_func = json.load
        case ".toml":
            load_func = tomllib.load
        case _:
            raise DAVExceptionConfig(f"Unsupported config file type: {file.suffix}")

    try:
        with open(file, "rb") as f:
            data = load_func(f)

    except FileNotFoundError:
        raise DAVExceptionConfigFileNotFound(f"Can not open config file[{file}]!")

    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise DAVExceptionConfig(f"Load config from file[{file}] failed! {e}")

    return reinit_config_from_dict(data)
