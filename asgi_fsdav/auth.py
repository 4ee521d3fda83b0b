import binascii
import hmac
from base64 import b64decode
from collections.abc import Iterable
from logging import getLogger
from types import MappingProxyType

from asgi_fsdav.config import Config
from asgi_fsdav.constants import DAVUser
from asgi_fsdav.exceptions import DAVExceptionAuthFailed
from asgi_fsdav.request import DAVRequest
from asgi_fsdav.response import DAVResponseText

logger = getLogger(__name__)

"""
Ref:
- https://en.wikipedia.org/wiki/Basic_access_authentication
- https://datatracker.ietf.org/doc/html/rfc7617
    - The 'Basic' HTTP Authentication Scheme
- https://developer.mozilla.org/zh-CN/docs/Web/HTTP/Authentication
"""


class DAVCredentialStore:
    """read-only username => DAVUser lookup"""

    def get_user(self, username: str) -> DAVUser | None:  # pragma: no cover
        raise NotImplementedError


class DAVStaticCredentialStore(DAVCredentialStore):
    def __init__(self, users: Iterable[DAVUser]):
        data = dict()
        for user in users:
            if user.username in data:
                # CLI/ENV users are inserted at the head, they win
                continue

            data[user.username] = user
            logger.info(f"Register User: {user}")

        self._users = MappingProxyType(data)

    @classmethod
    def from_config(cls, config: Config) -> "DAVStaticCredentialStore":
        return cls(
            [
                DAVUser(username=account.username, password=account.password)
                for account in config.account_mapping
            ]
        )

    def get_user(self, username: str) -> DAVUser | None:
        return self._users.get(username)


class HTTPBasicAuth:
    realm: str

    def __init__(self, realm: str):
        self.realm = realm

    @staticmethod
    def is_credential(auth_header_type: bytes) -> bool:
        return auth_header_type.lower() == b"basic"

    def make_auth_challenge_string(self) -> bytes:
        return f'Basic realm="{self.realm}"'.encode("utf-8")

    @staticmethod
    def parser_auth_header_data(auth_header_data: bytes) -> tuple[str, str]:
        try:
            data = b64decode(auth_header_data.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            raise DAVExceptionAuthFailed("wrong header: authorization")

        index = data.find(":")
        if index == -1:
            raise DAVExceptionAuthFailed("wrong header: authorization")

        return data[:index], data[index + 1 :]

    @staticmethod
    def check_password(user: DAVUser, password: str) -> bool:
        if hmac.compare_digest(
            user.password.encode("utf-8"), password.encode("utf-8")
        ):
            return True

        logger.debug(f"Password verification failed, username:{user.username}")
        return False


class DAVAuth:
    def __init__(
        self, config: Config, credential_store: DAVCredentialStore | None = None
    ):
        if credential_store is None:
            credential_store = DAVStaticCredentialStore.from_config(config)

        self.credential_store = credential_store
        self.http_basic_auth = HTTPBasicAuth(realm=config.http_basic_auth.realm)

    def pick_out_user(self, request: DAVRequest) -> tuple[DAVUser | None, str]:
        authorization_header = request.headers.get(b"authorization")
        if authorization_header is None:
            return None, "miss header: authorization"

        index = authorization_header.find(b" ")
        if index == -1:
            return None, "wrong header: authorization"

        auth_header_type = authorization_header[:index]
        auth_header_data = authorization_header[index + 1 :]

        if not self.http_basic_auth.is_credential(auth_header_type):
            return None, "Unknown authentication method"

        request.authorization_method = "Basic"
        try:
            (
                username,
                request_password,
            ) = self.http_basic_auth.parser_auth_header_data(auth_header_data)
        except DAVExceptionAuthFailed as e:
            return None, e.message

        user = self.credential_store.get_user(username)
        if user is None:
            return None, "no permission"

        if not self.http_basic_auth.check_password(user, request_password):
            return None, "no permission"

        return user, ""

    def create_response_401(self, request: DAVRequest, message: str) -> DAVResponseText:
        logger.debug(f"response Basic auth challenge, {request.method}: {message}")
        return DAVResponseText(
            status=401,
            message=f"Unauthorized. {message}",
            headers={
                b"WWW-Authenticate": self.http_basic_auth.make_auth_challenge_string()
            },
        )
