import urllib.parse
from logging import getLogger
from pathlib import Path

from asgi_fsdav.constants import DAVPath
from asgi_fsdav.exceptions import DAVExceptionBadRequest

logger = getLogger(__name__)


def parse_url_path(url_path: str) -> DAVPath:
    """percent-decode a URL path and normalize it into a DAVPath"""
    try:
        path = urllib.parse.unquote(url_path, encoding="utf-8", errors="strict")
    except UnicodeDecodeError:
        raise DAVExceptionBadRequest("Bad Request: invalid path encoding")

    if "\x00" in path:
        raise DAVExceptionBadRequest("Bad Request: invalid path")

    return DAVPath(path)


class DAVPathResolver:
    """URL path => absolute storage path, always inside root_path"""

    root_path: Path

    def __init__(self, root_path: str | Path):
        self.root_path = Path(root_path).resolve()

    def is_inside_root(self, fs_path: Path) -> bool:
        """follow symlinks, then check the real path"""
        real_path = fs_path.resolve()
        return real_path == self.root_path or real_path.is_relative_to(self.root_path)

    def get_fs_path(self, path: DAVPath) -> Path:
        fs_path = self.root_path.joinpath(*path.parts)

        # DAVPath can't climb above the root, but a symlink inside the root can
        if not self.is_inside_root(fs_path):
            logger.warning(f"path escape blocked: {path}")
            raise DAVExceptionBadRequest("Bad Request: invalid path")

        return fs_path

    def resolve(self, url_path: str) -> tuple[DAVPath, Path]:
        path = parse_url_path(url_path)
        return path, self.get_fs_path(path)

    def resolve_destination(self, destination: str) -> tuple[DAVPath, Path]:
        """
        https://www.rfc-editor.org/rfc/rfc4918#section-10.3
        Destination = "Destination" ":" Simple-ref

        absolute URL or absolute path, only the path component is used
        """
        if len(destination) == 0:
            raise DAVExceptionBadRequest("Bad Request: Destination header missing")

        try:
            url_path = urllib.parse.urlsplit(destination).path
        except ValueError:
            raise DAVExceptionBadRequest("Bad Request: invalid Destination header")

        return self.resolve(url_path)
