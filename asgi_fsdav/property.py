import os
from dataclasses import dataclass, field
from pathlib import Path
from stat import S_ISDIR

from asgi_fsdav.constants import DAVPath, DAVTime
from asgi_fsdav.helpers import generate_etag, guess_type


@dataclass
class DAVPropertyBasicData:
    is_collection: bool

    display_name: str

    creation_date: DAVTime
    last_modified: DAVTime
    last_modified_ns: int

    content_type: str | None = field(default=None)
    content_length: int = field(default=0)

    def __post_init__(self):
        if self.content_type is None:
            if self.is_collection:
                self.content_type = "httpd/unix-directory"
            else:
                self.content_type = "application/octet-stream"

        if self.is_collection:
            self.content_length = 0

    @classmethod
    def from_stat_result(
        cls, href_path: DAVPath, fs_path: Path, stat_result: os.stat_result
    ) -> "DAVPropertyBasicData":
        is_collection = S_ISDIR(stat_result.st_mode)

        # st_birthtime: macOS/BSD, and Windows since py3.12
        creation_time = getattr(stat_result, "st_birthtime", stat_result.st_ctime)

        return cls(
            is_collection=is_collection,
            display_name=href_path.name,
            creation_date=DAVTime(creation_time),
            last_modified=DAVTime(stat_result.st_mtime),
            last_modified_ns=stat_result.st_mtime_ns,
            content_type=None if is_collection else guess_type(fs_path),
            content_length=stat_result.st_size,
        )

    @property
    def etag(self) -> str:
        return generate_etag(self.content_length, self.last_modified_ns)

    def get_get_head_response_headers(self) -> dict[bytes, bytes]:
        return {
            b"ETag": self.etag.encode("utf-8"),
            b"Last-Modified": self.last_modified.http_date().encode("utf-8"),
            b"Content-Type": self.content_type.encode("utf-8"),
            b"Content-Length": str(self.content_length).encode("utf-8"),
        }

    def as_dict(self) -> dict[str, str | int | dict | None]:
        if self.is_collection:
            resource_type = {"D:collection": None}
        else:
            resource_type = None

        return {
            "D:resourcetype": resource_type,
            "D:getcontentlength": self.content_length,
            "D:getlastmodified": self.last_modified.http_date(),
            "D:creationdate": self.creation_date.iso_8601(),
            "D:getetag": self.etag,
        }


@dataclass
class DAVProperty:
    # href_path = request.src_path + child
    #   child maybe is empty
    href_path: DAVPath

    is_collection: bool

    basic_data: DAVPropertyBasicData
