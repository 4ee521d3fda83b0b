import sys
import xml.parsers.expat
from logging import getLogger
from pathlib import Path
from typing import Any

# https://docs.python.org/zh-cn/3/library/mimetypes.html#mimetypes.guess_type
# Deprecated since version 3.13: Passing a file path instead of URL is soft deprecated. Use guess_file_type() for this.
if sys.version_info >= (3, 13):
    from mimetypes import (
        guess_file_type as mimetypes_guess_file_type,  # pragma: no cover
    )

else:
    from mimetypes import guess_type as mimetypes_guess_file_type  # pragma: no cover

import xmltodict
from asgiref.typing import ASGIReceiveCallable, HTTPRequestEvent

logger = getLogger(__name__)


async def receive_all_data_in_one_call(receive: ASGIReceiveCallable) -> bytes:
    data = b""
    more_body = True
    while more_body:
        request_data: HTTPRequestEvent = await receive()  # type: ignore
        data += request_data.get("body", b"")
        more_body = request_data.get("more_body", False)

    return data


def generate_etag(f_size: int, f_modify_time_ns: int) -> str:
    """
    https://tools.ietf.org/html/rfc7232#section-2.3 ETag

    "<modify time in milliseconds>-<size>", a strong validator that changes
    whenever the size or the modify time changes
    """
    return '"{}-{}"'.format(f_modify_time_ns // 1_000_000, f_size)


def guess_type(file: str | Path) -> str:
    """
    https://developer.mozilla.org/zh-CN/docs/Web/HTTP/Basics_of_HTTP/MIME_types
    """
    if isinstance(file, str):
        file = Path(file)

    content_type, _ = mimetypes_guess_file_type(file, strict=False)
    if content_type is None:
        return "application/octet-stream"

    return content_type


def get_xml_from_dict(data: dict[str, Any]) -> bytes:
    return (
        xmltodict.unparse(data, encoding="utf-8", short_empty_elements=True)
        .replace("\n", "")
        .encode("utf-8")
    )


def get_dict_from_xml(data: bytes, propert_type: str) -> dict[str, Any] | None:
    """return None when parse failed, {} when the element is empty"""
    try:
        result = xmltodict.parse(data, process_namespaces=True)

    except (xmltodict.ParsingInterrupted, xml.parsers.expat.ExpatError) as e:
        logger.warning(f"parser XML {propert_type} failed: {e}")
        return None

    try:
        result = result[f"DAV::{propert_type}"]

    except (TypeError, KeyError) as e:
        logger.warning(f"parser XML {propert_type} failed, miss element: {e}")
        return None

    if result is None:
        return dict()

    return result  # type: ignore
