import os

from asgi_fsdav.constants import DAVPath
from asgi_fsdav.property import DAVPropertyBasicData


def test_basic_data_from_file(tmp_path):
    fs_path = tmp_path.joinpath("b.txt")
    fs_path.write_bytes(b"hi")
    os.utime(fs_path, ns=(1_700_000_000_000_000_000, 1_700_000_000_123_000_000))

    basic_data = DAVPropertyBasicData.from_stat_result(
        DAVPath("/a/b.txt"), fs_path, os.stat(fs_path)
    )
    assert not basic_data.is_collection
    assert basic_data.display_name == "b.txt"
    assert basic_data.content_type == "text/plain"
    assert basic_data.content_length == 2
    assert basic_data.etag == '"1700000000123-2"'

    data = basic_data.as_dict()
    assert data["D:resourcetype"] is None
    assert data["D:getcontentlength"] == 2
    assert data["D:getlastmodified"] == "Tue, 14 Nov 2023 22:13:20 GMT"
    assert data["D:getetag"] == '"1700000000123-2"'
    assert data["D:creationdate"].endswith("Z")

    headers = basic_data.get_get_head_response_headers()
    assert headers[b"ETag"] == b'"1700000000123-2"'
    assert headers[b"Last-Modified"] == b"Tue, 14 Nov 2023 22:13:20 GMT"
    assert headers[b"Content-Type"] == b"text/plain"
    assert headers[b"Content-Length"] == b"2"


def test_basic_data_from_dir(tmp_path):
    fs_path = tmp_path.joinpath("a")
    fs_path.mkdir()
    fs_path.joinpath("b.txt").write_bytes(b"hi")

    basic_data = DAVPropertyBasicData.from_stat_result(
        DAVPath("/a"), fs_path, os.stat(fs_path)
    )
    assert basic_data.is_collection
    assert basic_data.content_type == "httpd/unix-directory"
    assert basic_data.content_length == 0

    data = basic_data.as_dict()
    assert data["D:resourcetype"] == {"D:collection": None}
    assert data["D:getcontentlength"] == 0
