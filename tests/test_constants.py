import pytest

from asgi_fsdav.constants import DAVMethod, DAVPath, DAVTime


def test_dav_method():
    assert DAVMethod("PROPFIND") == DAVMethod.PROPFIND
    assert DAVMethod("propfind") == DAVMethod.PROPFIND
    assert DAVMethod("PROPPATCH") == DAVMethod.UNKNOWN
    assert DAVMethod("POST") == DAVMethod.UNKNOWN

    assert DAVMethod.names_supported() == [
        "OPTIONS",
        "GET",
        "HEAD",
        "PUT",
        "DELETE",
        "PROPFIND",
        "MKCOL",
        "COPY",
        "MOVE",
        "LOCK",
        "UNLOCK",
    ]


@pytest.mark.parametrize(
    "path, raw, parts",
    [
        ("/", "/", []),
        ("", "/", []),
        ("/a/b/c", "/a/b/c", ["a", "b", "c"]),
        ("/a/b/c/", "/a/b/c", ["a", "b", "c"]),
        ("//a//./b", "/a/b", ["a", "b"]),
        ("/a/../b", "/b", ["b"]),
        ("/../../etc/passwd", "/etc/passwd", ["etc", "passwd"]),
        ("/a/b/../../..", "/", []),
        ("\\a\\..\\..\\b", "/b", ["b"]),
        ("/中文/ file", "/中文/ file", ["中文", " file"]),
    ],
)
def test_dav_path_normalize(path, raw, parts):
    dav_path = DAVPath(path)
    assert dav_path.raw == raw
    assert dav_path.parts == parts
    assert dav_path.count == len(parts)


def test_dav_path():
    path = DAVPath("/a/b/c")

    assert path.name == "c"
    assert path.parent == DAVPath("/a/b")
    assert DAVPath("/").parent == DAVPath("/")
    assert DAVPath("/").name == "/"

    assert path.add_child("d") == DAVPath("/a/b/c/d")
    assert path.add_child(DAVPath("/d/e")) == DAVPath("/a/b/c/d/e")

    assert path.startswith(DAVPath("/a"))
    assert path.startswith(DAVPath("/a/b/c"))
    assert path.startswith(DAVPath("/"))
    assert not path.startswith(DAVPath("/a/bb"))
    assert not DAVPath("/a/bc").startswith(DAVPath("/a/b"))

    assert DAVPath(b"/a") == DAVPath("/a")
    assert str(path) == "/a/b/c"
    assert sorted([DAVPath("/b"), DAVPath("/a")]) == [DAVPath("/a"), DAVPath("/b")]

    with pytest.raises(TypeError):
        DAVPath(None)


def test_dav_time():
    dav_time = DAVTime(0)
    assert dav_time.http_date() == "Thu, 01 Jan 1970 00:00:00 GMT"
    assert dav_time.iso_8601() == "1970-01-01T00:00:00Z"

    dav_time = DAVTime(1700000000.5)
    assert dav_time.http_date() == "Tue, 14 Nov 2023 22:13:20 GMT"
    assert dav_time.iso_8601() == "2023-11-14T22:13:20Z"
