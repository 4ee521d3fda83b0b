import errno
import os
from pathlib import Path

import aiofiles.os
import pytest

from asgi_fsdav.constants import RESPONSE_DATA_BLOCK_SIZE
from asgi_fsdav.provider import file_system
from asgi_fsdav.provider.file_system import (
    copy_resource,
    delete_resource,
    move_resource,
)


def create_tree(base: Path) -> Path:
    """
    base/src/
        a.txt
        big.bin
        sub/
            b.txt
        empty/
    """
    src = base.joinpath("src")
    src.joinpath("sub").mkdir(parents=True)
    src.joinpath("empty").mkdir()
    src.joinpath("a.txt").write_bytes(b"a")
    src.joinpath("big.bin").write_bytes(b"0123456789" * RESPONSE_DATA_BLOCK_SIZE)
    src.joinpath("sub", "b.txt").write_bytes(b"b")
    return src


def assert_tree(path: Path):
    assert path.joinpath("a.txt").read_bytes() == b"a"
    assert (
        path.joinpath("big.bin").read_bytes()
        == b"0123456789" * RESPONSE_DATA_BLOCK_SIZE
    )
    assert path.joinpath("sub", "b.txt").read_bytes() == b"b"
    assert path.joinpath("empty").is_dir()


def force_rename_failed(monkeypatch, error_no: int):
    async def fake_rename(*args, **kwargs):
        raise OSError(error_no, "fake rename error")

    monkeypatch.setattr(aiofiles.os, "rename", fake_rename)


@pytest.mark.asyncio
async def test_copy_resource(tmp_path):
    src = create_tree(tmp_path)
    dst = tmp_path.joinpath("x", "y", "dst")

    await copy_resource(src, dst)
    assert_tree(dst)
    assert_tree(src)


@pytest.mark.asyncio
async def test_copy_resource_merge(tmp_path):
    src = create_tree(tmp_path)
    dst = tmp_path.joinpath("dst")
    dst.joinpath("sub").mkdir(parents=True)
    dst.joinpath("keep.txt").write_bytes(b"keep")
    dst.joinpath("a.txt").write_bytes(b"old content")
    # file <=> dir
    dst.joinpath("empty").write_bytes(b"file")

    await copy_resource(src, dst)
    assert_tree(dst)
    assert dst.joinpath("keep.txt").read_bytes() == b"keep"


@pytest.mark.asyncio
async def test_delete_resource(tmp_path):
    src = create_tree(tmp_path)

    await delete_resource(src)
    assert not src.exists()

    file = tmp_path.joinpath("file.txt")
    file.write_bytes(b"file")
    await delete_resource(file)
    assert not file.exists()


@pytest.mark.asyncio
async def test_move_resource(tmp_path):
    src = create_tree(tmp_path)
    dst = tmp_path.joinpath("dst")

    await move_resource(src, dst)
    assert_tree(dst)
    assert not src.exists()


@pytest.mark.asyncio
@pytest.mark.parametrize("error_no", [errno.EXDEV, errno.EEXIST, errno.ENOTEMPTY])
async def test_move_resource_fallback(tmp_path, monkeypatch, error_no):
    src = create_tree(tmp_path)
    dst = tmp_path.joinpath("dst")
    force_rename_failed(monkeypatch, error_no)

    await move_resource(src, dst)
    assert_tree(dst)
    assert not src.exists()


@pytest.mark.asyncio
async def test_move_resource_no_fallback(tmp_path, monkeypatch):
    src = create_tree(tmp_path)
    dst = tmp_path.joinpath("dst")
    force_rename_failed(monkeypatch, errno.EACCES)

    with pytest.raises(OSError):
        await move_resource(src, dst)

    assert_tree(src)
    assert not dst.exists()


@pytest.mark.asyncio
async def test_move_resource_fallback_copy_failed(tmp_path, monkeypatch):
    src = create_tree(tmp_path)
    dst = tmp_path.joinpath("dst")
    force_rename_failed(monkeypatch, errno.EXDEV)

    copy_file = file_system._copy_file
    counter = {"value": 0}

    async def fake_copy_file(src_path, dst_path, *args, **kwargs):
        counter["value"] += 1
        if counter["value"] == 2:
            raise OSError(errno.ENOSPC, "No space left on device")

        await copy_file(src_path, dst_path, *args, **kwargs)

    monkeypatch.setattr(file_system, "_copy_file", fake_copy_file)

    with pytest.raises(OSError):
        await move_resource(src, dst)

    # source untouched
    assert_tree(src)


def create_link(link: Path, target: Path):
    try:
        os.symlink(target, link, target_is_directory=target.is_dir())
    except (OSError, NotImplementedError):
        pytest.skip("symlink is not supported")


@pytest.mark.asyncio
async def test_copy_resource_keep_link(tmp_path):
    outside = tmp_path.joinpath("outside")
    outside.mkdir()
    outside.joinpath("secret.txt").write_bytes(b"secret")

    src = create_tree(tmp_path)
    create_link(src.joinpath("link"), outside)
    create_link(src.joinpath("file-link"), outside.joinpath("secret.txt"))
    dst = tmp_path.joinpath("dst")

    await copy_resource(src, dst)
    assert_tree(dst)

    # copied as links, the data behind them is not pulled in
    assert dst.joinpath("link").is_symlink()
    assert os.readlink(dst.joinpath("link")) == os.readlink(src.joinpath("link"))
    assert dst.joinpath("file-link").is_symlink()
    assert [p.name for p in outside.iterdir()] == ["secret.txt"]


@pytest.mark.asyncio
async def test_copy_resource_not_write_through_link(tmp_path):
    outside = tmp_path.joinpath("outside")
    outside.mkdir()
    outside.joinpath("a.txt").write_bytes(b"outside")

    src = create_tree(tmp_path)
    dst = tmp_path.joinpath("dst")
    dst.mkdir()
    create_link(dst.joinpath("sub"), outside)
    create_link(dst.joinpath("a.txt"), outside.joinpath("a.txt"))

    await copy_resource(src, dst)
    assert_tree(dst)
    assert not dst.joinpath("sub").is_symlink()
    assert not dst.joinpath("a.txt").is_symlink()

    # untouched
    assert outside.joinpath("a.txt").read_bytes() == b"outside"
    assert not outside.joinpath("b.txt").exists()
