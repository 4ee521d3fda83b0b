import errno
from logging import getLogger
from pathlib import Path
from stat import S_ISDIR

import aiofiles
import aiofiles.os
import aiofiles.ospath

from asgi_fsdav.config import Config
from asgi_fsdav.constants import (
    RESPONSE_DATA_BLOCK_SIZE,
    DAVDepth,
    DAVPath,
    DAVResponseBodyGenerator,
)
from asgi_fsdav.exceptions import (
    DAVExceptionConflict,
    DAVExceptionMethodNotAllowed,
    DAVExceptionNotFound,
    DAVExceptionPreconditionFailed,
    DAVExceptionProviderInitFailed,
)
from asgi_fsdav.property import DAVProperty, DAVPropertyBasicData
from asgi_fsdav.provider.base import DAVProvider
from asgi_fsdav.request import DAVRequest
from asgi_fsdav.resolver import DAVPathResolver

logger = getLogger(__name__)

# rename() failures that copy + delete can recover from
_MOVE_FALLBACK_ERRNO = {errno.EXDEV, errno.EEXIST, errno.ENOTEMPTY}


async def _dav_response_data_generator(
    resource_abs_path: Path,
    block_size: int = RESPONSE_DATA_BLOCK_SIZE,
) -> DAVResponseBodyGenerator:
    async with aiofiles.open(resource_abs_path, mode="rb") as f:
        more_body = True
        while more_body:
            data = await f.read(block_size)
            more_body = len(data) == block_size

            yield data, more_body


async def _copy_file(
    src_path: Path, dst_path: Path, block_size: int = RESPONSE_DATA_BLOCK_SIZE
) -> None:
    await aiofiles.os.makedirs(dst_path.parent, exist_ok=True)

    async with aiofiles.open(src_path, mode="rb") as f_src:
        async with aiofiles.open(dst_path, mode="wb") as f_dst:
            while True:
                data = await f_src.read(block_size)
                if len(data) == 0:
                    break

                await f_dst.write(data)


async def delete_resource(path: Path) -> None:
    """rm -r"""
    if await aiofiles.ospath.isdir(path) and not await aiofiles.ospath.islink(path):
        for name in await aiofiles.os.listdir(path):
            await delete_resource(path.joinpath(name))

        await aiofiles.os.rmdir(path)
        return

    await aiofiles.os.remove(path)


async def _copy_link(src_path: Path, dst_path: Path) -> None:
    if await aiofiles.ospath.exists(dst_path):
        await delete_resource(dst_path)

    await aiofiles.os.makedirs(dst_path.parent, exist_ok=True)
    await aiofiles.os.symlink(await aiofiles.os.readlink(src_path), dst_path)


async def copy_resource(src_path: Path, dst_path: Path) -> None:
    """
    cp -rP, an existing destination directory is merged

    symlinks are never followed: a link is copied as a link, a link in the
    destination is replaced, not written through
    """
    if await aiofiles.ospath.islink(dst_path):
        await aiofiles.os.remove(dst_path)

    if await aiofiles.ospath.islink(src_path):
        await _copy_link(src_path, dst_path)
        return

    if await aiofiles.ospath.isdir(src_path):
        dst_is_dir = await aiofiles.ospath.isdir(dst_path)
        if not dst_is_dir and await aiofiles.ospath.exists(dst_path):
            await aiofiles.os.remove(dst_path)

        await aiofiles.os.makedirs(dst_path, exist_ok=True)
        for name in sorted(await aiofiles.os.listdir(src_path)):
            await copy_resource(src_path.joinpath(name), dst_path.joinpath(name))

        return

    if await aiofiles.ospath.isdir(dst_path):
        await delete_resource(dst_path)

    await _copy_file(src_path, dst_path)


async def move_resource(src_path: Path, dst_path: Path) -> None:
    """rename first; fallback: copy all, then delete the source"""
    try:
        await aiofiles.os.rename(src_path, dst_path)
        return

    except OSError as e:
        if e.errno not in _MOVE_FALLBACK_ERRNO:
            raise

        logger.debug(f"rename failed({errno.errorcode.get(e.errno)}), copy + delete")

    # the source is only touched after the whole copy has succeeded
    await copy_resource(src_path, dst_path)
    await delete_resource(src_path)


class FileSystemProvider(DAVProvider):
    def __init__(self, config: Config):
        super().__init__(config)

        self.root_path = Path(config.root_path)
        try:
            self.root_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DAVExceptionProviderInitFailed(
                f'Init FileSystemProvider failed, "{self.root_path}": {e}'
            )

        if not self.root_path.is_dir():
            raise DAVExceptionProviderInitFailed(
                f'Init FileSystemProvider failed, "{self.root_path}" is not a directory'
            )

        self.resolver = DAVPathResolver(self.root_path)

    def __repr__(self):
        return f"file://{self.root_path.resolve()}"

    @staticmethod
    def _create_dav_property_obj(
        href_path: DAVPath, fs_path: Path, stat_result
    ) -> DAVProperty:
        basic_data = DAVPropertyBasicData.from_stat_result(
            href_path, fs_path, stat_result
        )
        return DAVProperty(
            href_path=href_path,
            is_collection=basic_data.is_collection,
            basic_data=basic_data,
        )

    async def _get_dav_property_d1(
        self,
        dav_properties: dict[DAVPath, DAVProperty],
        href_path_base: DAVPath,
        fs_path_base: Path,
    ) -> None:
        try:
            names = sorted(await aiofiles.os.listdir(fs_path_base))
        except OSError as e:
            logger.warning(f"list directory failed: {href_path_base}, {e}")
            return

        for name in names:
            href_path = href_path_base.add_child(name)
            fs_path = fs_path_base.joinpath(name)
            if not self.resolver.is_inside_root(fs_path):
                logger.warning(f"link out of root, skipped: {href_path}")
                continue

            try:
                stat_result = await aiofiles.os.stat(fs_path)
            except OSError as e:
                # broken symlink, permission...
                logger.warning(f"stat failed, skipped: {href_path}, {e}")
                continue

            dav_properties[href_path] = self._create_dav_property_obj(
                href_path, fs_path, stat_result
            )

    async def _do_propfind(self, request: DAVRequest) -> dict[DAVPath, DAVProperty]:
        dav_properties: dict[DAVPath, DAVProperty] = dict()

        try:
            stat_result = await aiofiles.os.stat(request.src_fs_path)
        except OSError as e:
            logger.debug(f"stat failed: {request.src_path}, {e}")
            return dav_properties

        dav_properties[request.src_path] = self._create_dav_property_obj(
            request.src_path, request.src_fs_path, stat_result
        )

        if request.depth != DAVDepth.d0 and S_ISDIR(stat_result.st_mode):
            await self._get_dav_property_d1(
                dav_properties, request.src_path, request.src_fs_path
            )

        return dav_properties

    async def _get_basic_data_of_file(
        self, request: DAVRequest
    ) -> DAVPropertyBasicData:
        try:
            stat_result = await aiofiles.os.stat(request.src_fs_path)
        except (FileNotFoundError, NotADirectoryError):
            raise DAVExceptionNotFound()

        if S_ISDIR(stat_result.st_mode):
            raise DAVExceptionMethodNotAllowed(
                f"Method Not Allowed: {request.method.value} on a collection"
            )

        return DAVPropertyBasicData.from_stat_result(
            request.src_path, request.src_fs_path, stat_result
        )

    async def _do_get(
        self, request: DAVRequest
    ) -> tuple[DAVPropertyBasicData, DAVResponseBodyGenerator]:
        basic_data = await self._get_basic_data_of_file(request)
        return basic_data, _dav_response_data_generator(request.src_fs_path)

    async def _do_head(self, request: DAVRequest) -> DAVPropertyBasicData:
        return await self._get_basic_data_of_file(request)

    async def _do_mkcol(self, request: DAVRequest) -> int:
        fs_path = request.src_fs_path
        if await aiofiles.ospath.exists(fs_path):
            logger.debug(f"already exists: {request.src_path}")
            raise DAVExceptionMethodNotAllowed(
                "Method Not Allowed: resource already exists"
            )

        try:
            await aiofiles.os.makedirs(fs_path, exist_ok=True)
        except (FileExistsError, NotADirectoryError):
            raise DAVExceptionConflict("Conflict: parent is not a collection")

        return 201

    async def _do_delete(self, request: DAVRequest) -> int:
        fs_path = request.src_fs_path
        if not (
            await aiofiles.ospath.exists(fs_path)
            or await aiofiles.ospath.islink(fs_path)
        ):
            raise DAVExceptionNotFound()

        await delete_resource(fs_path)
        return 204

    async def _do_put(self, request: DAVRequest) -> int:
        fs_path = request.src_fs_path
        exists = await aiofiles.ospath.exists(fs_path)
        if exists and await aiofiles.ospath.isdir(fs_path):
            raise DAVExceptionMethodNotAllowed(
                "Method Not Allowed: PUT on a collection"
            )

        try:
            await aiofiles.os.makedirs(fs_path.parent, exist_ok=True)
        except (FileExistsError, NotADirectoryError):
            raise DAVExceptionConflict("Conflict: parent is not a collection")

        async with aiofiles.open(fs_path, "wb") as f:
            more_body = True
            while more_body:
                request_data = await request.receive()
                more_body = request_data.get("more_body", False)

                data = request_data.get("body", b"")
                await f.write(data)

        if exists:
            return 204

        return 201

    async def _prepare_destination(self, request: DAVRequest) -> bool:
        """return True when the destination already exists"""
        src_fs_path = request.src_fs_path
        dst_fs_path = request.dst_fs_path

        if not await aiofiles.ospath.exists(src_fs_path):
            raise DAVExceptionNotFound()

        dst_exists = await aiofiles.ospath.exists(dst_fs_path)
        if dst_exists and not request.overwrite:
            raise DAVExceptionPreconditionFailed(
                "Precondition Failed: destination exists"
            )

        if dst_exists and (
            await aiofiles.ospath.isdir(src_fs_path)
            != await aiofiles.ospath.isdir(dst_fs_path)
        ):
            # file <=> dir, can't be merged or replaced in place
            await delete_resource(dst_fs_path)

        try:
            await aiofiles.os.makedirs(dst_fs_path.parent, exist_ok=True)
        except (FileExistsError, NotADirectoryError):
            raise DAVExceptionConflict("Conflict: parent is not a collection")

        return dst_exists

    async def _do_copy(self, request: DAVRequest) -> int:
        dst_exists = await self._prepare_destination(request)

        await copy_resource(request.src_fs_path, request.dst_fs_path)
        if dst_exists:
            return 204

        return 201

    async def _do_move(self, request: DAVRequest) -> int:
        dst_exists = await self._prepare_destination(request)

        await move_resource(request.src_fs_path, request.dst_fs_path)
        if dst_exists:
            return 204

        return 201
