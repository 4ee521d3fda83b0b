"""
异常设计规则

    - 以模块(逻辑概念的)做一级分割
    - 如果需要再做二级分割
    - 可以直接转换为 HTTP 响应的异常, 继承 DAVExceptionHTTP
"""

from http import HTTPStatus


class DAVException(Exception):
    pass


class DAVExceptionConfig(DAVException):
    pass


class DAVExceptionConfigFileNotFound(DAVExceptionConfig):
    pass


class DAVExceptionProviderInitFailed(DAVException):
    pass


class DAVExceptionHTTP(DAVException):
    status: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None):
        if message is None:
            message = HTTPStatus(self.status).phrase

        super().__init__(message)
        self.message = message


class DAVExceptionBadRequest(DAVExceptionHTTP):
    status = HTTPStatus.BAD_REQUEST


class DAVExceptionAuthFailed(DAVExceptionHTTP):
    status = HTTPStatus.UNAUTHORIZED


class DAVExceptionForbidden(DAVExceptionHTTP):
    status = HTTPStatus.FORBIDDEN


class DAVExceptionNotFound(DAVExceptionHTTP):
    status = HTTPStatus.NOT_FOUND


class DAVExceptionMethodNotAllowed(DAVExceptionHTTP):
    status = HTTPStatus.METHOD_NOT_ALLOWED


class DAVExceptionConflict(DAVExceptionHTTP):
    status = HTTPStatus.CONFLICT


class DAVExceptionPreconditionFailed(DAVExceptionHTTP):
    status = HTTPStatus.PRECONDITION_FAILED


class DAVExceptionInternal(DAVExceptionHTTP):
    pass


def convert_os_error_to_dav_exception(e: OSError) -> DAVExceptionHTTP:
    match e:
        case FileNotFoundError():
            return DAVExceptionNotFound()
        case NotADirectoryError() | FileExistsError():
            return DAVExceptionConflict()
        case IsADirectoryError():
            return DAVExceptionMethodNotAllowed()
        case PermissionError():
            return DAVExceptionForbidden()

    return DAVExceptionInternal()
