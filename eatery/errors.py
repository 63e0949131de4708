"""Application errors, sentinel exceptions and shared constants."""

from __future__ import annotations

from http import HTTPStatus
from typing import Protocol, runtime_checkable

DB_TYPE_RESTAURANT = 1
DB_TYPE_USER = 2
CURRENT_USER = "user"


class RecordNotFoundError(LookupError):
    """A user record was not found."""

    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)


class DataNotFoundError(LookupError):
    """A data row matching the condition was not found."""

    def __init__(self, message: str = "data not found") -> None:
        super().__init__(message)


class NameCannotBeBlankError(ValueError):
    """A name field was empty after trimming."""

    def __init__(self, message: str = "name cannot be blank") -> None:
        super().__init__(message)


class AddressCannotBeBlankError(ValueError):
    """An address field was empty after trimming."""

    def __init__(self, message: str = "address cannot be blank") -> None:
        super().__init__(message)


@runtime_checkable
class Requester(Protocol):
    """The authenticated party making a request."""

    @property
    def user_id(self) -> int: ...

    @property
    def email(self) -> str: ...

    @property
    def role(self) -> str: ...


class AppError(Exception):
    """An error carrying an HTTP status and a client-facing message."""

    def __init__(
        self,
        status_code: int,
        root: BaseException | None,
        message: str,
        log: str = "",
        key: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.root = root
        self.message = message
        self.log = log
        self.key = key

    def root_error(self) -> BaseException | None:
        """Return the innermost error, unwrapping nested application errors."""
        if isinstance(self.root, AppError):
            return self.root.root_error()
        return self.root

    def __str__(self) -> str:
        root = self.root_error()
        return self.message if root is None else str(root)

    def to_dict(self) -> dict:
        """The JSON body sent to the client."""
        return {
            "status_code": self.status_code,
            "message": self.message,
            "log": self.log,
            "error_key": self.key,
        }


def new_error_response(root, message, log, key) -> AppError:
    return AppError(HTTPStatus.BAD_REQUEST, root, message, log, key)


def new_full_error_response(status_code, root, message, log, key) -> AppError:
    return AppError(status_code, root, message, log, key)


def new_unauthorized(root, message, key) -> AppError:
    return AppError(HTTPStatus.UNAUTHORIZED, root, message, "", key)


def new_custom_error(root, message, key) -> AppError:
    if root is not None:
        return new_error_response(root, message, str(root), key)
    return new_error_response(Exception(message), message, message, key)


def err_db(err) -> AppError:
    return new_full_error_response(
        HTTPStatus.INTERNAL_SERVER_ERROR,
        err,
        "something went wrong with DB",
        str(err),
        "DB_ERROR",
    )


def err_invalid_request(err) -> AppError:
    return new_error_response(err, "invalid request", str(err), "ErrInvalidRequest")


def err_internal(err) -> AppError:
    return new_full_error_response(
        HTTPStatus.INTERNAL_SERVER_ERROR,
        err,
        "something went wrong with server",
        str(err),
        "ErrInternal",
    )


def err_cannot_create_entity(entity, err) -> AppError:
    return new_custom_error(err, f"Cannot create {entity.lower()}", f"ErrCannotCreate{entity}")


def err_cannot_list_entity(entity, err) -> AppError:
    return new_custom_error(err, f"Cannot list {entity.lower()}", f"ErrCannotList{entity}")


def err_cannot_update_entity(entity, err) -> AppError:
    return new_custom_error(err, f"Cannot update {entity.lower()}", f"ErrCannotUpdate{entity}")


def err_cannot_get_entity(entity, err) -> AppError:
    return new_custom_error(err, f"Cannot get {entity.lower()}", f"ErrCannotGet{entity}")


def err_cannot_delete_entity(entity, err) -> AppError:
    return new_custom_error(err, f"{entity.lower()} deleted", f"Err{entity}Deleted")


def err_entity_existed(entity, err) -> AppError:
    return new_custom_error(err, f"{entity.lower()} already exists", f"Err{entity}AlreadyExists")


def err_entity_not_found(entity, err) -> AppError:
    return new_custom_error(err, f"{entity.lower()} not found", f"Err{entity}NotFound")


def err_no_permission(err) -> AppError:
    return new_custom_error(err, "You have no permission", "ErrNoPermission")