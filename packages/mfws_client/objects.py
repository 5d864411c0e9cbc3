"""Object operations over the M-Files Web Service ``/REST`` resources.

Every identifier-taking method accepts either an ``ObjID``/``ObjVer`` as the
first positional argument or the scalar form ``object_type_id=``/
``object_id=``. Arguments are validated before any request is sent.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from packages.mfws_shared.logging import get_logger, public_api_instrumented

from .errors import InvalidArgumentError
from .models import (
    ExtendedObjectVersion,
    MFCheckOutStatus,
    ObjectCreationInfo,
    ObjectVersion,
    ObjID,
    ObjVer,
    PrimitiveType,
)
from .transport import VaultTransport

_LOGGER = get_logger(__name__)

COMPONENT_ID = "client_object_operations"
LATEST_VERSION = "latest"

_ID_FIELDS = ("obj", "object_type_id", "object_id", "version")


def _instrumented(operation: str) -> Any:
    return public_api_instrumented(
        logger=_LOGGER,
        component_id=COMPONENT_ID,
        operation=operation,
        id_fields=_ID_FIELDS,
    )


class ObjectOperationsClient:
    """Create objects and manage checkout state, history and favorites."""

    def __init__(self, *, transport: VaultTransport) -> None:
        self._transport = transport

    async def aclose(self) -> None:
        """Close the underlying transport."""
        await self._transport.aclose()

    async def __aenter__(self) -> ObjectOperationsClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    @_instrumented("objects.create_new_object")
    async def create_new_object(
        self,
        object_type_id: int,
        creation_info: ObjectCreationInfo | Mapping[str, Any] | None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> ObjectVersion:
        """Create a new object of ``object_type_id`` and return its first version."""
        operation = "objects.create_new_object"
        if creation_info is None:
            raise InvalidArgumentError(
                message="creation_info is required",
                operation=operation,
                argument="creation_info",
            )
        _check_type_id(operation, object_type_id)
        info = _creation_info(operation, creation_info)

        return await self._transport.post(
            f"objects/{object_type_id}",
            body=info,
            response_type=ObjectVersion,
            operation=operation,
            cancel=cancel,
        )

    @_instrumented("objects.set_checkout_status")
    async def set_checkout_status(
        self,
        obj: ObjID | ObjVer | None = None,
        status: MFCheckOutStatus | None = None,
        *,
        object_type_id: int | None = None,
        object_id: int | None = None,
        version: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ObjectVersion:
        """Set the checkout status of one object version.

        Without an explicit version (``ObjVer`` or ``version=``) the latest
        version is targeted.
        """
        return await self._set_checkout_status(
            "objects.set_checkout_status",
            obj,
            status,
            object_type_id=object_type_id,
            object_id=object_id,
            version=version,
            cancel=cancel,
        )

    @_instrumented("objects.get_checkout_status")
    async def get_checkout_status(
        self,
        obj: ObjID | ObjVer | None = None,
        *,
        object_type_id: int | None = None,
        object_id: int | None = None,
        version: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> MFCheckOutStatus | None:
        """Return the checkout status, or ``None`` when the server omits it."""
        operation = "objects.get_checkout_status"
        target = _resolve_target(
            operation, obj, object_type_id=object_type_id, object_id=object_id
        )
        segment = _version_segment(operation, target, version)

        result = await self._transport.get(
            f"{_object_path(target)}/{segment}/checkedout",
            response_type=PrimitiveType[MFCheckOutStatus] | None,
            operation=operation,
            cancel=cancel,
        )
        return None if result is None else result.value

    @_instrumented("objects.check_out")
    async def check_out(
        self,
        obj: ObjID | ObjVer | None = None,
        *,
        object_type_id: int | None = None,
        object_id: int | None = None,
        version: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ObjectVersion:
        """Check the object out to the calling user."""
        return await self._set_checkout_status(
            "objects.check_out",
            obj,
            MFCheckOutStatus.CHECKED_OUT_TO_ME,
            object_type_id=object_type_id,
            object_id=object_id,
            version=version,
            cancel=cancel,
        )

    @_instrumented("objects.check_in")
    async def check_in(
        self,
        obj: ObjID | ObjVer | None = None,
        *,
        object_type_id: int | None = None,
        object_id: int | None = None,
        version: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ObjectVersion:
        """Check the object in."""
        return await self._set_checkout_status(
            "objects.check_in",
            obj,
            MFCheckOutStatus.CHECKED_IN,
            object_type_id=object_type_id,
            object_id=object_id,
            version=version,
            cancel=cancel,
        )

    @_instrumented("objects.get_deleted_status")
    async def get_deleted_status(
        self,
        obj: ObjID | ObjVer | None = None,
        *,
        object_type_id: int | None = None,
        object_id: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> bool | None:
        """Return whether the object is deleted, or ``None`` when omitted."""
        operation = "objects.get_deleted_status"
        target = _resolve_target(
            operation, obj, object_type_id=object_type_id, object_id=object_id
        )

        result = await self._transport.get(
            f"{_object_path(target)}/deleted",
            response_type=PrimitiveType[bool] | None,
            operation=operation,
            cancel=cancel,
        )
        return None if result is None else result.value

    @_instrumented("objects.get_history")
    async def get_history(
        self,
        obj: ObjID | ObjVer | None = None,
        *,
        object_type_id: int | None = None,
        object_id: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[ObjectVersion]:
        """Return the object's retained versions in server order.

        The server may leave out intermediate versions, so version numbers in
        the result are not guaranteed to be contiguous. An empty or ``null``
        body yields an empty list.
        """
        operation = "objects.get_history"
        target = _resolve_target(
            operation, obj, object_type_id=object_type_id, object_id=object_id
        )

        history = await self._transport.get(
            f"{_object_path(target)}/history",
            response_type=list[ObjectVersion] | None,
            operation=operation,
            cancel=cancel,
        )
        return [] if history is None else history

    @_instrumented("favorites.add")
    async def add_to_favorites(
        self,
        obj: ObjID | ObjVer | None = None,
        *,
        object_type_id: int | None = None,
        object_id: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ExtendedObjectVersion:
        """Pin the object to the calling user's favorites."""
        operation = "favorites.add"
        target = _resolve_target(
            operation, obj, object_type_id=object_type_id, object_id=object_id
        )

        return await self._transport.post(
            "favorites",
            body=_as_obj_id(target),
            response_type=ExtendedObjectVersion,
            operation=operation,
            cancel=cancel,
        )

    @_instrumented("favorites.remove")
    async def remove_from_favorites(
        self,
        obj: ObjID | ObjVer | None = None,
        *,
        object_type_id: int | None = None,
        object_id: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ExtendedObjectVersion:
        """Unpin the object from the calling user's favorites."""
        operation = "favorites.remove"
        target = _resolve_target(
            operation, obj, object_type_id=object_type_id, object_id=object_id
        )

        return await self._transport.delete(
            f"favorites/{target.type}/{target.id}",
            response_type=ExtendedObjectVersion,
            operation=operation,
            cancel=cancel,
        )

    async def _set_checkout_status(
        self,
        operation: str,
        obj: ObjID | ObjVer | None,
        status: MFCheckOutStatus | None,
        *,
        object_type_id: int | None,
        object_id: int | None,
        version: int | None,
        cancel: asyncio.Event | None,
    ) -> ObjectVersion:
        target = _resolve_target(
            operation, obj, object_type_id=object_type_id, object_id=object_id
        )
        checkout_status = _checkout_status(operation, status)
        segment = _version_segment(operation, target, version)

        return await self._transport.put(
            f"{_object_path(target)}/{segment}/checkedout",
            body=PrimitiveType[MFCheckOutStatus](value=checkout_status),
            response_type=ObjectVersion,
            operation=operation,
            cancel=cancel,
        )


def _resolve_target(
    operation: str,
    obj: ObjID | ObjVer | None,
    *,
    object_type_id: int | None,
    object_id: int | None,
) -> ObjID | ObjVer:
    """Return the identifier from either the model or the scalar form."""
    scalars_given = object_type_id is not None or object_id is not None
    if obj is not None and scalars_given:
        raise InvalidArgumentError(
            message="pass either obj or object_type_id/object_id, not both",
            operation=operation,
            argument="obj",
        )
    if obj is None:
        if not scalars_given:
            raise InvalidArgumentError(
                message="obj is required", operation=operation, argument="obj"
            )
        _check_type_id(operation, object_type_id)
        _check_object_id(operation, object_id)
        return ObjID(type=object_type_id, id=object_id)
    if not isinstance(obj, (ObjID, ObjVer)):
        raise InvalidArgumentError(
            message=f"obj must be ObjID or ObjVer, got {type(obj).__name__}",
            operation=operation,
            argument="obj",
        )
    return obj


def _version_segment(
    operation: str, target: ObjID | ObjVer, version: int | None
) -> str:
    """Return the version path segment, ``latest`` when none is given."""
    if isinstance(target, ObjVer):
        if version is not None and version != target.version:
            raise InvalidArgumentError(
                message=f"version {version} conflicts with ObjVer version {target.version}",
                operation=operation,
                argument="version",
            )
        return str(target.version)
    if version is None:
        return LATEST_VERSION
    _check_int(operation, "version", version, minimum=0)
    return str(version)


def _object_path(target: ObjID | ObjVer) -> str:
    return f"objects/{target.type}/{target.id}"


def _as_obj_id(target: ObjID | ObjVer) -> ObjID:
    return target.obj_id if isinstance(target, ObjVer) else target


def _checkout_status(
    operation: str, status: MFCheckOutStatus | int | None
) -> MFCheckOutStatus:
    if status is None:
        raise InvalidArgumentError(
            message="status is required", operation=operation, argument="status"
        )
    try:
        return MFCheckOutStatus(status)
    except ValueError:
        raise InvalidArgumentError(
            message=f"status {status!r} is not a valid checkout status",
            operation=operation,
            argument="status",
        ) from None


def _creation_info(
    operation: str, value: ObjectCreationInfo | Mapping[str, Any]
) -> ObjectCreationInfo:
    if isinstance(value, ObjectCreationInfo):
        return value
    if not isinstance(value, Mapping):
        raise InvalidArgumentError(
            message=f"creation_info must be ObjectCreationInfo, got {type(value).__name__}",
            operation=operation,
            argument="creation_info",
        )
    try:
        return ObjectCreationInfo.model_validate(value)
    except ValidationError as exc:
        raise InvalidArgumentError(
            message=f"creation_info is invalid: {exc.error_count()} validation error(s)",
            operation=operation,
            argument="creation_info",
        ) from exc


def _check_type_id(operation: str, value: int | None) -> None:
    _check_int(operation, "object_type_id", value, minimum=0)


def _check_object_id(operation: str, value: int | None) -> None:
    _check_int(operation, "object_id", value, minimum=1)


def _check_int(operation: str, name: str, value: object, *, minimum: int) -> None:
    if value is None:
        raise InvalidArgumentError(
            message=f"{name} is required", operation=operation, argument=name
        )
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(
            message=f"{name} must be an integer", operation=operation, argument=name
        )
    if value < minimum:
        raise InvalidArgumentError(
            message=f"{name} must be >= {minimum}, got {value}",
            operation=operation,
            argument=name,
        )
