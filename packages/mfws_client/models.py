"""Wire models for the M-Files Web Service object resources.

Attributes are snake_case; the server's PascalCase JSON names are aliases.
Models are frozen: server-returned values are never mutated client-side.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class MFCheckOutStatus(IntEnum):
    """Server-tracked lock state of an object version."""

    CHECKED_IN = 0
    CHECKED_OUT = 1
    CHECKED_OUT_TO_ME = 2


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with server field names, omitting unset optional values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ObjID(_WireModel):
    """Reference to an object regardless of version."""

    type: int = Field(alias="Type", ge=0)
    id: int = Field(alias="ID", gt=0)


class ObjVer(_WireModel):
    """Reference to one specific version of an object."""

    type: int = Field(alias="Type", ge=0)
    id: int = Field(alias="ID", gt=0)
    version: int = Field(alias="Version", ge=0)

    @property
    def obj_id(self) -> ObjID:
        """The same object without its version."""
        return ObjID(type=self.type, id=self.id)


class PrimitiveType(_WireModel, Generic[T]):
    """Single-value container; an omitted ``Value`` decodes as absent."""

    value: T | None = Field(default=None, alias="Value")


class Lookup(_WireModel):
    item: int = Field(alias="Item")
    version: int = Field(default=-1, alias="Version")
    display_value: str | None = Field(default=None, alias="DisplayValue")
    deleted: bool | None = Field(default=None, alias="Deleted")


class TypedValue(_WireModel):
    """Property value payload; lookups and scalar values share this shape."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    data_type: int = Field(alias="DataType")
    value: Any = Field(default=None, alias="Value")
    has_value: bool | None = Field(default=None, alias="HasValue")
    display_value: str | None = Field(default=None, alias="DisplayValue")
    lookup: Lookup | None = Field(default=None, alias="Lookup")
    lookups: list[Lookup] | None = Field(default=None, alias="Lookups")


class PropertyValue(_WireModel):
    property_def: int = Field(alias="PropertyDef")
    typed_value: TypedValue = Field(alias="TypedValue")


class UploadInfo(_WireModel):
    """Reference to a file previously uploaded to the server's temp area."""

    upload_id: int = Field(alias="UploadID")
    title: str | None = Field(default=None, alias="Title")
    extension: str | None = Field(default=None, alias="Extension")
    size: int | None = Field(default=None, alias="Size")


class ObjectFile(_WireModel):
    id: int = Field(alias="ID")
    version: int = Field(default=0, alias="Version")
    name: str = Field(default="", alias="Name")
    extension: str = Field(default="", alias="Extension")
    size: int = Field(default=0, alias="Size")
    change_time_utc: datetime | None = Field(default=None, alias="ChangeTimeUtc")


class ObjectCreationInfo(_WireModel):
    """Payload describing a new object. Unknown keys are passed through."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    property_values: list[PropertyValue] = Field(
        default_factory=list, alias="PropertyValues"
    )
    files: list[UploadInfo] = Field(default_factory=list, alias="Files")


class ObjectVersion(_WireModel):
    """Server representation of one object version."""

    obj_ver: ObjVer = Field(alias="ObjVer")
    title: str = Field(default="", alias="Title")
    display_id: str | None = Field(default=None, alias="DisplayID")
    class_id: int | None = Field(default=None, alias="Class")
    object_checked_out: bool = Field(default=False, alias="ObjectCheckedOut")
    object_checked_out_to_this_user: bool = Field(
        default=False, alias="ObjectCheckedOutToThisUser"
    )
    checked_out_to: int | None = Field(default=None, alias="CheckedOutTo")
    checked_out_to_user_name: str | None = Field(
        default=None, alias="CheckedOutToUserName"
    )
    deleted: bool = Field(default=False, alias="Deleted")
    created_utc: datetime | None = Field(default=None, alias="CreatedUtc")
    last_modified_utc: datetime | None = Field(default=None, alias="LastModifiedUtc")
    files: list[ObjectFile] = Field(default_factory=list, alias="Files")
    object_guid: str | None = Field(default=None, alias="ObjectGUID")
    object_version_guid: str | None = Field(default=None, alias="ObjectVersionGUID")
    single_file: bool | None = Field(default=None, alias="SingleFile")
    latest_checked_in_version: int | None = Field(
        default=None, alias="LatestCheckedInVersion"
    )
    this_version_latest_to_this_user: bool | None = Field(
        default=None, alias="ThisVersionLatestToThisUser"
    )
    visible_after_operation: bool | None = Field(
        default=None, alias="VisibleAfterOperation"
    )


class ExtendedObjectVersion(ObjectVersion):
    """Object version enriched with its property values."""

    properties: list[PropertyValue] = Field(default_factory=list, alias="Properties")
