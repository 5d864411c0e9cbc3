"""Typed client for M-Files Web Service object operations."""

from packages.mfws_client.blocking import BlockingObjectOperationsClient
from packages.mfws_client.config import (
    configure_client_logging,
    create_blocking_object_operations,
    create_object_operations,
)
from packages.mfws_client.errors import (
    DecodingError,
    InvalidArgumentError,
    MfwsError,
    OperationCancelledError,
    RequestFailedError,
    TransportError,
)
from packages.mfws_client.models import (
    ExtendedObjectVersion,
    Lookup,
    MFCheckOutStatus,
    ObjectCreationInfo,
    ObjectFile,
    ObjectVersion,
    ObjID,
    ObjVer,
    PrimitiveType,
    PropertyValue,
    TypedValue,
    UploadInfo,
)
from packages.mfws_client.objects import ObjectOperationsClient
from packages.mfws_client.transport import VaultTransport

__all__ = [
    "BlockingObjectOperationsClient",
    "DecodingError",
    "ExtendedObjectVersion",
    "InvalidArgumentError",
    "Lookup",
    "MFCheckOutStatus",
    "MfwsError",
    "ObjectCreationInfo",
    "ObjectFile",
    "ObjectOperationsClient",
    "ObjectVersion",
    "ObjID",
    "ObjVer",
    "OperationCancelledError",
    "PrimitiveType",
    "PropertyValue",
    "RequestFailedError",
    "TransportError",
    "TypedValue",
    "UploadInfo",
    "VaultTransport",
    "configure_client_logging",
    "create_blocking_object_operations",
    "create_object_operations",
]
