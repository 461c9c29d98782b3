"""Typed failures raised by the data-access core."""
from __future__ import annotations

from typing import Any


class MetadataError(Exception):
    """Base class for metadata server failures."""


class NotFoundError(MetadataError):
    def __init__(self, entity: str, key: Any):
        super().__init__(f"No {entity} with id {key}.")
        self.entity = entity
        self.key = key


class UnknownEnumValue(MetadataError):
    """A stored enumeration string is not a member this code knows about.

    Raised while decoding rows written by a newer server version. It is an
    invariant violation, not an input error, but must not take the process down.
    """

    def __init__(self, enum_name: str, value: Any):
        super().__init__(f"Unknown {enum_name} value {value!r} in storage.")
        self.enum_name = enum_name
        self.value = value
