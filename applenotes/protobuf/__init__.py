"""
Declarative wire schema for Apple Notes payloads.

The schema is plain data (``notes_schema.json``) validated into frozen pydantic
models. It is loaded once per process and shared read-only by every decode
call. Each field declares its number, a scalar/message type, whether it
repeats, and for messages the nested type name; the wire type a field may
legally arrive with is derived from its declared type.

Each schema is compiled into a private protobuf descriptor pool so parsing
goes through the protobuf runtime's generated message classes, the same
classes a ``notes_pb2`` module would provide. String fields are declared as
``bytes`` in the descriptor and UTF-8 decoded by the decoder, which reports
invalid text as a schema mismatch rather than a parse failure.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from functools import cached_property, lru_cache
from importlib import resources
from typing import Dict, Optional, Tuple, Type, Union

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ..exceptions import SchemaError

SCHEMA_RESOURCE = "notes_schema.json"

# Root message names for the two blob families found in NoteStore.sqlite
NOTE_ROOT = "NoteStoreProto"
MERGEABLE_ROOT = "MergableDataProto"


class WireType(IntEnum):
    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


class FieldType(str, Enum):
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    BOOL = "bool"
    ENUM = "enum"
    FIXED32 = "fixed32"
    SFIXED32 = "sfixed32"
    FLOAT = "float"
    FIXED64 = "fixed64"
    SFIXED64 = "sfixed64"
    DOUBLE = "double"
    STRING = "string"
    BYTES = "bytes"
    MESSAGE = "message"


_WIRE_TYPES: Dict[FieldType, WireType] = {
    FieldType.INT32: WireType.VARINT,
    FieldType.INT64: WireType.VARINT,
    FieldType.UINT32: WireType.VARINT,
    FieldType.UINT64: WireType.VARINT,
    FieldType.SINT32: WireType.VARINT,
    FieldType.SINT64: WireType.VARINT,
    FieldType.BOOL: WireType.VARINT,
    FieldType.ENUM: WireType.VARINT,
    FieldType.FIXED32: WireType.FIXED32,
    FieldType.SFIXED32: WireType.FIXED32,
    FieldType.FLOAT: WireType.FIXED32,
    FieldType.FIXED64: WireType.FIXED64,
    FieldType.SFIXED64: WireType.FIXED64,
    FieldType.DOUBLE: WireType.FIXED64,
    FieldType.STRING: WireType.LENGTH_DELIMITED,
    FieldType.BYTES: WireType.LENGTH_DELIMITED,
    FieldType.MESSAGE: WireType.LENGTH_DELIMITED,
}

_FDP = descriptor_pb2.FieldDescriptorProto

# Enums decode as plain int32 and strings as bytes; both are wire-identical
_PROTO_TYPES: Dict[FieldType, int] = {
    FieldType.INT32: _FDP.TYPE_INT32,
    FieldType.INT64: _FDP.TYPE_INT64,
    FieldType.UINT32: _FDP.TYPE_UINT32,
    FieldType.UINT64: _FDP.TYPE_UINT64,
    FieldType.SINT32: _FDP.TYPE_SINT32,
    FieldType.SINT64: _FDP.TYPE_SINT64,
    FieldType.BOOL: _FDP.TYPE_BOOL,
    FieldType.ENUM: _FDP.TYPE_INT32,
    FieldType.FIXED32: _FDP.TYPE_FIXED32,
    FieldType.SFIXED32: _FDP.TYPE_SFIXED32,
    FieldType.FLOAT: _FDP.TYPE_FLOAT,
    FieldType.FIXED64: _FDP.TYPE_FIXED64,
    FieldType.SFIXED64: _FDP.TYPE_SFIXED64,
    FieldType.DOUBLE: _FDP.TYPE_DOUBLE,
    FieldType.STRING: _FDP.TYPE_BYTES,
    FieldType.BYTES: _FDP.TYPE_BYTES,
    FieldType.MESSAGE: _FDP.TYPE_MESSAGE,
}

PROTO_PACKAGE = "applenotes.wire"


class FieldSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    number: int = Field(ge=1, le=(1 << 29) - 1)
    name: str
    type: FieldType
    repeated: bool = False
    message: Optional[str] = None

    @model_validator(mode="after")
    def _check_message_ref(self) -> "FieldSpec":
        if self.type is FieldType.MESSAGE and not self.message:
            raise ValueError(f"field '{self.name}' is a message but names no type")
        if self.type is not FieldType.MESSAGE and self.message:
            raise ValueError(f"scalar field '{self.name}' cannot name a message type")
        return self

    @property
    def wire_type(self) -> WireType:
        return _WIRE_TYPES[self.type]


class MessageSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    fields: Tuple[FieldSpec, ...] = ()

    @model_validator(mode="after")
    def _check_unique(self) -> "MessageSpec":
        numbers = [f.number for f in self.fields]
        names = [f.name for f in self.fields]
        if len(set(numbers)) != len(numbers):
            raise ValueError(f"message '{self.name}' declares a field number twice")
        if len(set(names)) != len(names):
            raise ValueError(f"message '{self.name}' declares a field name twice")
        return self

    @cached_property
    def by_number(self) -> Dict[int, FieldSpec]:
        return {f.number: f for f in self.fields}

    @cached_property
    def by_name(self) -> Dict[str, FieldSpec]:
        return {f.name: f for f in self.fields}

    def field_number(self, key: Union[int, str]) -> int:
        if isinstance(key, int):
            return key
        spec = self.by_name.get(key)
        if spec is None:
            raise SchemaError(f"message '{self.name}' has no field named '{key}'")
        return spec.number


class Schema(BaseModel):
    """A versioned set of message declarations."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str
    messages: Dict[str, MessageSpec]

    @field_validator("messages", mode="before")
    @classmethod
    def _inject_names(cls, v):
        # The JSON document keys messages by name; mirror it into each spec
        if isinstance(v, dict):
            return {
                name: ({"name": name, **spec} if isinstance(spec, dict) else spec)
                for name, spec in v.items()
            }
        return v

    @model_validator(mode="after")
    def _check_references(self) -> "Schema":
        for name, spec in self.messages.items():
            if spec.name != name:
                raise ValueError(f"message '{spec.name}' is registered as '{name}'")
            for f in spec.fields:
                if f.message and f.message not in self.messages:
                    raise ValueError(
                        f"{name}.{f.name} references undeclared message '{f.message}'"
                    )
        return self

    def message(self, name: str) -> MessageSpec:
        spec = self.messages.get(name)
        if spec is None:
            raise SchemaError(f"schema {self.version} declares no message '{name}'")
        return spec

    def file_descriptor(self) -> descriptor_pb2.FileDescriptorProto:
        """The schema as a proto2 file descriptor."""
        fdp = descriptor_pb2.FileDescriptorProto(
            name=f"applenotes_{self.version}.proto",
            package=PROTO_PACKAGE,
            syntax="proto2",
        )
        for name, spec in self.messages.items():
            mdp = fdp.message_type.add(name=name)
            for f in spec.fields:
                field = mdp.field.add(
                    name=f.name,
                    number=f.number,
                    type=_PROTO_TYPES[f.type],
                    label=_FDP.LABEL_REPEATED if f.repeated else _FDP.LABEL_OPTIONAL,
                )
                if f.message:
                    field.type_name = f".{PROTO_PACKAGE}.{f.message}"
        return fdp

    @cached_property
    def message_classes(self) -> Dict[str, Type[Message]]:
        pool = descriptor_pool.DescriptorPool()
        try:
            pool.AddSerializedFile(self.file_descriptor().SerializeToString())
        except (TypeError, ValueError) as e:
            raise SchemaError(f"schema {self.version} is not a valid protobuf: {e}") from e
        return {
            name: message_factory.GetMessageClass(
                pool.FindMessageTypeByName(f"{PROTO_PACKAGE}.{name}")
            )
            for name in self.messages
        }

    def message_class(self, name: str) -> Type[Message]:
        """Generated protobuf class for message ``name``."""
        self.message(name)
        return self.message_classes[name]


def load_schema(document: Union[str, bytes]) -> Schema:
    """Validate a JSON schema document."""
    try:
        return Schema.model_validate_json(document)
    except ValidationError as e:
        raise SchemaError(f"invalid notes schema: {e}") from e


@lru_cache(maxsize=None)
def default_schema() -> Schema:
    """The packaged schema, parsed once per process."""
    text = resources.files(__name__).joinpath(SCHEMA_RESOURCE).read_text("utf-8")
    return load_schema(text)


__all__ = [
    "FieldSpec",
    "FieldType",
    "MERGEABLE_ROOT",
    "MessageSpec",
    "NOTE_ROOT",
    "Schema",
    "WireType",
    "default_schema",
    "load_schema",
]
