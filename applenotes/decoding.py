from __future__ import annotations

import gzip
import logging
import zlib
from typing import Any, Dict, List, Optional, Tuple, Union

from google.protobuf.message import DecodeError as ProtoDecodeError
from google.protobuf.message import Message
from google.protobuf.unknown_fields import UnknownFieldSet

from .exceptions import CorruptMessageError, DecompressionError, SchemaMismatchError
from .protobuf import FieldSpec, FieldType, MessageSpec, Schema

LOGGER = logging.getLogger(__name__)

FieldKey = Union[int, str]


def decompress(blob: bytes) -> bytes:
    """Inflate a gzip, zlib or raw-deflate stream."""
    if not blob:
        raise DecompressionError("empty blob")
    if len(blob) >= 2 and blob[0] == 0x1F and blob[1] == 0x8B:
        try:
            return gzip.decompress(blob)
        except (OSError, EOFError, zlib.error) as e:
            raise DecompressionError(f"invalid gzip stream: {e}") from e
    try:
        return zlib.decompress(blob)
    except zlib.error:
        pass
    try:
        return zlib.decompress(blob, -zlib.MAX_WBITS)
    except zlib.error as e:
        LOGGER.debug("notes.decoder.decompress_fail len=%d %s", len(blob), e)
        raise DecompressionError(f"blob is not a deflate stream: {e}") from e


class DecodedMessage:
    """One decoded message: field number -> list of values.

    Accessors accept either the field number or its schema name. Repeated
    fields keep wire order; singular fields hold the one value the protobuf
    parser kept (last scalar wins, repeated messages merge).
    """

    __slots__ = ("spec", "fields", "unknown_fields")

    def __init__(
        self,
        spec: MessageSpec,
        fields: Optional[Dict[int, List[Any]]] = None,
        unknown_fields: Optional[List[Tuple[int, int]]] = None,
    ) -> None:
        self.spec = spec
        self.fields: Dict[int, List[Any]] = fields if fields is not None else {}
        self.unknown_fields: List[Tuple[int, int]] = unknown_fields or []

    @property
    def name(self) -> str:
        return self.spec.name

    def has(self, key: FieldKey) -> bool:
        return bool(self.fields.get(self.spec.field_number(key)))

    def get(self, key: FieldKey, default: Any = None) -> Any:
        values = self.fields.get(self.spec.field_number(key))
        return values[-1] if values else default

    def get_all(self, key: FieldKey) -> List[Any]:
        return list(self.fields.get(self.spec.field_number(key), ()))

    def message(self, key: FieldKey) -> Optional["DecodedMessage"]:
        value = self.get(key)
        return value if isinstance(value, DecodedMessage) else None

    def messages(self, key: FieldKey) -> List["DecodedMessage"]:
        return [v for v in self.get_all(key) if isinstance(v, DecodedMessage)]

    def to_dict(self) -> Dict[str, Any]:
        """Name-keyed plain view of the tree, for debugging."""
        out: Dict[str, Any] = {}
        for number, values in self.fields.items():
            spec = self.spec.by_number.get(number)
            plain = [v.to_dict() if isinstance(v, DecodedMessage) else v for v in values]
            if spec is not None and spec.repeated:
                out[spec.name] = plain
            else:
                out[spec.name if spec else str(number)] = plain[-1]
        return out

    def __repr__(self) -> str:
        return f"DecodedMessage({self.name}, fields={sorted(self.fields)})"


def _unknown_fields(spec: MessageSpec, proto: Message) -> List[Tuple[int, int]]:
    """Fields the parser kept aside; a declared number here means a wire-type clash."""
    out: List[Tuple[int, int]] = []
    for uf in UnknownFieldSet(proto):
        declared = spec.by_number.get(uf.field_number)
        if declared is not None:
            raise SchemaMismatchError(
                f"{spec.name}.{declared.name} (field {uf.field_number}) is declared "
                f"{declared.type.value} but arrived with wire type {uf.wire_type}"
            )
        # Forward compatibility: Apple adds fields between OS releases
        LOGGER.debug(
            "notes.decoder.unknown_field message=%s field=%d wire=%d",
            spec.name,
            uf.field_number,
            uf.wire_type,
        )
        out.append((uf.field_number, uf.wire_type))
    return out


def _value(schema: Schema, spec: MessageSpec, field: FieldSpec, value: Any) -> Any:
    if field.type is FieldType.MESSAGE:
        return _from_proto(schema, schema.message(field.message), value)
    if field.type is FieldType.STRING:
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SchemaMismatchError(
                f"{spec.name}.{field.name} is declared string but is not UTF-8"
            ) from e
    return value


def _from_proto(schema: Schema, spec: MessageSpec, proto: Message) -> DecodedMessage:
    msg = DecodedMessage(spec, unknown_fields=_unknown_fields(spec, proto))
    for descriptor, value in proto.ListFields():
        field = spec.by_number[descriptor.number]
        values = value if field.repeated else (value,)
        msg.fields[field.number] = [_value(schema, spec, field, v) for v in values]
    return msg


def decode_message(payload: bytes, schema: Schema, root: str) -> DecodedMessage:
    """Decode an uncompressed payload against ``schema`` starting at ``root``."""
    spec = schema.message(root)
    proto = schema.message_class(root)()
    try:
        proto.ParseFromString(bytes(payload))
    except ProtoDecodeError as e:
        raise CorruptMessageError(f"{root} payload is not a valid message: {e}") from e
    tree = _from_proto(schema, spec, proto)
    LOGGER.debug(
        "notes.decoder.decoded root=%s bytes=%d unknown_top=%d",
        root,
        len(payload),
        len(tree.unknown_fields),
    )
    return tree


def decode(
    blob: bytes, schema: Schema, root: str, *, compressed: bool = True
) -> DecodedMessage:
    """Decompress ``blob`` (unless told it is raw) and decode it."""
    payload = decompress(blob) if compressed else blob
    return decode_message(payload, schema, root)
