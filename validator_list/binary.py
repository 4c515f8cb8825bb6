"""
Minimal XRPL STObject binary codec for the fields used by manifests.

Wire format:
    Each field starts with a type/field identifier:
        high nibble = type code, low nibble = field code
        if either is >= 16, the nibble is 0 and the code follows in the
        next byte (type code first)
    Field types used in manifests:
        2 = uint32 (4 bytes, big-endian)
        7 = blob (variable-length prefix, then raw bytes)

    Variable-length prefix:
        0 .. 192          1 byte
        193 .. 12480      2 bytes
        12481 .. 918744   3 bytes

Objects are serialized in canonical order: by type code, then field code.
"""

import struct
from typing import Dict, List, NamedTuple, Tuple

from .errors import DecodingError, EncodingError

TYPE_UINT32 = 2
TYPE_BLOB = 7


class Field(NamedTuple):
    name: str
    type_code: int
    field_code: int

    @property
    def is_vl_encoded(self) -> bool:
        return self.type_code == TYPE_BLOB

    @property
    def header(self) -> bytes:
        return field_header(self.type_code, self.field_code)

    @property
    def sort_key(self) -> Tuple[int, int]:
        return self.type_code, self.field_code


SEQUENCE = Field("Sequence", TYPE_UINT32, 4)
PUBLIC_KEY = Field("PublicKey", TYPE_BLOB, 1)
SIGNING_PUB_KEY = Field("SigningPubKey", TYPE_BLOB, 3)
SIGNATURE = Field("Signature", TYPE_BLOB, 6)
DOMAIN = Field("Domain", TYPE_BLOB, 7)
MASTER_SIGNATURE = Field("MasterSignature", TYPE_BLOB, 18)

FIELDS: Dict[str, Field] = {
    f.name: f for f in (SEQUENCE, PUBLIC_KEY, SIGNING_PUB_KEY, SIGNATURE, DOMAIN, MASTER_SIGNATURE)
}
FIELDS_BY_ID: Dict[Tuple[int, int], Field] = {f.sort_key: f for f in FIELDS.values()}


def field_header(type_code: int, field_code: int) -> bytes:
    if type_code < 16:
        if field_code < 16:
            return bytes([(type_code << 4) | field_code])
        return bytes([type_code << 4, field_code])
    if field_code < 16:
        return bytes([field_code, type_code])
    return bytes([0, type_code, field_code])


def encode_vl_length(length: int) -> bytes:
    if length < 0:
        raise EncodingError(f"negative length {length}")
    if length <= 192:
        return bytes([length])
    if length <= 12480:
        length -= 193
        return bytes([193 + (length >> 8), length & 0xFF])
    if length <= 918744:
        length -= 12481
        return bytes([241 + (length >> 16), (length >> 8) & 0xFF, length & 0xFF])
    raise EncodingError(f"length {length} exceeds the variable-length maximum")


class FieldWriter:
    """Appends tagged fields (header, optional length prefix, value) to a buffer."""

    def __init__(self, prefix: bytes = b""):
        self._parts: List[bytes] = [prefix] if prefix else []

    def append(self, field: Field, value: bytes) -> "FieldWriter":
        self._parts.append(field.header)
        if field.is_vl_encoded:
            self._parts.append(encode_vl_length(len(value)))
        self._parts.append(bytes(value))
        return self

    def append_uint32(self, field: Field, value: int) -> "FieldWriter":
        if not 0 <= value <= 0xFFFFFFFF:
            raise EncodingError(f"{field.name} {value} does not fit in uint32")
        return self.append(field, struct.pack(">I", value))

    def getvalue(self) -> bytes:
        return b"".join(self._parts)


def serialize_object(values: Dict[str, object]) -> bytes:
    """
    Serialize a mapping of field name -> value in canonical field order.

    uint32 fields take ints, blob fields take bytes. None values are omitted.
    """
    present = []
    for name, value in values.items():
        if value is None:
            continue
        if name not in FIELDS:
            raise EncodingError(f"unknown field {name}")
        present.append((FIELDS[name], value))

    writer = FieldWriter()
    for field, value in sorted(present, key=lambda item: item[0].sort_key):
        if field.type_code == TYPE_UINT32:
            writer.append_uint32(field, value)
        else:
            writer.append(field, value)
    return writer.getvalue()


def parse_object(data: bytes) -> Dict[str, object]:
    """Parse serialized manifest fields back into a name -> value mapping."""
    result: Dict[str, object] = {}
    i = 0

    def take(n: int) -> bytes:
        nonlocal i
        if i + n > len(data):
            raise DecodingError("truncated object")
        chunk = data[i:i + n]
        i += n
        return chunk

    while i < len(data):
        byte = take(1)[0]
        type_code = (byte >> 4) & 0x0F
        field_code = byte & 0x0F
        if type_code == 0:
            type_code = take(1)[0]
        if field_code == 0:
            field_code = take(1)[0]

        field = FIELDS_BY_ID.get((type_code, field_code))
        if field is None:
            raise DecodingError(f"unsupported field type={type_code} code={field_code}")

        if field.type_code == TYPE_UINT32:
            result[field.name] = struct.unpack(">I", take(4))[0]
            continue

        length = take(1)[0]
        if 193 <= length <= 240:
            length = 193 + ((length - 193) * 256) + take(1)[0]
        elif 241 <= length <= 254:
            b1, b2 = take(2)
            length = 12481 + ((length - 241) * 65536) + (b1 * 256) + b2
        elif length > 254:
            raise DecodingError("invalid variable-length prefix")
        result[field.name] = take(length)

    return result
