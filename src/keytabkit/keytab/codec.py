"""
keytabkit Keytab Binary Codec

Bit-exact encoder/decoder for the MIT keytab format, version 0x0502.
All multi-byte integers are big-endian.

    file    = 0x05 0x02, entry*
    entry   = int32 length, payload[length]
    payload = uint16 component_count
              uint16 realm_len, realm
              component_count * (uint16 len, component)
              uint32 name_type
              uint32 timestamp            (Unix seconds)
              uint8  kvno                 (low 8 bits)
              uint16 etype
              uint16 key_len, key
              [uint32 kvno]               (present if >= 4 bytes remain)

Decoder rules:
- A length of 0 marks the end of the entries
- A negative length is read as its absolute value; an all-zero payload
  of that size is a hole left by deleted entries and is skipped
- Any overrun raises MalformedKeytab with the failing byte offset
"""

from __future__ import annotations

import struct
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import structlog

from keytabkit.core.exceptions import (
    KeyLengthMismatch,
    KeytabFormatError,
    MalformedKeytab,
    PrincipalEncodingError,
)
from keytabkit.core.secrets import mask_key, wipe
from keytabkit.core.types import UINT32_MAX, KeySet, KeytabEntry, PrincipalDescriptor
from keytabkit.etypes.registry import MAX_ETYPE_ID, key_length

logger = structlog.get_logger()


KEYTAB_MAGIC = b"\x05\x02"
KEYTAB_VERSION = 0x0502
TEXT_ENCODING = "utf-8"

UINT16_MAX = 0xFFFF
INT32_MAX = 0x7FFFFFFF

Timestamp = Union[datetime, int]


# =============================================================================
# ENCODING
# =============================================================================


def _timestamp_seconds(timestamp: Timestamp) -> int:
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        seconds = int(timestamp.timestamp())
    else:
        seconds = int(timestamp)
    if not 0 <= seconds <= UINT32_MAX:
        raise KeytabFormatError(f"Timestamp out of range for keytab: {seconds}")
    return seconds


def _pack_text(text: str, what: str) -> bytes:
    try:
        raw = text.encode(TEXT_ENCODING)
    except UnicodeEncodeError as e:
        raise PrincipalEncodingError(f"{what} is not representable as {TEXT_ENCODING}: {e}") from e
    if len(raw) > UINT16_MAX:
        raise PrincipalEncodingError(f"{what} too long: {len(raw)} bytes")
    return struct.pack(">H", len(raw)) + raw


def encode_principal(principal: PrincipalDescriptor) -> bytes:
    """Encode the principal fields of an entry (count, realm, components)."""
    if len(principal.components) > UINT16_MAX:
        raise PrincipalEncodingError(f"Too many components: {len(principal.components)}")

    parts = [struct.pack(">H", len(principal.components)), _pack_text(principal.realm, "Realm")]
    parts.extend(_pack_text(c, "Component") for c in principal.components)
    return b"".join(parts)


def encode_entry(
    principal: PrincipalDescriptor,
    etype_id: int,
    key: bytes,
    kvno: int,
    timestamp: Timestamp,
) -> bytes:
    """
    Serialize one keytab entry, including its length prefix.

    Both KVNO encodings are written: the low 8 bits in the legacy field
    and the full value in the trailing 32-bit field.

    Raises:
        KeyLengthMismatch: If key length differs from the etype's key size
        PrincipalEncodingError: If realm/components cannot be stored
        KeytabFormatError: If a numeric field is out of range
    """
    if not 0 <= etype_id <= MAX_ETYPE_ID:
        raise KeytabFormatError(f"Encryption type out of range: {etype_id}")
    if not 0 <= kvno <= UINT32_MAX:
        raise KeytabFormatError(f"KVNO out of range: {kvno}")

    expected = key_length(etype_id)
    if expected is not None and len(key) != expected:
        raise KeyLengthMismatch(etype_id, expected, len(key))
    if len(key) > UINT16_MAX:
        raise KeytabFormatError(f"Key too long: {len(key)} bytes")

    payload = b"".join(
        [
            encode_principal(principal),
            struct.pack(
                ">IIBHH",
                principal.name_type,
                _timestamp_seconds(timestamp),
                kvno & 0xFF,
                etype_id,
                len(key),
            ),
            bytes(key),
            struct.pack(">I", kvno),
        ]
    )
    if len(payload) > INT32_MAX:
        raise KeytabFormatError(f"Entry too large: {len(payload)} bytes")

    return struct.pack(">i", len(payload)) + payload


def iter_entry_plan(
    principals: Sequence[PrincipalDescriptor],
    key_sets: Iterable[KeySet],
    etype_filter: Optional[Iterable[int]] = None,
) -> Iterator[Tuple[PrincipalDescriptor, int, bytes, int]]:
    """
    Yield (principal, etype_id, key, kvno) in file order.

    KeySets by ascending KVNO, then etypes ascending (filtered), then
    principals in caller order.
    """
    allowed = frozenset(etype_filter) if etype_filter is not None else None
    for key_set in sorted(key_sets, key=lambda ks: ks.kvno):
        for etype_id in key_set.etype_ids:
            if allowed is not None and etype_id not in allowed:
                continue
            for principal in principals:
                yield principal, etype_id, key_set.keys[etype_id], key_set.kvno


def assemble_keytab(
    principals: Sequence[PrincipalDescriptor],
    key_sets: Iterable[KeySet],
    etype_filter: Optional[Iterable[int]],
    timestamp: Timestamp,
) -> bytearray:
    """
    Build a complete keytab image in a wipeable buffer.

    The caller owns the returned buffer and should wipe it when done.
    """
    buffer = bytearray(KEYTAB_MAGIC)
    try:
        for principal, etype_id, key, kvno in iter_entry_plan(principals, key_sets, etype_filter):
            buffer += encode_entry(principal, etype_id, key, kvno, timestamp)
    except Exception:
        wipe(buffer)
        raise
    return buffer


def encode_keytab(
    principals: Sequence[PrincipalDescriptor],
    key_sets: Iterable[KeySet],
    etype_filter: Optional[Iterable[int]] = None,
    timestamp: Optional[Timestamp] = None,
) -> bytes:
    """
    Encode a complete keytab file image.

    Every entry shares one timestamp: the given one, or the current UTC
    time. Identical input with the same timestamp yields identical bytes.
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    buffer = assemble_keytab(principals, key_sets, etype_filter, timestamp)
    try:
        return bytes(buffer)
    finally:
        wipe(buffer)


# =============================================================================
# DECODING
# =============================================================================


class _Cursor:
    """Single running read position over a keytab image."""

    def __init__(self, data: Union[bytes, bytearray, memoryview], offset: int = 0, end: Optional[int] = None) -> None:
        self.data = data
        self.offset = offset
        self.end = len(data) if end is None else end

    @property
    def remaining(self) -> int:
        return self.end - self.offset

    def take(self, size: int, what: str) -> bytes:
        if size > self.remaining:
            raise MalformedKeytab(
                f"Truncated {what}: need {size} bytes, {self.remaining} remain", self.offset
            )
        start = self.offset
        self.offset += size
        return bytes(self.data[start:self.offset])

    def unpack(self, fmt: str, what: str) -> Any:
        size = struct.calcsize(fmt)
        return struct.unpack(fmt, self.take(size, what))[0]

    def text(self, what: str) -> str:
        length = self.unpack(">H", f"{what} length")
        start = self.offset
        raw = self.take(length, what)
        try:
            return raw.decode(TEXT_ENCODING)
        except UnicodeDecodeError as e:
            raise MalformedKeytab(f"{what} is not valid {TEXT_ENCODING}", start) from e


def decode_entry(
    data: Union[bytes, bytearray, memoryview],
    offset: int,
    end: int,
    mask_keys: bool = False,
) -> KeytabEntry:
    """
    Decode one entry payload occupying data[offset:end].

    Offsets in errors are absolute positions in data.

    Raises:
        MalformedKeytab: On any field overrun or invalid field
    """
    cursor = _Cursor(data, offset, end)

    count = cursor.unpack(">H", "component count")
    realm = cursor.text("realm")
    components = tuple(cursor.text("component") for _ in range(count))
    name_type = cursor.unpack(">I", "name type")
    seconds = cursor.unpack(">I", "timestamp")
    kvno = cursor.unpack(">B", "kvno")
    etype_id = cursor.unpack(">H", "encryption type")
    key_len = cursor.unpack(">H", "key length")
    key = cursor.take(key_len, "key")

    if cursor.remaining >= 4:
        kvno_extended = cursor.unpack(">I", "extended kvno")
        if kvno_extended != 0:
            kvno = kvno_extended

    try:
        principal = PrincipalDescriptor(components=components, realm=realm, name_type=name_type)
    except ValueError as e:
        raise MalformedKeytab(f"Invalid principal ({e})", offset) from e

    timestamp = datetime.fromtimestamp(seconds, tz=timezone.utc)
    if mask_keys:
        return KeytabEntry(
            principal=principal,
            etype_id=etype_id,
            kvno=kvno,
            timestamp=timestamp,
            key_length=key_len,
            masked=True,
            key_preview=mask_key(key),
        )
    return KeytabEntry(
        principal=principal,
        etype_id=etype_id,
        kvno=kvno,
        timestamp=timestamp,
        key=key,
    )


def decode_keytab(
    data: Union[bytes, bytearray, memoryview],
    mask_keys: bool = False,
) -> List[KeytabEntry]:
    """
    Decode a complete keytab image.

    Args:
        data: Keytab file contents
        mask_keys: Replace key bytes by a short hex preview

    Returns:
        Entries in file order (empty for a header-only file)

    Raises:
        MalformedKeytab: On bad magic, truncated length or field overrun;
            no entries are returned for a corrupt image
    """
    cursor = _Cursor(data)
    magic = cursor.take(2, "keytab header")
    if magic[0] != KEYTAB_MAGIC[0]:
        raise MalformedKeytab(f"Bad keytab magic 0x{magic[0]:02x}", 0)
    if magic[1] != KEYTAB_MAGIC[1]:
        raise MalformedKeytab(f"Unsupported keytab version 0x{magic[0]:02x}{magic[1]:02x}", 1)

    entries: List[KeytabEntry] = []
    while cursor.remaining > 0:
        length_offset = cursor.offset
        length = cursor.unpack(">i", "entry length")

        if length == 0:
            break
        hole = length < 0
        if hole:
            length = -length
            logger.debug("keytab_negative_entry_length", offset=length_offset, length=length)

        if length > cursor.remaining:
            raise MalformedKeytab(
                f"Entry length {length} exceeds remaining {cursor.remaining} bytes",
                length_offset,
            )

        start = cursor.offset
        end = start + length
        cursor.offset = end

        if hole and not any(data[start:end]):
            continue

        entries.append(decode_entry(data, start, end, mask_keys=mask_keys))

    return entries
