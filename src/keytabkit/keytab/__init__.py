"""
keytabkit Keytab Module

MIT keytab (0x0502) encoding, decoding and atomic file I/O.

Components:
- codec: Entry and whole-image encode/decode
- file: Atomic write and whole-file read
"""

from keytabkit.keytab.codec import (
    KEYTAB_MAGIC,
    KEYTAB_VERSION,
    encode_principal,
    encode_entry,
    encode_keytab,
    decode_entry,
    decode_keytab,
)
from keytabkit.keytab.file import write_keytab_file, read_keytab_file

__all__ = [
    "KEYTAB_MAGIC",
    "KEYTAB_VERSION",
    "encode_principal",
    "encode_entry",
    "encode_keytab",
    "decode_entry",
    "decode_keytab",
    "write_keytab_file",
    "read_keytab_file",
]
