"""
keytabkit Keytab Files

Atomic keytab writing and whole-file reading.

The complete file is assembled in memory, written to a temporary file
next to the destination and renamed over it with os.replace, so a
reader never observes a partially written keytab and a failed write
leaves any existing file untouched. Concurrent writers to one path are
not serialized: the last rename wins.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import structlog

from keytabkit.core.exceptions import DestinationExists
from keytabkit.core.secrets import wipe
from keytabkit.core.types import KeySet, KeytabEntry, PrincipalDescriptor
from keytabkit.keytab.codec import assemble_keytab, decode_keytab

logger = structlog.get_logger()

PathLike = Union[str, "os.PathLike[str]"]


def _atomic_write(path: Path, data: bytearray) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def write_keytab_file(
    path: PathLike,
    principals: Sequence[PrincipalDescriptor],
    key_sets: Iterable[KeySet],
    etype_filter: Optional[Iterable[int]] = None,
    fixed_timestamp: Optional[datetime] = None,
    overwrite: bool = True,
) -> Path:
    """
    Write a keytab with one entry per (key set, etype, principal).

    Entry order: KeySets by ascending KVNO, etypes ascending, principals
    in caller order. All entries share one timestamp.

    Args:
        path: Destination file
        principals: Principals every key is written for
        key_sets: Keys grouped by KVNO
        etype_filter: Only write these etypes (None = all)
        fixed_timestamp: Timestamp for every entry (None = now, UTC)
        overwrite: Replace an existing destination

    Returns:
        The destination path

    Raises:
        DestinationExists: If the destination exists and overwrite is False
        KeytabFormatError: If an entry cannot be encoded (nothing is written)
    """
    destination = Path(path)
    if not overwrite and destination.exists():
        raise DestinationExists(str(destination))

    timestamp = fixed_timestamp if fixed_timestamp is not None else datetime.now(timezone.utc)
    key_sets = list(key_sets)

    buffer = assemble_keytab(principals, key_sets, etype_filter, timestamp)
    try:
        _atomic_write(destination, buffer)
        size = len(buffer)
    finally:
        wipe(buffer)

    logger.info(
        "keytab_written",
        path=str(destination),
        principals=len(principals),
        key_sets=len(key_sets),
        bytes=size,
    )
    return destination


def read_keytab_file(path: PathLike, mask_keys: bool = False) -> List[KeytabEntry]:
    """
    Read and decode a keytab file.

    Args:
        path: Keytab file
        mask_keys: Replace key bytes by a short hex preview

    Returns:
        Entries in file order

    Raises:
        MalformedKeytab: If the file is not a well-formed 0x0502 keytab
    """
    source = Path(path)
    with open(source, "rb") as fh:
        data = bytearray(os.fstat(fh.fileno()).st_size)
        read = fh.readinto(data)
    del data[read:]

    try:
        entries = decode_keytab(data, mask_keys=mask_keys)
    finally:
        wipe(data)

    logger.debug("keytab_read", path=str(source), entries=len(entries), masked=mask_keys)
    return entries
