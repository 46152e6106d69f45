"""
keytabkit Keytab Generator

High-level interface tying the policy resolver, the string-to-key
deriver and the keytab codec together.

Generation Paths:
1. Password: keys derived locally from a password (AES only, 17-20)
2. Replication: keys supplied by a directory replication client

Validation performed here before any key is derived or written:
- Mutually exclusive policy flags (aes_only with RC4 / dead ciphers)
- Password path guardrail (AES only, no override)
- Configured PBKDF2 iteration floor
- Overwrite protection for existing keytabs
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import attrs
import structlog
from returns.result import Failure

from keytabkit.core.config import GeneratorConfig
from keytabkit.core.exceptions import IterationCountTooLow
from keytabkit.core.types import KeySet, PathKind, PrincipalDescriptor
from keytabkit.etypes.policy import (
    PolicyIntent,
    SelectionResult,
    compose_policy,
    resolve_selection,
    validate_password_path_compatibility,
)
from keytabkit.etypes.registry import MODERN_IDS, EtypeToken
from keytabkit.keytab.file import PathLike, read_keytab_file, write_keytab_file
from keytabkit.s2k.deriver import Secret, derive_key_set, s2k_params
from keytabkit.s2k.salt import default_salt

logger = structlog.get_logger()


# =============================================================================
# REPORT
# =============================================================================


@attrs.define(frozen=True, slots=True)
class GenerationReport:
    """
    Result of writing a keytab.

    Attributes:
        path: Written keytab
        selected: Etype ids written
        missing: Requested etype ids that were not available
        unknown_include: Include tokens that were not etypes
        unknown_exclude: Exclude tokens that were not etypes
        entry_count: Number of entries written
    """

    path: Path
    selected: Tuple[int, ...]
    missing: Tuple[int, ...] = ()
    unknown_include: Tuple[EtypeToken, ...] = ()
    unknown_exclude: Tuple[EtypeToken, ...] = ()
    entry_count: int = 0

    @property
    def warnings(self) -> List[str]:
        """Human-readable soft warnings from policy resolution."""
        messages = []
        if self.missing:
            messages.append(f"Requested encryption types not available: {list(self.missing)}")
        if self.unknown_include:
            messages.append(f"Unknown include tokens ignored: {list(self.unknown_include)}")
        if self.unknown_exclude:
            messages.append(f"Unknown exclude tokens ignored: {list(self.unknown_exclude)}")
        return messages


# =============================================================================
# GENERATOR
# =============================================================================


@attrs.define
class KeytabGenerator:
    """
    Keytab generation orchestrator.

    Example (password path):
        generator = KeytabGenerator(GeneratorConfig(salt_profile=SaltProfile.WINDOWS))
        report = generator.generate_from_password(
            "svc.keytab",
            [PrincipalDescriptor.parse("HTTP/web.example.com@EXAMPLE.COM")],
            password="secret",
            kvno=3,
        )

    Example (replication path):
        report = generator.generate_from_key_sets(
            "svc.keytab", principals, key_sets, include_legacy_rc4=True
        )
    """

    config: GeneratorConfig = attrs.Factory(GeneratorConfig)

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def _compose(self, path_kind: PathKind, **intent: Any) -> PolicyIntent:
        result = compose_policy(path_kind, **intent)
        if isinstance(result, Failure):
            error = result.failure()
            self._logger.error("policy_rejected", path_kind=path_kind.name, error=error.message)
            raise error
        return result.unwrap()

    def _check_iteration_floor(self, etype_ids: Iterable[int]) -> None:
        for etype_id in etype_ids:
            count = self.config.iterations_for(etype_id)
            if count is None:
                count = s2k_params(etype_id).default_iterations
            if count < self.config.min_iterations:
                raise IterationCountTooLow(count, self.config.min_iterations)

    def _write(
        self,
        path: PathLike,
        principals: Sequence[PrincipalDescriptor],
        key_sets: Sequence[KeySet],
        selection: SelectionResult,
    ) -> GenerationReport:
        written = write_keytab_file(
            path,
            principals,
            key_sets,
            etype_filter=selection.selected,
            fixed_timestamp=self.config.fixed_timestamp,
            overwrite=self.config.overwrite,
        )
        selected = frozenset(selection.selected)
        entry_count = len(principals) * sum(
            len(selected.intersection(ks.keys)) for ks in key_sets
        )
        return GenerationReport(
            path=written,
            selected=selection.selected,
            missing=selection.missing,
            unknown_include=selection.unknown_include,
            unknown_exclude=selection.unknown_exclude,
            entry_count=entry_count,
        )

    def generate_from_password(
        self,
        path: PathLike,
        principals: Sequence[PrincipalDescriptor],
        password: Secret,
        kvno: int = 1,
        include: Optional[Iterable[EtypeToken]] = None,
        exclude: Optional[Iterable[EtypeToken]] = None,
        aes_only: bool = False,
        include_legacy_rc4: bool = False,
        allow_dead_ciphers: bool = False,
        salt: Optional[Secret] = None,
    ) -> GenerationReport:
        """
        Derive AES keys from a password and write them to a keytab.

        Every principal receives the same keys, salted from the first
        principal (the account) unless an explicit salt is given.

        Args:
            path: Destination keytab
            principals: Account principal first, then any aliases
            password: Account password
            kvno: Key version number of the derived keys
            include: Etype ids/names to derive (None = AES-SHA1)
            exclude: Etype ids/names to skip
            aes_only: Restrict to AES-SHA1
            include_legacy_rc4: Always rejected on this path
            allow_dead_ciphers: Always rejected on this path
            salt: Explicit salt overriding the profile default

        Returns:
            GenerationReport

        Raises:
            PolicyConfigurationError: On conflicting flags
            EtypeUnsupportedForPath: If non-AES etypes are requested
            NoEncryptionTypesSelected: If nothing remains to derive
            IterationCountTooLow: If an iteration count is below the floor
            DestinationExists: If the keytab exists and overwrite is off
        """
        if not principals:
            raise ValueError("At least one principal is required")

        policy = self._compose(
            PathKind.PASSWORD,
            include_tokens=include,
            exclude_tokens=exclude,
            aes_only=aes_only,
            include_legacy_rc4=include_legacy_rc4,
            allow_dead_ciphers=allow_dead_ciphers,
        )
        validate_password_path_compatibility(policy)
        selection = resolve_selection(MODERN_IDS, policy)
        self._check_iteration_floor(selection.selected)

        if salt is None:
            salt = default_salt(self.config.salt_profile, principals[0])

        key_set = derive_key_set(
            kvno, password, salt, selection.selected, self.config.iterations
        )

        self._logger.info(
            "keys_derived",
            principal=str(principals[0]),
            salt_profile=self.config.salt_profile.name,
            kvno=kvno,
            etypes=list(selection.selected),
        )

        return self._write(path, principals, [key_set], selection)

    def generate_from_key_sets(
        self,
        path: PathLike,
        principals: Sequence[PrincipalDescriptor],
        key_sets: Sequence[KeySet],
        include: Optional[Iterable[EtypeToken]] = None,
        exclude: Optional[Iterable[EtypeToken]] = None,
        aes_only: bool = False,
        include_legacy_rc4: bool = False,
        allow_dead_ciphers: bool = False,
    ) -> GenerationReport:
        """
        Write replicated keys to a keytab, filtered by policy.

        Available etypes are the union of the etypes in key_sets.

        Returns:
            GenerationReport

        Raises:
            PolicyConfigurationError: On conflicting flags
            NoEncryptionTypesSelected: If nothing remains to write
            DestinationExists: If the keytab exists and overwrite is off
        """
        if not principals:
            raise ValueError("At least one principal is required")
        if not key_sets:
            raise ValueError("At least one key set is required")

        policy = self._compose(
            PathKind.REPLICATION,
            include_tokens=include,
            exclude_tokens=exclude,
            aes_only=aes_only,
            include_legacy_rc4=include_legacy_rc4,
            allow_dead_ciphers=allow_dead_ciphers,
        )
        available = frozenset(e for ks in key_sets for e in ks.keys)
        selection = resolve_selection(available, policy)

        self._logger.info(
            "replicated_keys_selected",
            principal=str(principals[0]),
            kvnos=sorted(ks.kvno for ks in key_sets),
            etypes=list(selection.selected),
        )

        return self._write(path, principals, list(key_sets), selection)

    def inspect(self, path: PathLike, mask_keys: Optional[bool] = None) -> List[Dict[str, Any]]:
        """
        Read a keytab and return its entries as dictionaries.

        Args:
            path: Keytab file
            mask_keys: Override config.mask_keys

        Returns:
            One dictionary per entry (see KeytabEntry.to_dict)
        """
        if mask_keys is None:
            mask_keys = self.config.mask_keys
        return [entry.to_dict() for entry in read_keytab_file(path, mask_keys=mask_keys)]
