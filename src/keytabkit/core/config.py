"""
keytabkit Configuration

Settings consumed by the keytab generator. The owning CLI or service
builds one GeneratorConfig from its own argument parsing and passes it
in; this package performs no argument or environment parsing itself.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

import attrs
from attrs import field, validators

from keytabkit.core.types import SaltProfile


def _check_iterations(instance: Any, attribute: Any, value: Dict[int, int]) -> None:
    for etype_id, count in value.items():
        if not isinstance(etype_id, int) or not isinstance(count, int):
            raise TypeError(f"Iteration overrides must map int -> int, got {etype_id!r}: {count!r}")
        if count < 1:
            raise ValueError(f"Iteration count for etype {etype_id} must be >= 1, got {count}")


@attrs.define
class GeneratorConfig:
    """
    Keytab generation configuration.

    Attributes:
        salt_profile: Salt convention for password-derived keys
        iterations: Per-etype PBKDF2 iteration overrides
        min_iterations: Refuse derivation below this iteration count
        mask_keys: Mask key bytes when inspecting keytabs
        overwrite: Allow replacing an existing keytab
        fixed_timestamp: Timestamp stamped on every entry (reproducible output)
    """

    salt_profile: SaltProfile = field(
        default=SaltProfile.MIT, validator=validators.instance_of(SaltProfile)
    )
    iterations: Dict[int, int] = field(factory=dict, validator=_check_iterations)
    min_iterations: int = field(default=1, validator=[validators.instance_of(int), validators.ge(1)])
    mask_keys: bool = True
    overwrite: bool = False
    fixed_timestamp: Optional[datetime] = field(
        default=None, validator=validators.optional(validators.instance_of(datetime))
    )

    def iterations_for(self, etype_id: int) -> Optional[int]:
        """Configured iteration override for an etype, or None for the default."""
        return self.iterations.get(etype_id)

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> GeneratorConfig:
        """
        Create config from a plain mapping (e.g. a parsed settings file).

        Etypes in "iterations" may be given by id or by name, and
        "salt_profile" by enum member name in any case.

        Example:
            GeneratorConfig.from_mapping({
                "salt_profile": "windows",
                "iterations": {"aes256-cts-hmac-sha1-96": 8192},
            })
        """
        from keytabkit.etypes.registry import id_from_token

        kwargs: Dict[str, Any] = {}

        if "salt_profile" in settings:
            profile = settings["salt_profile"]
            if isinstance(profile, str):
                try:
                    profile = SaltProfile[profile.upper()]
                except KeyError:
                    raise ValueError(f"Unknown salt profile: {profile}") from None
            kwargs["salt_profile"] = profile

        iterations: Dict[int, int] = {}
        for token, count in dict(settings.get("iterations", {})).items():
            etype_id = id_from_token(token)
            if etype_id is None:
                raise ValueError(f"Unknown encryption type in iterations: {token!r}")
            iterations[etype_id] = int(count)
        kwargs["iterations"] = iterations

        for name in ("min_iterations", "mask_keys", "overwrite", "fixed_timestamp"):
            if name in settings:
                kwargs[name] = settings[name]

        return cls(**kwargs)
