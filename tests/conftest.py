"""
Pytest configuration and shared fixtures for keytabkit tests.
"""

import pytest
from datetime import datetime, timezone

from keytabkit.core.config import GeneratorConfig
from keytabkit.core.types import KeySet, NameType, PrincipalDescriptor
from keytabkit.generator import KeytabGenerator


# =============================================================================
# PRINCIPAL FIXTURES
# =============================================================================


@pytest.fixture
def user_principal() -> PrincipalDescriptor:
    """Test user principal user@EXAMPLE.COM."""
    return PrincipalDescriptor(components=("user",), realm="EXAMPLE.COM", name_type=NameType.PRINCIPAL)


@pytest.fixture
def service_principal() -> PrincipalDescriptor:
    """Test service principal HTTP/web.example.com@EXAMPLE.COM."""
    return PrincipalDescriptor(
        components=("HTTP", "web.example.com"),
        realm="EXAMPLE.COM",
        name_type=NameType.SRV_INST,
    )


# =============================================================================
# KEY FIXTURES
# =============================================================================


@pytest.fixture
def fixed_timestamp() -> datetime:
    """Fixed entry timestamp 2020-01-02T03:04:05Z."""
    return datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def aes_key_set() -> KeySet:
    """KVNO 7 key set with AES128 and AES256 keys."""
    return make_key_set(7, 17, 18)


@pytest.fixture
def test_password() -> str:
    """Test password."""
    return "P@ssw0rd!"


# =============================================================================
# GENERATOR FIXTURES
# =============================================================================


@pytest.fixture
def fast_config(fixed_timestamp: datetime) -> GeneratorConfig:
    """Config with single-iteration PBKDF2 for fast tests."""
    return GeneratorConfig(
        iterations={17: 1, 18: 1, 19: 1, 20: 1},
        fixed_timestamp=fixed_timestamp,
        mask_keys=False,
    )


@pytest.fixture
def generator(fast_config: GeneratorConfig) -> KeytabGenerator:
    """Generator using the fast config."""
    return KeytabGenerator(config=fast_config)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

_KEY_LENGTHS = {17: 16, 18: 32, 19: 16, 20: 32, 23: 16}


def make_key(etype_id: int, fill: int = 0) -> bytes:
    """Helper to create a deterministic key of the right length."""
    return bytes((fill + i) & 0xFF for i in range(_KEY_LENGTHS[etype_id]))


def make_key_set(kvno: int, *etype_ids: int) -> KeySet:
    """Helper to create a key set with deterministic keys."""
    return KeySet(kvno=kvno, keys={e: make_key(e, fill=kvno + e) for e in etype_ids})


@pytest.fixture
def key_factory():
    """Factory for deterministic keys: key_factory(etype_id, fill=0)."""
    return make_key


@pytest.fixture
def key_set_factory():
    """Factory for key sets: key_set_factory(kvno, *etype_ids)."""
    return make_key_set


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
