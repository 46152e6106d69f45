"""
Property-based tests for the keytab codec.

Tests that encoded images decode back to the same entries for arbitrary
principals, KVNOs and keys.
"""

from datetime import datetime, timezone

from hypothesis import given, settings, strategies as st

from keytabkit.core.exceptions import MalformedKeytab
from keytabkit.core.types import KeySet, PrincipalDescriptor
from keytabkit.keytab.codec import decode_keytab, encode_keytab


# =============================================================================
# STRATEGIES
# =============================================================================

# Non-empty text without surrogates (must be UTF-8 encodable)
text_strategy = st.text(
    alphabet=st.characters(blacklist_categories=('Cs',)),
    min_size=1,
    max_size=32,
)

principal_strategy = st.builds(
    PrincipalDescriptor,
    components=st.lists(text_strategy, min_size=1, max_size=4),
    realm=text_strategy,
    name_type=st.integers(min_value=0, max_value=2**32 - 1),
)

key_set_strategy = st.builds(
    KeySet,
    kvno=st.integers(min_value=0, max_value=2**32 - 1),
    keys=st.fixed_dictionaries(
        {
            17: st.binary(min_size=16, max_size=16),
            18: st.binary(min_size=32, max_size=32),
        },
        optional={
            23: st.binary(min_size=16, max_size=16),
            99: st.binary(max_size=64),
        },
    ),
)

timestamp_strategy = st.integers(min_value=0, max_value=2**32 - 1)


# =============================================================================
# ROUND TRIP PROPERTIES
# =============================================================================


class TestCodecProperties:
    """Property-based tests for encode_keytab/decode_keytab."""

    @given(
        principals=st.lists(principal_strategy, min_size=1, max_size=3),
        key_sets=st.lists(key_set_strategy, min_size=1, max_size=3),
        seconds=timestamp_strategy,
    )
    @settings(max_examples=100)
    def test_entries_survive_round_trip(self, principals, key_sets, seconds):
        """Property: Every planned entry decodes with the same fields."""
        data = encode_keytab(principals, key_sets, timestamp=seconds)
        entries = decode_keytab(data)

        expected = [
            (principal, etype_id, key_set.keys[etype_id], key_set.kvno)
            for key_set in sorted(key_sets, key=lambda ks: ks.kvno)
            for etype_id in key_set.etype_ids
            for principal in principals
        ]
        assert [(e.principal, e.etype_id, e.key, e.kvno) for e in entries] == expected
        stamp = datetime.fromtimestamp(seconds, tz=timezone.utc)
        assert all(e.timestamp == stamp for e in entries)

    @given(
        principals=st.lists(principal_strategy, min_size=1, max_size=3),
        key_sets=st.lists(key_set_strategy, min_size=1, max_size=2),
        seconds=timestamp_strategy,
    )
    @settings(max_examples=50)
    def test_encoding_deterministic(self, principals, key_sets, seconds):
        """Property: Same input and timestamp give byte-identical images."""
        assert encode_keytab(principals, key_sets, timestamp=seconds) == encode_keytab(
            principals, key_sets, timestamp=seconds
        )

    @given(data=st.binary(max_size=256))
    @settings(max_examples=200)
    def test_decoder_never_crashes(self, data):
        """Property: Arbitrary bytes decode or raise MalformedKeytab only."""
        try:
            decode_keytab(b"\x05\x02" + data)
        except MalformedKeytab:
            pass
