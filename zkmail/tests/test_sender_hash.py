import hashlib

import pytest
from hypothesis import given
from hypothesis import strategies as st

from zkmail.errors import ClaimEncodingError, LengthOutOfRange
from zkmail.packing import sha256
from zkmail.packing.sender_hash import (ascii_lower, binding_digest,
                                        digest_to_elements, preimage,
                                        sender_binding_hash)


@given(msg=st.binary(max_size=511))
def test_padding_rule(msg):
    n = len(msg)
    padded = sha256.pad(msg)
    assert len(padded) % 64 == 0
    assert len(padded) == sha256.padded_length(n)
    assert n + 9 <= len(padded) < n + 9 + 64
    assert padded[:n] == msg
    assert padded[n] == 0x80
    assert set(padded[n + 1 : -8]) <= {0}
    assert int.from_bytes(padded[-8:], "big") == 8 * n


@pytest.mark.parametrize("n,blocks", [(0, 1), (55, 1), (56, 2), (119, 2), (120, 3), (511, 9)])
def test_block_count(n, blocks):
    assert sha256.block_count(n) == blocks
    padded = sha256.pad(b"a" * n)
    assert len(padded) == 64 * blocks
    assert padded[n] == 0x80
    assert int.from_bytes(padded[-8:], "big") == 8 * n


def test_negative_length_is_rejected():
    with pytest.raises(ValueError):
        sha256.block_count(-1)


def test_reference_digest():
    expected = hashlib.sha256(b"alice@example.com|alice.near").digest()
    assert binding_digest("alice@example.com", "alice.near") == expected


def test_case_insensitive():
    assert binding_digest("Alice@Example.com", "Bob") == binding_digest("alice@example.com", "BOB")


def test_only_ascii_is_folded():
    assert ascii_lower(b"AZaz09@\xc3\x89") == b"azaz09@\xc3\x89"
    assert binding_digest("É@x", "a") != binding_digest("é@x", "a")


def test_no_trimming():
    assert binding_digest(" alice@example.com", "alice.near") != binding_digest("alice@example.com", "alice.near")


def test_padded_inputs_use_declared_lengths():
    from_buf = b"alice@example.com" + bytes(238)
    acct_buf = b"ALICE.NEAR" + bytes(245)
    assert sender_binding_hash(from_buf, 17, acct_buf, 10) == binding_digest("alice@example.com", "alice.near")
    assert preimage(from_buf, 17, acct_buf, 10) == b"alice@example.com|alice.near"


def test_longest_preimage():
    f, a = b"F" * 255, b"a" * 255
    digest = sender_binding_hash(f, 255, a, 255)
    assert digest == hashlib.sha256(b"f" * 255 + b"|" + a).digest()


def test_length_limits():
    with pytest.raises(LengthOutOfRange):
        sender_binding_hash(b"x" * 256, 256, b"a", 1)
    with pytest.raises(LengthOutOfRange):
        sender_binding_hash(b"x", 1, b"a" * 300, 256)
    with pytest.raises(LengthOutOfRange):
        sender_binding_hash(b"x", 2, b"a", 1)


def test_digest_elements_are_bytes_in_order():
    digest = binding_digest("alice@example.com", "alice.near")
    elems = digest_to_elements(digest)
    assert len(elems) == 32
    assert bytes(elems) == digest
    with pytest.raises(LengthOutOfRange):
        digest_to_elements(digest[:31])


def test_unencodable_strings():
    with pytest.raises(ClaimEncodingError):
        binding_digest("\ud800@example.com", "alice.near")
    with pytest.raises(ClaimEncodingError):
        binding_digest("alice@example.com", "\udfff")
