"""Tests for per-message envelope encryption."""

import base64
import dataclasses

import pytest
from nacl.public import Box
from nacl.secret import SecretBox

from securechat.client import DecryptFailure, EnvelopeCodec, KeyPairManager, MessageEnvelope
from securechat.client.envelope import open_message, seal_message


@pytest.fixture()
def sender():
    return KeyPairManager.generate()


@pytest.fixture()
def recipient():
    return KeyPairManager.generate()


def _flip_bit(blob: str, index: int, mask: int) -> str:
    raw = bytearray(base64.b64decode(blob))
    raw[index] ^= mask
    return base64.b64encode(bytes(raw)).decode()


def test_recipient_opens_with_sender_public_key(sender, recipient) -> None:
    envelope = EnvelopeCodec.seal("hello bob", recipient.public_key, sender.private_key)

    assert EnvelopeCodec.open(envelope, sender.public_key, recipient.private_key) == "hello bob"


def test_sender_reopens_own_message_with_recipient_public_key(sender, recipient) -> None:
    envelope = seal_message("note to self", recipient.public_key, sender.private_key)

    assert open_message(envelope, recipient.public_key, sender.private_key) == "note to self"


@pytest.mark.parametrize("plaintext", ["", "héllo wörld ✓", "x" * 10_000])
def test_round_trip_preserves_unicode_and_length(sender, recipient, plaintext: str) -> None:
    envelope = EnvelopeCodec.seal(plaintext, recipient.public_key, sender.private_key)

    assert EnvelopeCodec.open(envelope, sender.public_key, recipient.private_key) == plaintext


def test_blob_layout_is_nonce_then_ciphertext(sender, recipient) -> None:
    envelope = EnvelopeCodec.seal("abc", recipient.public_key, sender.private_key)

    body = base64.b64decode(envelope.ciphertext_message)
    sealed_key = base64.b64decode(envelope.encrypted_session_key)

    assert len(body) == SecretBox.NONCE_SIZE + SecretBox.MACBYTES + 3
    assert len(sealed_key) == Box.NONCE_SIZE + 16 + SecretBox.KEY_SIZE


def test_same_plaintext_seals_differently(sender, recipient) -> None:
    first = EnvelopeCodec.seal("same", recipient.public_key, sender.private_key)
    second = EnvelopeCodec.seal("same", recipient.public_key, sender.private_key)

    assert first.ciphertext_message != second.ciphertext_message
    assert first.encrypted_session_key != second.encrypted_session_key
    assert base64.b64decode(first.ciphertext_message)[:24] != base64.b64decode(second.ciphertext_message)[:24]


def test_third_party_cannot_open(sender, recipient) -> None:
    eve = KeyPairManager.generate()
    envelope = EnvelopeCodec.seal("secret", recipient.public_key, sender.private_key)

    with pytest.raises(DecryptFailure):
        EnvelopeCodec.open(envelope, sender.public_key, eve.private_key)


def test_wrong_counterparty_key_fails(sender, recipient) -> None:
    envelope = EnvelopeCodec.seal("secret", recipient.public_key, sender.private_key)

    # The recipient must use the sender's key, not its own.
    with pytest.raises(DecryptFailure):
        EnvelopeCodec.open(envelope, recipient.public_key, recipient.private_key)


TAMPER_OFFSETS = {
    "nonce": (0, 11, 23),
    "mac": (24, 31, 39),
    "ciphertext": (40, -1),
}


@pytest.mark.parametrize("mask", [0x01, 0x10, 0x80])
@pytest.mark.parametrize("region", sorted(TAMPER_OFFSETS))
@pytest.mark.parametrize("field", ["ciphertext_message", "encrypted_session_key"])
def test_any_flipped_bit_fails(sender, recipient, field: str, region: str, mask: int) -> None:
    envelope = EnvelopeCodec.seal("do not touch", recipient.public_key, sender.private_key)

    for index in TAMPER_OFFSETS[region]:
        tampered = dataclasses.replace(
            envelope, **{field: _flip_bit(getattr(envelope, field), index, mask)}
        )
        with pytest.raises(DecryptFailure):
            EnvelopeCodec.open(tampered, sender.public_key, recipient.private_key)


def test_swapped_envelope_halves_fail(sender, recipient) -> None:
    first = EnvelopeCodec.seal("one", recipient.public_key, sender.private_key)
    second = EnvelopeCodec.seal("two", recipient.public_key, sender.private_key)
    mixed = MessageEnvelope(first.ciphertext_message, second.encrypted_session_key)

    with pytest.raises(DecryptFailure):
        EnvelopeCodec.open(mixed, sender.public_key, recipient.private_key)


@pytest.mark.parametrize(
    "ciphertext_message, encrypted_session_key",
    [
        ("%%%not-base64%%%", "AAAA"),
        ("", ""),
        (base64.b64encode(b"\x00" * 24).decode(), base64.b64encode(b"\x00" * 24).decode()),
    ],
)
def test_malformed_blobs_fail(sender, recipient, ciphertext_message, encrypted_session_key) -> None:
    envelope = MessageEnvelope(ciphertext_message, encrypted_session_key)

    with pytest.raises(DecryptFailure):
        EnvelopeCodec.open(envelope, sender.public_key, recipient.private_key)


def test_invalid_counterparty_key_length_fails(sender, recipient) -> None:
    envelope = EnvelopeCodec.seal("hi", recipient.public_key, sender.private_key)

    with pytest.raises(DecryptFailure):
        EnvelopeCodec.open(envelope, b"\x01" * 16, recipient.private_key)


def test_seal_rejects_invalid_keys(sender) -> None:
    with pytest.raises(ValueError):
        EnvelopeCodec.seal("hi", b"\x01" * 31, sender.private_key)


def test_decrypt_failure_hides_reason(sender, recipient) -> None:
    envelope = EnvelopeCodec.seal("hi", recipient.public_key, sender.private_key)

    with pytest.raises(DecryptFailure) as excinfo:
        EnvelopeCodec.open(envelope, sender.public_key, KeyPairManager.generate().private_key)

    assert str(excinfo.value) == "Unable to decrypt"
    assert excinfo.value.__cause__ is None


def test_wire_form_uses_camel_case_names(sender, recipient) -> None:
    envelope = EnvelopeCodec.seal("hi", recipient.public_key, sender.private_key)
    wire = envelope.to_wire()

    assert set(wire) == {"ciphertextMessage", "encryptedSessionKey"}
    assert MessageEnvelope.from_wire({**wire, "id": 7}) == envelope
