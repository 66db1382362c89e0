# file: tests/test_module2_crypto.py

"""
Unit tests for Module 2: Cryptographic Pipeline.

Test coverage:
    - Header framing (MAGIC, length field, truncation)
    - Deterministic IV derivation
    - PKI hybrid encryption round-trips and failure modes
    - ODK multi-part encryption, counter handling and IV reuse
    - Key loading from DER, base64 and PEM
"""

import base64
import hashlib
import io
import struct
import warnings

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from src.module2_crypto import (
    odk,
    pki,
    MAGIC,
    PkiEncryptor,
    PkiDecryptor,
    OdkEncryptor,
    OdkDecryptor,
    SubmissionContext,
    encrypt_part,
    decrypt_part,
    encrypt_part_stream,
    decrypt_part_stream,
    load_public_key,
    load_private_key,
    read_public_key,
    read_private_key,
    BadMagicError,
    TruncatedInputError,
    MalformedInputError,
    DecryptionFailedError,
    KeyWrapTooLargeError,
    KeyLoadError,
)
from src.module2_crypto.deterministic import instance_bytes, key_iv, part_iv, tile
from src.module2_crypto.framing import (
    HEADER_SIZE,
    MAX_WRAPPED_KEY_SIZE,
    assemble_header,
    parse_header,
    read_header,
    unpack_header,
)
from src.module2_crypto.primitives import IV_LENGTH, KEY_SIZE, _cipher


PAYLOADS = [
    b"",
    b"Hello World",
    b"x" * 15,
    b"x" * 16,
    b"x" * 17,
    bytes(range(256)) * 4,
    b"\x00\xff" * 100_000,  # spans several read chunks
]

KEY = bytes(range(KEY_SIZE))


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


class TestPrimitives:
    """Test the fixed cipher suite."""

    def test_cipher_construction_emits_no_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            encryptor = _cipher(KEY, b"\x00" * IV_LENGTH).encryptor()
            assert len(encryptor.update(b"x" * 16) + encryptor.finalize()) == 16

    def test_roundtrip_emits_no_warnings(self, pubkey, privkey):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert pki.decrypt(privkey, pki.encrypt(pubkey, b"quiet")) == b"quiet"


class TestFraming:
    """Test header assembly and parsing."""

    def test_header_layout(self):
        framed = assemble_header(b"k" * 256)
        word = struct.unpack('>I', framed[:4])[0]

        assert word >> 14 == MAGIC
        assert word & 0x3FFF == 256
        assert framed[4:] == b"k" * 256

    def test_magic_reads_enc_in_base64(self):
        assert base64.b64encode(assemble_header(b"k" * 256))[:3] == b"ENC"

    def test_largest_wrapped_key(self):
        framed = assemble_header(b"\x00" * MAX_WRAPPED_KEY_SIZE)
        assert unpack_header(framed) == 16383

    def test_wrapped_key_too_large(self):
        with pytest.raises(KeyWrapTooLargeError, match="too large"):
            assemble_header(b"\x00" * (MAX_WRAPPED_KEY_SIZE + 1))

    def test_bad_magic(self):
        with pytest.raises(BadMagicError, match="MAGIC not found"):
            unpack_header(b"\x00\x00\x00\x00")

    def test_short_header(self):
        with pytest.raises(TruncatedInputError):
            unpack_header(b"\x11\x0d")

    def test_parse_header(self):
        framed = assemble_header(b"wrapped") + b"body"
        wrapped_key, offset = parse_header(framed)

        assert wrapped_key == b"wrapped"
        assert framed[offset:] == b"body"

    def test_parse_header_truncated_key(self):
        framed = assemble_header(b"wrapped")
        with pytest.raises(TruncatedInputError, match="7-byte"):
            parse_header(framed[:-1])

    def test_read_header_leaves_stream_at_body(self):
        stream = io.BytesIO(assemble_header(b"wrapped") + b"body")
        assert read_header(stream) == b"wrapped"
        assert stream.read() == b"body"

    def test_read_header_truncated(self):
        stream = io.BytesIO(assemble_header(b"wrapped")[:HEADER_SIZE + 3])
        with pytest.raises(TruncatedInputError):
            read_header(stream)

    def test_framing_errors_share_base(self):
        assert issubclass(BadMagicError, MalformedInputError)
        assert issubclass(TruncatedInputError, MalformedInputError)


class TestDeterministic:
    """Test IV derivation."""

    def test_tile(self):
        assert bytes(tile(b"abc", 7)) == b"abcabca"

    def test_key_iv_is_md5_of_key(self):
        iv = key_iv(KEY)
        assert len(iv) == IV_LENGTH
        assert iv == hashlib.md5(KEY).digest()

    def test_part_iv_first_part_bumps_first_byte(self):
        seed = hashlib.md5(b"INST_1" + KEY).digest()
        iv = part_iv(b"INST_1", KEY, 0)

        assert iv[0] == (seed[0] + 1) % 256
        assert iv[1:] == seed[1:]

    def test_part_iv_wraps_around_iv(self):
        seed = hashlib.md5(b"INST_1" + KEY).digest()
        iv = part_iv(b"INST_1", KEY, IV_LENGTH)

        # indices 0..16 inclusive: byte 0 bumped twice, the rest once
        assert iv[0] == (seed[0] + 2) % 256
        assert all(iv[i] == (seed[i] + 1) % 256 for i in range(1, IV_LENGTH))

    def test_part_iv_is_deterministic(self):
        assert part_iv(b"i", KEY, 5) == part_iv(b"i", KEY, 5)

    def test_part_ivs_differ_per_counter(self):
        ivs = {part_iv(b"i", KEY, n) for n in range(64)}
        assert len(ivs) == 64

    def test_part_iv_depends_on_instance(self):
        assert part_iv(b"a", KEY, 0) != part_iv(b"b", KEY, 0)

    def test_part_iv_negative_counter(self):
        with pytest.raises(ValueError, match="non-negative"):
            part_iv(b"i", KEY, -1)

    def test_instance_bytes(self):
        assert instance_bytes(None) == b""
        assert instance_bytes("") == b""
        assert instance_bytes("uuid:é") == "uuid:é".encode('utf-8')
        assert instance_bytes(b"raw") == b"raw"


class TestPkiCrypto:
    """Test one-shot hybrid encryption."""

    @pytest.mark.parametrize("plaintext", PAYLOADS, ids=lambda p: f"{len(p)}B")
    def test_roundtrip(self, pubkey, privkey, plaintext):
        ciphertext = pki.encrypt(pubkey, plaintext)
        assert pki.decrypt(privkey, ciphertext) == plaintext

    def test_hello_world(self, pubkey, privkey):
        ciphertext = pki.encrypt(pubkey, "Hello World".encode())
        assert pki.decrypt(privkey, ciphertext).decode('utf-8') == "Hello World"

    def test_header_carries_magic_and_key_length(self, pubkey):
        ciphertext = pki.encrypt(pubkey, b"Hello World")
        word = struct.unpack('>I', ciphertext[:4])[0]

        assert word >> 14 == MAGIC
        assert word & 0x3FFF == 256  # 2048-bit RSA

    def test_ciphertext_length_is_padded(self, pubkey):
        for size in (0, 15, 16, 17):
            ciphertext = pki.encrypt(pubkey, b"x" * size)
            assert len(ciphertext) == 4 + 256 + 16 * (size // 16 + 1)

    def test_fresh_key_per_encryption(self, pubkey):
        assert pki.encrypt(pubkey, b"same") != pki.encrypt(pubkey, b"same")

    def test_body_uses_key_derived_iv(self, pubkey, privkey):
        from src.module2_crypto.primitives import decrypt_stream, unwrap_key

        ciphertext = pki.encrypt(pubkey, b"payload")
        wrapped_key, offset = parse_header(ciphertext)
        key = unwrap_key(privkey, wrapped_key)

        out = io.BytesIO()
        decrypt_stream(key, hashlib.md5(key).digest(), io.BytesIO(ciphertext[offset:]), out)
        assert out.getvalue() == b"payload"

    def test_stream_api(self, pubkey, privkey):
        encrypted = io.BytesIO()
        PkiEncryptor(pubkey).encrypt_stream(io.BytesIO(b"streamed"), encrypted)

        encrypted.seek(0)
        decrypted = io.BytesIO()
        PkiDecryptor(privkey).decrypt_stream(encrypted, decrypted)

        assert decrypted.getvalue() == b"streamed"

    def test_wrong_private_key(self, pubkey, other_keypair):
        ciphertext = pki.encrypt(pubkey, b"secret")
        with pytest.raises(DecryptionFailedError, match="Decryption failed"):
            pki.decrypt(other_keypair[0], ciphertext)

    def test_not_our_ciphertext(self, privkey):
        with pytest.raises(BadMagicError):
            pki.decrypt(privkey, b"hello world, not encrypted")

    def test_empty_input(self, privkey):
        with pytest.raises(TruncatedInputError):
            pki.decrypt(privkey, b"")

    def test_truncated_wrapped_key(self, pubkey, privkey):
        ciphertext = pki.encrypt(pubkey, b"secret")
        with pytest.raises(TruncatedInputError):
            pki.decrypt(privkey, ciphertext[:100])

    def test_truncated_body(self, pubkey, privkey):
        ciphertext = pki.encrypt(pubkey, b"secret")
        with pytest.raises(DecryptionFailedError):
            pki.decrypt(privkey, ciphertext[:-1])

    def test_corrupted_wrapped_key(self, pubkey, privkey):
        ciphertext = bytearray(pki.encrypt(pubkey, b"secret"))
        ciphertext[10] ^= 0x01
        with pytest.raises(DecryptionFailedError):
            pki.decrypt(privkey, bytes(ciphertext))


class TestOdkCrypto:
    """Test ODK-compatible multi-part encryption."""

    def test_encrypt_and_decrypt(self, pubkey, privkey):
        result = odk.encrypt(pubkey, b"Hello World", "INST_1")

        assert result.b64key
        assert result.ciphertext
        assert odk.decrypt(privkey, result.b64key, result.ciphertext, "INST_1") == b"Hello World"

    def test_wrapped_key_size(self, pubkey):
        result = odk.encrypt(pubkey, b"Hello World", "INST_1")
        assert len(base64.b64decode(result.b64key)) == 256

    @pytest.mark.parametrize("plaintext", PAYLOADS, ids=lambda p: f"{len(p)}B")
    def test_roundtrip_payloads(self, pubkey, privkey, plaintext):
        result = odk.encrypt(pubkey, plaintext, "uuid:0a1b")
        assert odk.decrypt(privkey, result.b64key, result.ciphertext, "uuid:0a1b") == plaintext

    def test_multi_part_roundtrip(self, pubkey, privkey):
        parts = [b"<submission/>", b"attachment one" * 50, b"", b"attachment three"]

        encryptor = OdkEncryptor(pubkey, "uuid:multi")
        ciphertexts = [encryptor.encrypt(part) for part in parts]
        assert encryptor.context.counter == len(parts)

        decryptor = OdkDecryptor.from_base64_key(privkey, encryptor.base64_key, "uuid:multi")
        assert [decryptor.decrypt(c) for c in ciphertexts] == parts

    def test_key_wrapped_once_per_submission(self, pubkey):
        encryptor = OdkEncryptor(pubkey, "uuid:once")
        b64key = encryptor.base64_key
        encryptor.encrypt(b"one")
        encryptor.encrypt(b"two")
        assert encryptor.base64_key == b64key

    def test_parts_get_distinct_ivs(self, pubkey):
        encryptor = OdkEncryptor(pubkey, "uuid:distinct")
        first = encryptor.encrypt(b"same part")
        second = encryptor.encrypt(b"same part")
        assert first != second

    def test_out_of_order_decrypt_fails(self, pubkey, privkey):
        plaintext = b"0123456789abcdef" * 4
        encryptor = OdkEncryptor(pubkey, "uuid:order")
        encryptor.encrypt(b"first part")
        second = encryptor.encrypt(plaintext)

        decryptor = OdkDecryptor.from_base64_key(privkey, encryptor.base64_key, "uuid:order")
        try:
            recovered = decryptor.decrypt(second)
        except DecryptionFailedError:
            return
        assert recovered != plaintext

    def test_stream_parts(self):
        context = SubmissionContext.create("uuid:stream")
        encrypted = io.BytesIO()
        encrypt_part_stream(context, io.BytesIO(b"streamed part"), encrypted)

        peer = SubmissionContext(instance_id="uuid:stream", key=context.key)
        decrypted = io.BytesIO()
        decrypt_part_stream(peer, io.BytesIO(encrypted.getvalue()), decrypted)

        assert decrypted.getvalue() == b"streamed part"
        assert context.counter == peer.counter == 1

    def test_from_symmetric_key(self):
        context = SubmissionContext.create("uuid:sym")
        ciphertext = encrypt_part(context, b"payload")

        decryptor = OdkDecryptor.from_symmetric_key(context.key, "uuid:sym")
        assert decryptor.decrypt(ciphertext) == b"payload"

    def test_context_counter_explicit(self):
        context = SubmissionContext.create("uuid:explicit")
        encrypt_part(context, b"zero")
        third = encrypt_part(SubmissionContext("uuid:explicit", context.key, counter=2), b"two")

        peer = SubmissionContext("uuid:explicit", context.key, counter=2)
        assert decrypt_part(peer, third) == b"two"
        assert peer.counter == 3

    def test_counter_not_advanced_on_failure(self):
        context = SubmissionContext.create("uuid:fail")
        with pytest.raises(DecryptionFailedError):
            decrypt_part(context, b"short")
        assert context.counter == 0

    def test_none_and_empty_instance_are_equivalent(self):
        context = SubmissionContext.create(None)
        ciphertext = encrypt_part(context, b"no instance")

        assert context.instance_id == b""
        assert decrypt_part(SubmissionContext("", context.key), ciphertext) == b"no instance"

    def test_reused_counter_reuses_iv(self):
        # Regression guard: equal (instance, key, counter) means equal IVs, so
        # the first CFB block leaks the XOR of the two plaintexts.
        first = SubmissionContext("uuid:reuse", KEY)
        second = SubmissionContext("uuid:reuse", KEY)
        assert first.current_iv() == second.current_iv()

        p1 = b"A" * 16 + b"tail one"
        p2 = b"B" * 16 + b"tail two"
        c1 = encrypt_part(first, p1)
        c2 = encrypt_part(second, p2)

        assert _xor(c1[:16], c2[:16]) == _xor(p1[:16], p2[:16])
        assert encrypt_part(SubmissionContext("uuid:reuse", KEY), p1) == c1

    def test_bad_key_size(self):
        with pytest.raises(ValueError, match="32 bytes"):
            SubmissionContext("uuid:k", b"short")

    def test_negative_counter(self):
        with pytest.raises(ValueError, match="non-negative"):
            SubmissionContext("uuid:k", KEY, counter=-1)

    def test_key_not_in_repr(self):
        assert repr(KEY) not in repr(SubmissionContext("uuid:k", KEY))

    def test_invalid_base64_key(self, privkey):
        with pytest.raises(DecryptionFailedError):
            OdkDecryptor.from_base64_key(privkey, "not base64!", "uuid:x")

    def test_wrong_private_key(self, pubkey, other_keypair):
        result = odk.encrypt(pubkey, b"secret", "uuid:x")
        with pytest.raises(DecryptionFailedError):
            odk.decrypt(other_keypair[0], result.b64key, result.ciphertext, "uuid:x")


class TestKeyLoading:
    """Test reading RSA keys from their encoded forms."""

    def _public_der(self, pubkey):
        return pubkey.public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )

    def _private_der(self, privkey):
        return privkey.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )

    def test_public_der(self, pubkey):
        key = load_public_key(self._public_der(pubkey))
        assert key.public_numbers() == pubkey.public_numbers()

    def test_public_base64(self, pubkey):
        key = load_public_key(base64.encodebytes(self._public_der(pubkey)))
        assert key.public_numbers() == pubkey.public_numbers()

    def test_public_pem(self, pubkey):
        pem = pubkey.public_bytes(
            serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
        )
        assert load_public_key(pem).public_numbers() == pubkey.public_numbers()

    def test_private_der(self, privkey):
        key = load_private_key(self._private_der(privkey))
        assert key.private_numbers() == privkey.private_numbers()

    def test_private_base64(self, privkey):
        key = load_private_key(base64.b64encode(self._private_der(privkey)))
        assert key.private_numbers() == privkey.private_numbers()

    def test_loaded_keys_interoperate(self, pubkey, privkey):
        loaded_pub = load_public_key(self._public_der(pubkey))
        loaded_priv = load_private_key(self._private_der(privkey))
        assert pki.decrypt(loaded_priv, pki.encrypt(loaded_pub, b"hi")) == b"hi"

    def test_garbage(self):
        with pytest.raises(KeyLoadError, match="public key"):
            load_public_key(b"definitely not a key")
        with pytest.raises(KeyLoadError, match="private key"):
            load_private_key(b"definitely not a key")

    def test_non_rsa_key(self):
        ec_key = ec.generate_private_key(ec.SECP256R1())
        der = ec_key.public_key().public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )
        with pytest.raises(KeyLoadError, match="Not an RSA"):
            load_public_key(der)

    def test_read_from_file(self, tmp_path, pubkey, privkey):
        pub_file = tmp_path / "public.der"
        priv_file = tmp_path / "private.der"
        pub_file.write_bytes(self._public_der(pubkey))
        priv_file.write_bytes(self._private_der(privkey))

        assert read_public_key(pub_file).public_numbers() == pubkey.public_numbers()
        assert read_private_key(str(priv_file)).private_numbers() == privkey.private_numbers()

    def test_missing_file(self, tmp_path):
        with pytest.raises(KeyLoadError, match="Failed to read"):
            read_public_key(tmp_path / "missing.der")
