"""
cipher.py - Authenticated Encryption and Detached Signatures

Two keyed primitives back the watermark:

    SymmetricCipher: AES-256-GCM over small JSON payloads. The output is a
                     single ASCII block, `iv_hex:tag_hex:ciphertext_hex`,
                     which is what the frame protocol hides in the text.
    HmacSigner:      HMAC-SHA256 over the UTF-8 bytes of a text, returned
                     as lowercase hex and verified in constant time.

Both objects hold only immutable key material and are safe to share
between threads.
"""

import hashlib
import hmac
import logging
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

try:
    from .errors import AuthenticationError, MalformedBlockError
except ImportError:
    from errors import AuthenticationError, MalformedBlockError

logger = logging.getLogger(__name__)

IV_BYTES = 12
TAG_BYTES = 16
KEY_BYTES = 32
BLOCK_SEPARATOR = ":"

_HEX_FIELD = re.compile(r"[0-9a-fA-F]+")


# ═══════════════════════════════════════════════════════════════════════════════
# AES-256-GCM
# ═══════════════════════════════════════════════════════════════════════════════


class SymmetricCipher:
    """
    AES-256-GCM encryption of text into a hex block.

    A fresh random 96-bit IV is drawn from os.urandom() inside every
    encrypt() call; nothing about the IV is cached or counted, so two
    encryptions never share one under the same key.

    Example:
        >>> cipher = SymmetricCipher(b"k" * 32)
        >>> block = cipher.encrypt('{"t":1}')
        >>> len(block.split(":")[0])
        24
        >>> cipher.decrypt(block)
        '{"t":1}'
    """

    def __init__(self, key: bytes):
        """
        Args:
            key: Exactly 32 bytes of key material.

        Raises:
            ValueError: If the key is not 32 bytes long.
        """
        if len(key) != KEY_BYTES:
            raise ValueError(f"AES-256 key must be {KEY_BYTES} bytes, got {len(key)}")
        self._aead = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt UTF-8 text, returning `iv_hex:tag_hex:ciphertext_hex`."""
        iv = os.urandom(IV_BYTES)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)

        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return BLOCK_SEPARATOR.join((iv.hex(), tag.hex(), ciphertext.hex()))

    def decrypt(self, block: str) -> str:
        """
        Authenticate and decrypt a block produced by encrypt().

        Raises:
            MalformedBlockError: Wrong field count, empty field, bad hex,
                wrong IV/tag size, or plaintext that is not UTF-8.
            AuthenticationError: The tag does not verify (tampered frame or
                wrong key).
        """
        fields = block.split(BLOCK_SEPARATOR)
        if len(fields) != 3 or not all(fields):
            raise MalformedBlockError(f"expected 3 non-empty fields, got {len(fields)}")

        # bytes.fromhex tolerates whitespace, so check the alphabet first
        if not all(_HEX_FIELD.fullmatch(f) for f in fields):
            raise MalformedBlockError("fields must be hex digits only")
        try:
            iv, tag, ciphertext = (bytes.fromhex(f) for f in fields)
        except ValueError as e:
            raise MalformedBlockError(f"invalid hex: {e}") from e

        if len(iv) != IV_BYTES:
            raise MalformedBlockError(f"IV must be {IV_BYTES} bytes, got {len(iv)}")
        if len(tag) != TAG_BYTES:
            raise MalformedBlockError(f"auth tag must be {TAG_BYTES} bytes, got {len(tag)}")

        try:
            plaintext = self._aead.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise AuthenticationError("authentication tag mismatch") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedBlockError("plaintext is not valid UTF-8") from e


# ═══════════════════════════════════════════════════════════════════════════════
# HMAC-SHA256
# ═══════════════════════════════════════════════════════════════════════════════


class HmacSigner:
    """Keyed SHA-256 signatures over text, compared in constant time."""

    DIGEST_HEX_LENGTH = 64

    def __init__(self, key: bytes):
        self._key = key

    def _digest(self, content: str) -> bytes:
        # surrogatepass keeps lone surrogates from raising on untrusted text
        return hmac.new(self._key, content.encode("utf-8", "surrogatepass"), hashlib.sha256).digest()

    def sign(self, content: str) -> str:
        """Return the lowercase hex HMAC-SHA256 of content's UTF-8 bytes."""
        return self._digest(content).hex()

    def verify(self, content: str, signature: str) -> bool:
        """
        Check a detached signature against content.

        Never raises: a signature that is not a string, not ASCII, not hex,
        or not 64 characters long is simply invalid.
        """
        if not isinstance(signature, str) or len(signature) != self.DIGEST_HEX_LENGTH:
            return False
        if not _HEX_FIELD.fullmatch(signature):
            logger.debug("Rejected non-hex signature")
            return False

        return hmac.compare_digest(self._digest(content), bytes.fromhex(signature))
