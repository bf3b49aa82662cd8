"""
signature_engine.py - Content Signing and Watermark Verification Facade

SignatureEngine composes the primitives of this package according to a
SignatureMode chosen once at construction:

    none           content is returned untouched, no signature
    hmac           detached HMAC-SHA256 signature only
    steganography  encrypted payload hidden in an invisible frame
    dual           invisible frame, then an HMAC over the framed text
                   (so the signature also covers the watermark)

Failure semantics:
    - Construction fails fast with KeyTooShortError on a bad secret.
    - extract(), extract_all() and verify_hmac() never raise. They are meant
      to run over arbitrary, possibly hostile text (e.g. a leak-scanning
      job) and report problems through their return values.
    - sign() only raises on programmer misuse, such as a payload that is not
      JSON-serializable.

Example:
    >>> engine = SignatureEngine("12345678901234567890123456789012", mode="steganography")
    >>> signed = engine.sign("Hello World", {"userId": 123, "role": "admin"})
    >>> signed.content.startswith("Hello World")
    True
    >>> engine.extract(signed.content).payload["userId"]
    123
    >>> engine.strip(signed.content)
    'Hello World'
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

try:
    from .cipher import HmacSigner, SymmetricCipher
    from .config import SignatureConfig, SignatureMode
    from .errors import JsonDecodeError, NoWatermarkError, WatermarkError
    from .stegano_core import BitEncoder, FrameProtocol
except ImportError:
    from cipher import HmacSigner, SymmetricCipher
    from config import SignatureConfig, SignatureMode
    from errors import JsonDecodeError, NoWatermarkError, WatermarkError
    from stegano_core import BitEncoder, FrameProtocol

logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "t"


# ═══════════════════════════════════════════════════════════════════════════════
# DATA CLASSES FOR STRUCTURED RESULTS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SignedContent:
    """
    Output of SignatureEngine.sign().

    Attributes:
        content: The original text, followed by the invisible frame when
            the mode embeds a watermark
        signature: Hex HMAC-SHA256 over `content`, or None if the mode
            does not produce a detached signature
    """

    content: str
    signature: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"content": self.content}
        if self.signature is not None:
            result["signature"] = self.signature
        return result


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of extracting a watermark from text.

    Attributes:
        is_valid: True only if a frame was found, authenticated and decoded
        payload: The decrypted payload, including the `t` timestamp field
        timestamp: Signing time in integer milliseconds since the epoch
        error: Short failure label when is_valid is False
    """

    is_valid: bool
    payload: Optional[Dict[str, Any]] = field(default=None)
    timestamp: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def invalid(cls, error: str) -> "VerificationResult":
        return cls(is_valid=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: isValid, plus payload/timestamp or error."""
        result: Dict[str, Any] = {"isValid": self.is_valid}
        if self.is_valid:
            result["payload"] = self.payload
            result["timestamp"] = self.timestamp
        else:
            result["error"] = self.error
        return result


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN ENGINE
# ═══════════════════════════════════════════════════════════════════════════════


class SignatureEngine:
    """
    Signs text with an invisible watermark and/or a detached HMAC.

    The engine holds nothing but the immutable key material and the
    resolved mode, so a single instance can be shared freely between
    threads.
    """

    def __init__(
        self,
        secret: Union[str, bytes, None] = None,
        mode: Union[SignatureMode, str, None] = SignatureMode.DUAL,
        *,
        config: Optional[SignatureConfig] = None,
    ):
        """
        Initialize the engine.

        Args:
            secret: Shared secret of at least 32 characters. Ignored when
                `config` is given.
            mode: SignatureMode or its string value (default: dual; None also means dual).
            config: A pre-built SignatureConfig.

        Raises:
            KeyTooShortError: If the secret is shorter than 32 characters.
            ValueError: If the mode is unknown.
        """
        self._config = config or SignatureConfig(secret=secret or "", mode=mode)

        self._cipher = SymmetricCipher(self._config.cipher_key)
        self._signer = HmacSigner(self._config.key_material)
        self._embeds = self._config.mode.embeds_watermark
        self._signs = self._config.mode.signs_detached

    @property
    def mode(self) -> SignatureMode:
        return self._config.mode

    @property
    def config(self) -> SignatureConfig:
        return self._config

    # ─────────────────────────────────────────────────────────────────────────
    # SIGNING
    # ─────────────────────────────────────────────────────────────────────────

    def sign(self, content: str, payload: Optional[Mapping[str, Any]] = None) -> SignedContent:
        """
        Protect content according to the configured mode.

        The payload is merged with a server-assigned `t` field (signing time
        in milliseconds); a caller-supplied `t` is overwritten. The visible
        content is never modified; a watermark frame is only appended.

        Args:
            content: Text to sign.
            payload: JSON-serializable mapping to hide in the watermark.

        Returns:
            SignedContent with the (possibly framed) content and signature.

        Raises:
            TypeError: If content is not a string, payload is not a mapping,
                or payload is not JSON-serializable.
        """
        if not isinstance(content, str):
            raise TypeError(f"content must be str, not {type(content).__name__}")
        if payload is not None and not isinstance(payload, Mapping):
            raise TypeError(f"payload must be a mapping, not {type(payload).__name__}")

        data = dict(payload or {})
        data[TIMESTAMP_FIELD] = int(time.time() * 1000)
        plaintext = json.dumps(data, separators=(",", ":"), ensure_ascii=False)

        signed_content = content
        if self._embeds:
            if len(plaintext) > self._config.max_payload_chars:
                logger.warning(
                    "Watermark payload is %d chars (soft limit %d); frame will be %d invisible chars",
                    len(plaintext),
                    self._config.max_payload_chars,
                    self._frame_length(plaintext),
                )

            block = self._cipher.encrypt(plaintext)
            signed_content = content + FrameProtocol.embed(block)

        signature = self._signer.sign(signed_content) if self._signs else None
        return SignedContent(content=signed_content, signature=signature)

    @staticmethod
    def _frame_length(plaintext: str) -> int:
        # marker + 8 bits per hex char of "iv:tag:ciphertext"
        ciphertext_hex = 2 * len(plaintext.encode("utf-8"))
        return 1 + 8 * (24 + 1 + 32 + 1 + ciphertext_hex)

    # ─────────────────────────────────────────────────────────────────────────
    # VERIFICATION
    # ─────────────────────────────────────────────────────────────────────────

    def verify_hmac(self, content: str, signature: str) -> bool:
        """Check a detached signature. Returns False instead of raising."""
        if not isinstance(content, str):
            return False
        return self._signer.verify(content, signature)

    def extract(self, content: str) -> VerificationResult:
        """
        Recover the payload from the last watermark frame in content.

        Never raises. Absence of a watermark, a corrupted bit run, a
        malformed or forged block, and undecodable plaintext all come back
        as VerificationResult(is_valid=False, error=...).
        """
        if not isinstance(content, str):
            return VerificationResult.invalid(NoWatermarkError.reason)

        lookup = FrameProtocol.extract(content)
        if not lookup.found:
            return VerificationResult.invalid(NoWatermarkError.reason)

        try:
            data = self._unseal(lookup.tail)
        except WatermarkError as e:
            logger.debug("Watermark rejected (%s): %s", e.reason, e)
            return VerificationResult.invalid(e.reason)

        return VerificationResult(is_valid=True, payload=data, timestamp=data.get(TIMESTAMP_FIELD))

    def extract_all(self, content: str) -> List[VerificationResult]:
        """
        Recover every authentic watermark in content, in order of appearance.

        Frames that fail to decode or authenticate under this engine's key
        are skipped. Used for scanning streams that may hold several signed
        messages back to back.
        """
        if not isinstance(content, str):
            return []

        results = []
        for bits in FrameProtocol.iter_frames(content):
            try:
                data = self._unseal(bits)
            except WatermarkError as e:
                logger.debug("Skipping frame (%s): %s", e.reason, e)
                continue
            results.append(
                VerificationResult(is_valid=True, payload=data, timestamp=data.get(TIMESTAMP_FIELD))
            )
        return results

    def _unseal(self, bits: str) -> Dict[str, Any]:
        """Bits → hex block → plaintext → payload dict, raising WatermarkError."""
        block = BitEncoder.decode_strict(bits)
        plaintext = self._cipher.decrypt(block)

        try:
            data = json.loads(plaintext)
        except ValueError as e:
            raise JsonDecodeError(f"payload is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise JsonDecodeError(f"payload is a JSON {type(data).__name__}, not an object")
        return data

    # ─────────────────────────────────────────────────────────────────────────
    # CLEANUP
    # ─────────────────────────────────────────────────────────────────────────

    def strip(self, content: str) -> str:
        """Remove the trailing watermark frame, leaving the visible text."""
        return FrameProtocol.strip(content)
