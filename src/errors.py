"""
errors.py - Exception Taxonomy for Stegano-Sign

Only KeyTooShortError ever escapes to callers of the scanning API; it is
raised once, at construction. Every WatermarkError is raised inside the
unseal pipeline and turned into an invalid VerificationResult before it
reaches the caller of SignatureEngine.extract().
"""


class SteganoSignError(Exception):
    """Base class for all errors raised by this package."""


class KeyTooShortError(SteganoSignError, ValueError):
    """The signing secret is shorter than the required 32 characters."""

    def __init__(self, length: int, minimum: int = 32):
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Signature secret must be at least {minimum} characters long (got {length})"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# PER-CALL WATERMARK FAILURES
# ═══════════════════════════════════════════════════════════════════════════════


class WatermarkError(SteganoSignError):
    """Base class for failures while recovering a hidden payload."""

    #: Short label reported in VerificationResult.error
    reason = "invalid watermark"


class NoWatermarkError(WatermarkError):
    """No frame marker was found. A normal outcome for unsigned text."""

    reason = "no watermark"


class CorruptFrameError(WatermarkError):
    """The bit run after the marker is not a whole number of ASCII bytes."""

    reason = "corrupt frame"


class MalformedBlockError(WatermarkError):
    """The decoded block is not `iv_hex:tag_hex:ciphertext_hex`."""

    reason = "malformed block"


class AuthenticationError(WatermarkError):
    """The AEAD tag did not verify: the frame was tampered with or the key is wrong."""

    reason = "authentication failed"


class JsonDecodeError(WatermarkError):
    """The decrypted plaintext is not a JSON object."""

    reason = "decode failed"
