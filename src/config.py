"""
config.py - Signature Engine Configuration

The configuration is resolved and validated exactly once, when a
SignatureConfig is built. The engine reads the already-resolved values on
every call and never re-checks them.

Environment variables (see SignatureConfig.from_env):
    STEGANO_SIGN_SECRET       Shared secret, at least 32 characters
    STEGANO_SIGN_MODE         none | hmac | steganography | dual (default: dual)
    STEGANO_SIGN_MAX_PAYLOAD  Soft cap on serialized payload size (default: 200)
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

try:
    from .errors import KeyTooShortError
except ImportError:
    from errors import KeyTooShortError

MIN_SECRET_LENGTH = 32
DEFAULT_MAX_PAYLOAD_CHARS = 200
ENV_PREFIX = "STEGANO_SIGN_"


class SignatureMode(Enum):
    """How sign() protects content."""

    NONE = "none"  # content passes through untouched
    HMAC = "hmac"  # detached signature only
    STEGANOGRAPHY = "steganography"  # invisible encrypted watermark only
    DUAL = "dual"  # watermark, then a signature over the watermarked text

    @property
    def embeds_watermark(self) -> bool:
        return self in (SignatureMode.STEGANOGRAPHY, SignatureMode.DUAL)

    @property
    def signs_detached(self) -> bool:
        return self in (SignatureMode.HMAC, SignatureMode.DUAL)


@dataclass(frozen=True)
class SignatureConfig:
    """
    Fully resolved engine configuration.

    Attributes:
        secret: Shared secret. The first 32 bytes of its UTF-8 encoding key
            AES-256-GCM; the whole secret keys HMAC-SHA256.
        mode: SignatureMode (strings are accepted and converted; None or
            an empty string means dual).
        max_payload_chars: Serialized payloads longer than this are still
            signed, but a warning is logged because every character costs
            eight invisible characters in the frame.

    Raises:
        KeyTooShortError: If the secret is shorter than 32 characters.
        ValueError: If the mode is unknown or max_payload_chars is not positive.
    """

    secret: Union[str, bytes]
    mode: SignatureMode = SignatureMode.DUAL
    max_payload_chars: int = DEFAULT_MAX_PAYLOAD_CHARS

    def __post_init__(self):
        if not self.secret or len(self.secret) < MIN_SECRET_LENGTH:
            raise KeyTooShortError(len(self.secret or ""), MIN_SECRET_LENGTH)

        if self.mode is None or self.mode == "":
            object.__setattr__(self, "mode", SignatureMode.DUAL)
        elif not isinstance(self.mode, SignatureMode):
            try:
                mode = SignatureMode(str(self.mode).lower())
            except ValueError:
                valid = ", ".join(m.value for m in SignatureMode)
                raise ValueError(f"Unknown signature mode {self.mode!r} (expected one of: {valid})") from None
            object.__setattr__(self, "mode", mode)

        if self.max_payload_chars <= 0:
            raise ValueError("max_payload_chars must be positive")

    @property
    def key_material(self) -> bytes:
        """The secret as bytes."""
        if isinstance(self.secret, bytes):
            return self.secret
        return self.secret.encode("utf-8")

    @property
    def cipher_key(self) -> bytes:
        """The 32-byte AES-256 key."""
        return self.key_material[:32]

    def __repr__(self) -> str:
        return (
            f"SignatureConfig(secret=<{len(self.secret)} chars>, "
            f"mode={getattr(self.mode, 'value', self.mode)!r}, "
            f"max_payload_chars={self.max_payload_chars})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SignatureConfig":
        """
        Build a configuration from STEGANO_SIGN_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ (useful in tests).
        """
        env = os.environ if environ is None else environ

        max_payload = env.get(ENV_PREFIX + "MAX_PAYLOAD")
        return cls(
            secret=env.get(ENV_PREFIX + "SECRET", ""),
            mode=env.get(ENV_PREFIX + "MODE") or SignatureMode.DUAL.value,
            max_payload_chars=int(max_payload) if max_payload else DEFAULT_MAX_PAYLOAD_CHARS,
        )
