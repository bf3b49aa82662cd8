"""
Stegano-Sign: Invisible Encrypted Watermarks and Detached Signatures for Text

This package authenticates text content with a shared secret. It can hide an
AES-256-GCM encrypted payload inside the text using zero-width Unicode
characters, produce a detached HMAC-SHA256 signature, or both. Holders of the
secret can later extract and verify the payload, or detect tampering and the
absence of a watermark, without ever having to catch an exception.

Core Components:
    - stegano_core: Zero-width bit encoding and watermark framing
    - cipher: AES-256-GCM block encryption and HMAC-SHA256 signing
    - config: Validated engine configuration and signature modes
    - signature_engine: The SignatureEngine facade
    - leak_tracer: Scanning text, JSON and files for authentic watermarks

Example:
    >>> from stegano_sign import SignatureEngine
    >>> engine = SignatureEngine(secret, mode="dual")
    >>> signed = engine.sign("Quarterly numbers attached.", {"recipient": "ACME"})
    >>> engine.verify_hmac(signed.content, signed.signature)
    True
    >>> engine.extract(signed.content).payload["recipient"]
    'ACME'

License: MIT
"""

__version__ = "1.0.0"

from .cipher import HmacSigner, SymmetricCipher
from .config import SignatureConfig, SignatureMode
from .errors import (
    AuthenticationError,
    CorruptFrameError,
    JsonDecodeError,
    KeyTooShortError,
    MalformedBlockError,
    NoWatermarkError,
    SteganoSignError,
    WatermarkError,
)
from .leak_tracer import LeakTracer, TraceReport, WatermarkFinding
from .signature_engine import SignatureEngine, SignedContent, VerificationResult
from .stegano_core import BitEncoder, FrameLookup, FrameProtocol, ZeroWidthCodec

__all__ = [
    "SignatureEngine",
    "SignedContent",
    "VerificationResult",
    "SignatureConfig",
    "SignatureMode",
    "SymmetricCipher",
    "HmacSigner",
    "BitEncoder",
    "FrameProtocol",
    "FrameLookup",
    "ZeroWidthCodec",
    "LeakTracer",
    "TraceReport",
    "WatermarkFinding",
    "SteganoSignError",
    "KeyTooShortError",
    "WatermarkError",
    "NoWatermarkError",
    "CorruptFrameError",
    "MalformedBlockError",
    "AuthenticationError",
    "JsonDecodeError",
]
