"""Public import package for Stegano-Sign."""

from src import (  # re-export public API
    AuthenticationError,
    BitEncoder,
    CorruptFrameError,
    FrameLookup,
    FrameProtocol,
    HmacSigner,
    JsonDecodeError,
    KeyTooShortError,
    LeakTracer,
    MalformedBlockError,
    NoWatermarkError,
    SignatureConfig,
    SignatureEngine,
    SignatureMode,
    SignedContent,
    SteganoSignError,
    SymmetricCipher,
    TraceReport,
    VerificationResult,
    WatermarkError,
    WatermarkFinding,
    ZeroWidthCodec,
    __version__,
)

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
