"""
stegano_core.py - Zero-Width Bit Encoding and Watermark Framing

This module implements the invisible transport layer of Stegano-Sign. An
encrypted block (an ASCII hex string) is turned into a run of zero-width
Unicode characters and appended, behind a marker character, to the end of
otherwise unchanged visible text.

Technical Background:
    Zero-width characters are Unicode code points designed for text rendering
    control (e.g., controlling ligature formation in Arabic script). Because
    they have no visual representation, they can be appended to strings
    without altering the perceived content. This module repurposes them as
    an invisible binary alphabet.

Encoding Scheme:
    ZERO_WIDTH_SPACE (U+200B)      → Binary '0'
    ZERO_WIDTH_NON_JOINER (U+200C) → Binary '1'
    ZERO_WIDTH_JOINER (U+200D)     → Frame marker (start of a watermark)

Frame Layout:
    visible text ++ MARKER ++ 8 × len(block) bit characters

Security Note:
    The framing itself is not secret. Confidentiality and tamper evidence
    come from the AEAD block carried inside the frame (see cipher.py).
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

try:
    from .errors import CorruptFrameError
except ImportError:
    from errors import CorruptFrameError

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# UNICODE CODE POINTS FOR ZERO-WIDTH STEGANOGRAPHY
# ═══════════════════════════════════════════════════════════════════════════════


class ZeroWidthCodec:
    """
    Unicode code points used for invisible binary encoding.

    These characters are part of the "General Punctuation" Unicode block
    and are specifically designed to have zero display width. They are
    preserved by virtually all text processing systems including JSON
    serializers, making them ideal for steganographic embedding.

    Reference: Unicode Standard, Chapter 23.2 "Format Characters"
    """

    # Binary encoding characters
    ZERO: str = "\u200b"  # ZERO WIDTH SPACE - represents binary '0'
    ONE: str = "\u200c"  # ZERO WIDTH NON-JOINER - represents binary '1'

    # Frame marker
    MARKER: str = "\u200d"  # ZERO WIDTH JOINER - start of a watermark frame

    BITS: frozenset = frozenset({"\u200b", "\u200c"})
    ALL_CHARS: frozenset = frozenset({"\u200b", "\u200c", "\u200d"})

    @classmethod
    def is_zero_width(cls, char: str) -> bool:
        """Check if a character is one of the reserved zero-width characters."""
        return char in cls.ALL_CHARS

    @classmethod
    def is_bit_run(cls, text: str) -> bool:
        """True if text is non-empty and made only of ZERO/ONE characters."""
        return bool(text) and all(c in cls.BITS for c in text)

    @classmethod
    def contains_markers(cls, text: str) -> bool:
        """Quick check if text contains any reserved zero-width characters."""
        return any(c in cls.ALL_CHARS for c in text)


# ═══════════════════════════════════════════════════════════════════════════════
# BIT ENCODER: ASCII ↔ Invisible Unicode
# ═══════════════════════════════════════════════════════════════════════════════


class BitEncoder:
    """
    Lossless mapping between an ASCII string and a run of bit characters.

    Each character becomes its 8-bit binary form (most significant bit
    first), and each bit becomes ZERO or ONE. Decoding is total: it returns
    None instead of raising, because it runs against arbitrary untrusted
    tails of text.

    Example:
        >>> bits = BitEncoder.encode("a1")
        >>> len(bits)
        16
        >>> BitEncoder.decode(bits)
        'a1'
        >>> BitEncoder.decode(bits[:-1]) is None
        True
    """

    _TO_CHAR = {"0": ZeroWidthCodec.ZERO, "1": ZeroWidthCodec.ONE}
    _TO_BIT = {ZeroWidthCodec.ZERO: "0", ZeroWidthCodec.ONE: "1"}

    @classmethod
    def encode(cls, text: str) -> str:
        """
        Encode an ASCII string (normally a hex block) as invisible bits.

        Raises:
            ValueError: If text contains a non-ASCII character.
        """
        if not text.isascii():
            raise ValueError("BitEncoder only encodes ASCII text")

        binary_string = "".join(format(ord(char), "08b") for char in text)
        return "".join(cls._TO_CHAR[bit] for bit in binary_string)

    @classmethod
    def decode_strict(cls, bits: str) -> str:
        """
        Decode a bit run back into ASCII text.

        Raises:
            CorruptFrameError: If the run is empty, contains a character
                outside the two-symbol alphabet, is not a multiple of 8
                bits long, or yields a non-ASCII byte.
        """
        if not bits:
            raise CorruptFrameError("empty bit run")

        binary = []
        for position, char in enumerate(bits):
            bit = cls._TO_BIT.get(char)
            if bit is None:
                raise CorruptFrameError(f"unexpected character U+{ord(char):04X} at offset {position}")
            binary.append(bit)

        binary_string = "".join(binary)
        if len(binary_string) % 8 != 0:
            raise CorruptFrameError(f"invalid bit length {len(binary_string)} (not multiple of 8)")

        byte_values = [int(binary_string[i : i + 8], 2) for i in range(0, len(binary_string), 8)]
        if any(value > 0x7F for value in byte_values):
            raise CorruptFrameError("decoded byte outside ASCII range")

        return "".join(chr(value) for value in byte_values)

    @classmethod
    def decode(cls, bits: str) -> Optional[str]:
        """Decode a bit run, returning None if it is not a valid encoding."""
        try:
            return cls.decode_strict(bits)
        except CorruptFrameError as e:
            logger.debug("Bit run rejected: %s", e)
            return None


# ═══════════════════════════════════════════════════════════════════════════════
# FRAME PROTOCOL: locating watermarks inside arbitrary text
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FrameLookup:
    """
    Result of searching a text for a watermark frame.

    Attributes:
        found: True if at least one marker character is present
        tail: Everything after the last marker (empty if not found)
    """

    found: bool
    tail: str = ""


class FrameProtocol:
    """
    Wraps BitEncoder output with the marker and finds it again in text.

    The frame is always appended to the end of the visible content, never
    interleaved. When content has been signed more than once, only the most
    recent (last) frame is considered by extract() and strip().
    """

    @staticmethod
    def embed(block: str) -> str:
        """Build the invisible frame for an ASCII block."""
        return ZeroWidthCodec.MARKER + BitEncoder.encode(block)

    @staticmethod
    def extract(content: str) -> FrameLookup:
        """
        Locate the last frame in content.

        A missing marker is a normal "no watermark" outcome and is reported
        through FrameLookup.found, not as an error. The tail is returned
        verbatim; validating it is BitEncoder's job.
        """
        parts = content.split(ZeroWidthCodec.MARKER)
        if len(parts) < 2:
            return FrameLookup(found=False)
        return FrameLookup(found=True, tail=parts[-1])

    @staticmethod
    def strip(content: str) -> str:
        """
        Remove the last frame from content, if it is one.

        The marker and its tail are only removed when the tail consists
        exclusively of bit characters. Anything else after the last marker
        means the text does not end in a watermark, so content is returned
        unchanged.

        Known limitation: a crafted run of bit characters behind a marker is
        indistinguishable from a genuine watermark and will be stripped.
        """
        index = content.rfind(ZeroWidthCodec.MARKER)
        if index == -1:
            return content

        if ZeroWidthCodec.is_bit_run(content[index + 1 :]):
            return content[:index]
        return content

    @staticmethod
    def iter_frames(content: str) -> Iterator[str]:
        """
        Yield the bit run that follows every marker in content.

        Unlike extract(), this tolerates visible text after a frame, which
        lets a scanner recover several signed messages that were
        concatenated into one stream (e.g. a chat log or a scraped page).
        Empty runs are skipped.
        """
        start = content.find(ZeroWidthCodec.MARKER)
        while start != -1:
            end = start + 1
            while end < len(content) and content[end] in ZeroWidthCodec.BITS:
                end += 1
            if end > start + 1:
                yield content[start + 1 : end]
            start = content.find(ZeroWidthCodec.MARKER, end)

    @classmethod
    def has_frame(cls, content: str) -> bool:
        """
        Quick check for a marker followed by at least one bit character.

        This does not decode or decrypt anything.
        """
        return next(cls.iter_frames(content), None) is not None
