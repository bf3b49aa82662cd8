"""
leak_tracer.py - Watermark Scanning for Suspected Leaks

This module is the "forensics" side of Stegano-Sign. Given text that may
have escaped (a pasted chat log, a scraped page, an exported JSON
document), it finds every watermark that authenticates under the
engine's key and reports who or what it was issued to.

Forensic Workflow:
    1. SCAN: Quick check for frame markers, without decrypting
    2. EXTRACT: Walk every string in the input and recover all frames
    3. REPORT: Aggregate findings with a content hash and scan time

Evidence Handling:
    The tracer never modifies its input and never raises on hostile text:
    unreadable files and invalid frames end up in the report verdict,
    not as exceptions.

Example Investigation:
    >>> tracer = LeakTracer(SignatureEngine(secret))
    >>> report = tracer.trace(Path("leaked_transcript.txt"))
    >>> if report.watermarks_found:
    ...     print(report.forensic_summary())
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

try:
    from .signature_engine import TIMESTAMP_FIELD, SignatureEngine
    from .stegano_core import FrameProtocol, ZeroWidthCodec
except ImportError:
    from signature_engine import TIMESTAMP_FIELD, SignatureEngine
    from stegano_core import FrameProtocol, ZeroWidthCodec

logger = logging.getLogger(__name__)

Source = Union[str, Path, Dict[str, Any], List[Any]]


# ═══════════════════════════════════════════════════════════════════════════════
# DATA CLASSES FOR FORENSIC REPORTS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class WatermarkFinding:
    """
    One authenticated watermark found in the scanned source.

    Attributes:
        payload: The decrypted payload (including its `t` field)
        timestamp: Signing time in milliseconds since the epoch
        location_path: JSON path of the string holding the frame
            ("root" for plain text)
        visible_context: Start of the visible text around the frame
    """

    payload: Dict[str, Any]
    timestamp: Optional[int]
    location_path: str
    visible_context: str

    @property
    def signed_at(self) -> Optional[str]:
        """ISO-8601 rendering of the signing timestamp, if it is numeric."""
        if not isinstance(self.timestamp, (int, float)):
            return None
        return datetime.fromtimestamp(self.timestamp / 1000).isoformat()


@dataclass
class TraceReport:
    """
    Aggregated result of scanning one source.

    Attributes:
        source: File path, or "<in-memory>"
        content_hash: SHA-256 of the scanned content
        scan_timestamp: When the scan was performed
        watermarks_found: True if any authentic watermark was recovered
        findings: Every recovered watermark, in scan order
        verdict: Human-readable summary
    """

    source: str
    content_hash: str
    scan_timestamp: str
    watermarks_found: bool = False
    findings: List[WatermarkFinding] = field(default_factory=list)
    verdict: str = ""

    @property
    def total_watermarks(self) -> int:
        return len(self.findings)

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        """
        Distinct payload identities, in order of first appearance.

        The signing timestamp differs per message, so it is left out of
        the comparison and of the returned mappings.
        """
        unique: List[Dict[str, Any]] = []
        for finding in self.findings:
            identity = {k: v for k, v in finding.payload.items() if k != TIMESTAMP_FIELD}
            if identity not in unique:
                unique.append(identity)
        return unique

    def forensic_summary(self) -> str:
        """Plain-text report suitable for an incident ticket."""
        lines = [
            "════════════════════════════════════════════════════════════",
            "  WATERMARK LEAK SCAN",
            "════════════════════════════════════════════════════════════",
            f"  Source:    {self.source}",
            f"  SHA-256:   {self.content_hash}",
            f"  Scan Time: {self.scan_timestamp}",
            "────────────────────────────────────────────────────────────",
        ]

        if self.watermarks_found:
            lines.append(f"  WATERMARKS DETECTED: {self.total_watermarks}")
            for finding in self.findings:
                payload = json.dumps(finding.payload, sort_keys=True, ensure_ascii=False)
                lines.append(f"    → {finding.location_path}: {payload}")
                if finding.signed_at:
                    lines.append(f"      signed at {finding.signed_at}")
        else:
            lines.append("  NO AUTHENTIC WATERMARKS DETECTED")

        lines.append("────────────────────────────────────────────────────────────")
        lines.append(f"  VERDICT: {self.verdict}")
        lines.append("════════════════════════════════════════════════════════════")
        return "\n".join(lines)

    def to_json(self) -> str:
        """Export report as JSON for programmatic processing."""
        return json.dumps(
            {
                "source": self.source,
                "content_hash": self.content_hash,
                "scan_timestamp": self.scan_timestamp,
                "watermarks_found": self.watermarks_found,
                "total_watermarks": self.total_watermarks,
                "verdict": self.verdict,
                "findings": [
                    {
                        "payload": f.payload,
                        "timestamp": f.timestamp,
                        "location_path": f.location_path,
                        "visible_context": f.visible_context[:100],
                    }
                    for f in self.findings
                ],
            },
            indent=2,
            ensure_ascii=False,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN TRACER CLASS
# ═══════════════════════════════════════════════════════════════════════════════


class LeakTracer:
    """
    Scans text, JSON documents and files for authentic watermarks.

    Sources are interpreted as follows:
        - Path: the file is read as UTF-8; JSON files are walked
          structurally, anything else is scanned as one text
        - dict / list: walked depth-first, every string value is scanned
        - str: scanned as text
    """

    def __init__(self, engine: SignatureEngine, context_chars: int = 50):
        """
        Args:
            engine: Engine holding the key that watermarks must authenticate
                under.
            context_chars: How much visible text to keep per finding.
        """
        self._engine = engine
        self._context_chars = context_chars

    # ─────────────────────────────────────────────────────────────────────────
    # PUBLIC API
    # ─────────────────────────────────────────────────────────────────────────

    def has_watermark(self, source: Source) -> bool:
        """
        Quick check for watermark frames, without decrypting anything.

        A True result means frames are present, not that they are authentic.
        """
        if isinstance(source, Path):
            try:
                raw = source.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                return False
            source = self._parse_json(raw) if source.suffix.lower() == ".json" else raw
        return any(FrameProtocol.has_frame(text) for _, text in self._iter_strings(source, "root"))

    def trace(self, source: Source) -> TraceReport:
        """
        Recover every authentic watermark in source.

        Returns:
            TraceReport; I/O problems are reported in its verdict.
        """
        label = str(source) if isinstance(source, Path) else "<in-memory>"
        scan_time = datetime.now().isoformat()

        if isinstance(source, Path):
            try:
                raw = source.read_text(encoding="utf-8")
            except FileNotFoundError:
                return TraceReport(label, "", scan_time, verdict="ERROR: File not found")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read %s: %s", source, e)
                return TraceReport(label, "", scan_time, verdict=f"ERROR: Unreadable file ({e})")

            content_hash = hashlib.sha256(raw.encode("utf-8")).hexdigest()
            data: Source = self._parse_json(raw) if source.suffix.lower() == ".json" else raw
        elif isinstance(source, str):
            content_hash = hashlib.sha256(source.encode("utf-8", "surrogatepass")).hexdigest()
            data = source
        else:
            content_hash = self._document_hash(source)
            data = source

        report = TraceReport(source=label, content_hash=content_hash, scan_timestamp=scan_time)

        for path, text in self._iter_strings(data, "root"):
            for result in self._engine.extract_all(text):
                report.findings.append(
                    WatermarkFinding(
                        payload=result.payload,
                        timestamp=result.timestamp,
                        location_path=path,
                        visible_context=self._visible_text(text)[: self._context_chars],
                    )
                )

        report.watermarks_found = bool(report.findings)
        if not report.watermarks_found:
            report.verdict = "No authentic watermarks found"
        elif len(report.payloads) == 1:
            report.verdict = (
                f"Single watermark identity in {report.total_watermarks} instance(s)"
            )
        else:
            report.verdict = (
                f"{len(report.payloads)} distinct watermark payloads - possible merge of sources"
            )

        logger.info("Scanned %s: %d watermark(s)", label, report.total_watermarks)
        return report

    def extract_payloads(self, source: Source) -> List[Dict[str, Any]]:
        """Distinct decrypted payloads found in source."""
        return self.trace(source).payloads

    # ─────────────────────────────────────────────────────────────────────────
    # INTERNAL: Traversal
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _parse_json(raw: str) -> Source:
        try:
            return json.loads(raw)
        except (ValueError, RecursionError):
            logger.debug("File is not decodable JSON, scanning as text")
            return raw

    @staticmethod
    def _visible_text(text: str) -> str:
        return "".join(c for c in text if not ZeroWidthCodec.is_zero_width(c))

    @staticmethod
    def _walk(node: Any, path: str) -> Iterator[Tuple[str, Any]]:
        """
        Yield (json_path, leaf) for every non-container value under node.

        Uses an explicit stack so hostile nesting depth cannot exhaust the
        interpreter's recursion limit; containers already visited are
        skipped, which also terminates on self-referencing structures.
        """
        stack = [(path, node)]
        seen = set()
        while stack:
            path, node = stack.pop()
            if isinstance(node, (dict, list)):
                if id(node) in seen:
                    continue
                seen.add(id(node))
                if isinstance(node, dict):
                    children = [(f"{path}.{key}", value) for key, value in node.items()]
                else:
                    children = [(f"{path}[{idx}]", item) for idx, item in enumerate(node)]
                stack.extend(reversed(children))
            else:
                yield path, node

    def _iter_strings(self, node: Any, path: str) -> Iterator[Tuple[str, str]]:
        """Yield (json_path, string) for every string value under node."""
        for leaf_path, leaf in self._walk(node, path):
            if isinstance(leaf, str):
                yield leaf_path, leaf

    def _document_hash(self, node: Any) -> str:
        """SHA-256 over every (path, leaf) pair of an in-memory document."""
        digest = hashlib.sha256()
        for leaf_path, leaf in self._walk(node, "root"):
            text = leaf if isinstance(leaf, str) else repr(leaf)
            digest.update(leaf_path.encode("utf-8", "surrogatepass"))
            digest.update(b"\x00")
            digest.update(text.encode("utf-8", "surrogatepass"))
            digest.update(b"\x00")
        return digest.hexdigest()
