# hawkeye/scanner/analyzers/content_scanner.py
"""
Content Scanner.

Applies every `secret` rule in the registry to a body of text.

Ordering is stable: findings are grouped by rule in registry order, then by
match offset ascending. Each rule makes one left-to-right pass and reports
non-overlapping matches; different rules may match the same span and are
reported independently.

Excerpts are truncated to a short prefix so a scan report never re-leaks
the secret it found.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from hawkeye.errors import InputTooLarge
from hawkeye.scanner.base import BaseAnalyzer, Finding, ScanContext, redact
from hawkeye.scanner.registry import KIND_SECRET
from hawkeye.scanner.tree import SourceTree

logger = logging.getLogger(__name__)


def _location(offset: int, source: Optional[str]) -> str:
    return f"{source}:offset:{offset}" if source else f"offset:{offset}"


class ContentScanner(BaseAnalyzer):

    @property
    def name(self) -> str:
        return "secrets"

    def scan(
        self,
        text: str,
        ctx: Optional[ScanContext] = None,
        *,
        source: Optional[str] = None,
    ) -> List[Finding]:
        """
        Scan text for secrets.

        Raises:
            InputTooLarge: text is longer than config.max_input_length bytes.
                           Oversized input is never silently truncated.
            ScanCancelled: ctx was cancelled between rule evaluations.
        """
        ctx = ctx or ScanContext(scan_type="secrets")
        self.check_size(text, source=source)
        if not text:
            return []

        findings: List[Finding] = []
        for rule in self.registry.rules_of(KIND_SECRET):
            ctx.check_cancelled()
            for match in rule.regex.finditer(text):
                findings.append(self.finding_from_rule(
                    rule,
                    _location(match.start(), source),
                    excerpt=redact(match.group(0), self.config.excerpt_prefix),
                    message=(
                        f"{rule.title} pattern matched"
                        + (f" in {source}" if source else "")
                        + f" at offset {match.start()}"
                    ),
                ))

        if findings:
            logger.info(
                f"ContentScanner: {len(findings)} secret(s) in {source or 'input'} - "
                f"{sum(1 for f in findings if f.severity == 'critical')} critical"
            )
        return findings

    def scan_tree(self, tree: SourceTree, ctx: Optional[ScanContext] = None) -> List[Finding]:
        """
        Scan every text file in a materialized tree, in path order.

        Files over the size limit are not scanned; each produces a `medium`
        finding so the gap is visible in the report instead of reading as clean.
        """
        ctx = ctx or ScanContext(scan_type="secrets", target=tree.root)
        findings: List[Finding] = []

        for rel in tree.text_files():
            ctx.check_cancelled()
            try:
                size = tree.size(rel)
                if size > self.config.max_input_length:
                    raise InputTooLarge(size, self.config.max_input_length, source=rel)
                text = tree.read_text(rel)
                findings.extend(self.scan(text, ctx, source=rel))
            except OSError as e:
                logger.warning(f"ContentScanner: cannot read {rel}: {e}")
                findings.append(Finding(
                    rule_id="secrets.file-unreadable",
                    type="File not scanned",
                    severity="medium",
                    location=rel,
                    message=f"File could not be read and was not scanned for secrets: {e.strerror or e}",
                ))
            except InputTooLarge as e:
                logger.warning(f"ContentScanner: skipping {rel}: {e.message}")
                findings.append(Finding(
                    rule_id="secrets.file-too-large",
                    type="File not scanned",
                    severity="medium",
                    location=rel,
                    message=f"File is {e.size} bytes, over the {e.limit}-byte scan limit; it was not scanned for secrets",
                    remediation="Raise the scan limit or review this file manually.",
                ))

        return findings
