"""Baseline link-set comparison.

The baseline is a plain UTF-8 text file with one normalized URL per line.
It is written once, on the first run, and only read afterwards.
"""
import difflib
import logging
import os
import re
from html import escape
from typing import Iterable, List, Sequence

from sitemonitor.domain.diff import DiffEntry, DiffStatus

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")


def natural_sort_key(value: str):
    # re.split with a capture group alternates text and digit chunks,
    # so positions compare str-to-str and int-to-int.
    return [int(chunk) if i % 2 else chunk for i, chunk in enumerate(_DIGITS.split(value))]


def natural_sorted(lines: Iterable[str]) -> List[str]:
    return sorted(lines, key=lambda s: (natural_sort_key(s), s))


def prepare_lines(lines: Iterable[str]) -> List[str]:
    """Deduplicate, drop empty entries and sort naturally."""
    seen = set()
    out = []
    for line in lines:
        line = (line or "").strip()
        if not line or line in seen:
            continue
        seen.add(line)
        out.append(line)
    return natural_sorted(out)


def compare(baseline: Sequence[str], current: Sequence[str]) -> List[DiffEntry]:
    """Classify every line of both inputs as UNMODIFIED, REMOVED or ADDED.

    Both sides are prepared identically first. Within a replaced block the
    removed lines come before the added ones.
    """
    old = prepare_lines(baseline)
    new = prepare_lines(current)
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
    entries: List[DiffEntry] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            entries.extend(DiffEntry(line, DiffStatus.UNMODIFIED) for line in old[i1:i2])
            continue
        if tag in ("delete", "replace"):
            entries.extend(DiffEntry(line, DiffStatus.REMOVED) for line in old[i1:i2])
        if tag in ("insert", "replace"):
            entries.extend(DiffEntry(line, DiffStatus.ADDED) for line in new[j1:j2])
    return entries


def significant(entries: Iterable[DiffEntry]) -> List[DiffEntry]:
    """Keep only non-empty ADDED/REMOVED entries."""
    return [e for e in entries if e.status is not DiffStatus.UNMODIFIED and e.text != ""]


def to_string(diffs: Iterable[DiffEntry], separator: str = "\n") -> str:
    prefixes = {DiffStatus.REMOVED: "- ", DiffStatus.ADDED: "+ ", DiffStatus.UNMODIFIED: "  "}
    return "".join(prefixes[d.status] + d.text + separator for d in diffs)


def to_table(diffs: Iterable[DiffEntry]) -> str:
    """Render diffs as a two-column HTML table: removed left, added right."""
    rows = []
    for d in diffs:
        cell = f"<span>{escape(d.text)}</span>"
        if d.status is DiffStatus.REMOVED:
            rows.append(f'<tr><td class="diffDeleted">{cell}</td><td class="diffBlank"></td></tr>')
        elif d.status is DiffStatus.ADDED:
            rows.append(f'<tr><td class="diffBlank"></td><td class="diffInserted">{cell}</td></tr>')
        else:
            rows.append(f'<tr><td class="diffUnmodified">{cell}</td><td class="diffUnmodified">{cell}</td></tr>')
    return '<table class="diff">' + "".join(rows) + "</table>"


class BaselineDiffEngine:
    """Compares a run's links with the baseline file at `baseline_path`."""

    def __init__(self, baseline_path: str):
        self.baseline_path = baseline_path

    def exists(self) -> bool:
        return os.path.isfile(self.baseline_path)

    def read_baseline(self) -> List[str]:
        with open(self.baseline_path, "r", encoding="utf-8") as f:
            return prepare_lines(f.read().split("\n"))

    def write_baseline(self, links: Iterable[str]) -> None:
        directory = os.path.dirname(self.baseline_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.baseline_path, "a", encoding="utf-8") as f:
            for link in links:
                f.write(link + "\n")

    def run(self, links: Sequence[str]) -> List[DiffEntry]:
        """Diff `links` against the baseline.

        On the first run ever the sorted links become the baseline and no
        diffs are reported. An existing baseline is never rewritten.
        """
        current = prepare_lines(links)
        if not self.exists():
            logger.info("No baseline at %s; writing %d links", self.baseline_path, len(current))
            self.write_baseline(current)
            return []
        return significant(compare(self.read_baseline(), current))
