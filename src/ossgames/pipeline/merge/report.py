"""Run report rendering in structured and human-readable form."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ...config.policies import MergePolicy
from ...entities.core import EnrichedEntry, RunReport
from ...utils import ensure_directory, get_logger, serialize_json

_LOGGER = get_logger(module=__name__)


def _by_stars(entries: Sequence[EnrichedEntry]) -> List[EnrichedEntry]:
    return sorted(entries, key=lambda entry: entry.stars, reverse=True)


def report_document(report: RunReport, added: Sequence[EnrichedEntry] = ()) -> Dict[str, Any]:
    payload = report.model_dump(mode="json")
    payload["totals"] = report.totals()
    payload["added"] = [
        {
            "title": entry.title,
            "resource_url": entry.resource_url,
            "source": entry.source_id,
            "stars": entry.stars,
            "language": entry.language,
            "category": entry.category,
        }
        for entry in added
    ]
    return payload


def render_markdown(report: RunReport, added: Sequence[EnrichedEntry]) -> str:
    """Summary table per source followed by new entries grouped by source."""

    lines: List[str] = [
        "# Newly Discovered Open Source Games",
        "",
        f"*Run {report.run_id} generated on {(report.finished_at or report.started_at).isoformat()}*",
        "",
        "## Summary",
        "",
        "| Source | Total | New | Duplicates | Invalid |",
        "|--------|-------|-----|------------|---------|",
    ]
    for source in report.sources:
        lines.append(
            f"| {source.source} | {source.parsed} | {source.new} | {source.duplicates} | {source.invalid} |"
        )
    totals = report.totals()
    lines.extend(["", f"**Total new games: {totals['new']}**", ""])
    if report.errors:
        lines.append(f"**Errors: {len(report.errors)}**")
        lines.append("")
    if report.dataset_rows_dropped:
        lines.append(f"**Invalid dataset rows dropped on load: {report.dataset_rows_dropped}**")
        lines.append("")

    grouped: Dict[str, List[EnrichedEntry]] = {}
    for entry in added:
        grouped.setdefault(entry.source_id, []).append(entry)

    for source, entries in grouped.items():
        lines.extend(["", f"## {source}", ""])
        for entry in _by_stars(entries):
            category = f" *[{entry.category}]*" if entry.category else ""
            description = entry.description or "No description"
            language = entry.language or "Unknown"
            lines.append(
                f"- **[{entry.title}]({entry.resource_url})**{category} - {description}. "
                f"(Language: {language}, Stars: {entry.stars})"
            )

    if report.errors:
        lines.extend(["", "## Errors", ""])
        for error in report.errors:
            lines.append(f"- {error.resource_url}: {error.message}")

    return "\n".join(lines) + "\n"


def render_curated(added: Sequence[EnrichedEntry], policy: MergePolicy | None = None) -> str:
    """Popular new entries grouped by category."""

    cfg = policy or MergePolicy()
    popular = [entry for entry in _by_stars(added) if entry.stars >= cfg.curated_min_stars][: cfg.curated_limit]
    lines: List[str] = [
        "# Curated Popular Open Source Games",
        "",
        f"*Generated on {datetime.now(timezone.utc).isoformat()}*",
        "",
        f"A curated list of popular open-source games ({cfg.curated_min_stars}+ stars) from various sources.",
        "",
    ]
    grouped: Dict[str, List[EnrichedEntry]] = {}
    for entry in popular:
        grouped.setdefault(entry.category or "Other", []).append(entry)
    for category, entries in grouped.items():
        lines.extend(["", f"## {category}", ""])
        for entry in entries:
            lines.append(f"- **[{entry.title}]({entry.resource_url})** - {entry.description or 'No description'}")
            lines.append(
                f"  - Language: {entry.language or 'Unknown'} | Stars: {entry.stars} | Forks: {entry.forks}"
            )
    return "\n".join(lines) + "\n"


def language_distribution(entries: Sequence[EnrichedEntry]) -> Dict[str, int]:
    counts = Counter(entry.language or "Unknown" for entry in entries)
    return dict(counts.most_common())


def write_report(
    report: RunReport,
    added: Sequence[EnrichedEntry],
    path: Path | str,
    *,
    fmt: str = "json",
) -> Path:
    target = Path(path)
    if fmt == "json":
        written = serialize_json(report_document(report, added), target)
    elif fmt == "markdown":
        ensure_directory(target.parent)
        target.write_text(render_markdown(report, added), encoding="utf-8")
        written = target
    else:
        raise ValueError(f"Unsupported report format: {fmt}")
    _LOGGER.info("Wrote run report", path=str(written), format=fmt)
    return written


def write_curated(added: Sequence[EnrichedEntry], path: Path | str, policy: MergePolicy | None = None) -> Path:
    target = Path(path)
    ensure_directory(target.parent)
    target.write_text(render_curated(added, policy), encoding="utf-8")
    _LOGGER.info("Wrote curated list", path=str(target))
    return target


__all__ = [
    "language_distribution",
    "render_curated",
    "render_markdown",
    "report_document",
    "write_curated",
    "write_report",
]
