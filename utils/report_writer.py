import math
import logging
import datetime

from typing import List
from typing import Optional

from core.asset_refs import identity_key
from data.models import AuditResult
from data.models import ResolvedAsset
from data.report_schema import AuditReport
from data.report_schema import OversizeAssetEntry
from data.report_schema import ReportCounts
from data.report_schema import SpaceReport


logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 30
UNRESOLVED_PREVIEW = 20
STORIES_PER_ASSET = 5
BYTE_UNITS = ("B", "KB", "MB", "GB")


def human_bytes(size: Optional[float]) -> str:
    """Render a byte count with a 1024-based unit.

    Args:
        size: Byte count, None for unknown.
    """

    if size is None or isinstance(size, bool) or not math.isfinite(size):
        return "n/a"
    value = float(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(BYTE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    if unit_index == 0:
        return f"{value:.0f} {BYTE_UNITS[unit_index]}"
    return f"{value:.1f} {BYTE_UNITS[unit_index]}"


def referenced_in(result: AuditResult, asset: ResolvedAsset) -> List[str]:
    """Story labels referencing one resolved asset.

    Args:
        result: Audit result.
        asset: Resolved asset.
    """

    return list(result.referenced_in.get(identity_key(asset.reference), []))


def build_json_report(result: AuditResult) -> AuditReport:
    """Build the machine-readable report model.

    Args:
        result: Audit result.
    """

    spaces = {}
    for space_id, stats in result.space_stats.items():
        spaces[str(space_id)] = SpaceReport(
            resolved = stats.resolved,
            unresolved = stats.unresolved,
            oversize = len(stats.oversize),
            total_bytes = stats.total_bytes,
            oversize_assets = [
                OversizeAssetEntry(
                    id = asset.metadata.identifier,
                    filename = asset.metadata.filename or asset.reference.filename,
                    content_type = asset.metadata.content_type,
                    filesize = asset.metadata.size_bytes,
                    width = asset.metadata.width,
                    height = asset.metadata.height,
                    referenced_in = referenced_in(result = result, asset = asset)
                )
                for asset in stats.oversize
            ]
        )

    return AuditReport(
        threshold_bytes = result.threshold_bytes,
        counts = ReportCounts(
            stories = result.stories,
            referenced_unique = len(result.resolved_assets),
            resolved = len(result.resolved),
            unresolved = len(result.unresolved),
            oversize = len(result.oversize)
        ),
        spaces = spaces
    )


def write_json_report(result: AuditResult, path: str) -> str:
    """Write the JSON report file.

    Args:
        result: Audit result.
        path: Output file path.
    """

    report = build_json_report(result = result)
    with open(path, "w", encoding = "utf-8") as fp:
        fp.write(report.model_dump_json(indent = 2))
    logger.info("Wrote: %s", path)
    return path


def format_summary(result: AuditResult, top_n: int = DEFAULT_TOP_N) -> List[str]:
    """Console summary lines.

    Args:
        result: Audit result.
        top_n: Number of oversize assets to list.
    """

    resolved = result.resolved
    unresolved = result.unresolved
    lines = [
        "=== SUMMARY ===",
        f"Resolved:   {len(resolved)}",
        f"Unresolved: {len(unresolved)}",
        f"Total size (resolved): {human_bytes(result.total_bytes)}",
        f"Threshold: {human_bytes(result.threshold_bytes)}",
        f"Oversize: {len(result.oversize)}"
    ]

    if unresolved:
        lines.append("")
        lines.append(f"=== UNRESOLVED (first {UNRESOLVED_PREVIEW}) ===")
        for asset in unresolved[:UNRESOLVED_PREVIEW]:
            lines.append(f"- [space {asset.space_id}] {asset.reference.filename}")
        if len(unresolved) > UNRESOLVED_PREVIEW:
            lines.append(f"... +{len(unresolved) - UNRESOLVED_PREVIEW} more")

    if len(result.space_stats) > 1:
        lines.append("")
        lines.append("=== PER SPACE ===")
        for space_id, stats in result.space_stats.items():
            lines.append(
                f"Space {space_id}: resolved {stats.resolved}, unresolved {stats.unresolved}, "
                f"oversize {len(stats.oversize)}, total {human_bytes(stats.total_bytes)}"
            )

    lines.append("")
    lines.append(f"=== TOP OVERSIZE ASSETS (up to {top_n}) ===")
    for asset in result.oversize[:top_n]:
        lines.append(
            f"- [space {asset.space_id}] {human_bytes(asset.metadata.size_bytes)} | "
            f"{asset.metadata.content_type or 'unknown'} | {asset.metadata.filename or asset.reference.filename}"
        )
        stories = referenced_in(result = result, asset = asset)
        for label in stories[:STORIES_PER_ASSET]:
            lines.append(f"    -> {label}")
        if len(stories) > STORIES_PER_ASSET:
            lines.append(f"    -> ... +{len(stories) - STORIES_PER_ASSET} more")
    return lines


def log_summary(result: AuditResult, top_n: int = DEFAULT_TOP_N) -> None:
    """Emit the console summary through the logger.

    Args:
        result: Audit result.
        top_n: Number of oversize assets to list.
    """

    for line in format_summary(result = result, top_n = top_n):
        logger.info("%s", line)


def format_human_report(
    result: AuditResult,
    top_n: int = DEFAULT_TOP_N,
    generated_at: Optional[datetime.datetime] = None
) -> str:
    """Plain-text oversize report.

    Args:
        result: Audit result.
        top_n: Number of oversize assets to list.
        generated_at: Report timestamp, now (UTC) when omitted.
    """

    generated_at = generated_at or datetime.datetime.now(datetime.timezone.utc)
    lines = [
        "Storyblok Oversized Assets Report",
        f"Threshold: {human_bytes(result.threshold_bytes)}",
        f"Generated: {generated_at.isoformat()}",
        ""
    ]

    if not result.oversize:
        lines.append("No assets above threshold.")
        return "\n".join(lines)

    listed = result.oversize[:top_n]
    lines.append(f"Top {len(listed)} oversized assets:")
    lines.append("")
    for index, asset in enumerate(listed, start = 1):
        stories = referenced_in(result = result, asset = asset)
        used_in = ", ".join(stories) if stories else "No story reference found"
        lines.append(
            f"{index}. {human_bytes(asset.metadata.size_bytes)} - "
            f"{asset.metadata.filename or asset.reference.filename} "
            f"(space {asset.space_id}, {asset.metadata.content_type or 'unknown type'})"
        )
        lines.append(f"    Used in: {used_in}")
    return "\n".join(lines)


def write_human_report(result: AuditResult, path: str, top_n: int = DEFAULT_TOP_N) -> str:
    """Write the plain-text report file.

    Args:
        result: Audit result.
        path: Output file path.
        top_n: Number of oversize assets to list.
    """

    with open(path, "w", encoding = "utf-8") as fp:
        fp.write(format_human_report(result = result, top_n = top_n))
    logger.info("Human-readable report written to: %s", path)
    return path
