import os
import json
import datetime
import tempfile
import unittest

from core.aggregator import AssetAggregator
from data.models import AssetMetadata
from data.models import AssetReference
from data.models import AuditResult
from data.models import ResolvedAsset
from utils.report_writer import build_json_report
from utils.report_writer import format_human_report
from utils.report_writer import format_summary
from utils.report_writer import human_bytes
from utils.report_writer import write_json_report


BIG_URL = "https://a.storyblok.com/f/5/42/big.png"
SMALL_URL = "https://a.storyblok.com/f/5/43/small.png"
GONE_URL = "https://a.storyblok.com/f/5/44/gone.png"


def _result() -> AuditResult:
    """Build a small audit result by hand.

    Args:
        None
    """

    big = ResolvedAsset(
        reference = AssetReference(filename = BIG_URL, identifier = 42, space_id = 5),
        space_id = 5,
        kind = "image",
        metadata = AssetMetadata(
            filename = BIG_URL,
            identifier = 42,
            content_type = "image/png",
            size_bytes = 2 * 1024 * 1024
        )
    )
    small = ResolvedAsset(
        reference = AssetReference(filename = SMALL_URL, identifier = 43, space_id = 5),
        space_id = 5,
        kind = "image",
        metadata = AssetMetadata(filename = SMALL_URL, identifier = 43, size_bytes = 100)
    )
    gone = ResolvedAsset(
        reference = AssetReference(filename = GONE_URL, identifier = 44, space_id = 5),
        space_id = 5,
        kind = "image"
    )
    assets = [big, small, gone]
    aggregator = AssetAggregator(threshold_bytes = 300 * 1024).add_all(assets)
    return AuditResult(
        threshold_bytes = 300 * 1024,
        stories = 2,
        references = [asset.reference for asset in assets],
        resolved_assets = assets,
        oversize = aggregator.oversize,
        space_stats = aggregator.space_stats,
        referenced_in = {(5, "id", 42): ["en/home (1)", "en/about (2)"]}
    )


class TestHumanBytes(unittest.TestCase):
    """Tests for byte formatting."""

    def test_units(self) -> None:
        """Should use 1024 steps and one decimal above bytes.

        Args:
            self: Test case instance.
        """

        self.assertEqual(human_bytes(512), "512 B")
        self.assertEqual(human_bytes(300 * 1024), "300.0 KB")
        self.assertEqual(human_bytes(1536 * 1024), "1.5 MB")
        self.assertEqual(human_bytes(5 * 1024 ** 4), "5120.0 GB")
        self.assertEqual(human_bytes(None), "n/a")


class TestReports(unittest.TestCase):
    """Tests for JSON, console and human reports."""

    def test_json_report_layout(self) -> None:
        """JSON report should carry counts, spaces and back-references.

        Args:
            self: Test case instance.
        """

        report = build_json_report(_result()).model_dump()

        self.assertEqual(report["threshold_bytes"], 307200)
        self.assertEqual(
            report["counts"],
            {"stories": 2, "referenced_unique": 3, "resolved": 2, "unresolved": 1, "oversize": 1}
        )
        space = report["spaces"]["5"]
        self.assertEqual(space["total_bytes"], 2 * 1024 * 1024 + 100)
        self.assertEqual(space["oversize_assets"][0]["id"], 42)
        self.assertEqual(space["oversize_assets"][0]["referenced_in"], ["en/home (1)", "en/about (2)"])

    def test_write_json_report(self) -> None:
        """Written file should be valid JSON.

        Args:
            self: Test case instance.
        """

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "audit.json")
            write_json_report(result = _result(), path = path)
            with open(path, "r", encoding = "utf-8") as fp:
                payload = json.load(fp)

        self.assertEqual(payload["counts"]["oversize"], 1)

    def test_summary_lines(self) -> None:
        """Summary should list unresolved and oversize entries with stories.

        Args:
            self: Test case instance.
        """

        lines = format_summary(_result(), top_n = 30)

        self.assertIn("Resolved:   2", lines)
        self.assertIn("Unresolved: 1", lines)
        self.assertIn(f"- [space 5] {GONE_URL}", lines)
        self.assertIn(f"- [space 5] 2.0 MB | image/png | {BIG_URL}", lines)
        self.assertIn("    -> en/about (2)", lines)
        self.assertNotIn("=== PER SPACE ===", lines)

    def test_human_report(self) -> None:
        """Human report should number oversize assets and show usage.

        Args:
            self: Test case instance.
        """

        text = format_human_report(
            _result(),
            generated_at = datetime.datetime(2026, 1, 2, tzinfo = datetime.timezone.utc)
        )

        self.assertIn("Threshold: 300.0 KB", text)
        self.assertIn("Generated: 2026-01-02T00:00:00+00:00", text)
        self.assertIn(f"1. 2.0 MB - {BIG_URL} (space 5, image/png)", text)
        self.assertIn("    Used in: en/home (1), en/about (2)", text)

    def test_human_report_without_oversize(self) -> None:
        """Empty oversize list should say so.

        Args:
            self: Test case instance.
        """

        result = AuditResult(threshold_bytes = 1024)

        self.assertIn("No assets above threshold.", format_human_report(result))


if __name__ == "__main__":
    unittest.main()
