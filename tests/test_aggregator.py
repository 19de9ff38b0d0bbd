import unittest

from core.aggregator import AssetAggregator
from data.models import AssetMetadata
from data.models import AssetReference
from data.models import ResolvedAsset


def _resolved(asset_id: int, size, space_id: int = 5) -> ResolvedAsset:
    """Build a resolved image asset.

    Args:
        asset_id: Asset id.
        size: Byte size or None.
        space_id: Space id.
    """

    url = f"https://a.storyblok.com/f/{space_id}/{asset_id}/img.png"
    return ResolvedAsset(
        reference = AssetReference(filename = url, identifier = asset_id, space_id = space_id),
        space_id = space_id,
        kind = "image",
        metadata = AssetMetadata(filename = url, identifier = asset_id, size_bytes = size)
    )


def _unresolved(asset_id: int, space_id: int = 5) -> ResolvedAsset:
    url = f"https://a.storyblok.com/f/{space_id}/{asset_id}/gone.png"
    return ResolvedAsset(
        reference = AssetReference(filename = url, identifier = asset_id, space_id = space_id),
        space_id = space_id,
        kind = "image"
    )


class TestAssetAggregator(unittest.TestCase):
    """Tests for per-space statistics and oversize selection."""

    def test_counts_and_totals(self) -> None:
        """Resolved, unresolved and byte totals should be tracked per space.

        Args:
            self: Test case instance.
        """

        aggregator = AssetAggregator(threshold_bytes = 100).add_all(
            [
                _resolved(1, 50),
                _resolved(2, None),
                _unresolved(3),
                _resolved(4, 500, space_id = 9)
            ]
        )

        space_5 = aggregator.space_stats[5]
        self.assertEqual((space_5.resolved, space_5.unresolved, space_5.total_bytes), (2, 1, 50))
        self.assertEqual(aggregator.space_stats[9].total_bytes, 500)
        self.assertEqual(list(aggregator.space_stats), [5, 9])

    def test_oversize_strictly_greater_and_sorted(self) -> None:
        """Oversize list should hold only sizes above the threshold, largest first.

        Args:
            self: Test case instance.
        """

        sizes = [307200, 400000, 10, 307201, None, 999999, 400000]
        assets = [_resolved(index + 1, size) for index, size in enumerate(sizes)]

        aggregator = AssetAggregator(threshold_bytes = 307200).add_all(assets)
        oversize = aggregator.oversize

        oversize_sizes = [asset.size_bytes for asset in oversize]
        self.assertEqual(oversize_sizes, [999999, 400000, 400000, 307201])
        self.assertEqual(oversize_sizes, sorted(oversize_sizes, reverse = True))
        self.assertEqual([asset.reference.identifier for asset in oversize[1:3]], [2, 7])
        self.assertEqual(len(aggregator.space_stats[5].oversize), 4)

    def test_unresolved_never_oversize(self) -> None:
        """Unresolved assets only bump the unresolved counter.

        Args:
            self: Test case instance.
        """

        aggregator = AssetAggregator(threshold_bytes = 0).add_all([_unresolved(1)])

        self.assertEqual(aggregator.oversize, [])
        self.assertEqual(aggregator.space_stats[5].unresolved, 1)


if __name__ == "__main__":
    unittest.main()
