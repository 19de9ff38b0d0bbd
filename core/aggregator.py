import logging

from typing import Dict
from typing import Iterable
from typing import List

from data.models import ResolvedAsset
from data.models import SpaceStats


logger = logging.getLogger(__name__)


class AssetAggregator:
    """Fold resolved assets into per-space statistics and an oversize list.

    Args:
        threshold_bytes: Assets strictly larger than this are oversize.
    """

    def __init__(self, threshold_bytes: int) -> None:
        self.threshold_bytes = threshold_bytes
        self.space_stats: Dict[int, SpaceStats] = {}
        self._oversize: List[ResolvedAsset] = []

    def add(self, asset: ResolvedAsset) -> None:
        """Fold one resolved asset.

        Args:
            asset: Resolved, kind-filtered asset.
        """

        stats = self._ensure_space(space_id = asset.space_id)
        if not asset.is_resolved:
            stats.unresolved += 1
            return

        stats.resolved += 1
        stats.total_bytes += asset.size_bytes
        size = asset.metadata.size_bytes
        if size is not None and size > self.threshold_bytes:
            stats.oversize.append(asset)
            self._oversize.append(asset)

    def add_all(self, assets: Iterable[ResolvedAsset]) -> "AssetAggregator":
        """Fold assets in order.

        Args:
            assets: Resolved assets.
        """

        for asset in assets:
            self.add(asset)
        return self

    @property
    def oversize(self) -> List[ResolvedAsset]:
        """Global oversize list, largest first.

        Args:
            self: Aggregator instance.
        """

        return sorted(self._oversize, key = lambda asset: asset.size_bytes, reverse = True)

    def _ensure_space(self, space_id: int) -> SpaceStats:
        """Get or lazily create one space aggregate.

        Args:
            space_id: Space id.
        """

        stats = self.space_stats.get(space_id)
        if stats is None:
            stats = SpaceStats(space_id = space_id)
            self.space_stats[space_id] = stats
        return stats
