import logging

from typing import AbstractSet
from typing import Dict
from typing import List
from typing import Tuple

from core.aggregator import AssetAggregator
from core.asset_classifier import filter_by_kind
from core.asset_metadata import SpaceAssetIndex
from core.asset_metadata import resolve
from core.asset_refs import ReferenceIndex
from core.asset_refs import dedupe
from core.asset_refs import extract_references
from data.models import AssetReference
from data.models import AuditResult
from data.models import StoryRecord
from integrations.storyblok_api import ContentDeliveryService
from integrations.storyblok_api import ManagementService


logger = logging.getLogger(__name__)


class AssetAuditOrchestrator:
    """Run the asset audit: stories, references, metadata, aggregation.

    Args:
        content_service: Story listing service.
        management_service: Asset listing service.
        primary_space_id: Space used for references without a space id.
        threshold_bytes: Oversize threshold in bytes.
        allowed_kinds: Allowed asset kinds; empty or ``all`` keeps everything.
        include_drafts: Read draft story versions.
    """

    def __init__(
        self,
        content_service: ContentDeliveryService,
        management_service: ManagementService,
        primary_space_id: int,
        threshold_bytes: int,
        allowed_kinds: AbstractSet[str],
        include_drafts: bool = True
    ) -> None:
        self.content_service = content_service
        self.management_service = management_service
        self.primary_space_id = primary_space_id
        self.threshold_bytes = threshold_bytes
        self.allowed_kinds = allowed_kinds
        self.include_drafts = include_drafts

    def run(self) -> AuditResult:
        """Execute the audit pipeline sequentially.

        Args:
            self: Orchestrator instance.
        """

        logger.info("Fetching stories...")
        stories = self.content_service.fetch_all_stories(include_drafts = self.include_drafts)
        logger.info("Stories: %d", len(stories))

        logger.info("Collecting referenced assets...")
        all_refs, reference_index = self.collect_references(stories = stories)
        references = dedupe(all_refs)
        logger.info("Unique referenced assets (by id/url): %d", len(references))
        logger.debug("Assets with story back-references: %d", len(reference_index))

        logger.info("Fetching assets metadata...")
        metadata_by_space = self.fetch_space_indexes(references = references)

        resolved = [
            resolve(
                reference = reference,
                metadata_by_space = metadata_by_space,
                primary_space_id = self.primary_space_id
            )
            for reference in references
        ]
        kept = filter_by_kind(assets = resolved, allowed_kinds = self.allowed_kinds)
        if len(kept) != len(resolved):
            logger.info("Assets after kind filter: %d (filtered from %d)", len(kept), len(resolved))

        aggregator = AssetAggregator(threshold_bytes = self.threshold_bytes).add_all(kept)

        return AuditResult(
            threshold_bytes = self.threshold_bytes,
            stories = len(stories),
            references = references,
            resolved_assets = kept,
            oversize = aggregator.oversize,
            space_stats = aggregator.space_stats,
            referenced_in = reference_index.as_dict()
        )

    def collect_references(
        self,
        stories: List[StoryRecord]
    ) -> Tuple[List[AssetReference], ReferenceIndex]:
        """Extract references from every story and index them by story.

        Args:
            stories: Story records.
        """

        all_refs: List[AssetReference] = []
        reference_index = ReferenceIndex()
        for story in stories:
            if story.content is None:
                logger.debug("Story %s has no content field.", story.label)
                continue
            refs = extract_references(story.content)
            logger.debug("Story %s referenced assets: %d", story.label, len(refs))
            for ref in refs:
                all_refs.append(ref)
                reference_index.add(reference = ref, label = story.label)
        return all_refs, reference_index

    def space_ids_to_fetch(self, references: List[AssetReference]) -> List[int]:
        """Distinct referenced space ids in first-seen order plus the primary space.

        Args:
            references: Deduplicated references.
        """

        space_ids: Dict[int, None] = {}
        for reference in references:
            if reference.space_id:
                space_ids[reference.space_id] = None
        space_ids[self.primary_space_id] = None
        return list(space_ids)

    def fetch_space_indexes(self, references: List[AssetReference]) -> Dict[int, SpaceAssetIndex]:
        """Fetch and index asset metadata one space at a time.

        Args:
            references: Deduplicated references.
        """

        space_ids = self.space_ids_to_fetch(references = references)
        logger.debug("Spaces referenced: %s", space_ids)

        indexes: Dict[int, SpaceAssetIndex] = {}
        for space_id in space_ids:
            assets = self.management_service.fetch_all_assets(space_id = space_id)
            index = SpaceAssetIndex.build(space_id = space_id, assets = assets)
            logger.info("Assets in space %s: %d", space_id, index.asset_count)
            indexes[space_id] = index
        return indexes
