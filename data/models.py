import dataclasses

from dataclasses import dataclass
from typing import Any
from typing import Dict
from typing import List
from typing import Optional


ASSET_KIND_IMAGE = "image"
ASSET_KIND_VIDEO = "video"
ASSET_KIND_DOC = "doc"
ASSET_KIND_UNKNOWN = "unknown"


@dataclass(frozen = True)
class AssetReference:
    """Represents one asset reference discovered inside story content.

    Args:
        filename: Full hosting url as found in content.
        identifier: Numeric asset id, parsed from the url or the asset object.
        space_id: Owning space id parsed from the url.
    """

    filename: str
    identifier: Optional[int] = None
    space_id: Optional[int] = None


@dataclass(frozen = True)
class AssetMetadata:
    """Canonical asset record resolved from the management API.

    Args:
        identifier: Asset id.
        filename: Asset hosting url.
        content_type: MIME type when known.
        size_bytes: Byte size when known; None means unknown, never zero.
        width: Pixel width when known.
        height: Pixel height when known.
    """

    filename: str
    identifier: Optional[int] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen = True)
class ResolvedAsset:
    """Join of one deduplicated reference with its metadata.

    Args:
        reference: Deduplicated reference.
        space_id: Reference space id or the primary space id.
        kind: Media kind (image, video, doc, unknown).
        metadata: Resolved metadata, None when unresolved.
    """

    reference: AssetReference
    space_id: int
    kind: str
    metadata: Optional[AssetMetadata] = None

    @property
    def is_resolved(self) -> bool:
        """Whether a metadata record was found.

        Args:
            self: Resolved asset instance.
        """

        return self.metadata is not None

    @property
    def size_bytes(self) -> int:
        """Byte size with unknown treated as zero.

        Args:
            self: Resolved asset instance.
        """

        if self.metadata is None or self.metadata.size_bytes is None:
            return 0
        return self.metadata.size_bytes


@dataclass
class SpaceStats:
    """Running aggregate for one space.

    Args:
        space_id: Space id.
        resolved: Resolved asset count.
        unresolved: Unresolved asset count.
        total_bytes: Byte total over resolved assets.
        oversize: Oversize assets in fold order.
    """

    space_id: int
    resolved: int = 0
    unresolved: int = 0
    total_bytes: int = 0
    oversize: List[ResolvedAsset] = dataclasses.field(default_factory = list)


@dataclass
class StoryRecord:
    """One content item returned by the content delivery API.

    Args:
        story_id: Story id.
        slug: Story slug.
        full_slug: Story full slug.
        content: Arbitrary content tree, None when absent.
    """

    story_id: Any
    slug: str = ""
    full_slug: str = ""
    content: Any = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "StoryRecord":
        """Build a story record from one API item.

        Args:
            payload: Raw story item.
        """

        return cls(
            story_id = payload.get("id"),
            slug = payload.get("slug") or "",
            full_slug = payload.get("full_slug") or "",
            content = payload.get("content")
        )

    @property
    def label(self) -> str:
        """Human readable label: slug plus id.

        Args:
            self: Story record.
        """

        return f"{self.full_slug or self.slug or '(no-slug)'} ({self.story_id})"


@dataclass
class AuditResult:
    """Output of one asset audit run.

    Args:
        threshold_bytes: Oversize threshold in bytes.
        stories: Number of stories scanned.
        references: Deduplicated references across all stories.
        resolved_assets: Resolved and kind-filtered assets.
        oversize: Oversize assets sorted by size descending.
        space_stats: Per-space aggregates keyed by space id.
        referenced_in: Identity key to referencing story labels.
    """

    threshold_bytes: int
    stories: int = 0
    references: List[AssetReference] = dataclasses.field(default_factory = list)
    resolved_assets: List[ResolvedAsset] = dataclasses.field(default_factory = list)
    oversize: List[ResolvedAsset] = dataclasses.field(default_factory = list)
    space_stats: Dict[int, SpaceStats] = dataclasses.field(default_factory = dict)
    referenced_in: Dict[tuple, List[str]] = dataclasses.field(default_factory = dict)

    @property
    def resolved(self) -> List[ResolvedAsset]:
        """Assets with metadata.

        Args:
            self: Audit result.
        """

        return [asset for asset in self.resolved_assets if asset.is_resolved]

    @property
    def unresolved(self) -> List[ResolvedAsset]:
        """Assets without metadata.

        Args:
            self: Audit result.
        """

        return [asset for asset in self.resolved_assets if not asset.is_resolved]

    @property
    def total_bytes(self) -> int:
        """Byte total over resolved assets.

        Args:
            self: Audit result.
        """

        return sum(stats.total_bytes for stats in self.space_stats.values())


@dataclass
class ComponentInfo:
    """One component schema definition in a space.

    Args:
        name: Component technical name.
        component_id: Component id when present.
    """

    name: str
    component_id: Optional[int] = None


@dataclass
class MissingComponent:
    """A requested component name that cannot be deleted.

    Args:
        name: Requested component name.
        reason: Why it cannot be resolved.
    """

    name: str
    reason: str


@dataclass
class DeletionPlan:
    """Resolution of requested component names against the space.

    Args:
        candidates: Components resolved by name with an id.
        missing: Names that could not be resolved.
    """

    candidates: List[ComponentInfo] = dataclasses.field(default_factory = list)
    missing: List[MissingComponent] = dataclasses.field(default_factory = list)
