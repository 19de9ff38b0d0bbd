import re
import math
import logging

from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple

from core.asset_classifier import classify_asset
from data.models import AssetMetadata
from data.models import AssetReference
from data.models import ResolvedAsset


logger = logging.getLogger(__name__)

FILENAME_DIMENSIONS_PATTERN = re.compile(r"/(\d+)x(\d+)/")

# Nested metadata containers, first non-null wins.
META_CONTAINER_FIELDS = ("meta", "meta_data", "metaData", "metadata")

ASSET = "asset"
META = "meta"

# Field aliases per metadata attribute, evaluated first-match-wins.
METADATA_FIELD_ALIASES: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "identifier": ((ASSET, "id"), (META, "id")),
    "filename": ((ASSET, "filename"), (META, "filename")),
    "content_type": (
        (ASSET, "content_type"),
        (META, "content_type"),
        (META, "mime_type"),
        (META, "mimeType")
    ),
    "size_bytes": (
        (ASSET, "content_length"),
        (ASSET, "filesize"),
        (META, "filesize"),
        (META, "size"),
        (META, "file_size")
    ),
    "width": ((META, "width"), (ASSET, "width")),
    "height": ((META, "height"), (ASSET, "height"))
}


def _as_int(value: Any) -> Optional[int]:
    """Coerce a JSON scalar to a non-negative int, None when not numeric.

    Args:
        value: Raw field value.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or value < 0:
            return None
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_text(value: Any) -> Optional[str]:
    """Keep non-empty strings only.

    Args:
        value: Raw field value.
    """

    if isinstance(value, str) and value:
        return value
    return None


FIELD_CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    "identifier": _as_int,
    "filename": _as_text,
    "content_type": _as_text,
    "size_bytes": _as_int,
    "width": _as_int,
    "height": _as_int
}


def _meta_container(asset: Dict[str, Any]) -> Dict[str, Any]:
    """Return the nested metadata mapping of an asset payload.

    Args:
        asset: Raw asset payload.
    """

    for field in META_CONTAINER_FIELDS:
        value = asset.get(field)
        if value is not None:
            return value if isinstance(value, dict) else {}
    return {}


def _pick_field(attribute: str, sources: Dict[str, Dict[str, Any]]) -> Any:
    """Evaluate one attribute's alias chain.

    A present but unconvertible value stops the chain, the same way a
    null-coalescing lookup would.

    Args:
        attribute: Metadata attribute name.
        sources: Asset payload and nested metadata keyed by source.
    """

    converter = FIELD_CONVERTERS[attribute]
    for source, field in METADATA_FIELD_ALIASES[attribute]:
        value = sources[source].get(field)
        if value is not None:
            return converter(value)
    return None


def pick_metadata(asset: Dict[str, Any]) -> AssetMetadata:
    """Normalize one management API asset payload.

    Args:
        asset: Raw asset payload.
    """

    sources = {ASSET: asset, META: _meta_container(asset)}
    picked = {
        attribute: _pick_field(attribute = attribute, sources = sources)
        for attribute in METADATA_FIELD_ALIASES
    }

    filename = picked["filename"] or ""
    if picked["width"] is None or picked["height"] is None:
        dims = FILENAME_DIMENSIONS_PATTERN.search(filename)
        if dims:
            if picked["width"] is None:
                picked["width"] = int(dims.group(1))
            if picked["height"] is None:
                picked["height"] = int(dims.group(2))

    return AssetMetadata(
        identifier = picked["identifier"],
        filename = filename,
        content_type = picked["content_type"],
        size_bytes = picked["size_bytes"],
        width = picked["width"],
        height = picked["height"]
    )


@dataclass
class SpaceAssetIndex:
    """Constant-time metadata lookups for one space.

    Args:
        space_id: Space id.
        by_id: Metadata keyed by asset id.
        by_filename: Metadata keyed by exact filename.
        asset_count: Number of assets listed for the space.
    """

    space_id: int
    by_id: Dict[int, AssetMetadata]
    by_filename: Dict[str, AssetMetadata]
    asset_count: int = 0

    @classmethod
    def build(cls, space_id: int, assets: List[Dict[str, Any]]) -> "SpaceAssetIndex":
        """Index a full asset listing; later duplicates replace earlier ones.

        Args:
            space_id: Space id.
            assets: Raw asset payloads.
        """

        by_id: Dict[int, AssetMetadata] = {}
        by_filename: Dict[str, AssetMetadata] = {}
        missing_size = 0
        for asset in assets:
            if not isinstance(asset, dict):
                continue
            metadata = pick_metadata(asset)
            if metadata.size_bytes is None:
                missing_size += 1
            asset_id = _as_int(asset.get("id"))
            if asset_id is not None:
                by_id[asset_id] = metadata
            filename = asset.get("filename")
            if isinstance(filename, str):
                by_filename[filename] = metadata

        logger.debug(
            "space %s assets missing filesize: %d/%d",
            space_id,
            missing_size,
            len(assets)
        )
        return cls(
            space_id = space_id,
            by_id = by_id,
            by_filename = by_filename,
            asset_count = len(assets)
        )

    def lookup(self, reference: AssetReference) -> Optional[AssetMetadata]:
        """Find metadata by id first, then by exact filename.

        Args:
            reference: Asset reference.
        """

        if reference.identifier is not None:
            metadata = self.by_id.get(reference.identifier)
            if metadata is not None:
                return metadata
        return self.by_filename.get(reference.filename)


def resolve(
    reference: AssetReference,
    metadata_by_space: Dict[int, SpaceAssetIndex],
    primary_space_id: int
) -> ResolvedAsset:
    """Join one reference with its space metadata and classify it.

    Args:
        reference: Deduplicated reference.
        metadata_by_space: Prefetched index per space id.
        primary_space_id: Space used when the reference has none.
    """

    space_id = reference.space_id if reference.space_id is not None else primary_space_id
    index = metadata_by_space.get(space_id)
    metadata = index.lookup(reference) if index is not None else None
    kind = classify_asset(
        filename = reference.filename,
        content_type = metadata.content_type if metadata is not None else None
    )
    return ResolvedAsset(
        reference = reference,
        space_id = space_id,
        kind = kind,
        metadata = metadata
    )
