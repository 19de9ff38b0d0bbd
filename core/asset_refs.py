import re
import logging

from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

from data.models import AssetReference


logger = logging.getLogger(__name__)

ASSET_HOST_MARKER = "a.storyblok.com"
ASSET_URL_PATTERN = re.compile(r"a\.storyblok\.com/f/(?P<space_id>\d+)/(?P<asset_id>\d+)/")
UNKNOWN_SPACE = "unknown"

IdentityKey = Tuple[Union[int, str], str, Union[int, str]]

NODE_MAPPING = "mapping"
NODE_SEQUENCE = "sequence"
NODE_SCALAR = "scalar"


def node_shape(node: Any) -> str:
    """Classify one content node as mapping, sequence or scalar.

    Args:
        node: Content tree node.
    """

    if isinstance(node, dict):
        return NODE_MAPPING
    if isinstance(node, (list, tuple)):
        return NODE_SEQUENCE
    return NODE_SCALAR


def parse_asset_url(url: str) -> Tuple[Optional[int], Optional[int]]:
    """Parse (space_id, asset_id) from a hosted asset url.

    Both values are None when the url has no ``/f/{space}/{asset}/`` segment.

    Args:
        url: Asset url.
    """

    match = ASSET_URL_PATTERN.search(str(url))
    if not match:
        return None, None
    return int(match.group("space_id")), int(match.group("asset_id"))


def is_asset_object(node: Any) -> bool:
    """Check whether a mapping looks like a structured asset field.

    Args:
        node: Content tree node.
    """

    if node_shape(node) != NODE_MAPPING:
        return False
    filename = node.get("filename")
    return isinstance(filename, str) and ASSET_HOST_MARKER in filename


def reference_from_url(url: str) -> AssetReference:
    """Build a bare reference from one url string.

    Args:
        url: Asset url.
    """

    space_id, asset_id = parse_asset_url(url)
    return AssetReference(filename = url, identifier = asset_id, space_id = space_id)


def reference_from_asset_object(node: Dict[str, Any]) -> AssetReference:
    """Build a reference from a structured asset object.

    Args:
        node: Asset object with a ``filename`` url and optional numeric ``id``.
    """

    filename = node["filename"]
    space_id, url_asset_id = parse_asset_url(filename)
    raw_id = node.get("id")
    if isinstance(raw_id, int) and not isinstance(raw_id, bool):
        identifier = raw_id
    else:
        identifier = url_asset_id
    return AssetReference(filename = filename, identifier = identifier, space_id = space_id)


def extract_references(node: Any) -> List[AssetReference]:
    """Collect every asset reference inside a content tree in traversal order.

    A mapping that is itself an asset object yields one reference, then each
    of its values is visited: strings carrying the asset host become bare
    references, everything else is walked. Strings inside sequences are not
    references. Duplicates are kept.

    Args:
        node: Content tree root.
    """

    references: List[AssetReference] = []
    # (node, is_mapping_value); pushed in reverse to keep pre-order
    stack: List[Tuple[Any, bool]] = [(node, False)]
    while stack:
        current, is_mapping_value = stack.pop()
        shape = node_shape(current)

        if shape == NODE_SEQUENCE:
            stack.extend((item, False) for item in reversed(current))
            continue

        if shape == NODE_MAPPING:
            if is_asset_object(current):
                references.append(reference_from_asset_object(current))
            stack.extend((value, True) for value in reversed(list(current.values())))
            continue

        if is_mapping_value and isinstance(current, str) and ASSET_HOST_MARKER in current:
            references.append(reference_from_url(current))

    return references


def identity_key(reference: AssetReference) -> IdentityKey:
    """Deduplication and lookup key for one reference.

    Args:
        reference: Asset reference.
    """

    space = reference.space_id if reference.space_id is not None else UNKNOWN_SPACE
    if reference.identifier is not None:
        return (space, "id", reference.identifier)
    return (space, "fn", reference.filename)


def dedupe(references: Iterable[AssetReference]) -> List[AssetReference]:
    """Collapse references by identity key, first occurrence wins.

    Args:
        references: References in discovery order.
    """

    by_key: Dict[IdentityKey, AssetReference] = {}
    for reference in references:
        key = identity_key(reference)
        if key not in by_key:
            by_key[key] = reference
    return list(by_key.values())


class ReferenceIndex:
    """Back-reference index from identity key to referencing story labels."""

    def __init__(self) -> None:
        self._labels: Dict[IdentityKey, Dict[str, None]] = {}

    def add(self, reference: AssetReference, label: str) -> None:
        """Record that a story references one asset.

        Args:
            reference: Asset reference found in the story.
            label: Story label.
        """

        self._labels.setdefault(identity_key(reference), {})[label] = None

    def as_dict(self) -> Dict[IdentityKey, List[str]]:
        """Export the index as plain lists.

        Args:
            self: Index instance.
        """

        return {key: list(labels) for key, labels in self._labels.items()}

    def __len__(self) -> int:
        return len(self._labels)
