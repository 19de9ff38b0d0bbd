import urllib.parse

from typing import AbstractSet
from typing import Iterable
from typing import List
from typing import Optional

from config.config import ALLOW_ALL_ASSET_TYPES
from data.models import ASSET_KIND_DOC
from data.models import ASSET_KIND_IMAGE
from data.models import ASSET_KIND_UNKNOWN
from data.models import ASSET_KIND_VIDEO
from data.models import ResolvedAsset


DOC_CONTENT_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    }
)

EXTENSIONS_BY_KIND = (
    (ASSET_KIND_IMAGE, ("png", "jpg", "jpeg", "webp", "gif", "svg", "avif", "heic")),
    (ASSET_KIND_VIDEO, ("mp4", "mov", "m4v", "webm", "avi", "mkv")),
    (ASSET_KIND_DOC, ("pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx"))
)


def _kind_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Map a MIME type to a kind, None when not recognized.

    Args:
        content_type: MIME type, parameters allowed.
    """

    mime = str(content_type or "").split(";", 1)[0].strip().lower()
    if not mime:
        return None
    if mime.startswith("image/"):
        return ASSET_KIND_IMAGE
    if mime.startswith("video/"):
        return ASSET_KIND_VIDEO
    if mime in DOC_CONTENT_TYPES:
        return ASSET_KIND_DOC
    return None


def _extension(filename: Optional[str]) -> str:
    """Lower-case extension of a filename or url path.

    Args:
        filename: Filename or url.
    """

    path = urllib.parse.urlsplit(str(filename or "")).path.lower()
    last_segment = path.rsplit("/", 1)[-1]
    if "." not in last_segment:
        return ""
    return last_segment.rsplit(".", 1)[-1]


def classify_asset(filename: Optional[str], content_type: Optional[str] = None) -> str:
    """Classify an asset as image, video, doc or unknown.

    Content type wins when recognized; otherwise the filename extension
    decides. Never raises.

    Args:
        filename: Filename or hosting url.
        content_type: Optional MIME type.
    """

    kind = _kind_from_content_type(content_type)
    if kind is not None:
        return kind

    extension = _extension(filename)
    for kind_name, extensions in EXTENSIONS_BY_KIND:
        if extension in extensions:
            return kind_name
    return ASSET_KIND_UNKNOWN


def allows_all_kinds(allowed_kinds: AbstractSet[str]) -> bool:
    """Empty allow-set or the ``all`` sentinel means no filtering.

    Args:
        allowed_kinds: Allowed kinds.
    """

    return not allowed_kinds or ALLOW_ALL_ASSET_TYPES in allowed_kinds


def filter_by_kind(
    assets: Iterable[ResolvedAsset],
    allowed_kinds: AbstractSet[str]
) -> List[ResolvedAsset]:
    """Keep assets whose kind is allowed.

    Args:
        assets: Resolved assets.
        allowed_kinds: Allowed kinds.
    """

    if allows_all_kinds(allowed_kinds):
        return list(assets)
    return [asset for asset in assets if asset.kind in allowed_kinds]
