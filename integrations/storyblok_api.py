import logging

from dataclasses import dataclass
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from data.models import ComponentInfo
from data.models import StoryRecord
from utils.http_client import HttpClient
from utils.http_client import HttpResponse


logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 100
AUTH_HEADER = "header"
AUTH_QUERY = "query"


@dataclass
class ApiAuth:
    """How one Storyblok API expects its token.

    Args:
        token: API token.
        mode: ``header`` for the Authorization header, ``query`` for a token param.
        query_param: Query parameter name used in query mode.
    """

    token: str
    mode: str = AUTH_HEADER
    query_param: str = "token"

    def headers(self) -> Dict[str, str]:
        """Auth headers for one request.

        Args:
            self: Auth instance.
        """

        if self.mode == AUTH_HEADER:
            return {"Authorization": self.token}
        return {}

    def params(self) -> Dict[str, str]:
        """Auth query parameters for one request.

        Args:
            self: Auth instance.
        """

        if self.mode == AUTH_QUERY:
            return {self.query_param: self.token}
        return {}


class StoryblokApiClient:
    """Read/write access to one Storyblok API base url.

    Args:
        http_client: Shared HTTP client.
        base_url: API base url including version segment.
        auth: Token placement for this API.
        per_page: Page size for paginated listings.
    """

    def __init__(
        self,
        http_client: HttpClient,
        base_url: str,
        auth: ApiAuth,
        per_page: int = DEFAULT_PER_PAGE
    ) -> None:
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.per_page = per_page

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> HttpResponse:
        """Issue one authenticated GET.

        Args:
            path: Path relative to the base url.
            params: Optional query parameters.
        """

        query = dict(self.auth.params())
        query.update(params or {})
        return self.http_client.request(
            method = "GET",
            url = self._url(path = path),
            headers = self.auth.headers(),
            params = query
        )

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Issue one authenticated GET and decode JSON.

        Args:
            path: Path relative to the base url.
            params: Optional query parameters.
        """

        return self.get(path = path, params = params).json()

    def delete(self, path: str) -> HttpResponse:
        """Issue one authenticated DELETE.

        Args:
            path: Path relative to the base url.
        """

        return self.http_client.request(
            method = "DELETE",
            url = self._url(path = path),
            headers = self.auth.headers(),
            params = self.auth.params()
        )

    def fetch_all_pages(
        self,
        path: str,
        items_key: str,
        base_params: Optional[Dict[str, Any]] = None
    ) -> List[Any]:
        """Collect every item of a paginated listing.

        Pages start at 1; a batch shorter than ``per_page`` ends the loop.

        Args:
            path: Listing path.
            items_key: Payload key holding the item array.
            base_params: Extra query parameters sent with every page.
        """

        items: List[Any] = []
        page = 1
        while True:
            params = dict(base_params or {})
            params.update({"page": page, "per_page": self.per_page})
            payload = self.get_json(path = path, params = params)
            batch = _items_from_payload(payload = payload, items_key = items_key)
            items.extend(batch)
            logger.debug(
                "fetched %s page %d, batch size %d, total so far %d",
                path,
                page,
                len(batch),
                len(items)
            )
            if len(batch) < self.per_page:
                return items
            page += 1

    def _url(self, path: str) -> str:
        """Join base url and relative path.

        Args:
            path: Relative path.
        """

        return f"{self.base_url}/{path.lstrip('/')}"


class ContentDeliveryService:
    """Story listing through the content delivery (CDN) API.

    Args:
        api: Client configured with the CDN base url and query token.
    """

    def __init__(self, api: StoryblokApiClient) -> None:
        self.api = api

    def fetch_all_stories(self, include_drafts: bool = True) -> List[StoryRecord]:
        """Fetch every story of the token's space.

        Args:
            include_drafts: Read draft versions instead of published ones.
        """

        version = "draft" if include_drafts else "published"
        raw_stories = self.api.fetch_all_pages(
            path = "/cdn/stories",
            items_key = "stories",
            base_params = {"version": version}
        )
        return [
            StoryRecord.from_payload(story)
            for story in raw_stories
            if isinstance(story, dict)
        ]


class ManagementService:
    """Asset and component access through the management API.

    Args:
        api: Client configured with the management base url and header token.
    """

    def __init__(self, api: StoryblokApiClient) -> None:
        self.api = api

    def fetch_all_assets(self, space_id: int) -> List[Dict[str, Any]]:
        """Fetch the full asset listing of one space.

        Args:
            space_id: Space id.
        """

        assets = self.api.fetch_all_pages(
            path = f"/spaces/{space_id}/assets",
            items_key = "assets"
        )
        return [asset for asset in assets if isinstance(asset, dict)]

    def fetch_all_components(self, space_id: str) -> List[ComponentInfo]:
        """Fetch all components of one space.

        Stops on a reported total, a short page, or a page without new
        components.

        Args:
            space_id: Space id.
        """

        per_page = self.api.per_page
        page = 1
        components: List[ComponentInfo] = []
        seen = set()

        while True:
            logger.info("Loading components (page %d)", page)
            response = self.api.get(
                path = f"/spaces/{space_id}/components",
                params = {"page": page, "per_page": per_page}
            )
            payload = response.json()
            batch = _items_from_payload(payload = payload, items_key = "components")
            total = _reported_total(response = response, payload = payload)

            new_count = 0
            for raw in batch:
                if not isinstance(raw, dict):
                    continue
                component = ComponentInfo(
                    name = str(raw.get("name", "")),
                    component_id = _component_id(raw.get("id"))
                )
                key = str(component.component_id if component.component_id is not None else component.name)
                if key in seen:
                    continue
                seen.add(key)
                components.append(component)
                new_count += 1

            if total is not None:
                if len(components) >= total:
                    break
            elif len(batch) < per_page:
                break
            elif new_count == 0:
                logger.warning("No new components returned; stopping pagination to avoid a loop.")
                break
            page += 1

        return components

    def is_component_used(self, space_id: str, component_name: str) -> bool:
        """Check whether any story contains the component.

        Args:
            space_id: Space id.
            component_name: Component technical name.
        """

        payload = self.api.get_json(
            path = f"/spaces/{space_id}/stories",
            params = {"contain_component": component_name, "per_page": 1}
        )
        return len(_items_from_payload(payload = payload, items_key = "stories")) > 0

    def delete_component(self, space_id: str, component_id: int) -> None:
        """Delete one component.

        Args:
            space_id: Space id.
            component_id: Component id.
        """

        self.api.delete(path = f"/spaces/{space_id}/components/{component_id}")


def _items_from_payload(payload: Any, items_key: str) -> List[Any]:
    """Read the item array of a listing payload, empty when missing.

    Args:
        payload: Decoded JSON payload.
        items_key: Item array key.
    """

    if not isinstance(payload, dict):
        return []
    items = payload.get(items_key)
    return items if isinstance(items, list) else []


def _reported_total(response: HttpResponse, payload: Any) -> Optional[int]:
    """Total item count from headers or payload, None when absent.

    Args:
        response: HTTP response.
        payload: Decoded JSON payload.
    """

    candidates = [response.header("total"), response.header("x-total")]
    if isinstance(payload, dict):
        candidates.append(payload.get("total"))
    for raw in candidates:
        if raw is None or raw == "":
            continue
        try:
            return int(raw)
        except (TypeError, ValueError):
            continue
    return None


def _component_id(raw: Any) -> Optional[int]:
    """Numeric component id, None for missing, bool or non-int values.

    Args:
        raw: Raw ``id`` field.
    """

    if isinstance(raw, bool) or not isinstance(raw, int):
        return None
    return raw
