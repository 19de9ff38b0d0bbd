import json
import time
import logging
import http.client
import urllib.error
import urllib.parse
import urllib.request

from dataclasses import dataclass
from typing import Any
from typing import Dict
from typing import Optional

from core.exceptions import ApiResponseError
from core.exceptions import HttpRequestError


logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """A lightweight HTTP response wrapper.

    Args:
        status_code: HTTP response status code.
        headers: Response headers map.
        body: Raw response bytes.
    """

    status_code: int
    headers: Dict[str, str]
    body: bytes

    @property
    def text(self) -> str:
        """Decode response bytes to UTF-8 text.

        Args:
            self: Response object.
        """

        return self.body.decode("utf-8", errors = "replace")

    def json(self) -> Any:
        """Parse response body as json.

        Args:
            self: Response object.
        """

        if not self.body:
            return {}
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise ApiResponseError(f"Response is not valid JSON: {self.text[:200]}") from exc

    def header(self, name: str) -> str:
        """Read one header case-insensitively.

        Args:
            name: Header name.
        """

        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return ""


class HttpClient:
    """HTTP client with exponential retry on rate limits and server errors.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Total attempts per request.
        retry_backoff: Base backoff in seconds, doubled after each attempt.
        user_agent: User agent value sent in each request.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 4,
        retry_backoff: float = 0.4,
        user_agent: str = "storyblok-content-audit/1.0"
    ) -> None:
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff
        self.user_agent = user_agent

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[dict] = None
    ) -> HttpResponse:
        """Perform an HTTP request.

        Args:
            method: HTTP method.
            url: Target URL.
            headers: Optional request headers.
            params: Optional query parameters, None values are skipped.
            json_body: Optional JSON body.
        """

        request_headers = {"User-Agent": self.user_agent}
        if headers:
            request_headers.update(headers)

        final_url = self._build_url(url = url, params = params)
        payload = None
        if json_body is not None:
            payload = json.dumps(json_body).encode("utf-8")
            request_headers["Content-Type"] = "application/json"

        method = method.upper()
        last_status = None
        last_body = ""
        for attempt in range(1, self.max_retries + 1):
            try:
                req = urllib.request.Request(
                    final_url,
                    data = payload,
                    headers = request_headers,
                    method = method
                )
                with urllib.request.urlopen(req, timeout = self.timeout) as resp:
                    response = HttpResponse(
                        status_code = resp.getcode(),
                        headers = dict(resp.headers.items()),
                        body = resp.read()
                    )
            except urllib.error.HTTPError as exc:
                status_code = int(exc.code)
                body = exc.read().decode("utf-8", errors = "replace")
                if not self._is_retryable(status_code = status_code):
                    raise HttpRequestError(
                        f"{method} {final_url} failed: HTTP {status_code}\n{body}",
                        url = final_url,
                        status_code = status_code,
                        body = body
                    ) from exc
                last_status = status_code
                last_body = body
            except urllib.error.URLError as exc:
                last_status = None
                last_body = str(exc.reason)
            except (OSError, http.client.HTTPException) as exc:
                last_status = None
                last_body = str(exc) or type(exc).__name__
            else:
                if response.status_code >= 400:
                    if not self._is_retryable(status_code = response.status_code):
                        raise HttpRequestError(
                            f"{method} {final_url} failed: HTTP {response.status_code}\n{response.text}",
                            url = final_url,
                            status_code = response.status_code,
                            body = response.text
                        )
                    last_status = response.status_code
                    last_body = response.text
                else:
                    return response

            logger.warning(
                "retryable failure: %s %s, status = %s, attempt = %d/%d",
                method,
                final_url,
                last_status if last_status is not None else "network",
                attempt,
                self.max_retries
            )
            self._sleep(attempt = attempt)

        raise HttpRequestError(
            f"{method} {final_url} failed after {self.max_retries} attempts "
            f"(last status = {last_status})\n{last_body}",
            url = final_url,
            status_code = last_status,
            body = last_body
        )

    def _build_url(self, url: str, params: Optional[Dict[str, Any]]) -> str:
        """Build URL with query parameters.

        Args:
            url: Base url.
            params: Query map.
        """

        if not params:
            return url
        parsed = urllib.parse.urlparse(url)
        existing = urllib.parse.parse_qs(parsed.query)
        for key, value in params.items():
            if value is None:
                continue
            existing[key] = [str(value)]
        query = urllib.parse.urlencode(existing, doseq = True)
        return urllib.parse.urlunparse(parsed._replace(query = query))

    def _is_retryable(self, status_code: int) -> bool:
        """Rate limits and server errors are retried.

        Args:
            status_code: HTTP status code.
        """

        return status_code == 429 or 500 <= status_code <= 599

    def _sleep(self, attempt: int) -> None:
        """Apply exponential backoff sleep.

        Args:
            attempt: 1-based attempt number that just failed.
        """

        time.sleep(self.retry_backoff * (2 ** (attempt - 1)))
