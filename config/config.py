import os

from dataclasses import dataclass
from typing import FrozenSet

from dotenv import load_dotenv


DEFAULT_REGION = "eu"
DEFAULT_ASSET_TYPES = "image,doc,video"
ALLOW_ALL_ASSET_TYPES = "all"


@dataclass
class AppConfig:
    """Application runtime configuration.

    Args:
        storyblok_oauth_token: Management API token.
        storyblok_cdn_token: Content delivery API token.
        storyblok_space_id: Primary space id.
        storyblok_region: Storyblok region code (eu, us, cn, ...).
        max_size_kb: Oversize threshold in KB.
        include_drafts: Whether content listing reads draft versions.
        asset_types: Comma separated allowed asset kinds.
        debug: Whether debug logging is enabled.
        human_report: Whether to write the human readable report.
        human_report_file: Human readable report path.
        json_report_file: JSON report path.
        request_timeout: HTTP timeout in seconds.
        max_retries: Total attempts per HTTP request.
        retry_backoff: Base retry backoff in seconds.
    """

    storyblok_oauth_token: str
    storyblok_cdn_token: str
    storyblok_space_id: str
    storyblok_region: str = DEFAULT_REGION
    max_size_kb: float = 300.0
    include_drafts: bool = True
    asset_types: str = DEFAULT_ASSET_TYPES
    debug: bool = False
    human_report: bool = False
    human_report_file: str = "storyblok-assets-audit-report.txt"
    json_report_file: str = "storyblok-assets-audit.json"
    request_timeout: float = 30.0
    max_retries: int = 4
    retry_backoff: float = 0.4

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build configuration from environment variables.

        Args:
            cls: Class reference used by dataclass factory.
        """

        load_dotenv(dotenv_path = os.path.join(os.getcwd(), ".env"), override = False)

        cdn_token = (
            os.getenv("STORYBLOK_CDN_TOKEN")
            or os.getenv("STORYBLOK_PREVIEW_TOKEN")
            or os.getenv("STORYBLOK_DELIVERY_TOKEN")
            or ""
        )
        return cls(
            storyblok_oauth_token = os.getenv("STORYBLOK_OAUTH_TOKEN", "").strip(),
            storyblok_cdn_token = cdn_token.strip(),
            storyblok_space_id = os.getenv("STORYBLOK_SPACE_ID", "").strip(),
            storyblok_region = os.getenv("STORYBLOK_REGION", DEFAULT_REGION).strip() or DEFAULT_REGION,
            max_size_kb = float(os.getenv("MAX_SIZE_KB", "300")),
            include_drafts = _env_flag("INCLUDE_DRAFTS", default = "true"),
            asset_types = os.getenv("ASSET_TYPES", DEFAULT_ASSET_TYPES),
            debug = _env_flag("DEBUG", default = "false"),
            human_report = _env_flag("HUMAN_REPORT", default = "false"),
            human_report_file = os.getenv("HUMAN_REPORT_FILE", "storyblok-assets-audit-report.txt"),
            json_report_file = os.getenv("JSON_REPORT_FILE", "storyblok-assets-audit.json"),
            request_timeout = float(os.getenv("REQUEST_TIMEOUT", "30")),
            max_retries = int(os.getenv("MAX_RETRIES", "4")),
            retry_backoff = float(os.getenv("RETRY_BACKOFF", "0.4"))
        )

    @property
    def management_base_url(self) -> str:
        """Management API base url for the configured region.

        Args:
            self: Config instance.
        """

        if self.storyblok_region == DEFAULT_REGION:
            return "https://api.storyblok.com/v1"
        return f"https://{self.storyblok_region}.api.storyblok.com/v1"

    @property
    def cdn_base_url(self) -> str:
        """Content delivery API base url for the configured region.

        Args:
            self: Config instance.
        """

        if self.storyblok_region == DEFAULT_REGION:
            return "https://api.storyblok.com/v2"
        return f"https://api-{self.storyblok_region}.storyblok.com/v2"

    @property
    def threshold_bytes(self) -> int:
        """Oversize threshold converted to bytes.

        Args:
            self: Config instance.
        """

        return int(self.max_size_kb * 1024)

    @property
    def allowed_asset_types(self) -> FrozenSet[str]:
        """Normalized allow-set of asset kinds.

        Args:
            self: Config instance.
        """

        return parse_asset_types(self.asset_types)


def parse_asset_types(raw: str) -> FrozenSet[str]:
    """Split a comma separated kind list into a lower-case set.

    Args:
        raw: Comma separated kinds.
    """

    return frozenset(
        part.strip().lower()
        for part in (raw or "").split(",")
        if part.strip()
    )


def _env_flag(key: str, default: str) -> bool:
    """Read a boolean environment flag ("true" or "1").

    Args:
        key: Environment variable name.
        default: Value used when the variable is unset.
    """

    return os.getenv(key, default).strip().lower() in {"true", "1"}
