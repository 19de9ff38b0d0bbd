import sys
import math
import argparse
import logging
import dataclasses


from config.config import AppConfig
from core.audit_orchestrator import AssetAuditOrchestrator
from core.exceptions import ValidationError
from integrations.storyblok_api import AUTH_HEADER
from integrations.storyblok_api import AUTH_QUERY
from integrations.storyblok_api import ApiAuth
from integrations.storyblok_api import ContentDeliveryService
from integrations.storyblok_api import ManagementService
from integrations.storyblok_api import StoryblokApiClient
from utils.http_client import HttpClient
from utils.logging_setup import configure_runtime_logging
from utils.logging_setup import set_log_level
from utils.report_writer import DEFAULT_TOP_N
from utils.report_writer import log_summary
from utils.report_writer import write_human_report
from utils.report_writer import write_json_report


logger = logging.getLogger(__name__)


def parse_args(argv = None) -> argparse.Namespace:
    """Parse CLI arguments for the asset audit.

    Unset options fall back to environment configuration.

    Args:
        argv: Optional argument list, sys.argv when omitted.
    """

    parser = argparse.ArgumentParser(
        description = "Find oversized Storyblok assets referenced by stories"
    )
    parser.add_argument("--space-id", default = None, help = "Primary space id (STORYBLOK_SPACE_ID)")
    parser.add_argument("--region", default = None, help = "Storyblok region: eu, us, cn, ... (STORYBLOK_REGION)")
    parser.add_argument(
        "--max-size-kb",
        type = float,
        default = None,
        help = "Oversize threshold in KB (MAX_SIZE_KB, default 300)"
    )
    parser.add_argument(
        "--asset-types",
        default = None,
        help = "Comma separated kinds: image,video,doc,unknown or all (ASSET_TYPES)"
    )
    parser.add_argument(
        "--include-drafts",
        action = argparse.BooleanOptionalAction,
        default = None,
        help = "Read draft story versions (INCLUDE_DRAFTS, default true)"
    )
    parser.add_argument(
        "--human-report",
        action = argparse.BooleanOptionalAction,
        default = None,
        help = "Write the human readable report (HUMAN_REPORT)"
    )
    parser.add_argument("--human-report-file", default = None, help = "Human report path (HUMAN_REPORT_FILE)")
    parser.add_argument("--json-report-file", default = None, help = "JSON report path (JSON_REPORT_FILE)")
    parser.add_argument(
        "--top",
        type = int,
        default = DEFAULT_TOP_N,
        help = "Number of oversize assets listed in summaries"
    )
    parser.add_argument("--debug", action = "store_true", help = "Enable debug logging (DEBUG)")

    return parser.parse_args(argv)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Merge CLI overrides into environment configuration.

    Args:
        config: Environment configuration.
        args: Parsed CLI arguments.
    """

    overrides = {
        "storyblok_space_id": args.space_id,
        "storyblok_region": args.region,
        "max_size_kb": args.max_size_kb,
        "asset_types": args.asset_types,
        "include_drafts": args.include_drafts,
        "human_report": args.human_report,
        "human_report_file": args.human_report_file,
        "json_report_file": args.json_report_file
    }
    changes = {key: value for key, value in overrides.items() if value is not None}
    if args.debug:
        changes["debug"] = True
    return dataclasses.replace(config, **changes)


def validate_config(config: AppConfig, args: argparse.Namespace) -> int:
    """Validate required settings and return the primary space id.

    Args:
        config: Effective configuration.
        args: Parsed CLI arguments.
    """

    if not config.storyblok_oauth_token or not config.storyblok_space_id or not config.storyblok_cdn_token:
        raise ValidationError(
            "Missing env. Set STORYBLOK_OAUTH_TOKEN, STORYBLOK_SPACE_ID, and a CDN token "
            "(STORYBLOK_CDN_TOKEN or STORYBLOK_PREVIEW_TOKEN)."
        )
    if not config.storyblok_space_id.isdigit():
        raise ValidationError(f"Space id must be numeric: {config.storyblok_space_id}")
    if not math.isfinite(config.max_size_kb) or config.max_size_kb < 0:
        raise ValidationError("--max-size-kb must be a finite number >= 0")
    if args.top < 1:
        raise ValidationError("--top must be >= 1")
    return int(config.storyblok_space_id)


def build_orchestrator(config: AppConfig, primary_space_id: int) -> AssetAuditOrchestrator:
    """Wire HTTP client, API clients and orchestrator.

    Args:
        config: Effective configuration.
        primary_space_id: Primary space id.
    """

    http_client = HttpClient(
        timeout = config.request_timeout,
        max_retries = config.max_retries,
        retry_backoff = config.retry_backoff
    )
    cdn_api = StoryblokApiClient(
        http_client = http_client,
        base_url = config.cdn_base_url,
        auth = ApiAuth(token = config.storyblok_cdn_token, mode = AUTH_QUERY)
    )
    management_api = StoryblokApiClient(
        http_client = http_client,
        base_url = config.management_base_url,
        auth = ApiAuth(token = config.storyblok_oauth_token, mode = AUTH_HEADER)
    )
    return AssetAuditOrchestrator(
        content_service = ContentDeliveryService(api = cdn_api),
        management_service = ManagementService(api = management_api),
        primary_space_id = primary_space_id,
        threshold_bytes = config.threshold_bytes,
        allowed_kinds = config.allowed_asset_types,
        include_drafts = config.include_drafts
    )


def main(argv = None) -> int:
    """CLI entrypoint.

    Args:
        argv: Optional argument list.
    """

    args = parse_args(argv)
    config = apply_overrides(config = AppConfig.from_env(), args = args)
    if config.debug:
        set_log_level(logging.DEBUG)
    primary_space_id = validate_config(config = config, args = args)

    orchestrator = build_orchestrator(config = config, primary_space_id = primary_space_id)
    result = orchestrator.run()

    log_summary(result = result, top_n = args.top)
    write_json_report(result = result, path = config.json_report_file)
    if config.human_report:
        write_human_report(result = result, path = config.human_report_file, top_n = args.top)
    return 0


def cli() -> None:
    """Console script wrapper with logging and exit codes.

    Args:
        None
    """

    configure_runtime_logging()

    try:
        exit_code = main()
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        exit_code = 130
    except Exception as exc:
        logger.exception("Fatal error: %s", str(exc))
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
