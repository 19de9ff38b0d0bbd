import os
import sys
import argparse
import logging

from typing import Dict
from typing import List


from config.config import AppConfig
from core.component_auditor import ComponentAuditor
from core.component_auditor import parse_components_list
from core.component_auditor import read_names_file
from core.exceptions import ValidationError
from data.models import ComponentInfo
from integrations.storyblok_api import AUTH_HEADER
from integrations.storyblok_api import ApiAuth
from integrations.storyblok_api import ManagementService
from integrations.storyblok_api import StoryblokApiClient
from utils.http_client import HttpClient
from utils.logging_setup import configure_runtime_logging


logger = logging.getLogger(__name__)

LOG_DIR = os.path.join("logs", "unused_components")
LOG_PREFIX = "unused_components"

SKIP = "skip"
CANCEL = "cancel"
FORCE = "force"

MISSING_CHOICES = {"s": SKIP, "skip": SKIP, "c": CANCEL, "cancel": CANCEL}
IN_USE_CHOICES = {
    "s": SKIP,
    "skip": SKIP,
    "c": CANCEL,
    "cancel": CANCEL,
    "f": FORCE,
    "force": FORCE
}


class DeletionCancelled(Exception):
    """Raised when the user cancels deletion or no terminal is available."""


def parse_args(argv = None) -> argparse.Namespace:
    """Parse CLI arguments for the unused components tool.

    Args:
        argv: Optional argument list, sys.argv when omitted.
    """

    parser = argparse.ArgumentParser(
        prog = "unused-components",
        description = "Find unused Storyblok components in a space"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--list", action = "store_true", help = "List unused components")
    mode.add_argument("--delete", action = "store_true", help = "Enable deletion mode (requires input list)")
    parser.add_argument("--space-id", default = "", help = "Override the space ID from .env")
    parser.add_argument(
        "--output",
        choices = ["stdout", "txt"],
        default = "stdout",
        help = "Output mode: stdout (default) or txt"
    )
    parser.add_argument("--dry-run", action = "store_true", help = "Report what would happen without deleting")
    parser.add_argument("--input-file", default = "", help = "Newline-separated component names to delete")
    parser.add_argument("--components", default = "", help = "Comma-separated component names to delete")

    args = parser.parse_args(argv)
    validate_args(args = args)
    return args


def validate_args(args: argparse.Namespace) -> None:
    """Check flag combinations.

    Args:
        args: Parsed CLI arguments.
    """

    if not args.list and not args.delete:
        raise ValidationError("Missing mode flag. Provide either --list or --delete.")
    if args.dry_run and not args.delete:
        raise ValidationError("The --dry-run flag is only valid with --delete.")
    input_flags = int(bool(args.input_file)) + int(bool(args.components))
    if args.delete and input_flags != 1:
        raise ValidationError("Deletion requires exactly one input source: --input-file or --components.")
    if not args.delete and input_flags > 0:
        raise ValidationError("The --input-file and --components flags are only valid with --delete.")


def is_interactive() -> bool:
    """Whether both stdin and stdout are terminals.

    Args:
        None
    """

    return sys.stdin.isatty() and sys.stdout.isatty()


def require_interactive(message: str) -> None:
    """Abort when a prompt is needed but no terminal is attached.

    Args:
        message: Reason a prompt is needed.
    """

    if is_interactive():
        return
    logger.error(message)
    raise DeletionCancelled(
        "No TTY detected. Please review the input list and run again in an interactive shell."
    )


def prompt_decision(prompt: str, allowed: Dict[str, str]) -> str:
    """Ask until one of the allowed answers is given.

    Args:
        prompt: Question text.
        allowed: Answer to decision map.
    """

    while True:
        sys.stderr.write(prompt)
        sys.stderr.flush()
        answer = sys.stdin.readline().strip().lower()
        if answer in allowed:
            return allowed[answer]
        sys.stderr.write(f"Please choose one of: {', '.join(allowed)}\n")


def run_list(auditor: ComponentAuditor, output: str, space_id: str) -> int:
    """List unused components to stdout or a text file.

    Args:
        auditor: Component auditor.
        output: Output mode, stdout or txt.
        space_id: Space id used in the output filename.
    """

    unused, used = auditor.find_unused()
    output_text = "".join(f"{component.name}\n" for component in unused)

    if output == "stdout":
        sys.stdout.write(output_text)
        sys.stdout.flush()
    else:
        file_name = f"unused-components-{space_id}.txt"
        with open(os.path.join(os.getcwd(), file_name), "w", encoding = "utf-8") as fp:
            fp.write(output_text)
        logger.info("Wrote %d unused components to %s", len(unused), file_name)

    logger.info("Used components: %d", len(used))
    logger.info("Unused components: %d", len(unused))
    return 0


def run_delete(auditor: ComponentAuditor, names: List[str], dry_run: bool) -> int:
    """Recheck and delete the requested components.

    Args:
        auditor: Component auditor.
        names: Requested component names.
        dry_run: Only report what would happen.
    """

    if not names:
        raise ValidationError("No component names provided for deletion.")

    plan = auditor.plan_deletion(names = names, components = auditor.load_components())

    if plan.missing:
        logger.warning("Some components could not be resolved:")
        for entry in plan.missing:
            logger.warning("- %s: %s", entry.name, entry.reason)
        if dry_run:
            logger.info("Dry run: skipping unresolved components.")
        else:
            require_interactive("Unresolved component names detected in the input list.")
            for entry in plan.missing:
                decision = prompt_decision(
                    f'Component "{entry.name}" is {entry.reason}. Skip or cancel? [s/c]: ',
                    MISSING_CHOICES
                )
                if decision == CANCEL:
                    raise DeletionCancelled("Deletion cancelled.")

    logger.info("Rechecking usage for %d components", len(plan.candidates))
    unused, used = auditor.split_by_usage(components = plan.candidates)

    if dry_run:
        logger.info("Dry run summary:")
        logger.info("Unused components: %d", len(unused))
        logger.info("Used components: %d", len(used))
        if plan.missing:
            logger.info("Unresolved components: %d", len(plan.missing))
        return 0

    to_delete: List[ComponentInfo] = list(unused)
    if used:
        require_interactive("Some components are still in use.")
        for component in used:
            decision = prompt_decision(
                f'Component "{component.name}" is in use. Skip, cancel, or force delete? [s/c/f]: ',
                IN_USE_CHOICES
            )
            if decision == CANCEL:
                raise DeletionCancelled("Deletion cancelled.")
            if decision == FORCE:
                to_delete.append(component)

    if not to_delete:
        logger.info("No components selected for deletion.")
        return 0

    deleted = auditor.delete(components = to_delete)
    logger.info("Deleted components: %d", deleted)
    return 0


def main(argv = None) -> int:
    """CLI entrypoint.

    Args:
        argv: Optional argument list.
    """

    args = parse_args(argv)
    config = AppConfig.from_env()

    if not config.storyblok_oauth_token:
        raise ValidationError("Missing Storyblok OAuth token. Set STORYBLOK_OAUTH_TOKEN in your .env file.")
    space_id = (args.space_id or config.storyblok_space_id).strip()
    if not space_id:
        raise ValidationError(
            "Missing Storyblok space ID. Set STORYBLOK_SPACE_ID in your .env file or pass --space-id."
        )

    http_client = HttpClient(
        timeout = config.request_timeout,
        max_retries = config.max_retries,
        retry_backoff = config.retry_backoff
    )
    management_api = StoryblokApiClient(
        http_client = http_client,
        base_url = config.management_base_url,
        auth = ApiAuth(token = config.storyblok_oauth_token, mode = AUTH_HEADER)
    )
    auditor = ComponentAuditor(
        management_service = ManagementService(api = management_api),
        space_id = space_id
    )

    if args.delete:
        if args.input_file:
            names = read_names_file(path = args.input_file)
        else:
            names = parse_components_list(value = args.components)
        return run_delete(auditor = auditor, names = names, dry_run = args.dry_run)

    return run_list(auditor = auditor, output = args.output, space_id = space_id)


def cli() -> None:
    """Console script wrapper; logs go to stderr so stdout carries results.

    Args:
        None
    """

    configure_runtime_logging(log_dir = LOG_DIR, log_prefix = LOG_PREFIX, stream = sys.stderr)

    try:
        exit_code = main()
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        exit_code = 130
    except DeletionCancelled as exc:
        logger.error("%s", str(exc))
        exit_code = 1
    except Exception as exc:
        logger.error("Error encountered while running unused-components.")
        logger.exception("Fatal error: %s", str(exc))
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
