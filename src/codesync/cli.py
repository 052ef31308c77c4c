"""Command-line entry point: ``codesync sync``."""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config
from .core.client import CodegenClient
from .errors import SyncError, UserInputError
from .logger import setup_logging
from .sync import SyncEngine, SyncOptions, format_error, format_sync_report, report_to_json
from .sync.converter import CommandScriptConverter
from .sync.repo_config import RepoConfigStore
from .validators import validate_component_ref, validate_project_id

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codesync",
        description="Sync generated component code into this repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync every project recorded in codesync.json
  codesync sync

  # Sync one project and the projects it depends on
  codesync sync --projects p1 --recursive

  # Only refresh components that are already in the repository
  codesync sync --only-existing --non-interactive

Connection settings come from --host/--user/--token, the CODESYNC_HOST,
CODESYNC_USER and CODESYNC_TOKEN environment variables (a .env file is
loaded), or the 'server' section of .codesync/config.yml.
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"codesync version {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Sync projects and components")
    sync.add_argument(
        "--projects",
        "-p",
        action="extend",
        nargs="+",
        default=[],
        metavar="ID",
        help="Project ids to sync (default: every project in codesync.json)",
    )
    sync.add_argument(
        "--components",
        action="extend",
        nargs="+",
        default=[],
        metavar="ID_OR_NAME",
        help="Only sync these component ids or names",
    )
    sync.add_argument(
        "--only-existing",
        action="store_true",
        help="Only sync components already recorded in codesync.json",
    )
    sync.add_argument(
        "--force-overwrite",
        action="store_true",
        help="Overwrite skeletons when merging fails or a managed marker is found",
    )
    sync.add_argument(
        "--new-component-scheme",
        choices=["blackbox", "direct"],
        help="Code scheme for newly synced components (default: code.scheme)",
    )
    sync.add_argument(
        "--append-jsx-on-missing-base",
        action="store_true",
        help="When no merge base exists, append generated code as a comment",
    )
    sync.add_argument(
        "--recursive",
        action="store_true",
        help="Also sync the projects these projects depend on",
    )
    sync.add_argument(
        "--include-dependencies",
        action="store_true",
        help="Also sync components the requested components depend on",
    )
    sync.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; fail on version range conflicts",
    )
    sync.add_argument(
        "--root",
        type=Path,
        default=Path("."),
        help="Directory containing codesync.json (default: current directory)",
    )
    sync.add_argument("--host", help="Override CODESYNC_HOST")
    sync.add_argument("--user", help="Override CODESYNC_USER")
    sync.add_argument(
        "--token",
        help="Override CODESYNC_TOKEN (visible in process list -- prefer the env var)",
    )
    sync.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    sync.add_argument("--debug", action="store_true", help="Enable debug logging")
    sync.add_argument("--log-file", help="Also append logs to this file")
    sync.add_argument(
        "--json",
        action="store_true",
        help="Print the sync report as JSON on stdout",
    )
    return parser


def load_settings(args: argparse.Namespace) -> tuple[Config, UnifiedConfig]:
    """Merge CLI args, env vars, .env and YAML config into settings.

    Raises:
        ValueError: If required settings are missing or invalid.
    """
    # .env first so ${VAR} interpolation in YAML can use its values
    load_dotenv()

    unified = build_config(load_hierarchical_config())
    config_files = discover_config_files()
    if config_files:
        logger.debug("Config file: %s", config_files[0])

    config = load_config(
        host=args.host,
        user=args.user,
        token=args.token,
        insecure=args.insecure,
        debug=args.debug,
        yaml_fallbacks=unified.fallbacks(),
    )
    return config, unified


def build_options(args: argparse.Namespace) -> SyncOptions:
    """
    Raises:
        UserInputError: If a project id or component name is malformed.
    """
    for project_id in args.projects:
        is_valid, error = validate_project_id(project_id)
        if not is_valid:
            raise UserInputError(error)
    for ref in args.components:
        is_valid, error = validate_component_ref(ref)
        if not is_valid:
            raise UserInputError(error)

    return SyncOptions(
        projects=args.projects,
        components=args.components,
        only_existing=args.only_existing,
        force_overwrite=args.force_overwrite,
        new_component_scheme=args.new_component_scheme,
        append_jsx_on_missing_base=args.append_jsx_on_missing_base,
        recursive=args.recursive,
        include_dependencies=args.include_dependencies,
        non_interactive=args.non_interactive,
    )


def cmd_sync(args: argparse.Namespace) -> int:
    try:
        config, unified = load_settings(args)
    except (ValueError, OSError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        debug=config.debug,
        log_file=args.log_file or unified.logging.file,
        log_format=unified.logging.format,
        level=unified.logging.level,
    )
    logger.info("Code-generation service: %s", config.host)

    try:
        options = build_options(args)
        engine = SyncEngine(
            client=CodegenClient(config),
            store=RepoConfigStore(args.root.resolve()),
            options=options,
            converter=CommandScriptConverter(
                config.transpile_command, timeout=config.timeout
            ),
        )
        report = engine.run()
    except SyncError as e:
        logger.debug("Sync failed", exc_info=True)
        print(format_error(e), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        print(format_sync_report(report))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "sync":
        return cmd_sync(args)
    return 2


def run() -> None:
    """Entry point that handles interrupts gracefully."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
