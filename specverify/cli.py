"""CLI entrypoints for specverify commands."""

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path
from typing import List

from . import __version__
from .config import (
    ConfigError,
    RouteSource,
    SpecVerifyConfig,
    find_config_file,
    load_config,
    save_config,
)
from .coverage import CoverageReconciler
from .judge import JudgeError, create_judge
from .judge.base import Judge
from .logging import configure_logging
from .render import (
    render_coverage,
    render_coverage_json,
    render_routes,
    render_routes_json,
    render_summary,
    render_summary_json,
)
from .routes import ExtractionError, UnknownSourceTypeError, extract_routes
from .storage import LocalFileStore, StorageError
from .verifier import VerificationCancelled, Verifier

_SOURCES_EXAMPLE = """\
route_sources:
  - type: express
    category: api
    patterns:
      - "src/routes/**/*.ts"
  - type: openapi
    patterns:
      - "docs/openapi.yaml"
"""


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "--format",
        choices=("console", "json"),
        default="console",
        help="Output format; use json for CI pipelines.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the configuration file (defaults to .specverify.yml).",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key for the AI provider (overrides environment and config file).",
    )
    parser.add_argument(
        "--provider",
        default=None,
        help="AI provider to use: claude, openai or gemini.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="specverify",
        description="Verify how closely code matches its specification documents.",
    )
    parser.add_argument("--version", action="version", version=f"specverify {__version__}")
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Create a default configuration file.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    init_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to write the configuration into (defaults to current directory).",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing configuration file.",
    )

    check_parser = subparsers.add_parser(
        "check",
        aliases=["verify"],
        help="Score every spec against its code.",
    )
    _add_common_options(check_parser)
    check_parser.add_argument(
        "spec_type",
        nargs="?",
        default=None,
        help="Only verify specs of this type (for example ui or api).",
    )
    check_parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Average match required to pass (defaults to the configured pass_threshold).",
    )
    check_parser.add_argument(
        "--fail-under",
        type=int,
        default=None,
        help="Fail when any single spec scores below this percentage.",
    )
    check_parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of specs verified at the same time.",
    )

    endpoints_parser = subparsers.add_parser(
        "endpoints",
        help="List routes discovered from the configured route sources.",
    )
    _add_common_options(endpoints_parser)

    coverage_parser = subparsers.add_parser(
        "coverage",
        help="Report which routes have a spec and which specs have no route.",
    )
    _add_common_options(coverage_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service exposing /verify and /coverage.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    version_parser = subparsers.add_parser("version", help="Print the version.")
    _add_verbose_option(version_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for specverify commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "version":
        print(f"specverify version {__version__}")
    elif args.command == "init":
        _run_init(parser, args)
    elif args.command in ("check", "verify"):
        _run_check(parser, args)
    elif args.command == "endpoints":
        _run_endpoints(parser, args)
    elif args.command == "coverage":
        _run_coverage(parser, args)
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_init(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    directory = Path(args.path)
    if not directory.is_dir():
        parser.exit(1, f"{directory} is not a directory\n")
    config_file = find_config_file(directory)
    if config_file.exists() and not args.force:
        parser.exit(1, f"{config_file} already exists. Re-run with --force to overwrite it.\n")

    config = SpecVerifyConfig(root=directory.resolve())
    try:
        save_config(config, config_file)
    except OSError as exc:
        parser.exit(1, f"specverify init failed: {exc}\n")

    print(f"Configuration written to {_relativize(config_file)}")
    print("Next steps:")
    print("  1. Edit the configuration to match your project layout")
    print("  2. Set SPEC_VERIFY_API_KEY or your provider's API key variable")
    print(f"  3. Put spec documents under {config.specs_dir}")
    print("  4. Run `specverify check`")


def _run_check(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    config = _load(parser, args)
    if args.threshold is not None and args.threshold > 0:
        config.options.pass_threshold = args.threshold
    if args.fail_under is not None and args.fail_under > 0:
        config.options.fail_under = args.fail_under
    if args.concurrency is not None:
        if args.concurrency < 1:
            parser.exit(1, "--concurrency must be at least 1\n")
        config.options.concurrency = args.concurrency

    try:
        judge = create_judge(config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    verifier = Verifier(config, judge, LocalFileStore())
    cancel = threading.Event()
    try:
        summary = verifier.verify_all(args.spec_type, cancel_event=cancel)
    except KeyboardInterrupt:
        cancel.set()
        parser.exit(130, "Verification cancelled\n")
    except VerificationCancelled as exc:
        parser.exit(130, f"{exc}\n")
    except StorageError as exc:
        parser.exit(1, f"specverify check failed: {exc}\nRun with --verbose for more details.\n")

    if args.format == "json":
        print(render_summary_json(summary))
    else:
        print(render_summary(summary))

    if not summary.is_passing(config.options.pass_threshold) or summary.failing_specs:
        parser.exit(1)


def _run_endpoints(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    config = _load(parser, args)
    sources = _require_sources(parser, config)
    judge = _optional_judge(parser, config)

    try:
        routes = extract_routes(
            sources,
            judge,
            LocalFileStore(),
            max_batch_bytes=config.options.max_batch_bytes,
            root=str(config.root),
        )
    except (ExtractionError, UnknownSourceTypeError) as exc:
        parser.exit(1, f"specverify endpoints failed: {exc}\n")

    if args.format == "json":
        print(render_routes_json(routes))
    else:
        print(render_routes(routes))


def _run_coverage(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    config = _load(parser, args)
    sources = _require_sources(parser, config)
    judge = _optional_judge(parser, config)

    reconciler = CoverageReconciler(
        LocalFileStore(), judge, max_batch_bytes=config.options.max_batch_bytes
    )
    try:
        report = reconciler.reconcile(sources, config.specs_path, root=str(config.root))
    except (ExtractionError, UnknownSourceTypeError, StorageError) as exc:
        parser.exit(1, f"specverify coverage failed: {exc}\n")

    if args.format == "json":
        print(render_coverage_json(report))
    else:
        print(render_coverage(report))


def _load(parser: argparse.ArgumentParser, args: argparse.Namespace) -> SpecVerifyConfig:
    try:
        return load_config(args.config, api_key=args.api_key, provider=args.provider)
    except (ConfigError, OSError) as exc:
        parser.exit(1, f"Failed to load configuration: {exc}\n")


def _require_sources(
    parser: argparse.ArgumentParser, config: SpecVerifyConfig
) -> List[RouteSource]:
    sources = config.all_route_sources()
    if not sources:
        parser.exit(
            1,
            "No route sources configured. Add route_sources to the configuration, "
            f"for example:\n\n{_SOURCES_EXAMPLE}",
        )
    return sources


def _optional_judge(parser: argparse.ArgumentParser, config: SpecVerifyConfig) -> Judge | None:
    # Structural sources (openapi) work without a judge.
    if not config.ai_api_key:
        return None
    try:
        return create_judge(config)
    except (ConfigError, JudgeError) as exc:
        parser.exit(1, f"{exc}\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
