"""CLI entrypoints for statusgen commands."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict

from .config import (
    CONFIG_FILENAME,
    ConfigError,
    StatuslineConfig,
    config_from_mapping,
    load_config,
    validate_config,
)
from .generator import ScriptGenerator
from .installer import (
    DEFAULT_SCRIPT_PATH,
    InstallError,
    install_script,
    manual_instructions,
)
from .logging import configure_logging, get_logger
from .models import THEMES
from .preview import PreviewAnalysis, PreviewResult, PreviewRunner, analyze


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


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statusgen",
        description="Generate bash statusline scripts for the Claude Code terminal.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Generate a statusline script and register it in .claude/settings.json.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    init_parser.add_argument(
        "--config",
        type=Path,
        default=Path(CONFIG_FILENAME),
        help=f"Path to {CONFIG_FILENAME} or the directory holding it.",
    )
    init_parser.add_argument(
        "--features",
        help="Comma separated features, e.g. directory,git,model,usage.",
    )
    init_parser.add_argument("--theme", choices=THEMES, help="Display theme.")
    init_parser.add_argument(
        "--no-colors",
        dest="colors",
        action="store_false",
        default=None,
        help="Emit a script without ANSI colors.",
    )
    init_parser.add_argument(
        "--custom-emojis",
        action="store_true",
        default=None,
        help="Use text labels instead of the default emoji labels.",
    )
    init_parser.add_argument(
        "--logging",
        action="store_true",
        default=None,
        help="Make the script append debug information to ~/.claude/statusline.log.",
    )
    init_parser.add_argument(
        "--no-usage-integration",
        dest="usage_integration",
        action="store_false",
        default=None,
        help="Do not call ccusage from the generated script.",
    )
    init_parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_SCRIPT_PATH,
        help="Where to write the script (defaults to .claude/statusline.sh).",
    )
    init_parser.add_argument(
        "--no-install",
        action="store_true",
        help="Write the script but leave settings.json untouched.",
    )
    init_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the generated script instead of writing it.",
    )
    init_parser.add_argument(
        "--no-preview",
        action="store_true",
        help="Skip the test run of the script against mock input after writing it.",
    )

    preview_parser = subparsers.add_parser(
        "preview",
        help="Run a statusline script against mock Claude input.",
    )
    _add_verbose_option(preview_parser, suppress_default=True)
    preview_parser.add_argument("script", type=Path, help="Path to the script to run.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for statusgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))
    logger = get_logger("cli")

    if args.command == "init":
        try:
            config = _resolve_config(args)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")

        validation = validate_config(config)
        for warning in validation.warnings:
            logger.warning(warning)
        if not validation.is_valid:
            parser.exit(1, "Invalid configuration:\n" + "".join(f"  - {e}\n" for e in validation.errors))

        try:
            script = ScriptGenerator().generate(config)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")

        if args.dry_run:
            print(script, end="")
            return

        try:
            result = install_script(script, args.output, update_settings=not args.no_install)
        except InstallError as exc:
            parser.exit(1, f"{exc}\n{manual_instructions(args.output)}")
        print(f"Statusline written to {result.script_path}")
        if result.settings_updated:
            print(f"Registered in {result.settings_path}")
        if not args.no_preview:
            preview = PreviewRunner().run(script)
            _print_preview(preview, analyze(preview, config))
    elif args.command == "preview":
        preview = PreviewRunner().run_file(args.script)
        if not preview.success:
            parser.exit(1, f"Preview failed: {preview.error}\n")
        print(preview.output)
        logger.debug("Preview finished in %.1f ms", preview.execution_time * 1000)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_preview(preview: PreviewResult, analysis: PreviewAnalysis) -> None:
    if preview.output:
        print(f"Preview: {preview.output}")
    print(f"Performance: {analysis.performance} ({preview.execution_time * 1000:.0f}ms)")
    if analysis.issues:
        print("Issues:")
        for issue in analysis.issues:
            print(f"  - {issue}")
    if analysis.suggestions:
        print("Suggestions:")
        for suggestion in analysis.suggestions:
            print(f"  - {suggestion}")


def _resolve_config(args: argparse.Namespace) -> StatuslineConfig:
    base = load_config(args.config)
    overrides: Dict[str, Any] = {}
    if args.features is not None:
        overrides["features"] = args.features
    if args.theme is not None:
        overrides["theme"] = args.theme
    for name in ("colors", "custom_emojis", "logging", "usage_integration"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if not overrides:
        return base

    merged: Dict[str, Any] = {
        "features": base.features,
        "colors": base.colors,
        "theme": base.theme,
        "usage_integration": base.usage_integration,
        "logging": base.logging,
        "custom_emojis": base.custom_emojis,
    }
    if base.system_monitoring is not None:
        merged["system_monitoring"] = vars(base.system_monitoring)
    merged.update(overrides)
    return config_from_mapping(merged)


if __name__ == "__main__":  # pragma: no cover
    main()
