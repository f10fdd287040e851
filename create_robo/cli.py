"""``create-robo`` command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.markup import escape

from create_robo.config import Config
from create_robo.errors import GenerationError
from create_robo.models import Role
from create_robo.scaffolder import Credentials, GenerationResult, ProjectGenerator
from create_robo.selection import default_capabilities, default_plugins, resolve_selections
from create_robo.utils import (
    INDENT,
    PACKAGE_MANAGERS,
    console,
    print_error,
    print_success,
    print_warning,
    run_prefix,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-robo",
        description="Create a new Robo.js project: a Discord bot, activity, or plugin",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-robo my-bot\n"
            "  create-robo my-activity --kit app --features react,prettier\n"
            "  create-robo my-plugin --plugin --typescript\n"
            "  create-robo my-bot --template https://github.com/Wave-Play/robo.js/tree/main/templates/starter\n"
        ),
    )
    parser.add_argument(
        "name",
        nargs="?",
        default=".",
        help="Project name; '.' generates into the current directory (default: .)",
    )
    parser.add_argument("--kit", "-k", choices=[r.value for r in Role], default=None)
    parser.add_argument(
        "--plugin",
        action="store_true",
        help="Create a publishable plugin instead of a standalone Robo",
    )
    typing = parser.add_mutually_exclusive_group()
    typing.add_argument("--typescript", "-ts", dest="typescript", action="store_const", const=True)
    typing.add_argument("--javascript", "-js", dest="typescript", action="store_const", const=False)
    parser.add_argument(
        "--features",
        "-f",
        default=None,
        help="Comma-separated features (default: the recommended ones)",
    )
    parser.add_argument(
        "--plugins",
        "-p",
        default=None,
        help="Comma-separated plugins to install (default: server for apps, none for bots)",
    )
    parser.add_argument("--template", "-t", default=None, help="GitHub URL of a template to start from")
    parser.add_argument("--robo-version", "-rv", default=None, help="robo.js version to install")
    parser.add_argument("--package-manager", choices=PACKAGE_MANAGERS, default=None)
    parser.add_argument(
        "--no-install",
        "-ni",
        dest="install",
        action="store_false",
        default=None,
        help="Write package.json without installing dependencies",
    )
    parser.add_argument("--client-id", default="", help="Discord application client ID")
    parser.add_argument(
        "--token",
        default="",
        help="Discord bot token (or client secret for apps)",
    )
    parser.add_argument("--output", "-o", default=".", help="Parent directory (default: .)")
    parser.add_argument("--verbose", "-v", action="store_true", default=None)
    return parser


def _split(value: Optional[str]) -> Optional[list[str]]:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def config_from_args(args: argparse.Namespace) -> Config:
    """Layer command line flags over ``Config.from_env``."""
    output = Path(args.output)
    overrides: dict[str, object] = {
        "output_dir": output,
        "plugin": args.plugin,
        "typescript": args.typescript,
        "template": args.template,
    }
    if args.name == ".":
        overrides["same_directory"] = True
        overrides["project_name"] = output.resolve().name
    else:
        overrides["project_name"] = args.name
    if args.kit:
        overrides["kit"] = Role(args.kit)
    if args.verbose is not None:
        overrides["verbose"] = args.verbose

    config = Config.from_env(**overrides)
    installer_updates: dict[str, object] = {}
    if args.install is not None:
        installer_updates["install"] = args.install
    if args.package_manager:
        installer_updates["package_manager"] = args.package_manager
    if args.robo_version:
        installer_updates["robo_version"] = args.robo_version
    if installer_updates:
        config.installer = config.installer.model_copy(update=installer_updates)
    return config


def print_summary(config: Config, generator: ProjectGenerator, result: GenerationResult) -> None:
    console.print()
    print_success(f"{INDENT}\U0001f680 Your Robo is ready!")
    if not config.same_directory:
        console.print(f"{INDENT}   cd [bold cyan]{escape(config.project_name)}[/bold cyan]")
    if result.install_failed:
        console.print(f"{INDENT}   [bold cyan]{generator.package_manager} install[/bold cyan]")
    console.print(f"{INDENT}   [bold cyan]{run_prefix(generator.package_manager)}dev[/bold cyan]")
    if result.missing_env:
        print_warning(f"{INDENT}   Don't forget to add your credentials to the .env file.")


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``create-robo`` and ``python -m create_robo``."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    spec = config.project_spec

    features = _split(args.features)
    plugins = _split(args.plugins)
    try:
        selections = resolve_selections(
            spec,
            default_capabilities(spec) if features is None else features,
            default_plugins(spec) if plugins is None else plugins,
        )
        generator = ProjectGenerator(config, selections)
        result = asyncio.run(
            generator.generate(Credentials(client_id=args.client_id, secret=args.token))
        )
    except GenerationError as exc:
        print_error(f"Error: {escape(str(exc))}")
        sys.exit(1)

    print_summary(config, generator, result)


if __name__ == "__main__":
    main()
