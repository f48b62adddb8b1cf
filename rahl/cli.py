"""Command-line entry point.

Usage::

    python -m rahl.cli generate "A todo list app with dark mode" -o ./out
    python -m rahl.cli generate "Recipe app with login" --app-name "Recipe Box" --ai
    python -m rahl.cli serve --port 5000
    python -m rahl.cli --config ./output/rahl-config.json generate "Recipe app"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.panel import Panel

from rahl.config import Config
from rahl.orchestrator import GenerationOrchestrator
from rahl.store import Stage
from rahl.utils import console, print_error, print_success, print_summary_table, write_files


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rahl",
        description="RAHL -- turn a plain-English app description into a Flutter project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  rahl generate "A todo list app with dark mode"\n'
            '  rahl generate "Photo journal with login" --app-name "Photo Log" --ai\n'
            "  rahl serve --port 5000\n"
            '  rahl --config ./output/rahl-config.json generate "Recipe app"\n'
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Load settings from a JSON file written by a previous run "
        "(default: RAHL_* environment variables)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a project and write it to disk")
    gen.add_argument("description", help="What the app should do")
    gen.add_argument("--app-name", default=None, help="Display name (default: RAHLApp)")
    gen.add_argument(
        "--output", "-o", default=None, help="Output directory (default: ./output)"
    )
    gen.add_argument(
        "--ai",
        action="store_true",
        help="Use the local LLM for analysis and screen code (falls back to rules)",
    )

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)

    return parser


async def _generate(args: argparse.Namespace, config: Config) -> int:
    orchestrator = GenerationOrchestrator(config, verbose=True)
    if args.ai:
        record = await orchestrator.generate(args.description, args.app_name)
    else:
        record = orchestrator.generate_base(args.description, args.app_name)

    if record.status is not Stage.COMPLETED or record.project is None:
        print_error(f"Generation failed: {record.error or record.status.value}")
        return 1

    project = record.project
    target = config.output_dir / project.project_id
    written = await write_files(project.files, target)

    print_summary_table(
        {
            "Project ID": project.project_id,
            "App name": project.app_name,
            "Package": project.package_name,
            "Screens": ", ".join(project.features.screens),
            "Flags": ", ".join(project.features.enabled_flags) or "none",
            "Theme": project.features.theme.value,
            "Files": str(len(written)),
        },
        title="Generated project",
    )
    if record.analysis is not None and record.analysis.recommendations:
        console.print(
            Panel("\n".join(record.analysis.recommendations), title="Recommendations")
        )
    print_success(f"Project written to {target}")
    console.print(f"[dim]Settings saved to {config.save()}[/dim]")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``python -m rahl.cli`` and the ``rahl`` script."""
    args = _build_parser().parse_args(argv)
    config = Config.load(Path(args.config)) if args.config else Config.from_env()

    if args.command == "generate":
        if not args.description.strip():
            print_error("Error: app description is required")
            return 1
        if args.output:
            config.output_dir = Path(args.output)
        config.generation.use_ai = bool(args.ai)
        return asyncio.run(_generate(args, config))

    import uvicorn

    from rahl.api import create_app

    uvicorn.run(create_app(config), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
