"""
whisker command line.

    whisker render TEMPLATE [--view view.json] [--path DIR]... [--cache tokens.json]
    whisker compile NAME... --path DIR [-o tokens.json]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence

import msgspec
import msgspec.json

from whisker.config import EngineConfig
from whisker.engine import Whisker
from whisker.pretty import run_with_diagnostics
from whisker.snapshot import load_tokens, save_tokens


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="whisker", description="Render mustache-style templates.")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--path", action="append", type=Path, default=[],
            help="template directory (repeatable; later ones are searched first)",
        )
        p.add_argument("--suffix", default=None, help="template file suffix")

    render = sub.add_parser("render", help="render a template name or literal text")
    render.add_argument("template")
    render.add_argument("--view", type=Path, default=None, help="JSON file holding the view")
    render.add_argument("--cache", type=Path, default=None, help="token snapshot to seed from")
    add_common(render)

    compile_ = sub.add_parser("compile", help="tokenize named templates into a snapshot")
    compile_.add_argument("names", nargs="+")
    compile_.add_argument("-o", "--output", type=Path, default=Path("tokens.json"))
    add_common(compile_)

    return parser


def _engine(args: argparse.Namespace) -> Whisker:
    config = EngineConfig.from_env()
    overrides: dict[str, Any] = {}
    if args.path:
        overrides["template_paths"] = (*config.template_paths, *args.path)
    if args.suffix is not None:
        overrides["suffix"] = args.suffix
    return Whisker(config.evolve(**overrides))


def _load_view(path: Path | None) -> Any:
    if path is None:
        return {}
    try:
        return msgspec.json.decode(path.read_bytes())
    except msgspec.DecodeError as e:
        raise SystemExit(f"whisker: invalid JSON view {path}: {e}") from e


@run_with_diagnostics()
def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    engine = _engine(args)

    if args.command == "render":
        if args.cache is not None:
            engine.restore_tokens(load_tokens(args.cache))
        sys.stdout.write(engine.render(args.template, _load_view(args.view)))
        return 0

    for name in args.names:
        engine.tokenize(name)
    save_tokens(args.output, engine.get_all_tokens())
    return 0
