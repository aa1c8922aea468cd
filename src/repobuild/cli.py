"""Command-line entry point.

Usage:
    repobuild //src/core:core
    repobuild --root project --out build --prefix /opt/app //lib:foo //lib:bar
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from repobuild.buildfile import load_workspace
from repobuild.compiler import Compiler
from repobuild.config import BuildConfig
from repobuild.errors import ConfigError, RepobuildError
from repobuild.observability import LEVELS
from repobuild.targets import TargetInfo


def _read_config(path: str | None) -> BuildConfig:
    if path is None:
        return BuildConfig()
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(
            "Cannot read configuration file.",
            hint=str(exc),
            context={"path": path},
        ) from exc
    if not isinstance(payload, dict):
        raise ConfigError("Configuration file must contain an object.", context={"path": path})
    return BuildConfig.from_mapping(payload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repobuild",
        description="Compile BUILD files to a Makefile",
    )
    parser.add_argument("targets", nargs="+", help="Targets to build, e.g. //dir:name")
    parser.add_argument("--root", default=".", help="Project root holding the BUILD files")
    parser.add_argument("--out", default=None, help="Directory for the Makefile (default: root)")
    parser.add_argument("--config", default=None, help="JSON file with BuildConfig overrides")
    parser.add_argument("--prefix", default=None, help="Install prefix")
    parser.add_argument("--manifest", default=None, help="Write a JSON build manifest here")
    parser.add_argument("--log-json", default=None, help="Write structured logs as JSON lines")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=LEVELS,
        help="Lowest level written to --log-json",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    compiler = Compiler()
    try:
        config = _read_config(args.config)
        if args.prefix is not None:
            config = config.with_overrides(prefix=args.prefix)
        compiler.config = config
        requested = [TargetInfo.parse(raw) for raw in args.targets]
        declarations = load_workspace(args.root, requested)
        emission = compiler.compile(declarations, requested)
    except RepobuildError as exc:
        print(f"error [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.log_json is not None:
            compiler.logger.to_json_lines(args.log_json, min_level=args.log_level)

    makefile = emission.write(args.out or args.root)
    if args.manifest is not None:
        emission.manifest.to_json(args.manifest)
    print(f"Wrote {makefile}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
