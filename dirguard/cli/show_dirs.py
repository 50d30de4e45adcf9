"""Print the directories dirguard resolves for this environment.

Usage: python -m dirguard.cli.show_dirs [--kind config] [--json] [--trail]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dirguard.config import settings
from dirguard.path_display import shorten_path_for_display
from dirguard.resolver import default_resolver
from dirguard.security._types import DirKind
from dirguard.security.errors import FallbackUnavailable

logger = logging.getLogger("dirguard.cli")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="dirguard")
    p.add_argument(
        "--kind",
        action="append",
        choices=[k.value for k in DirKind],
        help="Directory kind to resolve (repeatable; default: all)",
    )
    p.add_argument("--json", action="store_true", help="Print one JSON record per kind")
    p.add_argument("--trail", action="store_true", help="Include the diagnostic trail")
    p.add_argument("--short", action="store_true", help="Abbreviate paths under $HOME with ~")
    p.add_argument("--log-level", default=settings.log_level, help="Console log level")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    kinds = [DirKind(k) for k in args.kind] if args.kind else list(DirKind)
    try:
        results = default_resolver().resolve_all(kinds)
    except FallbackUnavailable as e:
        logger.error("cannot establish a safe default directory: %s", e)
        return 2

    for kind, res in results.items():
        if args.json:
            out = res.record()
            out["fell_back"] = res.fell_back
            if args.trail:
                out["trail"] = [r.model_dump(mode="json") for r in res.trail]
            print(json.dumps(out))
            continue
        shown = shorten_path_for_display(res.resolved_path) if args.short else str(res.resolved_path)
        flag = " (UNVALIDATED)" if res.unvalidated else ""
        print(f"{kind.value}_dir: {shown}{flag}")
        if args.trail:
            for rec in res.trail:
                print(f"  {rec.describe()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
