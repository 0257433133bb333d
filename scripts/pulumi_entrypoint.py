#!/usr/bin/env python3
"""
Pulumi CI Entrypoint (Stack)

Justified Action
Goal: One container entrypoint for GitHub Actions that picks the stack for the branch, runs the
      forwarded Pulumi command, and reports the result back on the pull request.
Justification: Clarity (single tool), Prudence (clean skip when there is nothing to do),
               Honesty (the Pulumi exit code is the job's exit code).

Usage:
  PULUMI_CI=pr ./scripts/pulumi_entrypoint.py preview
  PULUMI_CI=up ./scripts/pulumi_entrypoint.py up --yes
  ./scripts/pulumi_entrypoint.py -s dev refresh --yes
"""

from __future__ import annotations

import sys
from pathlib import Path


def _bootstrap_import_path() -> None:
    script_dir = Path(__file__).resolve().parent
    if str(script_dir) not in sys.path:
        sys.path.insert(0, str(script_dir))


def main() -> int:
    _bootstrap_import_path()
    from pulumi_entrypoint.main import main as impl_main  # type: ignore

    return impl_main(sys.argv)


if __name__ == "__main__":
    raise SystemExit(main())
