from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Mapping, Optional

import requests

from .context import EventPayloadError, detect_context
from .guards import NothingToDo
from .model import ConfigError, Settings
from .post_actions import dispatch
from .pulumicli import PulumiCli, PulumiCliError, shell_rc
from .runner import RunOutcome, run_command
from .stacks import select_stack

USAGE = "usage: pulumi_entrypoint.py <pulumi args...>  e.g. preview, up --yes, -s dev refresh"


def _print_summary(settings: Settings, stack: Optional[str], outcome: RunOutcome) -> None:
    print("### Summary")
    print(f"- **command**: {outcome.command}")
    print(f"- **exit_code**: {outcome.exit_code}")
    print(f"- **stack**: {stack or '(from arguments)'}")
    print(f"- **region**: {settings.region}")
    print(f"- **event**: {settings.event_name or '(none)'}")


def run(
    argv: List[str],
    settings: Settings,
    *,
    pulumi: Optional[PulumiCli] = None,
    session: Optional[requests.Session] = None,
) -> int:
    args = argv[1:]
    if not args:
        print(USAGE, file=sys.stderr)
        return 2

    try:
        ctx = detect_context(settings)
        if pulumi is None:
            pulumi = PulumiCli(cwd=settings.project_dir, env=ctx.env)

        stack: Optional[str] = None
        if ctx.branch:
            stack = select_stack(settings.mapping_file, ctx.branch, pulumi)

        outcome = run_command(settings, pulumi, args)
    except NothingToDo as skip:
        print("\n".join(skip.lines))
        return 0
    except PulumiCliError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return shell_rc(e.rc) or 1
    except EventPayloadError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    try:
        dispatch(settings, outcome, pulumi, stack=stack, session=session)
        _print_summary(settings, stack, outcome)
    finally:
        outcome.output_path.unlink(missing_ok=True)
    return outcome.exit_code


def main(argv: List[str], environ: Optional[Mapping[str, str]] = None) -> int:
    try:
        settings = Settings.from_environ(environ, start_dir=Path.cwd())
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return run(argv, settings)


def cli() -> None:
    raise SystemExit(main(sys.argv))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
