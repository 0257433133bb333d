from __future__ import annotations

import os
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .model import Settings
from .pulumicli import PulumiCli, PulumiCliError, fmt, shell_rc, spawn_error_rc


@dataclass(frozen=True)
class RunOutcome:
    command: str
    rc: int
    output_path: Path

    def output(self) -> str:
        return self.output_path.read_text(encoding="utf-8", errors="replace")

    @property
    def exit_code(self) -> int:
        return shell_rc(self.rc)


def ensure_node_modules(project_dir: Path) -> None:
    if not (project_dir / "package.json").exists() or (project_dir / "node_modules").is_dir():
        return
    cmd = ["npm", "install"]
    print(f"+ {fmt(cmd)}", flush=True)
    try:
        p = subprocess.run(cmd, cwd=project_dir)
    except OSError as e:
        raise PulumiCliError(str(e), rc=spawn_error_rc(e)) from e
    if p.returncode != 0:
        raise PulumiCliError(f"{fmt(cmd)} exited with {p.returncode}", rc=p.returncode)


def region_args(region: str) -> List[str]:
    return ["config", "set", "aws:region", region]


def run_command(settings: Settings, pulumi: PulumiCli, args: Sequence[str]) -> RunOutcome:
    """
    Set the region, then run the wrapped command. Only the region step is
    fail-fast; the wrapped command's exit code is returned for later.
    """
    ensure_node_modules(settings.project_dir)

    command = pulumi.describe(args)
    set_region = region_args(settings.region)
    print(f"`{command}`")
    print(f"`{pulumi.describe(set_region)}`")
    print(f"`{settings.workspace}/{settings.project_root or 'public'}`")
    pulumi.check(set_region)

    fd, name = tempfile.mkstemp(prefix="pulumi-output-", suffix=".log")
    os.close(fd)
    output_path = Path(name)
    try:
        rc = pulumi.tee(args, output_path)
    except Exception:
        output_path.unlink(missing_ok=True)
        raise
    print(f"--- {command} exited with {rc}")
    return RunOutcome(command=command, rc=rc, output_path=output_path)
