from __future__ import annotations

import json
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

# Exit codes a shell reports for a missing or non-executable command.
NOT_FOUND_RC = 127
NOT_EXECUTABLE_RC = 126


def shell_rc(rc: int) -> int:
    # Killed by signal N: report 128+N, as a shell does.
    return 128 - rc if rc < 0 else rc


def spawn_error_rc(e: OSError) -> int:
    return NOT_FOUND_RC if isinstance(e, FileNotFoundError) else NOT_EXECUTABLE_RC


class PulumiCliError(RuntimeError):
    def __init__(self, message: str, rc: int = 1):
        super().__init__(message)
        self.rc = rc


@dataclass(frozen=True)
class PulumiResult:
    rc: int
    stdout: str
    stderr: str


def fmt(args: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in args)


class PulumiCli:
    def __init__(
        self,
        *,
        binary: str = "pulumi",
        cwd: Optional[Path] = None,
        env: Mapping[str, str] | None = None,
    ):
        self.binary = binary
        self.cwd = cwd
        self._env = dict(env) if env else None

    def _merged_env(self) -> Mapping[str, str] | None:
        if not self._env:
            return None
        merged = os.environ.copy()
        merged.update(self._env)
        return merged

    def describe(self, args: Sequence[str]) -> str:
        return fmt([self.binary, *args])

    def run(self, args: Sequence[str]) -> PulumiResult:
        try:
            p = subprocess.run(
                [self.binary, *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                cwd=self.cwd,
                env=self._merged_env(),
            )
        except OSError as e:
            return PulumiResult(rc=spawn_error_rc(e), stdout="", stderr=str(e))
        return PulumiResult(
            rc=p.returncode, stdout=p.stdout.strip(), stderr=p.stderr.strip()
        )

    def text(self, args: Sequence[str]) -> str:
        res = self.run(args)
        if res.rc != 0:
            raise PulumiCliError(f"{self.describe(args)} failed: {res.stderr}", rc=res.rc)
        return res.stdout

    def json(self, args: Sequence[str]) -> Any:
        out = self.text([*args, "--json"])
        return None if not out else json.loads(out)

    def check(self, args: Sequence[str]) -> None:
        """Run attached to the console; raise on a non-zero exit."""
        print(f"+ {self.describe(args)}", flush=True)
        try:
            p = subprocess.run([self.binary, *args], cwd=self.cwd, env=self._merged_env())
        except OSError as e:
            raise PulumiCliError(str(e), rc=spawn_error_rc(e)) from e
        if p.returncode != 0:
            raise PulumiCliError(
                f"{self.describe(args)} exited with {p.returncode}", rc=p.returncode
            )

    def tee(self, args: Sequence[str], output_path: Path) -> int:
        """
        Stream combined stdout/stderr to the console while copying it to
        output_path. Returns the command's own exit code.
        """
        with open(output_path, "w", encoding="utf-8") as out:
            try:
                proc = subprocess.Popen(
                    [self.binary, *args],
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    errors="replace",
                    cwd=self.cwd,
                    env=self._merged_env(),
                )
            except OSError as e:
                msg = f"{self.binary}: cannot execute ({e})\n"
                sys.stdout.write(msg)
                out.write(msg)
                return spawn_error_rc(e)
            with proc:
                assert proc.stdout is not None
                for line in proc.stdout:
                    sys.stdout.write(line)
                    sys.stdout.flush()
                    out.write(line)
            return proc.returncode
