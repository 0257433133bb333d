from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

DEFAULT_REGION = "us-east-1"
DEFAULT_HTTP_TIMEOUT = 30.0
MAPPING_FILE = Path(".pulumi") / "ci.json"

_TRUTHY = ("1", "true", "yes", "on")


class ConfigError(ValueError):
    pass


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def _timeout(value: Optional[str]) -> float:
    if not (value or "").strip():
        return DEFAULT_HTTP_TIMEOUT
    try:
        seconds = float(value)
    except ValueError as e:
        raise ConfigError(f"PULUMI_CI_HTTP_TIMEOUT must be a number of seconds, got {value!r}") from e
    if seconds <= 0:
        raise ConfigError(f"PULUMI_CI_HTTP_TIMEOUT must be positive, got {value!r}")
    return seconds


@dataclass(frozen=True)
class Settings:
    start_dir: Path
    ci_mode: str = ""  # "" (off) | pr | anything else
    project_root: str = ""
    github_workflow: str = ""
    event_name: str = ""
    event_path: str = ""
    ref: str = ""
    sha: str = ""
    token: str = ""
    workspace: str = ""
    step_summary: str = ""
    region: str = DEFAULT_REGION
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    destroy_on_delete: bool = False

    @classmethod
    def from_environ(
        cls, environ: Optional[Mapping[str, str]] = None, *, start_dir: Optional[Path] = None
    ) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            start_dir=Path(start_dir or os.getcwd()),
            ci_mode=env.get("PULUMI_CI", ""),
            project_root=env.get("PULUMI_ROOT", ""),
            github_workflow=env.get("GITHUB_WORKFLOW", ""),
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            event_path=env.get("GITHUB_EVENT_PATH", ""),
            ref=env.get("GITHUB_REF", ""),
            sha=env.get("GITHUB_SHA", ""),
            token=env.get("GITHUB_TOKEN", ""),
            workspace=env.get("GITHUB_WORKSPACE", ""),
            step_summary=env.get("GITHUB_STEP_SUMMARY", ""),
            region=env.get("AWS_REGION") or DEFAULT_REGION,
            http_timeout=_timeout(env.get("PULUMI_CI_HTTP_TIMEOUT")),
            destroy_on_delete=_flag(env.get("PULUMI_CI_DESTROY_ON_DELETE")),
        )

    @property
    def mapping_file(self) -> Path:
        # Resolved against the start dir, not PULUMI_ROOT.
        return self.start_dir / MAPPING_FILE

    @property
    def project_dir(self) -> Path:
        # PULUMI_ROOT only applies in CI mode.
        if self.ci_mode and self.project_root:
            return self.start_dir / self.project_root
        return self.start_dir


@dataclass(frozen=True)
class CiContext:
    system: str = ""  # GitHub|""
    branch: str = ""
    pr_mode: bool = False
    # Exported to every pulumi subprocess.
    env: Dict[str, str] = field(default_factory=dict)


@dataclass
class PostActionResult:
    event_name: str
    branch: str = ""
    commented: bool = False
    # False means the stack is marked for deletion (delete/push events).
    update: bool = True
    destroyed: bool = False
