from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from .context import EventPayloadError, load_json_file
from .guards import no_stack_guidance
from .pulumicli import PulumiCli


def _clean(name: Any) -> Optional[str]:
    if name is None:
        return None
    name = str(name).strip()
    if not name or name == "null":
        return None
    return name


def stack_from_mapping(mapping_file: Path, branch: str) -> Optional[str]:
    data = load_json_file(mapping_file, "branch mapping")
    if not isinstance(data, dict):
        raise EventPayloadError(f"branch mapping: expected an object in {mapping_file}")
    return _clean(data.get(branch))


def stack_from_listing(pulumi: PulumiCli) -> Optional[str]:
    """
    Without a mapping file: a sole stack wins; with several, the one the
    workspace has selected.
    """
    data = pulumi.json(["stack", "ls"]) or []
    stacks: List[dict] = [s for s in data if isinstance(s, dict) and s.get("name")]
    if len(stacks) == 1:
        return _clean(stacks[0]["name"])
    current = [s for s in stacks if s.get("current")]
    if len(current) == 1:
        return _clean(current[0]["name"])
    return None


def resolve_stack(mapping_file: Path, branch: str, pulumi: PulumiCli) -> Optional[str]:
    if mapping_file.exists():
        return stack_from_mapping(mapping_file, branch)
    return stack_from_listing(pulumi)


def select_stack(mapping_file: Path, branch: str, pulumi: PulumiCli) -> str:
    """Resolve and select the stack for branch, or raise NothingToDo."""
    stack = resolve_stack(mapping_file, branch, pulumi)
    if not stack:
        raise no_stack_guidance(branch)
    print(f"--- stack: {stack} (branch {branch})")
    pulumi.check(["stack", "select", stack])
    return stack
