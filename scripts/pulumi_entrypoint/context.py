from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from .guards import pr_action_guard
from .model import CiContext, Settings

HEADS_PREFIX = "refs/heads/"


class EventPayloadError(RuntimeError):
    pass


def load_json_file(path: str | Path, what: str) -> Any:
    if not path:
        raise EventPayloadError(f"{what}: no path given")
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise EventPayloadError(f"{what}: cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise EventPayloadError(f"{what}: invalid JSON in {path}: {e}") from e


def load_event(settings: Settings) -> Dict[str, Any]:
    data = load_json_file(settings.event_path, "event payload")
    if not isinstance(data, dict):
        raise EventPayloadError(f"event payload: expected an object in {settings.event_path}")
    return data


def dig(data: Dict[str, Any], *keys: str) -> Optional[Any]:
    cur: Any = data
    for k in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(k)
    return cur


def strip_heads(ref: str) -> str:
    return ref.replace(HEADS_PREFIX, "")


def is_pr_mode(settings: Settings) -> bool:
    return settings.ci_mode == "pr" or settings.event_name == "pull_request"


def detect_context(settings: Settings) -> CiContext:
    """
    Work out the CI system and the branch that picks the stack.
    Raises NothingToDo for PR events that do not warrant a preview.
    """
    # A closed or relabelled PR is skipped whether or not CI mode is on.
    event: Optional[Dict[str, Any]] = None
    if settings.event_name == "pull_request":
        event = load_event(settings)
        pr_action_guard(dig(event, "action"))

    if not settings.ci_mode:
        return CiContext()
    if not settings.github_workflow:
        print("--- CI: no recognized CI system detected")
        return CiContext(pr_mode=is_pr_mode(settings))

    env = {
        "PULUMI_CI_SYSTEM": "GitHub",
        "PULUMI_CI_BUILD_ID": "",
        "PULUMI_CI_BUILD_TYPE": "",
        "PULUMI_CI_BUILD_URL": "",
        "PULUMI_CI_PULL_REQUEST_SHA": settings.sha,
    }

    # PRs preview against the target branch, so a topic branch merging into
    # main resolves main's stack.
    pr_mode = is_pr_mode(settings)
    if pr_mode:
        if event is None:
            event = load_event(settings)
            pr_action_guard(dig(event, "action"))
        branch = dig(event, "pull_request", "base", "ref") or ""
    else:
        branch = settings.ref

    branch = strip_heads(str(branch))
    print(f"--- CI: system=GitHub event={settings.event_name or '(none)'} branch={branch or '(none)'}")
    return CiContext(system="GitHub", branch=branch, pr_mode=pr_mode, env=env)
