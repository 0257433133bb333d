from __future__ import annotations

import re
import sys
from typing import Any, Dict, Optional

import requests

from .context import EventPayloadError, dig, load_event, strip_heads
from .guards import PREVIEW_PR_ACTIONS
from .model import PostActionResult, Settings
from .pulumicli import PulumiCli, PulumiCliError
from .runner import RunOutcome


def strip_ansi(text: str) -> str:
    return re.sub(r"\x1B\[[0-9;]*[A-Za-z]", "", text)


def build_comment(command: str, output: str) -> str:
    body = strip_ansi(output).rstrip("\n")
    return f"#### :tropical_drink: `{command}`\n```\n{body}\n```"


def post_comment(
    url: str,
    token: str,
    comment: str,
    *,
    timeout: float,
    session: Optional[requests.Session] = None,
) -> requests.Response:
    http = session or requests.Session()
    headers = {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/vnd.github+json",
    }
    r = http.post(url, headers=headers, json={"body": comment}, timeout=timeout)
    r.raise_for_status()
    return r


def append_step_summary(path: str, text: str) -> None:
    if not path:
        return
    # Optional extra; never blocks the PR comment.
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(text + "\n")
    except OSError as e:
        print(f"ERROR: cannot write step summary {path}: {e}", file=sys.stderr)


def _on_pull_request(
    settings: Settings,
    event: Dict[str, Any],
    outcome: RunOutcome,
    result: PostActionResult,
    session: Optional[requests.Session],
) -> None:
    action = dig(event, "action")
    number = dig(event, "number")
    comments_url = dig(event, "pull_request", "comments_url")
    result.branch = str(dig(event, "pull_request", "head", "ref") or "")
    print(f"# PR #{number}, action '{action}', branch {result.branch}")

    comment = build_comment(outcome.command, outcome.output())
    append_step_summary(settings.step_summary, comment)

    if action not in PREVIEW_PR_ACTIONS:
        print(f"--- PR comment skipped: action '{action}' carries no changes")
        return
    if not comments_url:
        print("--- PR comment skipped: event has no pull_request.comments_url")
        return
    if not settings.token:
        print("--- PR comment skipped: GITHUB_TOKEN is not set")
        return
    print(f"Commenting on PR {comments_url}")
    post_comment(
        comments_url, settings.token, comment, timeout=settings.http_timeout, session=session
    )
    result.commented = True


def _destroy_stack(pulumi: PulumiCli, stack: str, result: PostActionResult) -> None:
    print(f"--- branch deleted: destroying stack {stack}")
    pulumi.check(["destroy", "--yes", "--skip-preview"])
    pulumi.check(["stack", "rm", "--yes", stack])
    result.destroyed = True


def dispatch(
    settings: Settings,
    outcome: RunOutcome,
    pulumi: PulumiCli,
    *,
    stack: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> PostActionResult:
    """
    Act on the triggering event after the wrapped command ran. Failures are
    reported but never change the exit code.
    """
    result = PostActionResult(event_name=settings.event_name)
    if settings.event_name not in ("pull_request", "delete", "push"):
        return result

    try:
        event = load_event(settings)
        if settings.event_name == "pull_request":
            _on_pull_request(settings, event, outcome, result, session)
        else:
            result.branch = strip_heads(str(dig(event, "ref") or ""))
            result.update = False
            if settings.event_name == "delete" and settings.destroy_on_delete and stack:
                _destroy_stack(pulumi, stack, result)
    except requests.exceptions.HTTPError as err:
        print(
            f"ERROR: PR comment failed: {err.response.status_code} - {err.response.text}",
            file=sys.stderr,
        )
    except (requests.exceptions.RequestException, PulumiCliError, EventPayloadError, OSError) as err:
        print(f"ERROR: post-action for '{settings.event_name}' failed: {err}", file=sys.stderr)
    return result
