from __future__ import annotations

from typing import List, Optional, Sequence

PREVIEW_PR_ACTIONS = ("opened", "edited", "synchronize")


class NothingToDo(Exception):
    """Soft stop: print the lines and exit cleanly."""

    def __init__(self, lines: Sequence[str]):
        self.lines: List[str] = list(lines)
        super().__init__("\n".join(self.lines))


def pr_action_guard(action: Optional[str]) -> None:
    # Assignment/label/close events carry no code changes worth previewing.
    if action in PREVIEW_PR_ACTIONS:
        return
    raise NothingToDo(
        [
            f"PR event ({action or 'null'}) contains no changes and does not warrant a Pulumi Preview",
            "Skipping Pulumi action altogether...",
        ]
    )


def no_stack_guidance(branch: str) -> NothingToDo:
    return NothingToDo(
        [
            f"No stack configured for branch '{branch}'",
            "",
            "To configure this branch, please",
            "\t1) Run 'pulumi stack init <stack-name>'",
            "\t2) Associate the stack with the branch by adding",
            "\t\t{",
            f'\t\t\t"{branch}": "<stack-name>"',
            "\t\t}",
            "\tto your .pulumi/ci.json file",
            "",
            "For now, exiting cleanly without doing anything...",
        ]
    )
