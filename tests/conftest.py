import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from pulumi_entrypoint.model import Settings
from pulumi_entrypoint.pulumicli import PulumiCliError, fmt


class FakePulumi:
    """Records pulumi invocations instead of running them."""

    binary = "pulumi"

    def __init__(self, stacks=None, rc=0, output="", fail_on=None, fail_rc=3):
        self.stacks = stacks or []
        self.rc = rc
        self.output = output
        self.fail_on = fail_on
        self.fail_rc = fail_rc
        self.calls = []

    def describe(self, args):
        return fmt([self.binary, *args])

    def json(self, args):
        self.calls.append(("json", list(args)))
        return self.stacks

    def check(self, args):
        self.calls.append(("check", list(args)))
        if self.fail_on and list(args[: len(self.fail_on)]) == self.fail_on:
            raise PulumiCliError(f"{self.describe(args)} exited with {self.fail_rc}", rc=self.fail_rc)

    def tee(self, args, output_path):
        self.calls.append(("tee", list(args)))
        Path(output_path).write_text(self.output, encoding="utf-8")
        return self.rc

    def checked(self):
        return [c[1] for c in self.calls if c[0] == "check"]

    def teed(self):
        return [c[1] for c in self.calls if c[0] == "tee"]


@pytest.fixture
def fake_pulumi():
    return FakePulumi()


@pytest.fixture
def write_event(tmp_path):
    def _write(payload):
        path = tmp_path / "event.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def write_mapping(tmp_path):
    def _write(mapping):
        path = tmp_path / ".pulumi" / "ci.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(mapping), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_settings(tmp_path):
    def _make(**kwargs):
        return Settings(start_dir=tmp_path, **kwargs)

    return _make


@pytest.fixture
def http_session():
    session = Mock()
    session.post.return_value = Mock(status_code=201)
    return session


def pr_event(action="opened", number=7, base="main", head="feature/x",
             comments_url="https://api.github.com/repos/acme/infra/issues/7/comments"):
    return {
        "action": action,
        "number": number,
        "pull_request": {
            "comments_url": comments_url,
            "base": {"ref": base},
            "head": {"ref": head},
        },
    }
