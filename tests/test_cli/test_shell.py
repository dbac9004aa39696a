"""Tests for the precondition gate, re-login and error mapping."""

from datetime import datetime

import pytest
import typer

from cloudctl.cli._console import Console
from cloudctl.cli._crash import describe_error, format_crash_report
from cloudctl.cli._shell import AuthRetryGuard, Gate, GlobalOptions, Shell
from cloudctl.client import ClientFactory
from cloudctl.exceptions import Forbidden, InvalidAuthToken, NotFoundError
from cloudctl.models import ProtocolVersion, SessionRecord
from cloudctl.testing import DEFAULT_PASSWORD, ScriptedPrompter

EMAIL = "user@example.com"


def make_shell(store, factory, prompter=None, **options) -> Shell:
    console = Console(store.read_user_colors, color=False)
    return Shell(
        store,
        factory,
        console,
        prompter or ScriptedPrompter(),
        GlobalOptions(color=False, **options),
    )


@pytest.fixture
def logged_in(store, cloud, target) -> SessionRecord:
    record = SessionRecord(
        token=cloud.issue_token(),
        protocol_version=ProtocolVersion.V2,
        organization_id="org-1",
        space_id="space-1",
    )
    store.save_session(target, record)
    return record


class TestAuthRetryGuard:
    def test_claims_once(self):
        guard = AuthRetryGuard()
        assert guard.claim() is True
        assert guard.claim() is False


class TestPreconditions:
    def test_no_gate_needs_no_target(self, store, cloud):
        shell = make_shell(store, ClientFactory(store, builder=cloud.builder))
        assert shell.execute(lambda: "ran", gate=Gate.NONE) == "ran"

    def test_missing_target(self, store, cloud, capsys):
        shell = make_shell(store, ClientFactory(store, builder=cloud.builder))

        with pytest.raises(typer.Exit) as exc_info:
            shell.execute(lambda: "ran", gate=Gate.TARGET)

        assert exc_info.value.exit_code == 1
        assert "Please select a target" in capsys.readouterr().err

    def test_target_gate_does_not_need_login(self, store, factory):
        shell = make_shell(store, factory)
        assert shell.execute(lambda: "ran", gate=Gate.TARGET) == "ran"

    def test_not_logged_in_with_force(self, store, factory, capsys):
        shell = make_shell(store, factory, force=True)

        with pytest.raises(typer.Exit):
            shell.execute(lambda: "ran", gate=Gate.LOGIN)

        assert "Please log in" in capsys.readouterr().err

    def test_not_logged_in_logs_in_interactively(self, store, factory, target):
        prompter = ScriptedPrompter([EMAIL, DEFAULT_PASSWORD])
        shell = make_shell(store, factory, prompter)

        assert shell.execute(lambda: "ran") == "ran"

        assert prompter.answers == []
        assert store.get_session(target).token == "token-1"

    def test_rejected_interactive_login_asks_again(self, store, factory):
        prompter = ScriptedPrompter([EMAIL, "wrong"])
        shell = make_shell(store, factory, prompter)
        with pytest.raises(AssertionError, match="Unexpected prompt"):
            shell.run(lambda: "ran", gate=Gate.LOGIN)

    def test_context_requires_organization(self, store, factory, cloud, target):
        store.save_session(
            target,
            SessionRecord(
                token=cloud.issue_token(), protocol_version=ProtocolVersion.V2
            ),
        )
        shell = make_shell(store, factory)

        with pytest.raises(typer.Exit):
            shell.execute(lambda: "ran", gate=Gate.CONTEXT)

    def test_context_requires_space(self, store, factory, cloud, target, capsys):
        store.save_session(
            target,
            SessionRecord(
                token=cloud.issue_token(),
                protocol_version=ProtocolVersion.V2,
                organization_id="org-1",
            ),
        )
        shell = make_shell(store, factory)

        with pytest.raises(typer.Exit):
            shell.execute(lambda: "ran", gate=Gate.CONTEXT)

        assert "Please select a space" in capsys.readouterr().err

    def test_v1_needs_no_context(self, store, factory, cloud, target):
        store.save_session(
            target,
            SessionRecord(
                token=cloud.issue_token(), protocol_version=ProtocolVersion.V1
            ),
        )
        shell = make_shell(store, factory)
        assert shell.execute(lambda: "ran") == "ran"

    def test_all_met(self, store, factory, logged_in):
        shell = make_shell(store, factory)
        assert shell.execute(lambda: "ran") == "ran"


class TestRelogin:
    def test_expired_token_relogs_in_once(
        self, store, factory, cloud, logged_in, target, capsys
    ):
        cloud.revoke_all_tokens()
        prompter = ScriptedPrompter([EMAIL, DEFAULT_PASSWORD])
        shell = make_shell(store, factory, prompter)

        assert shell.execute(lambda: "ran") == "ran"

        assert "Not authenticated! Try logging in:" in capsys.readouterr().out
        assert shell.guard.used
        record = store.get_session(target)
        assert record.token == "token-2"
        assert record.organization_id == "org-1"

    def test_second_denial_is_not_retried(self, store, factory, logged_in, capsys):
        calls = []

        def command():
            calls.append(1)
            raise Forbidden(detail="No access to this app")

        prompter = ScriptedPrompter([EMAIL, DEFAULT_PASSWORD])
        shell = make_shell(store, factory, prompter)

        with pytest.raises(typer.Exit) as exc_info:
            shell.execute(command)

        assert len(calls) == 2
        assert exc_info.value.exit_code == 1
        assert "Denied: No access to this app" in capsys.readouterr().err

    def test_guard_is_shared_across_runs(self, store, factory, logged_in):
        shell = make_shell(store, factory)
        shell.guard.claim()

        def command():
            raise InvalidAuthToken()

        with pytest.raises(InvalidAuthToken):
            shell.run(command)


class TestErrorMapping:
    def test_exit_passes_through(self, store, factory):
        shell = make_shell(store, factory)

        def command():
            raise typer.Exit(3)

        with pytest.raises(typer.Exit) as exc_info:
            shell.execute(command, gate=Gate.NONE)
        assert exc_info.value.exit_code == 3

    def test_interrupt(self, store, factory):
        shell = make_shell(store, factory)

        def command():
            raise KeyboardInterrupt()

        with pytest.raises(typer.Exit) as exc_info:
            shell.execute(command, gate=Gate.NONE)
        assert exc_info.value.exit_code == 130

    def test_api_error_writes_crash_report(self, store, factory, capsys):
        shell = make_shell(store, factory)

        def command():
            raise NotFoundError("Get app: not found")

        with pytest.raises(typer.Exit) as exc_info:
            shell.execute(command, gate=Gate.NONE)

        assert exc_info.value.exit_code == 1
        err = capsys.readouterr().err
        assert "cloudctl.exceptions.NotFoundError: Get app: not found" in err
        assert f"For more information, see {store.crash_path}" in err
        assert "NotFoundError" in store.crash_path.read_text()

    def test_unexpected_error_writes_crash_report(self, store, factory):
        shell = make_shell(store, factory)

        def command():
            raise RuntimeError("boom")

        with pytest.raises(typer.Exit):
            shell.execute(command, gate=Gate.NONE)

        report = store.crash_path.read_text()
        assert report.startswith("Time of crash:")
        assert "RuntimeError: boom" in report
        assert "in command" in report

    def test_unwritable_crash_report_still_reports_error(
        self, store, factory, capsys
    ):
        # a directory in place of the report file cannot be written
        store.crash_path.mkdir(parents=True)
        shell = make_shell(store, factory)

        def command():
            raise RuntimeError("boom")

        with pytest.raises(typer.Exit) as exc_info:
            shell.execute(command, gate=Gate.NONE)

        assert exc_info.value.exit_code == 1
        err = capsys.readouterr().err
        assert "RuntimeError: boom" in err
        assert "For more information" not in err


class TestCrashReport:
    def test_describe_builtin(self):
        assert describe_error(ValueError("bad")) == "ValueError: bad"
        assert describe_error(ValueError()) == "ValueError"

    def test_describe_qualified(self):
        assert describe_error(InvalidAuthToken()).startswith(
            "cloudctl.exceptions.InvalidAuthToken: Invalid auth token."
        )

    def test_format(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            report = format_crash_report(e, now=datetime(2024, 1, 2, 3, 4, 5))

        lines = report.splitlines()
        assert lines[:4] == [
            "Time of crash:",
            "  2024-01-02 03:04:05",
            "",
            "RuntimeError: boom",
        ]
        assert lines[-1].endswith("in test_format")
