import subprocess

import pytest
from pytest_mock import MockerFixture

from tracyfy.utils import AuthorInfo, get_author_info
from tracyfy.utils._author import DEFAULT_AUTHOR_EMAIL, DEFAULT_AUTHOR_NAME, _git_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TRACYFY_AUTHOR_NAME", raising=False)
    monkeypatch.delenv("TRACYFY_AUTHOR_EMAIL", raising=False)


class TestGetAuthorInfo:
    def test_explicit_values_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRACYFY_AUTHOR_NAME", "Env Name")
        assert get_author_info("Alice", "alice@example.com") == AuthorInfo(
            name="Alice", email="alice@example.com"
        )

    def test_environment_before_git(
        self, monkeypatch: pytest.MonkeyPatch, mocker: MockerFixture
    ) -> None:
        git = mocker.patch("tracyfy.utils._author._git_config", return_value="Git Value")
        monkeypatch.setenv("TRACYFY_AUTHOR_NAME", "Env Name")
        monkeypatch.setenv("TRACYFY_AUTHOR_EMAIL", "env@example.com")

        assert get_author_info() == AuthorInfo(name="Env Name", email="env@example.com")
        git.assert_not_called()

    def test_git_config_fallback(self, mocker: MockerFixture) -> None:
        values = {"user.name": "Git Name", "user.email": "git@example.com"}
        _ = mocker.patch("tracyfy.utils._author._git_config", side_effect=values.get)
        assert get_author_info() == AuthorInfo(name="Git Name", email="git@example.com")

    def test_defaults_when_nothing_configured(self, mocker: MockerFixture) -> None:
        _ = mocker.patch("tracyfy.utils._author._git_config", return_value=None)
        info = get_author_info()
        assert info == AuthorInfo(name=DEFAULT_AUTHOR_NAME, email=DEFAULT_AUTHOR_EMAIL)
        assert info.identity == "Tracyfy User <user@tracyfy.local>"


class TestGitConfig:
    def test_rejects_suspicious_keys(self, mocker: MockerFixture) -> None:
        run = mocker.patch("subprocess.run")
        assert _git_config("user.name; rm -rf /") is None
        run.assert_not_called()

    def test_missing_git_returns_none(self, mocker: MockerFixture) -> None:
        _ = mocker.patch("subprocess.run", side_effect=FileNotFoundError)
        assert _git_config("user.name") is None

    def test_unset_key_returns_none(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(
            "subprocess.run", side_effect=subprocess.CalledProcessError(1, ["git"])
        )
        assert _git_config("user.email") is None

    def test_strips_output(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(
            "subprocess.run",
            return_value=subprocess.CompletedProcess(["git"], 0, stdout="Alice\n", stderr=""),
        )
        assert _git_config("user.name") == "Alice"
