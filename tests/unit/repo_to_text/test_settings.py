from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repo_to_text.config import HistoryPolicy
from repo_to_text.exceptions import ConfigError
from repo_to_text.settings import Settings, build_settings, env_overrides, load_config_file

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in ("OUTPUT", "HISTORY", "HISTORY_POLICY", "HISTORY_TIMEOUT", "IGNORE_FILE"):
        monkeypatch.delenv(f"REPO_TO_TEXT_{key}", raising=False)
    return monkeypatch


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings()

    assert settings.repo.resolve() == Path.cwd().resolve()
    assert settings.output == Path("repo_contents.txt")
    assert settings.ignore_file == ".gitignore"
    assert settings.history is True
    assert settings.history_policy is HistoryPolicy.OMIT
    assert settings.history_timeout == pytest.approx(30.0)


@pytest.mark.unit
def test_settings_reject_negative_timeout() -> None:
    with pytest.raises(ValueError, match="history_timeout"):
        Settings(history_timeout=-1)


@pytest.mark.unit
@pytest.mark.parametrize("value", [None, 0, 0.0, "0", "none", "None", ""])
def test_settings_timeout_zero_or_none_waits_forever(value: object) -> None:
    assert Settings(history_timeout=value).history_timeout is None


@pytest.mark.unit
def test_settings_timeout_from_string() -> None:
    assert Settings(history_timeout=" 2.5 ").history_timeout == pytest.approx(2.5)


@pytest.mark.unit
def test_env_overrides_reads_dotenv_and_environment(
    tmp_path: Path,
    clean_env: pytest.MonkeyPatch,
) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "REPO_TO_TEXT_OUTPUT=from_dotenv.txt\nREPO_TO_TEXT_HISTORY_POLICY=fail\nOTHER=1\n",
        encoding="utf-8",
    )
    clean_env.setenv("REPO_TO_TEXT_OUTPUT", "from_env.txt")
    clean_env.setenv("REPO_TO_TEXT_UNKNOWN", "x")

    values = env_overrides(str(env_file))

    assert values == {"output": "from_env.txt", "history_policy": "fail"}


@pytest.mark.unit
def test_load_config_file_reads_mapping(tmp_path: Path) -> None:
    config = tmp_path / "repo-to-text.yaml"
    config.write_text("output: snapshot.txt\nhistory: false\n", encoding="utf-8")

    assert load_config_file(config) == {"output": "snapshot.txt", "history": False}


@pytest.mark.unit
def test_load_config_file_empty_is_no_op(tmp_path: Path) -> None:
    config = tmp_path / "empty.yaml"
    config.write_text("", encoding="utf-8")

    assert load_config_file(config) == {}


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "reason"),
    [
        ("- a\n- b\n", "expected a mapping"),
        ("colour: blue\n", "unknown settings: colour"),
        ("output: [unclosed\n", None),
    ],
)
def test_load_config_file_rejects_bad_files(tmp_path: Path, text: str, reason: str | None) -> None:
    config = tmp_path / "bad.yaml"
    config.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError, match=reason):
        load_config_file(config)


@pytest.mark.unit
def test_load_config_file_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as exc_info:
        load_config_file(tmp_path / "nope.yaml")

    assert exc_info.value.path == tmp_path / "nope.yaml"


@pytest.mark.unit
def test_build_settings_precedence(tmp_path: Path, clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("REPO_TO_TEXT_OUTPUT", "env.txt")
    clean_env.setenv("REPO_TO_TEXT_HISTORY_TIMEOUT", "5")
    config = tmp_path / "cfg.yaml"
    config.write_text("output: config.txt\nhistory_policy: fail\n", encoding="utf-8")

    settings = build_settings(
        {"repo": tmp_path, "history_policy": "omit"},
        config_file=config,
        env_file="",
    )

    assert settings.output == Path("config.txt")
    assert settings.history_timeout == pytest.approx(5.0)
    assert settings.history_policy is HistoryPolicy.OMIT


@pytest.mark.unit
def test_build_settings_wraps_validation_errors(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("REPO_TO_TEXT_HISTORY_POLICY", "sometimes")

    with pytest.raises(ConfigError, match="history_policy"):
        build_settings({}, env_file="")


@pytest.mark.unit
def test_build_settings_ignores_discovered_env_file_when_disabled(
    mocker: MockerFixture,
    clean_env: pytest.MonkeyPatch,
) -> None:
    dotenv = mocker.patch("repo_to_text.settings.dotenv_values")

    build_settings({}, env_file="")

    dotenv.assert_not_called()


@pytest.mark.unit
def test_build_settings_env_disables_timeout(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("REPO_TO_TEXT_HISTORY_TIMEOUT", "none")

    assert build_settings({}, env_file="").history_timeout is None
