"""Tests for configuration loading."""

from pathlib import Path

import pytest

from bibforge.config import Config, Settings, get_config_paths, load_config, to_settings
from bibforge.core.exceptions import ConfigError


def write_yaml(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test merging config files and the environment."""

    def test_defaults_without_files(self) -> None:
        settings = load_config()
        assert settings == Settings()
        assert settings.indent == 2
        assert settings.group_headers is True

    def test_config_paths(self, tmp_path: Path) -> None:
        paths = get_config_paths()
        assert paths[0] == tmp_path / "xdg" / "bibforge" / "config.yaml"
        assert paths[1:] == [Path(".bibforge.yaml"), Path("bibforge.yaml")]

    def test_project_overrides_user(self, tmp_path: Path) -> None:
        write_yaml(
            tmp_path / "xdg" / "bibforge" / "config.yaml",
            "indent: 4\nrequired:\n  article: [doi]\n",
        )
        write_yaml(tmp_path / ".bibforge.yaml", "indent: 8\nrequired:\n  book: [isbn]\n")

        settings = load_config()

        assert settings.indent == 8
        assert settings.required == {"article": ["doi"], "book": ["isbn"]}

    def test_explicit_file_wins(self, tmp_path: Path) -> None:
        write_yaml(tmp_path / "bibforge.yaml", "group_headers: true\n")
        explicit = write_yaml(tmp_path / "custom.yaml", "group_headers: false\n")

        assert load_config(explicit).group_headers is False

    def test_environment_override(self, tmp_path: Path, monkeypatch) -> None:
        write_yaml(tmp_path / "bibforge.yaml", "indent: 3\n")
        monkeypatch.setenv("BIBFORGE_INDENT", "6")

        assert load_config().indent == 6

    def test_invalid_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("BIBFORGE_INDENT", "wide")
        with pytest.raises(ConfigError):
            load_config()

    def test_defaults_accept_numbers(self, tmp_path: Path) -> None:
        write_yaml(tmp_path / "bibforge.yaml", "defaults:\n  year: 2024\n  publisher: ACM\n")
        assert load_config().defaults == {"year": 2024, "publisher": "ACM"}


class TestInvalidConfig:
    """Test error reporting for broken config files."""

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "bad.yaml", "indent: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            Config.from_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "list.yaml", "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            Config.from_file(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "empty.yaml", "")
        assert Config.from_file(path) == {}

    @pytest.mark.parametrize(
        "data",
        [
            {"indent": "two"},
            {"indent": -1},
            {"unknown": True},
            {"required": {"book": "isbn"}},
        ],
    )
    def test_invalid_values(self, data: dict) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            to_settings(data)


class TestMerge:
    def test_deep_merge(self) -> None:
        merged = Config.merge_configs(
            {"required": {"book": ["isbn"]}, "indent": 2},
            {"required": {"article": ["doi"]}},
            {"indent": 4},
        )
        assert merged == {
            "required": {"book": ["isbn"], "article": ["doi"]},
            "indent": 4,
        }
