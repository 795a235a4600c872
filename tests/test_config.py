"""Tests for the YAML settings file."""

import pytest

from modgraph.config import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    ConfigError,
    find_settings_file,
    load_settings,
)


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults_without_file(self, tmp_path):
        """Test defaults when no settings file exists."""
        settings = load_settings(tmp_path)

        assert settings.root == tmp_path.resolve()
        assert settings.entry_points == []
        assert settings.include == DEFAULT_INCLUDE
        assert settings.exclude == DEFAULT_EXCLUDE
        assert settings.backend == "auto"
        assert settings.tsconfig is None
        assert settings.source is None

    def test_defaults_are_copies(self, tmp_path):
        """Test mutating settings does not change the module defaults."""
        settings = load_settings(tmp_path)
        settings.exclude.append("**/tmp/**")

        assert "**/tmp/**" not in DEFAULT_EXCLUDE

    def test_full_file(self, tmp_path):
        """Test every recognized key."""
        (tmp_path / "config").mkdir()
        (tmp_path / ".modgraph.yml").write_text(
            "entry_points:\n"
            "  - src/main.ts\n"
            "tsconfig: config/tsconfig.app.json\n"
            "include: ['*.ts']\n"
            "exclude: '**/__mocks__/**'\n"
            "backend: python\n"
        )

        settings = load_settings(tmp_path)

        assert settings.entry_points == ["src/main.ts"]
        assert settings.tsconfig == (tmp_path / "config" / "tsconfig.app.json").resolve()
        assert settings.include == ["*.ts"]
        assert settings.exclude == ["**/__mocks__/**"]
        assert settings.backend == "python"
        assert settings.source == tmp_path.resolve() / ".modgraph.yml"

    def test_yaml_extension(self, tmp_path):
        """Test the .yaml spelling is found too."""
        (tmp_path / ".modgraph.yaml").write_text("backend: ripgrep\n")

        assert find_settings_file(tmp_path) == tmp_path / ".modgraph.yaml"
        assert load_settings(tmp_path).backend == "ripgrep"

    def test_explicit_file(self, tmp_path):
        """Test an explicit settings path."""
        custom = tmp_path / "graph.yml"
        custom.write_text("entry_points: src/cli.ts\n")

        assert load_settings(tmp_path, custom).entry_points == ["src/cli.ts"]

    def test_empty_file(self, tmp_path):
        """Test an empty file means defaults."""
        (tmp_path / ".modgraph.yml").write_text("")

        assert load_settings(tmp_path).include == DEFAULT_INCLUDE


class TestInvalidSettings:
    """Tests for settings errors."""

    @pytest.mark.parametrize(
        "content",
        [
            "entry_points: [src/a.ts\n",
            "- just\n- a list\n",
            "include: 3\n",
            "exclude: [1, 2]\n",
            "tsconfig: [a, b]\n",
            "backend: grep\n",
        ],
    )
    def test_invalid(self, tmp_path, content):
        """Test malformed YAML and wrong value types."""
        (tmp_path / ".modgraph.yml").write_text(content)

        with pytest.raises(ConfigError):
            load_settings(tmp_path)

    def test_missing_explicit_file(self, tmp_path):
        """Test an explicit path that does not exist."""
        with pytest.raises(ConfigError):
            load_settings(tmp_path, tmp_path / "missing.yml")
