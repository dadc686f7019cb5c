"""Tests for configuration directory resolution."""

from pathlib import Path

from crm_sync.utils.paths import (
    CONFIG_DIR_ENV_VAR,
    DEFAULT_CONFIG_DIR,
    resolve_config_dir,
)


class TestResolveConfigDir:
    """Tests for resolve_config_dir."""

    def test_default_location(self, monkeypatch):
        """Without arguments or env, ~/.crm-sync is used."""
        monkeypatch.delenv(CONFIG_DIR_ENV_VAR, raising=False)
        assert resolve_config_dir() == (Path.home() / ".crm-sync").resolve()
        assert DEFAULT_CONFIG_DIR.name == ".crm-sync"

    def test_env_var_is_used(self, tmp_path, monkeypatch):
        """CRM_SYNC_CONFIG_DIR overrides the default."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path))
        assert resolve_config_dir() == tmp_path.resolve()

    def test_explicit_beats_env_var(self, tmp_path, monkeypatch):
        """An explicit directory wins over the environment."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path / "env"))
        assert resolve_config_dir(tmp_path / "cli") == (tmp_path / "cli").resolve()

    def test_tilde_is_expanded(self):
        """A leading ~ is expanded to the home directory."""
        assert resolve_config_dir("~/crm") == (Path.home() / "crm").resolve()


class TestUtilsPackage:
    """Tests for the crm_sync.utils package exports."""

    def test_exports_normalization_and_path_helpers(self):
        """The package re-exports value and path helpers, not logging."""
        import crm_sync.utils as utils

        assert utils.resolve_config_dir is resolve_config_dir
        assert set(utils.__all__) == {
            "DEFAULT_CONFIG_DIR",
            "clean_value",
            "join_name",
            "resolve_config_dir",
            "split_name",
        }
