"""
Tests for configuration parsing (gbvm/config.py).
"""

import os
from unittest.mock import patch

import pytest

from gbvm.config import (
    DEFAULT_GOPROXY,
    Config,
    _load_yaml,
    apply_environment,
    first_gopath,
    load_config,
    load_config_file,
    resolve_goproxy,
)
from gbvm.errors import ConfigError


@pytest.fixture
def no_config_files(tmp_path, monkeypatch):
    """Run from an empty directory with no user config files."""
    monkeypatch.chdir(tmp_path)
    with patch("gbvm.config.CONFIG_LOCATIONS", [".gbvm.yml", ".gbvm.yaml"]):
        yield tmp_path


class TestConfig:
    """Tests for Config dataclass."""

    def test_defaults(self):
        config = Config()
        assert config.gopath == "~/go"
        assert config.gobin is None
        assert config.goproxy == DEFAULT_GOPROXY
        assert config.go_binary == "go"
        assert config.timeout_seconds == 10
        assert config.skip_dev is False

    def test_immutable(self):
        config = Config()
        with pytest.raises(AttributeError):
            config.gopath = "/tmp"

    def test_invalid_goproxy(self):
        with pytest.raises(ValueError, match="Invalid goproxy"):
            Config(goproxy="direct")

    def test_empty_gopath(self):
        with pytest.raises(ValueError, match="Invalid gopath"):
            Config(gopath="")

    def test_empty_go_binary(self):
        with pytest.raises(ValueError, match="Invalid go_binary"):
            Config(go_binary="")

    @pytest.mark.parametrize("timeout", [0, 121, -5])
    def test_timeout_out_of_range(self, timeout):
        with pytest.raises(ValueError, match="Must be between 1 and 120"):
            Config(timeout_seconds=timeout)

    @pytest.mark.parametrize("timeout", ["10", 2.5, True])
    def test_timeout_not_integer(self, timeout):
        with pytest.raises(ValueError, match="Must be an integer"):
            Config(timeout_seconds=timeout)

    def test_bin_dir_prefers_gobin(self, tmp_path):
        config = Config(gopath="/srv/go", gobin=str(tmp_path))
        assert config.bin_dir == str(tmp_path)

    def test_bin_dir_from_first_gopath(self):
        config = Config(gopath=os.pathsep.join(["/srv/go", "/opt/go"]))
        assert config.bin_dir == os.path.join("/srv/go", "bin")

    def test_bin_dir_expands_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert Config().bin_dir == os.path.join(str(tmp_path), "go", "bin")

    def test_registry_base_trailing_slash(self):
        assert Config(goproxy="https://goproxy.io/").registry_base == "https://goproxy.io"


class TestFromDictAndMerge:
    """Tests for Config.from_dict and merge_with."""

    def test_from_dict(self):
        config = Config.from_dict({
            "gopath": "/srv/go",
            "gobin": "/srv/bin",
            "goproxy": "https://goproxy.io,direct",
            "go_binary": "/usr/local/go/bin/go",
            "timeout_seconds": 30,
            "skip_dev": True,
        }, source="test.yml")

        assert config.gopath == "/srv/go"
        assert config.gobin == "/srv/bin"
        assert config.goproxy == "https://goproxy.io"
        assert config.go_binary == "/usr/local/go/bin/go"
        assert config.timeout_seconds == 30
        assert config.skip_dev is True
        assert config.source == "test.yml"

    def test_from_dict_empty(self):
        assert Config.from_dict({}) == Config()

    def test_merge_prefers_self(self):
        high = Config(timeout_seconds=30)
        low = Config(gopath="/srv/go", timeout_seconds=60, skip_dev=True)

        merged = high.merge_with(low)

        assert merged.timeout_seconds == 30
        assert merged.gopath == "/srv/go"
        assert merged.skip_dev is True


class TestGoEnvironment:
    """Tests for GOPATH/GOPROXY helpers and environment overrides."""

    def test_first_gopath(self):
        assert first_gopath(os.pathsep.join(["/a", "/b"])) == "/a"

    def test_first_gopath_skips_empty_entries(self):
        assert first_gopath(os.pathsep + "/b") == "/b"

    @pytest.mark.parametrize("value,expected", [
        ("https://proxy.golang.org", "https://proxy.golang.org"),
        ("https://goproxy.io/,direct", "https://goproxy.io"),
        ("direct,https://corp.example/proxy", "https://corp.example/proxy"),
        ("https://a.example|https://b.example", "https://a.example"),
        ("direct", None),
        ("off", None),
    ])
    def test_resolve_goproxy(self, value, expected):
        assert resolve_goproxy(value) == expected

    def test_apply_environment(self):
        config = apply_environment(Config(), {
            "GOPATH": "/srv/go",
            "GOBIN": "/srv/bin",
            "GOPROXY": "https://goproxy.io,direct",
            "GBVM_TIMEOUT_SECONDS": "30",
        })

        assert config.gopath == "/srv/go"
        assert config.bin_dir == "/srv/bin"
        assert config.goproxy == "https://goproxy.io"
        assert config.timeout_seconds == 30

    def test_apply_environment_ignores_empty(self):
        config = Config(gopath="/srv/go")
        assert apply_environment(config, {"GOPATH": "", "GOBIN": "  "}) is config

    def test_goproxy_without_url_ignored(self):
        config = apply_environment(Config(), {"GOPROXY": "off"})
        assert config.goproxy == DEFAULT_GOPROXY

    def test_bad_timeout(self):
        with pytest.raises(ConfigError, match="not an integer"):
            apply_environment(Config(), {"GBVM_TIMEOUT_SECONDS": "soon"})

    def test_out_of_range_timeout(self):
        with pytest.raises(ConfigError, match="between 1 and 120"):
            apply_environment(Config(), {"GBVM_TIMEOUT_SECONDS": "500"})


class TestLoadConfigFile:
    """Tests for YAML loading."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("gopath: /srv/go\nskip_dev: true\n")
        assert _load_yaml(str(path)) == {"gopath": "/srv/go", "skip_dev": True}

    def test_load_yaml_empty(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert _load_yaml(str(path)) == {}

    def test_load_yaml_invalid(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("gopath: [unclosed\n")
        assert _load_yaml(str(path)) is None

    def test_load_yaml_not_mapping(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n")
        assert _load_yaml(str(path)) is None

    def test_load_config_file_missing(self, tmp_path):
        assert load_config_file(str(tmp_path / "missing.yml")) is None

    def test_load_config_file_invalid_values(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("timeout_seconds: 0\n")
        assert load_config_file(str(path)) is None

    def test_load_config_file_records_source(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("timeout_seconds: 20\n")
        config = load_config_file(str(path))
        assert config.timeout_seconds == 20
        assert config.source == str(path)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_files(self, no_config_files):
        assert load_config(environ={}) == Config()

    def test_project_file(self, no_config_files):
        (no_config_files / ".gbvm.yml").write_text("skip_dev: true\n")

        config = load_config(environ={})

        assert config.skip_dev is True
        assert config.source == ".gbvm.yml"

    def test_custom_path_overrides_project(self, no_config_files):
        (no_config_files / ".gbvm.yml").write_text("timeout_seconds: 20\nskip_dev: true\n")
        custom = no_config_files / "custom.yml"
        custom.write_text("timeout_seconds: 40\n")

        config = load_config(str(custom), environ={})

        assert config.timeout_seconds == 40
        assert config.skip_dev is True

    def test_environment_overrides_files(self, no_config_files):
        (no_config_files / ".gbvm.yml").write_text("gobin: /from/file\n")

        config = load_config(environ={"GOBIN": "/from/env"})

        assert config.bin_dir == "/from/env"

    def test_missing_custom_path(self, no_config_files):
        with pytest.raises(ConfigError, match="Could not load config"):
            load_config(str(no_config_files / "missing.yml"), environ={})
