"""Tests for configuration and mode selection."""

import pytest

from buildcache.core import (
    CacheConfig,
    ConfigError,
    FlushMode,
    ModeConflictError,
    RebuildMode,
    RestoreMode,
    UsageError,
    parse_flush_age,
    parse_server,
    select_mode,
)

CREDENTIALS = {"access_key": "AKIA", "secret_key": "secret"}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BC_LOG_LEVEL", "BC_METRICS", "BC_STORAGE_BACKEND", "BC_STORAGE_ROOT", "BC_DELETE_WORKERS"):
        monkeypatch.delenv(name, raising=False)


class TestSelectMode:
    """Tests for mapping the mode flags onto a Mode."""

    @pytest.mark.parametrize(
        "flags",
        [(True, True, False), (True, False, True), (False, True, True), (True, True, True)],
    )
    def test_multiple_modes_conflict(self, flags):
        with pytest.raises(ModeConflictError, match="single mode"):
            select_mode(*flags, mounts=["node_modules"])

    def test_no_mode_conflicts(self):
        with pytest.raises(ModeConflictError, match="No action specified"):
            select_mode(False, False, False)

    def test_rebuild_requires_mounts(self):
        with pytest.raises(UsageError, match="No mounts specified"):
            select_mode(True, False, False, mounts=[])

    def test_rebuild_ignores_blank_mounts(self):
        with pytest.raises(UsageError):
            select_mode(True, False, False, mounts=["", ""])

    def test_rebuild_mode_carries_mounts(self):
        mode = select_mode(True, False, False, mounts=["a", "b"])
        assert mode == RebuildMode(mounts=("a", "b"))

    def test_restore_mode(self):
        assert select_mode(False, True, False) == RestoreMode()

    def test_flush_mode_carries_age(self):
        assert select_mode(False, False, True, flush_age=7) == FlushMode(age_days=7)

    def test_mode_conflict_is_a_usage_error(self):
        assert issubclass(ModeConflictError, UsageError)


class TestParseFlushAge:
    """Tests for the retention threshold parser."""

    @pytest.mark.parametrize("raw,expected", [("30", 30), (" 7 ", 7), ("0", 0), (14, 14)])
    def test_valid(self, raw, expected):
        assert parse_flush_age(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "1.5", "", "-1", -3, True])
    def test_invalid(self, raw):
        with pytest.raises(ConfigError, match="Invalid flush age"):
            parse_flush_age(raw)


class TestParseServer:
    """Tests for S3 server validation."""

    def test_empty_means_aws(self):
        assert parse_server("") is None
        assert parse_server(None) is None

    @pytest.mark.parametrize(
        "server,expected",
        [
            ("https://minio.example.com", "https://minio.example.com"),
            ("http://localhost:9000/", "http://localhost:9000"),
        ],
    )
    def test_http_uris(self, server, expected):
        assert parse_server(server) == expected

    def test_rejects_non_http(self):
        with pytest.raises(ConfigError, match="Needs to be a HTTP URI"):
            parse_server("minio.example.com:9000")


class TestCacheConfigFromOptions:
    """Tests for CacheConfig.from_options."""

    def test_example_rebuild(self):
        """owner=acme repo=widget branch=feature-x writes archive.tar under the branch."""
        config = CacheConfig.from_options(
            rebuild=True,
            mounts=["./node_modules"],
            owner="acme",
            repo="widget",
            branch="feature-x",
            **CREDENTIALS,
        )

        assert config.mode == RebuildMode(mounts=("./node_modules",))
        assert config.filename == "archive.tar"
        assert config.paths.path == "/acme/widget/feature-x/"

    def test_explicit_path_rebuild_needs_no_identity(self):
        """PLUGIN_PATH alone is enough for a rebuild without repository owner/name."""
        config = CacheConfig.from_options(
            rebuild=True, mounts=["node_modules"], path="/ci-cache/shared/", **CREDENTIALS
        )

        assert config.paths.path == "/ci-cache/shared/"
        assert config.paths.fallback_path == ""
        assert config.paths.flush_path == ""

    def test_restore_without_identity_needs_fallback_path(self):
        with pytest.raises(ConfigError, match="cannot create default fallback_path"):
            CacheConfig.from_options(restore=True, path="/ci-cache/shared/", **CREDENTIALS)

    def test_explicit_paths_restore_needs_no_identity(self):
        config = CacheConfig.from_options(
            restore=True, path="/ci-cache/dev/", fallback_path="/ci-cache/master/", **CREDENTIALS
        )
        assert (config.paths.path, config.paths.fallback_path) == ("/ci-cache/dev/", "/ci-cache/master/")

    def test_explicit_flush_path_needs_no_identity(self):
        config = CacheConfig.from_options(flush=True, flush_path="/ci-cache/", **CREDENTIALS)
        assert config.paths.flush_path == "/ci-cache/"

    def test_flush_without_identity_needs_flush_path(self):
        with pytest.raises(ConfigError, match="cannot create default flush_path"):
            CacheConfig.from_options(flush=True, path="/ci-cache/dev/", **CREDENTIALS)

    def test_mode_conflict_from_options(self):
        with pytest.raises(ModeConflictError):
            CacheConfig.from_options(rebuild=True, restore=True, mounts=["x"], owner="a", repo="b")

    def test_invalid_flush_age_is_config_error(self):
        with pytest.raises(ConfigError):
            CacheConfig.from_options(flush=True, flush_age="soon", owner="a", repo="b", **CREDENTIALS)

    def test_missing_credentials(self):
        with pytest.raises(ConfigError, match="No access credentials provided"):
            CacheConfig.from_options(restore=True, owner="a", repo="b", access_key="only-access")

    def test_invalid_server(self):
        with pytest.raises(ConfigError, match="Invalid server"):
            CacheConfig.from_options(restore=True, owner="a", repo="b", server="ftp://x", **CREDENTIALS)

    def test_credentials_hidden_from_repr(self):
        config = CacheConfig.from_options(restore=True, owner="a", repo="b", **CREDENTIALS)
        assert "secret" not in repr(config)

    def test_filename_default_is_logged(self, logger):
        CacheConfig.from_options(restore=True, owner="a", repo="b", logger=logger, **CREDENTIALS)
        assert "No filename specified. Creating default" in logger.messages("info")

    def test_filesystem_backend_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BC_STORAGE_BACKEND", "filesystem")
        monkeypatch.setenv("BC_STORAGE_ROOT", str(tmp_path))
        monkeypatch.setenv("BC_DELETE_WORKERS", "4")

        config = CacheConfig.from_options(flush=True, owner="a", repo="b")

        assert config.storage_backend == "filesystem"
        assert config.storage_root == str(tmp_path)
        assert config.delete_workers == 4
        assert config.mode == FlushMode(age_days=30)

    def test_filesystem_backend_requires_root(self, monkeypatch):
        monkeypatch.setenv("BC_STORAGE_BACKEND", "filesystem")
        with pytest.raises(ConfigError, match="BC_STORAGE_ROOT"):
            CacheConfig.from_options(restore=True, owner="a", repo="b")

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("BC_STORAGE_BACKEND", "ftp")
        with pytest.raises(ConfigError, match="Unknown storage backend"):
            CacheConfig.from_options(restore=True, owner="a", repo="b", **CREDENTIALS)

    @pytest.mark.parametrize("workers", ["zero", "0"])
    def test_invalid_delete_workers(self, monkeypatch, workers):
        monkeypatch.setenv("BC_DELETE_WORKERS", workers)
        with pytest.raises(ConfigError, match="BC_DELETE_WORKERS"):
            CacheConfig.from_options(restore=True, owner="a", repo="b", **CREDENTIALS)
