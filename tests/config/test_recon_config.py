"""
Tests for recon_config: the deployed registry asset, the loader, and the
kernel settings.
"""

from pathlib import Path

import pytest
import yaml

from recon_config import (
    DEFAULT_REGISTRY_PATH,
    KernelSettings,
    clear_registry_cache,
    get_active_registry,
    get_settings,
)
from recon_config.loader import compute_checksum, load_yaml_file, parse_registry
from recon_config.settings import parse_settings
from recon_kernel.domain.catalog import EntityKind, Status
from recon_kernel.exceptions import RegistryConfigurationError


def _write_yaml(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


def _pipeline_document() -> dict:
    return load_yaml_file(DEFAULT_REGISTRY_PATH)


class TestGetActiveRegistry:

    def test_default_asset_loads(self):
        registry = get_active_registry()
        assert registry.kinds() == frozenset(EntityKind)

    def test_cached_per_path(self):
        assert get_active_registry() is get_active_registry()
        assert get_active_registry(DEFAULT_REGISTRY_PATH) is get_active_registry()

    def test_trace_logged_on_first_load(self, tmp_path, captured_logs):
        path = _write_yaml(tmp_path / "pipeline.yaml", _pipeline_document())
        try:
            registry = get_active_registry(path)
            get_active_registry(path)
        finally:
            clear_registry_cache()

        traces = [r for r in captured_logs() if r["message"] == "RECON_CONFIG_TRACE"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace["logger"] == "recon_kernel.config"
        assert trace["checksum"] == registry.checksum
        assert trace["kind_count"] == 6
        assert trace["config_id"] == "reconciliation-pipeline"

    def test_same_table_same_checksum(self, tmp_path):
        path = _write_yaml(tmp_path / "copy.yaml", _pipeline_document())
        try:
            assert get_active_registry(path).checksum == get_active_registry().checksum
        finally:
            clear_registry_cache()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_registry(tmp_path / "absent.yaml")


class TestParseRegistry:

    def test_missing_kinds_section(self):
        with pytest.raises(RegistryConfigurationError, match="no 'kinds'"):
            parse_registry({"config_id": "x"})

    def test_missing_kind_rejected(self):
        document = _pipeline_document()
        del document["kinds"]["EXCEPTION"]
        with pytest.raises(RegistryConfigurationError, match="EXCEPTION"):
            parse_registry(document)

    def test_missing_initial_rejected(self):
        document = _pipeline_document()
        del document["kinds"]["PAIR"]["initial"]
        with pytest.raises(RegistryConfigurationError, match="PAIR: missing 'initial'"):
            parse_registry(document)

    def test_unknown_status_code_rejected(self):
        document = _pipeline_document()
        document["kinds"]["BANK_TRX"]["transitions"]["enriched"].append("ready")
        with pytest.raises(RegistryConfigurationError, match="'ready'"):
            parse_registry(document)

    def test_unreachable_state_rejected(self):
        document = _pipeline_document()
        document["kinds"]["EXCEPTION"]["transitions"]["posted"] = ["open"]
        with pytest.raises(RegistryConfigurationError, match="posted is unreachable"):
            parse_registry(document)

    def test_null_targets_mean_terminal(self):
        document = _pipeline_document()
        document["kinds"]["PAIR"]["transitions"]["confirmed"] = None
        registry = parse_registry(document)
        assert registry.targets(EntityKind.PAIR, Status.CONFIRMED) == frozenset()

    def test_targets_must_be_a_list(self):
        document = _pipeline_document()
        document["kinds"]["PAIR"]["transitions"]["pending_review"] = "confirmed"
        with pytest.raises(RegistryConfigurationError, match="must be a list"):
            parse_registry(document)


class TestLoaderHelpers:

    def test_load_yaml_file_empty_document(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_load_yaml_file_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_yaml_file(path)

    def test_compute_checksum_is_key_order_independent(self):
        assert compute_checksum({"a": 1, "b": [1, 2]}) == compute_checksum({"b": [1, 2], "a": 1})
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})


class TestSettings:

    def test_default_asset(self):
        settings = get_settings()
        assert settings == KernelSettings()
        assert settings.audit_collection == "audit_log"
        assert settings.lock_timeout_seconds == 30.0

    def test_missing_keys_take_defaults(self, tmp_path):
        path = _write_yaml(tmp_path / "kernel.yaml", {"database_url": "sqlite://"})
        settings = get_settings(path)
        assert settings.database_url == "sqlite://"
        assert settings.status_field == "status"
        assert settings.log_level == "INFO"

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValueError, match="retry_count"):
            parse_settings({"retry_count": 3})

    def test_values_normalised(self):
        settings = parse_settings({"lock_timeout_seconds": 5, "log_level": "debug"})
        assert settings.lock_timeout_seconds == 5.0
        assert settings.log_level == "DEBUG"

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValueError, match="lock_timeout_seconds"):
            KernelSettings(lock_timeout_seconds=0)

    def test_settings_are_frozen(self):
        with pytest.raises(AttributeError):
            KernelSettings().status_field = "state"


class TestBridges:

    def test_bootstrap_creates_audit_log(self, tmp_path):
        from sqlalchemy import inspect

        from recon_config.bridges import bootstrap_kernel
        from recon_kernel.db.engine import get_engine, reset_engine

        settings = KernelSettings(database_url=f"sqlite:///{tmp_path / 'boot.db'}")
        try:
            assert bootstrap_kernel(settings) is settings
            assert "audit_log" in inspect(get_engine()).get_table_names()
        finally:
            reset_engine()

    def test_build_status_manager_uses_settings(self, sql_session, seed_sql_record):
        from recon_config.bridges import build_status_manager

        seed_sql_record(EntityKind.PAIR, "pair-1", Status.PENDING_REVIEW)
        manager = build_status_manager(sql_session, settings=KernelSettings(lock_timeout_seconds=1))

        result = manager.transition(EntityKind.PAIR, "pair-1", Status.CONFIRMED, "OPERATOR", "")
        assert result.audit_entry.to_status == "confirmed"
