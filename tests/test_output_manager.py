"""Tests for bamboohr_oaa.output_manager.OutputManager."""

import json
import os
from datetime import datetime, timedelta

import pytest

from bamboohr_oaa.output_manager import OutputManager, PAYLOAD_FILE, RESULTS_FILE


def _stamp(days_ago):
    return (datetime.now() - timedelta(days=days_ago)).strftime("%Y%m%d_%H%M")


def test_start_run_names_folder_after_provider_and_namespace(tmp_path):
    manager = OutputManager(str(tmp_path), "Bamboo HR/Test")
    path = manager.start_run("acme")
    assert path.is_dir()
    assert path.name.endswith("_Bamboo_HR_Test_acme")
    assert manager.run_dir == path


def test_save_requires_run_folder(tmp_path):
    manager = OutputManager(str(tmp_path), "BambooHR")
    with pytest.raises(RuntimeError):
        manager.save_results({"success": True})


def test_save_payload_and_results(tmp_path):
    manager = OutputManager(str(tmp_path), "BambooHR")
    manager.start_run("acme")

    payload_path = manager.save_payload({"applications": [{"name": "bamboohr_acme"}]})
    results_path = manager.save_results({"success": True, "completed_at": datetime(2026, 1, 2)})

    assert os.path.basename(payload_path) == PAYLOAD_FILE
    assert os.path.basename(results_path) == RESULTS_FILE
    with open(payload_path) as f:
        assert json.load(f) == {"applications": [{"name": "bamboohr_acme"}]}
    with open(results_path) as f:
        assert json.load(f) == {"success": True, "completed_at": "2026-01-02 00:00:00"}


def test_cleanup_removes_only_old_runs_of_this_provider(tmp_path):
    (tmp_path / f"{_stamp(40)}_BambooHR_acme").mkdir()
    (tmp_path / f"{_stamp(0)}_BambooHR_acme").mkdir()
    (tmp_path / f"{_stamp(40)}_Magento_store").mkdir()
    (tmp_path / "notes").mkdir()

    manager = OutputManager(str(tmp_path), "BambooHR", retention_days=30)
    assert manager.cleanup_old_runs() == 1
    assert sorted(os.listdir(tmp_path)) == sorted([
        f"{_stamp(0)}_BambooHR_acme",
        f"{_stamp(40)}_Magento_store",
        "notes",
    ])


def test_cleanup_ignores_files_and_bad_timestamps(tmp_path):
    (tmp_path / f"{_stamp(40)}_BambooHR_acme.json").write_text("{}")
    (tmp_path / "20261399_9999_BambooHR_acme").mkdir()

    manager = OutputManager(str(tmp_path), "BambooHR", retention_days=30)
    assert manager.cleanup_old_runs() == 0
    assert len(os.listdir(tmp_path)) == 2


def test_cleanup_disabled(tmp_path):
    (tmp_path / f"{_stamp(400)}_BambooHR_acme").mkdir()
    manager = OutputManager(str(tmp_path), "BambooHR", retention_days=0)
    assert manager.cleanup_old_runs() == 0


def test_cleanup_missing_base_dir(tmp_path):
    manager = OutputManager(str(tmp_path / "missing"), "BambooHR")
    assert manager.cleanup_old_runs() == 0
