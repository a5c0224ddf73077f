"""Tests for core.output_manager.OutputManager."""

import os
from datetime import datetime, timedelta

import pytest

from core.output_manager import OutputManager, safe_name


def test_create_timestamped_dir(tmp_path):
    manager = OutputManager(str(tmp_path), "SAP Contract/Reads")
    path = manager.create_timestamped_dir()

    assert os.path.isdir(path)
    assert os.path.basename(path).endswith("_SAP_Contract_Reads")
    assert manager.current_dir == path


def test_get_output_path_requires_dir(tmp_path):
    with pytest.raises(RuntimeError):
        OutputManager(str(tmp_path), "x").get_output_path("a.json")


def test_get_output_path_creates_parents(tmp_path):
    manager = OutputManager(str(tmp_path), "x")
    manager.create_timestamped_dir()
    path = manager.get_output_path("queue", "0001_Fn.json")

    assert os.path.isdir(os.path.dirname(path))
    assert path.startswith(manager.current_dir)


def test_cleanup_removes_only_expired_run_folders(tmp_path):
    old = (datetime.now() - timedelta(days=40)).strftime("%Y%m%d_%H%M")
    recent = (datetime.now() - timedelta(days=2)).strftime("%Y%m%d_%H%M")
    for name in (f"{old}_SAP_Contract_Reads", f"{recent}_SAP_Contract_Reads", "notes"):
        (tmp_path / name).mkdir()

    deleted = OutputManager(str(tmp_path), "SAP_Contract_Reads", retention_days=30).cleanup_old_folders()

    assert deleted == 1
    assert sorted(os.listdir(tmp_path)) == sorted([f"{recent}_SAP_Contract_Reads", "notes"])


def test_cleanup_disabled_with_zero_retention(tmp_path):
    (tmp_path / "20000101_0000_SAP_Contract_Reads").mkdir()
    assert OutputManager(str(tmp_path), "x", retention_days=0).cleanup_old_folders() == 0


def test_cleanup_missing_base_dir(tmp_path):
    assert OutputManager(str(tmp_path / "missing"), "x").cleanup_old_folders() == 0


def test_safe_name_flattens_path_separators():
    assert safe_name("../a/b c") == "___a_b_c"
    assert safe_name("contract-reads_out") == "contract-reads_out"
