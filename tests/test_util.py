import argparse
import os
import pathlib
import sys
import tempfile

import pytest

sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
)

import epidisco_cli.util  # NOQA


def test_opt_map():
    """Test the optional chaining helpers"""
    res = epidisco_cli.util.opt_map(None, lambda x: x + 1)
    assert res is None
    assert epidisco_cli.util.opt_map(1, lambda x: x + 1) == 2

    assert epidisco_cli.util.opt_bind(None, lambda x: x) is None
    assert epidisco_cli.util.opt_bind(1, lambda x: None) is None
    assert epidisco_cli.util.opt_bind(1, lambda x: x * 3) == 3


def test_sanitize_label():
    assert epidisco_cli.util.sanitize_label("QC:normal") == "QC_normal"
    assert epidisco_cli.util.sanitize_label("rna-bam") == "rna-bam"
    assert epidisco_cli.util.sanitize_label("a b/c") == "a_b_c"


def test_env_path(monkeypatch):
    monkeypatch.delenv("EPIDISCO_TEST_PATH", raising=False)
    res = epidisco_cli.util.env_path("EPIDISCO_TEST_PATH", "/default")
    assert res == pathlib.Path("/default")
    monkeypatch.setenv("EPIDISCO_TEST_PATH", "/from/env")
    res = epidisco_cli.util.env_path("EPIDISCO_TEST_PATH", "/default")
    assert res == pathlib.Path("/from/env")


def test_path_arg():
    with tempfile.TemporaryDirectory() as tmp_dir:
        is_file = epidisco_cli.util.path_arg(exists=True, is_file=True)
        f = pathlib.Path(tmp_dir) / "params.json"
        f.touch()
        assert is_file(str(f)) == f
        with pytest.raises(argparse.ArgumentTypeError):
            is_file(tmp_dir)
        with pytest.raises(argparse.ArgumentTypeError):
            is_file(str(pathlib.Path(tmp_dir) / "missing"))
