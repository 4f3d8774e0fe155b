import sys
import os

sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
)

import epidisco_cli  # NOQA
import epidisco_cli.util  # NOQA
from epidisco_cli.graph import GraphSemantics  # NOQA
from epidisco_cli.semantics import Semantics  # NOQA


def test_one():
    assert epidisco_cli
    assert callable(epidisco_cli.main)


def test_version():
    assert epidisco_cli.util.__version__.count(".") == 2


def test_semantics_complete():
    """The graph backend implements every operation"""
    assert not getattr(GraphSemantics, "__abstractmethods__", None)
    assert Semantics.__abstractmethods__
    assert GraphSemantics()
