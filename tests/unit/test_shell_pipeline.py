"""
Unit tests for shell_pipeline.py
"""

import os
import pathlib
import sys

# Add the parent directory to the path so we can import epidisco_cli
sys.path.insert(
    0,
    os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")),
)

from epidisco_cli.shell_pipeline import Command, Pipeline  # noqa: E402


def test_simple_command():
    """Test rendering a simple command"""
    cmd = Command("echo", "hello world")
    assert str(cmd) == "echo 'hello world'"
    assert cmd == Command("echo", "hello world")
    assert hash(cmd) == hash(Command("echo", "hello world"))
    assert cmd != Command("echo", "hello")


def test_arguments_are_strings():
    cmd = Command("samtools", "sort", "-@", 4, pathlib.Path("/a/b.bam"))
    assert cmd.args == ["sort", "-@", "4", "/a/b.bam"]


def test_simple_pipeline():
    """Test a simple pipeline: echo hello | cat"""
    pipeline = Pipeline(Command("echo", "hello pipeline"), Command("cat"))
    assert str(pipeline) == "echo 'hello pipeline' | cat"


def test_skip_pipe():
    """Commands after a skipped pipe run in sequence"""
    pipeline = Pipeline(
        Command("mkdir", "-p", "out"),
        Command("echo", "a"),
        Command("cat"),
        skip_pipe=[0],
    )
    assert str(pipeline) == "mkdir -p out; echo a | cat"


def test_pipeline_with_file_io():
    """Test a pipeline with file input and output"""
    pipeline = Pipeline(
        Command("cat"),
        file_input=pathlib.Path("/tmp/in.txt"),
        file_output=pathlib.Path("/tmp/out.txt"),
    )
    assert str(pipeline) == "<'/tmp/in.txt' cat >'/tmp/out.txt'"


def test_pipeline_equality():
    a = Pipeline(Command("echo", "a"), file_output=pathlib.Path("x"))
    b = Pipeline(Command("echo", "a"), file_output=pathlib.Path("x"))
    c = Pipeline(Command("echo", "a"), file_output=pathlib.Path("y"))
    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert "Command(echo, 'a')" in repr(a)
