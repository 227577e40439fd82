"""Shared fixtures: building bindings in memory and a fake connection"""

import pytest

from dbusgen import PythonGenerator, load_bindings, parse
from dbusgen.testing import FakeConnection


@pytest.fixture
def bus() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def build():
    """Compile DSL source into an in-memory module of client classes.

    Keyword arguments are injected into the module namespace (host types).
    """

    def _build(source: str, **namespace):
        code = PythonGenerator(parse(source), "test_bindings").generate()
        return load_bindings(code, "test_bindings", namespace)

    return _build
