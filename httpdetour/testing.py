"""
pytest plugin, registered through the ``pytest11`` entry point.

The ``detour`` fixture hands out the ``httpdetour`` module and deactivates
it when the test finishes, whatever the test left behind::

    def test_client(detour):
        detour.activate_for(app, "api.example.test")
        assert fetch_users() == [...]
"""

from __future__ import annotations

import types
import typing

import pytest

import httpdetour


@pytest.fixture
def detour() -> typing.Iterator[types.ModuleType]:
    try:
        yield httpdetour
    finally:
        httpdetour.deactivate()
