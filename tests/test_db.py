"""Tests for engine construction."""

from __future__ import annotations

import math

import pytest
from sqlalchemy import text

from blousecraft.db import make_engine
from blousecraft.errors import ConfigurationError


class TestMakeEngine:
    def test_unsupported_backend_refused_up_front(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            make_engine("mysql+pymysql://user:pw@localhost/blousecraft")
        assert exc_info.value.kind == "configuration"

    def test_sqlite_gets_math_functions_and_foreign_keys(self) -> None:
        eng = make_engine("sqlite://")
        try:
            with eng.connect() as conn:
                assert conn.execute(text("SELECT radians(180)")).scalar() == pytest.approx(math.pi)
                assert conn.execute(text("SELECT least(2, NULL)")).scalar() is None
                assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        finally:
            eng.dispose()
