"""Tests for the click entrypoint, run against the fixture snapshot."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from oxt_api import cli
from tests.conftest import D1, V1, make_settings


@pytest.fixture(autouse=True)
def fixture_settings(monkeypatch):
    monkeypatch.setattr(cli, "settings", make_settings())


def test_yield_prints_report():
    result = CliRunner().invoke(cli.main, ["--log-level", "ERROR", "yield", V1])
    assert result.exit_code == 0, result.output
    assert '"moniker": "alpha"' in result.output
    assert '"apr": "4.75"' in result.output


def test_yield_rejects_bad_address():
    result = CliRunner().invoke(cli.main, ["yield", "0x12"])
    assert result.exit_code == 2
    assert "not an address" in result.output


def test_ranking_lists_top_delegators():
    result = CliRunner().invoke(cli.main, ["--log-level", "ERROR", "ranking", "--limit", "2"])
    assert result.exit_code == 0, result.output
    assert D1 in result.output
    assert "4 delegators" in result.output


def test_ranking_limit_is_bounded():
    result = CliRunner().invoke(cli.main, ["ranking", "--limit", "0"])
    assert result.exit_code == 2
