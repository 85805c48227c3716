from datetime import date

import pytest

from worktime.datasource import InMemoryDataSource, JsonFileDataSource
from worktime.models import Role


def test_json_snapshot_loads_every_table(snapshot_path):
    source = JsonFileDataSource(snapshot_path)

    assert len(source.fetch_entries()) == 8
    assert source.fetch_entries()[0].date == date(2024, 1, 1)
    assert source.fetch_entries()[1].note == 'Review "API" docs'
    assert [p.is_active for p in source.fetch_projects()][-1] is False
    assert source.find_profile("u4").department_id is None
    assert source.find_profile("u5").role is Role.SUPER_ADMIN
    assert source.fetch_departments()[0].name == "研發部"


def test_missing_snapshot_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonFileDataSource(tmp_path / "missing.json")


def test_fetch_returns_copies(source):
    source.fetch_entries().clear()

    assert len(source.fetch_entries()) == 8
    assert InMemoryDataSource().fetch_profiles() == []
    assert source.find_profile("nobody") is None
