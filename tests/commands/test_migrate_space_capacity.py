# tests/commands/test_migrate_space_capacity.py
"""Capacity migration command."""

import pytest

from cosynq.commands import migrate_space_capacity as command
from cosynq.commands.migrate_space_capacity import migrate_space_capacity


@pytest.fixture
def spaces(db, location, make_space):
    legacy = make_space(location, name="Old Cabin", type="Private Cabin")
    # Written as NULL after insert; passing None to the constructor would apply the defaults
    legacy.capacity = None
    legacy.has_pooled_units = None
    virtual = make_space(location, capacity=5, name="Mailing Address", type="Virtual Address")
    hot_desks = make_space(location, capacity=3, has_pooled_units=True, type="Hot Desk")
    db.commit()
    return legacy, virtual, hot_desks


def test_defaults_and_unlimited_virtual(db, spaces):
    legacy, virtual, hot_desks = spaces

    report = migrate_space_capacity(db)

    assert report.defaulted_space_ids == [legacy.id]
    assert report.unlimited_space_ids == [virtual.id]
    assert report.updated == 2

    db.expire_all()
    assert legacy.capacity == 1
    assert legacy.has_pooled_units is False
    assert virtual.capacity is None
    assert hot_desks.capacity == 3
    assert hot_desks.has_pooled_units is True

    assert report.capacity_distribution == {"1": 1, "3": 1, "unlimited": 1}
    assert report.pooled_distribution == {"pooled": 1, "not_pooled": 2}


def test_dry_run_rolls_back(db, spaces):
    legacy, virtual, _ = spaces

    report = migrate_space_capacity(db, dry_run=True)

    assert report.dry_run is True
    assert report.updated == 2
    assert report.capacity_distribution == {"1": 1, "3": 1, "unlimited": 1}

    db.expire_all()
    assert legacy.capacity is None
    assert legacy.has_pooled_units is None
    assert virtual.capacity == 5


def test_second_run_changes_nothing(db, spaces):
    migrate_space_capacity(db)
    report = migrate_space_capacity(db)
    assert report.updated == 0


def test_main_uses_session_and_prints_report(db, spaces, monkeypatch, capsys):
    monkeypatch.setattr(command, "SessionLocal", lambda: db)

    assert command.main(["--dry-run"]) == 0

    out = capsys.readouterr().out
    assert "Capacity distribution:" in out
    assert "unlimited: 1 spaces" in out


def test_main_reports_failure(db, monkeypatch):
    def _boom(session, dry_run=False):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(command, "SessionLocal", lambda: db)
    monkeypatch.setattr(command, "migrate_space_capacity", _boom)

    assert command.main([]) == 1
