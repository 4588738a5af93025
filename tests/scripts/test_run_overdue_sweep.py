"""Tests for scripts/run_overdue_sweep.py."""

import importlib.util
from datetime import date
from pathlib import Path
from uuid import uuid4

import pytest

from billing_config import reset_active_config
from billing_kernel.db.engine import (
    create_tables,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from billing_kernel.domain.statuses import InstallmentStatus
from billing_kernel.models.installment import InstallmentModel
from billing_kernel.models.project import ProjectModel
from billing_kernel.selectors.schedule_selector import ScheduleSelector

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "run_overdue_sweep.py"


@pytest.fixture(scope="module")
def script():
    spec = importlib.util.spec_from_file_location("run_overdue_sweep", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    monkeypatch.delenv("BILLING_CONFIG", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    reset_active_config()
    yield
    reset_active_config()
    reset_engine()


@pytest.fixture
def seeded_url(tmp_path, test_actor_id):
    """A sqlite file holding one project with a past-due deposit."""
    url = f"sqlite:///{tmp_path / 'sweep.db'}"
    init_engine_from_url(url)
    create_tables()
    project_id = uuid4()
    with session_scope() as s:
        s.add(ProjectModel(
            id=project_id, project_number="PRJ-0001", name="Test House", created_by_id=test_actor_id,
        ))
        s.flush()
        s.add_all([
            InstallmentModel(
                project_id=project_id, sequence=1, label="Deposit",
                due_on=date(2024, 2, 1), amount_due=1000, created_by_id=test_actor_id,
            ),
            InstallmentModel(
                project_id=project_id, sequence=2, label="Installment 1",
                due_on=date(2024, 6, 1), amount_due=1000, created_by_id=test_actor_id,
            ),
        ])
    reset_engine()
    return url, project_id


def read_statuses(url, project_id):
    init_engine_from_url(url)
    try:
        with session_scope() as s:
            return [i.status for i in ScheduleSelector(s).schedule(project_id)]
    finally:
        reset_engine()


class TestRunOverdueSweep:

    def test_sweeps_and_queues_reminders(self, script, seeded_url, capsys):
        url, project_id = seeded_url

        exit_code = script.main(["--database-url", url, "--as-of", "2024-03-01"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "as of 2024-03-01: 1 installment(s) flipped across 1 project(s)" in out
        assert "Reminders: 1 queued, 0 skipped as duplicates" in out
        assert read_statuses(url, project_id) == [InstallmentStatus.OVERDUE, InstallmentStatus.DUE]

    def test_second_run_is_a_no_op(self, script, seeded_url, capsys):
        url, _ = seeded_url
        script.main(["--database-url", url, "--as-of", "2024-03-01"])
        capsys.readouterr()

        script.main(["--database-url", url, "--as-of", "2024-03-01"])

        out = capsys.readouterr().out
        assert "0 installment(s) flipped across 0 project(s)" in out
        assert "Reminders: 0 queued, 1 skipped as duplicates" in out

    def test_no_reminders(self, script, seeded_url, capsys):
        url, _ = seeded_url

        assert script.main(["--database-url", url, "--as-of", "2024-03-01", "--no-reminders"]) == 0
        assert "Reminders" not in capsys.readouterr().out

    def test_create_tables_on_empty_database(self, script, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'empty.db'}"

        assert script.main(["--database-url", url, "--create-tables", "--as-of", "2024-03-01"]) == 0
        assert "0 installment(s) flipped" in capsys.readouterr().out

    def test_storage_failure_exits_1(self, script, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'no_tables.db'}"

        assert script.main(["--database-url", url, "--as-of", "2024-03-01"]) == 1
        assert "ERROR [PERSISTENCE_FAILURE]" in capsys.readouterr().err

    def test_bad_date_exits_2(self, script):
        with pytest.raises(SystemExit) as exc_info:
            script.main(["--as-of", "March 1st"])
        assert exc_info.value.code == 2
