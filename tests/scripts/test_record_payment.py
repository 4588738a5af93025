"""Tests for scripts/record_payment.py."""

import importlib.util
from datetime import date
from pathlib import Path
from uuid import uuid4

import pytest
import yaml

from billing_config import reset_active_config
from billing_kernel.db.engine import (
    create_tables,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from billing_kernel.domain.statuses import InstallmentStatus, ProjectStatus
from billing_kernel.models.installment import InstallmentModel
from billing_kernel.models.payment import ClientPaymentModel
from billing_kernel.models.project import ProjectModel
from billing_kernel.selectors.schedule_selector import ScheduleSelector

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "record_payment.py"


@pytest.fixture(scope="module")
def script():
    spec = importlib.util.spec_from_file_location("record_payment", SCRIPT)
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
def config_path(tmp_path):
    """Config with a custom deposit label and the in-payment sweep off."""
    path = tmp_path / "billing.yaml"
    path.write_text(yaml.safe_dump({
        "schedule": {"deposit_label": "Down payment", "sweep_on_record": False},
    }))
    return path


@pytest.fixture
def seeded_url(tmp_path, test_actor_id):
    """A sqlite file holding one deposit-pending project with a past-due down payment."""
    url = f"sqlite:///{tmp_path / 'payments.db'}"
    init_engine_from_url(url)
    create_tables()
    project_id = uuid4()
    with session_scope() as s:
        s.add(ProjectModel(
            id=project_id, project_number="PRJ-0001", name="Test House",
            status=ProjectStatus.DEPOSIT_PENDING, created_by_id=test_actor_id,
        ))
        s.flush()
        s.add_all([
            InstallmentModel(
                project_id=project_id, sequence=1, label="Down payment",
                due_on=date(2024, 1, 1), amount_due=1000, created_by_id=test_actor_id,
            ),
            InstallmentModel(
                project_id=project_id, sequence=2, label="Installment 1",
                due_on=date(2024, 6, 1), amount_due=1000, created_by_id=test_actor_id,
            ),
        ])
    reset_engine()
    return url, project_id


def read_state(url, project_id):
    init_engine_from_url(url)
    try:
        with session_scope() as s:
            statuses = [i.status for i in ScheduleSelector(s).schedule(project_id)]
            payments = s.query(ClientPaymentModel).count()
            return statuses, payments
    finally:
        reset_engine()


class TestRecordPayment:

    def test_partial_deposit_with_sweep_off(self, script, config_path, seeded_url, test_actor_id, capsys):
        url, project_id = seeded_url

        exit_code = script.main([
            str(project_id), "5.00", "--actor", str(test_actor_id), "--kind", "DEPOSIT",
            "--config", str(config_path), "--database-url", url, "--as-of", "2024-03-01",
        ])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "5.00 recorded" in out
        assert "applied 5.00 across 1 installment(s)" in out
        assert "now overdue" not in out
        assert "project status: DEPOSIT_PENDING" in out
        assert read_state(url, project_id) == (
            [InstallmentStatus.PARTIAL, InstallmentStatus.DUE], 1,
        )

    def test_settling_configured_deposit_line_fires_gate(
        self, script, config_path, seeded_url, test_actor_id, capsys,
    ):
        url, project_id = seeded_url

        exit_code = script.main([
            str(project_id), "15", "--actor", str(test_actor_id), "--kind", "DEPOSIT",
            "--config", str(config_path), "--database-url", url, "--as-of", "2024-03-01",
        ])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "applied 15.00 across 2 installment(s)" in out
        assert "project status: PLANNED" in out

    def test_invalid_amount_exits_1(self, script, config_path, seeded_url, test_actor_id, capsys):
        url, project_id = seeded_url

        exit_code = script.main([
            str(project_id), "-5", "--actor", str(test_actor_id),
            "--config", str(config_path), "--database-url", url, "--as-of", "2024-03-01",
        ])

        assert exit_code == 1
        assert "ERROR [INVALID_AMOUNT]" in capsys.readouterr().err
        assert read_state(url, project_id)[1] == 0

    def test_unknown_project_exits_1(self, script, config_path, seeded_url, test_actor_id, capsys):
        url, _ = seeded_url

        exit_code = script.main([
            str(uuid4()), "5", "--actor", str(test_actor_id),
            "--config", str(config_path), "--database-url", url,
        ])

        assert exit_code == 1
        assert "ERROR [PROJECT_NOT_FOUND]" in capsys.readouterr().err

    def test_bad_kind_exits_2(self, script, test_actor_id):
        with pytest.raises(SystemExit) as exc_info:
            script.main([str(uuid4()), "5", "--actor", str(test_actor_id), "--kind", "TIP"])
        assert exc_info.value.code == 2
