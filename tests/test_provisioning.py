"""Tests for multi-step provisioning with compensation."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from identity_admin.services.provisioning import Saga


class StepFailed(Exception):
    pass


def _fail():
    raise StepFailed('second step failed')


class TestSaga:
    """Tests for the Saga context manager."""

    def test_success_records_steps(self) -> None:
        undo = MagicMock()
        with Saga('create_user_pool') as saga:
            role = saga.run('create_role', lambda: {'RoleId': 'r1'}, undo=undo)
        assert role == {'RoleId': 'r1'}
        assert [step.name for step in saga.completed] == ['create_role']
        assert saga.orphans == []
        undo.assert_not_called()

    def test_failure_without_compensation_reports_orphans(self) -> None:
        undo = MagicMock()
        with pytest.raises(StepFailed):
            with Saga('create_user_pool', compensate=False) as saga:
                saga.run('create_role', lambda: 'role', undo=undo, resource='PoolA-SMS-Role')
                saga.run('create_user_pool', _fail)
        undo.assert_not_called()
        assert saga.orphans == ['create_role:PoolA-SMS-Role']

    def test_failure_with_compensation_undoes_in_reverse(self) -> None:
        calls = []
        with pytest.raises(StepFailed):
            with Saga('provision', compensate=True) as saga:
                saga.run('first', lambda: 1, undo=lambda r: calls.append(('first', r)))
                saga.run('second', lambda: 2, undo=lambda r: calls.append(('second', r)))
                saga.run('third', _fail)
        assert calls == [('second', 2), ('first', 1)]
        assert saga.orphans == []

    def test_failed_undo_becomes_orphan_and_others_continue(self) -> None:
        later_undo = MagicMock()
        failing_undo = MagicMock(side_effect=RuntimeError('delete failed'))
        with pytest.raises(StepFailed):
            with Saga('provision', compensate=True) as saga:
                saga.run('first', lambda: 1, undo=later_undo)
                saga.run('second', lambda: 2, undo=failing_undo, resource='thing')
                saga.run('third', _fail)
        later_undo.assert_called_once_with(1)
        assert saga.orphans == ['second:thing']

    def test_steps_without_undo_are_ignored(self) -> None:
        with pytest.raises(StepFailed):
            with Saga('provision', compensate=False) as saga:
                saga.run('lookup', lambda: 'value')
                saga.run('second', _fail)
        assert saga.orphans == []

    def test_failed_first_step_leaves_nothing(self) -> None:
        with pytest.raises(StepFailed):
            with Saga('provision') as saga:
                saga.run('first', _fail, undo=MagicMock())
        assert saga.completed == []
        assert saga.orphans == []
