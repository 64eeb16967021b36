"""Tests for the shared transaction boundary and workflow guard used by module services."""

import pytest
from sqlalchemy.exc import OperationalError

from backoffice_modules._posting_helpers import owned_transaction


class TestOwnedTransaction:
    def test_commits_on_success(self, session, create_project):
        project = create_project()

        with owned_transaction(session, "noop", "project"):
            project.title = "Renamed"

        assert not session.dirty
        assert project.title == "Renamed"

    def test_database_error_recorded_and_reraised(self, session, error_sink, captured_logs):
        error = OperationalError("UPDATE projects", {}, Exception("database is locked"))

        with pytest.raises(OperationalError):
            with owned_transaction(session, "clear_period", "payroll", error_sink, {"period": "2023-10"}):
                raise error

        assert len(error_sink.records) == 1
        record = error_sink.records[0]
        assert record["component"] == "payroll"
        assert record["exc"] is error
        assert record["context"] == {"operation": "clear_period", "period": "2023-10"}
        assert any(r["message"] == "operation_failed" for r in captured_logs())

    def test_business_error_not_recorded(self, session, error_sink, captured_logs):
        with pytest.raises(ValueError):
            with owned_transaction(session, "generate_payroll", "payroll", error_sink):
                raise ValueError("bad input")

        assert error_sink.records == []
        assert any(r["message"] == "operation_rolled_back" for r in captured_logs())

    def test_rollback_discards_pending_work(self, session, create_project):
        project = create_project()
        session.commit()

        with pytest.raises(RuntimeError):
            with owned_transaction(session, "rename", "project"):
                project.title = "Never saved"
                session.flush()
                raise RuntimeError("abort")

        session.refresh(project)
        assert project.title == "Harbour Extension"
