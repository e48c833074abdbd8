"""
Aggregation engine tests: cached department statistics and reports.
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from clearflow.models import db, ClearanceRecord, DepartmentDecision
from clearflow.services import ClearanceService, DepartmentService, StatisticsService
from clearflow.utils import ValidationError, DatabaseError, utcnow

OFFICER = 9001


def _decide(record, department, decision, remarks=None):
    return ClearanceService.record_decision(record.id, None, decision, OFFICER, remarks,
                                            department_id=department.id)


def _backdate(record, created_at):
    """Move a record and its decisions to created_at, keeping their decision delays"""
    row = db.session.get(ClearanceRecord, record.id)
    row.created_at = created_at
    for decision in row.decisions:
        if decision.approved_at is not None:
            decision.approved_at = created_at + (decision.approved_at - decision.created_at)
        decision.created_at = created_at
    db.session.commit()


class TestRecomputeDepartmentStatistics:
    def test_counts_only_terminal_decisions(self, library, bursary):
        first = ClearanceService.create_record(1, [library.id, bursary.id])
        second = ClearanceService.create_record(2, [library.id])
        ClearanceService.create_record(3, [library.id])
        _decide(first, library, "approved")
        _decide(second, library, "rejected")

        stats = StatisticsService.recompute_department_statistics(library.id)

        assert stats["total_processed"] == 2
        assert stats["total_approved"] == 1
        assert stats["total_rejected"] == 1
        assert stats["last_updated"] is not None
        assert stats["total_processed"] == stats["total_approved"] + stats["total_rejected"]

    def test_no_decisions(self, library):
        stats = StatisticsService.recompute_department_statistics(library.id)

        assert stats["total_processed"] == 0
        assert stats["average_processing_time"] == 0.0

    def test_average_processing_time_in_days(self, library):
        first = ClearanceService.create_record(1, [library.id])
        second = ClearanceService.create_record(2, [library.id])
        _decide(first, library, "approved")
        _decide(second, library, "rejected")

        base = datetime(2026, 3, 1, 9, 0, 0)
        rows = DepartmentDecision.query.order_by(DepartmentDecision.id).all()
        rows[0].created_at, rows[0].approved_at = base, base + timedelta(days=2)
        rows[1].created_at, rows[1].approved_at = base, base + timedelta(hours=12)
        db.session.commit()

        stats = StatisticsService.recompute_department_statistics(library.id)

        assert stats["average_processing_time"] == 1.25

    def test_average_is_rounded(self, library):
        record = ClearanceService.create_record(1, [library.id])
        _decide(record, library, "approved")
        base = datetime(2026, 3, 1)
        row = DepartmentDecision.query.one()
        row.created_at, row.approved_at = base, base + timedelta(hours=8)
        db.session.commit()

        stats = StatisticsService.recompute_department_statistics(library.id)

        assert stats["average_processing_time"] == 0.33

    def test_is_idempotent(self, library):
        record = ClearanceService.create_record(1, [library.id])
        _decide(record, library, "approved")

        first = StatisticsService.recompute_department_statistics(library.id)
        second = StatisticsService.recompute_department_statistics(library.id)

        first.pop("last_updated")
        second.pop("last_updated")
        assert first == second

    def test_failed_save_keeps_previous_statistics(self, library, monkeypatch):
        record = ClearanceService.create_record(1, [library.id])
        _decide(record, library, "approved")
        before = StatisticsService.recompute_department_statistics(library.id)

        record = ClearanceService.create_record(2, [library.id])
        _decide(record, library, "rejected")

        def broken_commit():
            raise SQLAlchemyError("database unavailable")

        monkeypatch.setattr(db.session, "commit", broken_commit)
        with pytest.raises(DatabaseError):
            StatisticsService.recompute_department_statistics(library.id)
        monkeypatch.undo()

        assert DepartmentService.get_department(library.id).statistics == before

    def test_recompute_all(self, library, bursary):
        record = ClearanceService.create_record(1, [library.id, bursary.id])
        _decide(record, bursary, "approved")

        assert StatisticsService.recompute_all_statistics() == 2
        assert DepartmentService.get_department(bursary.id).total_approved == 1
        assert DepartmentService.get_department(library.id).total_processed == 0


class TestPerformanceReport:
    def test_report_rows(self, library, bursary, make_department):
        idle = make_department("Alumni Relations")
        first = ClearanceService.create_record(1, [library.id, bursary.id])
        second = ClearanceService.create_record(2, [library.id, bursary.id])
        _decide(first, library, "approved")
        _decide(second, library, "approved")
        _decide(first, bursary, "rejected")

        today = utcnow().date()
        report = StatisticsService.get_performance_report(today, today)

        assert [row["department_name"] for row in report] == [
            "University Library", "Alumni Relations", "Bursary"
        ]
        rows = {row["department_id"]: row for row in report}
        assert rows[library.id]["approval_rate"] == 100.0
        assert rows[bursary.id]["total_requests"] == 2
        assert rows[bursary.id]["rejected"] == 1
        assert rows[bursary.id]["pending"] == 1
        assert rows[bursary.id]["approval_rate"] == 0.0
        assert rows[idle.id]["total_requests"] == 0
        assert rows[idle.id]["approval_rate"] == 0.0
        assert rows[idle.id]["average_processing_time"] == 0.0

    def test_ties_sorted_by_name(self, make_department):
        zoo = make_department("Zoology")
        art = make_department("Art")
        record = ClearanceService.create_record(1, [zoo.id, art.id])
        _decide(record, zoo, "approved")
        _decide(record, art, "approved")

        report = StatisticsService.get_performance_report("2000-01-01", "2100-12-31")

        assert [row["department_name"] for row in report] == ["Art", "Zoology"]

    def test_range_is_inclusive_and_filters_records(self, library):
        inside_start = ClearanceService.create_record(1, [library.id])
        inside_end = ClearanceService.create_record(2, [library.id])
        outside = ClearanceService.create_record(3, [library.id])
        _backdate(inside_start, datetime(2026, 1, 1, 0, 0, 0))
        _backdate(inside_end, datetime(2026, 1, 31, 23, 59, 0))
        _backdate(outside, datetime(2026, 2, 1, 0, 0, 1))

        report = StatisticsService.get_performance_report("2026-01-01", "2026-01-31")

        assert report[0]["total_requests"] == 2

    def test_rate_uses_decimals(self, library):
        for student in (1, 2, 3):
            record = ClearanceService.create_record(student, [library.id])
            if student == 1:
                _decide(record, library, "approved")

        today = utcnow().date()
        report = StatisticsService.get_performance_report(today, today)

        assert report[0]["approval_rate"] == 33.33

    @pytest.mark.parametrize("start, end", [
        ("2026-02-01", "2026-01-01"),
        ("yesterday", "2026-01-01"),
        (None, "2026-01-01"),
    ])
    def test_invalid_range(self, start, end):
        with pytest.raises(ValidationError):
            StatisticsService.get_performance_report(start, end)


class TestStatusSummary:
    def test_counts_by_overall_status(self, library, bursary):
        approved = ClearanceService.create_record(1, [library.id])
        rejected = ClearanceService.create_record(2, [library.id, bursary.id])
        in_progress = ClearanceService.create_record(3, [library.id, bursary.id])
        ClearanceService.create_record(4, [library.id])
        _decide(approved, library, "approved")
        _decide(rejected, bursary, "rejected")
        _decide(in_progress, library, "approved")

        today = utcnow().date()
        summary = StatisticsService.get_status_summary(today, today)

        assert summary["total"] == 4
        assert summary["by_status"] == {
            "pending": 1, "in_progress": 1, "approved": 1, "rejected": 1
        }

    def test_average_completion_time(self, library):
        record = ClearanceService.create_record(1, [library.id])
        _decide(record, library, "approved")
        row = db.session.get(ClearanceRecord, record.id)
        row.created_at = datetime(2026, 1, 1)
        row.completed_at = datetime(2026, 1, 4)
        db.session.commit()

        summary = StatisticsService.get_status_summary("2026-01-01", "2026-01-31")

        assert summary["average_completion_time"] == 3.0
