"""
tests/analyzers/workspaces/test_report.py - ReportAssembler / 출력 테스트
"""

import csv
from datetime import datetime, timezone

import pytest
from openpyxl import load_workbook

from analyzers.workspaces.report import COLUMNS, ReportAssembler, format_tags, row_values, write_report
from analyzers.workspaces.types import (
    ActivityVerdict,
    ActivityWindow,
    DirectoryUserInfo,
    EnrichmentFailed,
    EnrichmentOk,
    ReportRow,
    WorkspaceRecord,
)
from core.io.writers import COLOR_ERROR, COLOR_WARNING

WINDOW = ActivityWindow.trailing(30, now=datetime(2024, 3, 1, tzinfo=timezone.utc))


def _row(make_workspace, workspace_id, user_name, directory_name="corp.example.com", unused=False, **kwargs):
    record = WorkspaceRecord.from_api(make_workspace(workspace_id, user_name=user_name))
    return ReportRow(
        record=record,
        region="ap-northeast-2",
        directory_name=directory_name,
        verdict=ActivityVerdict(unused=unused, window=WINDOW),
        **kwargs,
    )


def _column(values, name):
    return values[COLUMNS.index(name)]


class TestFormatTags:
    """format_tags 테스트"""

    def test_sorted_by_key(self):
        assert format_tags({"Team": "infra", "Owner": "ops"}) == "Owner:ops;Team:infra"

    def test_pairs(self):
        assert format_tags((("b", "2"), ("a", "1"))) == "a:1;b:2"

    def test_empty(self):
        assert format_tags(None) == ""
        assert format_tags({}) == ""


class TestReportAssembler:
    """ReportAssembler 테스트"""

    def test_stable_sort(self, make_workspace):
        results = [
            EnrichmentOk(0, _row(make_workspace, "ws-0001", "bob")),
            EnrichmentOk(1, _row(make_workspace, "ws-0002", "alice")),
            EnrichmentOk(2, _row(make_workspace, "ws-0003", "bob")),
        ]

        rows = ReportAssembler("ap-northeast-2").assemble(results)

        assert [(r.record.user_name, r.workspace_id) for r in rows] == [
            ("alice", "ws-0002"),
            ("bob", "ws-0001"),
            ("bob", "ws-0003"),
        ]

    def test_sort_case_insensitive_then_directory(self, make_workspace):
        results = [
            _row(make_workspace, "ws-0001", "Bob", directory_name="b.example.com"),
            _row(make_workspace, "ws-0002", "bob", directory_name="A.example.com"),
            _row(make_workspace, "ws-0003", "alice", directory_name=None),
        ]

        rows = ReportAssembler().assemble(results)

        assert [r.workspace_id for r in rows] == ["ws-0003", "ws-0002", "ws-0001"]

    def test_failed_rows_included(self, make_workspace):
        record = WorkspaceRecord.from_api(make_workspace("ws-0009", user_name="carol"))
        results = [
            EnrichmentOk(0, _row(make_workspace, "ws-0001", "alice")),
            EnrichmentFailed(1, record, "AccessDenied"),
        ]

        rows = ReportAssembler("ap-northeast-2").assemble(results)

        assert len(rows) == 2
        assert rows[1].is_failed
        assert rows[1].region == "ap-northeast-2"

    def test_failed_rows_excluded(self, make_workspace):
        record = WorkspaceRecord.from_api(make_workspace("ws-0009", user_name="carol"))
        results = [
            EnrichmentOk(0, _row(make_workspace, "ws-0001", "alice")),
            EnrichmentFailed(1, record, "AccessDenied"),
            ReportRow.failed(record, "ap-northeast-2", "timeout"),
        ]

        rows = ReportAssembler(include_failed=False).assemble(results)

        assert [r.workspace_id for r in rows] == ["ws-0001"]


class TestRowValues:
    """row_values 테스트"""

    def test_column_count(self, make_workspace):
        assert len(row_values(_row(make_workspace, "ws-0001", "alice"))) == len(COLUMNS)

    def test_unresolved_become_empty(self, make_workspace):
        row = _row(make_workspace, "ws-0001", "ghost", user=DirectoryUserInfo.not_found("ghost"))

        values = row_values(row)

        assert _column(values, "Full Name") == ""
        assert _column(values, "Manager") == ""
        assert _column(values, "Enabled") == ""
        assert _column(values, "Subnet Name") == ""

    def test_formats(self, make_workspace):
        user = DirectoryUserInfo(user_name="alice", found=True, full_name="Alice Kim", enabled=False)
        row = _row(make_workspace, "ws-0001", "alice", unused=True, user=user, tags=(("Owner", "ops"),))

        values = row_values(row)

        assert _column(values, "Full Name") == "Alice Kim"
        assert _column(values, "Enabled") == "No"
        assert _column(values, "Unused") == "Yes"
        assert _column(values, "Tags") == "Owner:ops"
        assert _column(values, "Root Volume (GiB)") == 80
        assert _column(values, "Enrichment Error") == ""

    def test_failed_row(self, make_workspace):
        record = WorkspaceRecord.from_api(make_workspace("ws-0001"))

        values = row_values(ReportRow.failed(record, "ap-northeast-2", "AccessDenied"))

        assert _column(values, "WorkSpace ID") == "ws-0001"
        assert _column(values, "Unused") == ""
        assert _column(values, "Enrichment Error") == "enrichment failed: AccessDenied"


class TestWriteReport:
    """write_report 테스트"""

    def test_csv(self, make_workspace, tmp_path):
        rows = [_row(make_workspace, "ws-0001", "alice")]

        path = write_report(rows, tmp_path / "report.csv", "csv")

        with path.open(encoding="utf-8-sig", newline="") as f:
            data = list(csv.reader(f))
        assert data[0] == list(COLUMNS)
        assert data[1][0] == "alice"

    def test_excel_highlights(self, make_workspace, tmp_path):
        record = WorkspaceRecord.from_api(make_workspace("ws-0009", user_name="zed"))
        rows = [
            _row(make_workspace, "ws-0001", "alice"),
            _row(make_workspace, "ws-0002", "bob", unused=True),
            ReportRow.failed(record, "ap-northeast-2", "AccessDenied"),
        ]

        path = write_report(rows, tmp_path / "report.xlsx", "excel")

        ws = load_workbook(path).active
        assert ws.title == "WorkSpaces"
        assert ws["A2"].fill.fill_type is None
        assert ws["A3"].fill.start_color.rgb.endswith(COLOR_WARNING)
        assert ws["A4"].fill.start_color.rgb.endswith(COLOR_ERROR)

    def test_unknown_format(self, tmp_path):
        with pytest.raises(ValueError):
            write_report([], tmp_path / "report.json", "json")
