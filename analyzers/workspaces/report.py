"""
analyzers/workspaces/report.py - 리포트 조립 및 출력

정렬 기준: (사용자 이름, 디렉터리 이름) 대소문자 무시, 같은 키는 입력 순서 유지 (stable).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from core.io import write_csv, write_excel

from .types import EnrichmentFailed, EnrichmentOk, EnrichmentResult, ReportRow

logger = logging.getLogger(__name__)

COLUMNS: tuple[str, ...] = (
    "User Name",
    "Full Name",
    "Department",
    "Enabled",
    "Email",
    "Manager",
    "Mobile",
    "Computer Name",
    "Computer Created",
    "Operating System",
    "WorkSpace ID",
    "Connection State",
    "State Check Time",
    "Last Connection",
    "Unused",
    "State",
    "Compute Type",
    "IP Address",
    "Directory Name",
    "Directory ID",
    "Bundle Name",
    "Bundle ID",
    "Subnet Name",
    "Subnet ID",
    "Subnet AZ",
    "Subnet AZ ID",
    "Subnet Available IPs",
    "Root Volume Encrypted",
    "User Volume Encrypted",
    "Root Volume (GiB)",
    "User Volume (GiB)",
    "Running Mode",
    "Auto Stop Timeout (min)",
    "Region",
    "Tags",
    "Enrichment Error",
)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_tags(tags: Mapping[str, str] | Iterable[tuple[str, str]] | None) -> str:
    """태그를 키 기준 정렬 후 'key:value;key:value' 형태로 변환

    Example:
        format_tags({"Team": "infra", "Owner": "ops"})  # "Owner:ops;Team:infra"
    """
    if not tags:
        return ""
    pairs = tags.items() if isinstance(tags, Mapping) else tags
    return ";".join(f"{key}:{value}" for key, value in sorted(pairs))


def sort_key(row: ReportRow) -> tuple[str, str]:
    return (row.record.user_name.casefold(), (row.directory_name or "").casefold())


def _cell(value: Any) -> Any:
    """출력 값 변환 (None → "", bool → Yes/No, datetime → 문자열)"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    return value


def row_values(row: ReportRow) -> list[Any]:
    """ReportRow → COLUMNS 순서의 출력 값

    해석되지 않은 필드(None)는 여기서만 빈 문자열로 바뀝니다.
    """
    record = row.record
    user = row.user
    computer = row.computer
    connection = row.connection
    subnet = row.subnet

    values = [
        record.user_name,
        user.full_name if user else None,
        user.department if user else None,
        user.enabled if user else None,
        user.email if user else None,
        user.manager if user else None,
        user.mobile if user else None,
        record.computer_name,
        computer.created if computer else None,
        computer.operating_system if computer else None,
        record.workspace_id,
        connection.state if connection else None,
        connection.state_check_time if connection else None,
        connection.last_connection_time if connection else None,
        row.verdict.unused if row.verdict else None,
        record.state,
        record.compute_type,
        record.ip_address,
        row.directory_name,
        record.directory_id,
        row.bundle_name,
        record.bundle_id,
        subnet.label if subnet else None,
        record.subnet_id,
        subnet.availability_zone if subnet else None,
        subnet.availability_zone_id if subnet else None,
        subnet.available_ip_count if subnet else None,
        record.root_volume_encrypted,
        record.user_volume_encrypted,
        record.root_volume_size_gib,
        record.user_volume_size_gib,
        record.running_mode,
        record.auto_stop_timeout_minutes,
        row.region,
        format_tags(row.tags),
        row.error,
    ]
    return [_cell(v) for v in values]


class ReportAssembler:
    """보강 결과를 최종 행 목록으로 조립

    Args:
        region: 실패 행에 기록할 리전
        include_failed: False이면 보강 실패 행을 제외
    """

    def __init__(self, region: str = "", include_failed: bool = True):
        self.region = region
        self.include_failed = include_failed

    def assemble(self, results: Sequence[EnrichmentResult | ReportRow]) -> list[ReportRow]:
        """결과 → 정렬된 ReportRow 목록

        Args:
            results: Enricher 결과 또는 ReportRow (인벤토리 순서)

        Returns:
            (사용자 이름, 디렉터리 이름) 기준으로 안정 정렬된 행 목록
        """
        rows: list[ReportRow] = []
        for result in results:
            if isinstance(result, EnrichmentOk):
                rows.append(result.row)
            elif isinstance(result, EnrichmentFailed):
                if self.include_failed:
                    rows.append(result.to_row(self.region))
            elif not result.is_failed or self.include_failed:
                rows.append(result)

        skipped = len(results) - len(rows)
        if skipped:
            logger.info(f"보강 실패 행 {skipped}개 제외")

        return sorted(rows, key=sort_key)


def write_report(rows: Sequence[ReportRow], path: str | Path, output_format: str = "csv") -> Path:
    """정렬된 행을 파일로 출력

    Excel에서는 미사용 행을 노란색, 보강 실패 행을 빨간색으로 강조합니다.

    Args:
        rows: ReportAssembler.assemble() 결과
        path: 출력 파일 경로
        output_format: "csv" 또는 "excel"
    """
    values = [row_values(row) for row in rows]

    if output_format == "excel":
        styles = ["error" if row.is_failed else "warning" if row.is_unused else None for row in rows]
        return write_excel(path, COLUMNS, values, sheet_title="WorkSpaces", row_styles=styles)
    if output_format == "csv":
        return write_csv(path, COLUMNS, values)
    raise ValueError(f"지원하지 않는 출력 형식: {output_format}")
