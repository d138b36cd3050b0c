"""
analyzers/workspaces/usage_report.py - WorkSpaces 사용 현황 리포트 실행

흐름:
    ResourceInventory → Enricher (WorkSpace별 보강) → ReportAssembler (정렬) → 파일 출력

출력은 전체 열거가 끝난 뒤 한 번만 수행합니다.
ABORT 정책에서 EnrichmentAborted가 발생하면 파일을 만들지 않습니다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from core.cli.ui.progress import parallel_progress
from core.config import ReportConfig
from core.parallel import ErrorCollector, get_session, quiet_mode

from .activity import MetricActivityClassifier
from .directory import DirectoryLookup, create_connection
from .enricher import Enricher, FailurePolicy
from .inventory import ResourceInventory
from .lookups import WorkspaceLookups
from .report import ReportAssembler, write_report
from .topology import NetworkTopologyLookup
from .types import ActivityWindow, ReportRow, WorkspaceRecord

logger = logging.getLogger(__name__)


@dataclass
class ReportSummary:
    """실행 요약"""

    region: str
    total: int
    unused: int
    failed: int
    output_path: Path | None
    display_errors: list[str] = field(default_factory=list)
    display_error_summary: str = ""


def open_directory(config: ReportConfig) -> DirectoryLookup:
    """LDAP 설정이 켜져 있으면 바인드된 DirectoryLookup, 아니면 비활성 조회기"""
    connection = create_connection(config.ldap) if config.ldap.enabled else None
    return DirectoryLookup(connection, config.ldap.base_dn)


def build_enricher(
    config: ReportConfig,
    region: str,
    session: Any,
    collector: ErrorCollector,
    directory: DirectoryLookup | None = None,
) -> Enricher:
    """세션 기반으로 조회기를 만들어 Enricher 구성"""
    if directory is None:
        directory = open_directory(config)

    return Enricher(
        region=region,
        directory=directory,
        classifier=MetricActivityClassifier.from_session(session, region),
        topology=NetworkTopologyLookup.from_session(session, region),
        lookups=WorkspaceLookups.from_session(
            session, region, collector=collector, strict=config.strict_display_lookups
        ),
        window=ActivityWindow.trailing(config.inactivity_days),
        policy=FailurePolicy(config.failure_policy),
        resource_workers=config.resource_workers,
        lookup_workers=config.lookup_workers,
    )


def collect_rows(
    config: ReportConfig,
    region: str,
    session: Any,
    collector: ErrorCollector | None = None,
    show_progress: bool = True,
) -> list[ReportRow]:
    """인벤토리 조회 → 보강 → 정렬

    Raises:
        InventoryUnavailable: WorkSpaces 목록 조회 실패
        DirectoryQueryFailed: LDAP 연결 실패
        EnrichmentAborted: ABORT 정책에서 보강 실패
    """
    collector = collector or ErrorCollector("workspaces", region)
    records = ResourceInventory.from_session(session, region).list_workspaces()
    if not records:
        logger.info(f"WorkSpace 없음 [{region}]")
        return []

    # 이후 client 생성이 실패해도 바인드한 연결은 닫음
    directory = open_directory(config)
    try:
        enricher = build_enricher(config, region, session, collector, directory)
        if show_progress:
            with parallel_progress("WorkSpaces 보강") as tracker, quiet_mode():

                def on_progress(record: WorkspaceRecord, remaining: int) -> None:
                    tracker.on_item(f"{record.workspace_id} ({record.user_name})", remaining)

                results = enricher.enrich_all(records, progress_callback=on_progress, progress_tracker=tracker)
        else:
            results = enricher.enrich_all(records)
    finally:
        directory.close()

    return ReportAssembler(region, include_failed=config.include_failed_rows).assemble(results)


def run_report(
    config: ReportConfig,
    region: str,
    output_path: str | Path,
    profile: str | None = None,
    show_progress: bool = True,
) -> ReportSummary:
    """리포트 생성 및 파일 출력

    Args:
        config: 실행 설정
        region: 검증된 WorkSpaces 리전
        output_path: 출력 파일 경로
        profile: AWS 프로파일 (None이면 기본 자격 증명 체인)
        show_progress: 진행 표시 여부

    Returns:
        ReportSummary
    """
    session = get_session(profile, region)
    collector = ErrorCollector("workspaces", region)

    rows = collect_rows(config, region, session, collector, show_progress=show_progress)
    path = write_report(rows, output_path, config.output_format)
    logger.info(f"리포트 저장: {path}")

    return ReportSummary(
        region=region,
        total=len(rows),
        unused=sum(1 for r in rows if r.is_unused),
        failed=sum(1 for r in rows if r.is_failed),
        output_path=path,
        display_errors=[str(e) for e in collector.errors],
        display_error_summary=collector.get_summary() if collector.has_errors else "",
    )
