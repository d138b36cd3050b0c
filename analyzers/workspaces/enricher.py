"""
analyzers/workspaces/enricher.py - WorkSpace별 보강 조회 및 조인

WorkSpace 하나에 대해 다음 조회를 수행하고 ReportRow로 조인합니다.
    1. 소유 사용자 (+ 관리자 표시 이름) / 컴퓨터 - DirectoryLookup
    2. 연결 상태 - WorkspaceLookups.connection_status
    3. 서브넷 - NetworkTopologyLookup
    4. 미사용 판정 - MetricActivityClassifier
    5. 디렉터리/번들 이름, 태그 - WorkspaceLookups (표시용)

조회들은 서로 독립이므로 lookup_workers 크기의 스레드 풀에서 동시에 실행하며,
관리자 조회만 사용자 조회 뒤에 순차 실행됩니다.

실패 정책:
    ISOLATE: 실패한 WorkSpace만 EnrichmentFailed로 기록하고 나머지는 계속 진행
    ABORT:   첫 실패에서 남은 열거를 중단하고 EnrichmentAborted 발생 (순차 실행)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import TYPE_CHECKING, Any

from core.exceptions import EnrichmentAborted, QueryFailed
from core.parallel import (
    ParallelConfig,
    RetryConfig,
    call_with_retry,
    is_quiet,
    parallel_map,
    set_quiet,
)

from .types import (
    ActivityWindow,
    EnrichmentFailed,
    EnrichmentOk,
    EnrichmentResult,
    ReportRow,
    WorkspaceRecord,
)

if TYPE_CHECKING:
    from core.cli.ui.progress import ParallelTracker

    from .activity import MetricActivityClassifier
    from .directory import DirectoryLookup
    from .lookups import WorkspaceLookups
    from .topology import NetworkTopologyLookup

logger = logging.getLogger(__name__)

# (처리한 WorkSpace, 남은 개수)
ProgressCallback = Callable[[WorkspaceRecord, int], None]


class FailurePolicy(Enum):
    """보강 조회 실패 처리 정책"""

    ISOLATE = "isolate"
    ABORT = "abort"


class Enricher:
    """WorkSpace 보강 오케스트레이터

    Args:
        region: 리전 (행에 기록)
        directory: 디렉터리 조회기
        classifier: 미사용 판정기
        topology: 서브넷 조회기
        lookups: 연결 상태/표시 이름 조회기
        window: 미사용 판정 기간 (실행 전체에서 동일)
        policy: 실패 정책
        resource_workers: 동시에 처리할 WorkSpace 수 (ABORT에서는 1로 고정)
        lookup_workers: WorkSpace 하나의 조회를 동시에 실행할 스레드 수
        retry_config: 조회별 재시도 설정
    """

    def __init__(
        self,
        region: str,
        directory: DirectoryLookup,
        classifier: MetricActivityClassifier,
        topology: NetworkTopologyLookup,
        lookups: WorkspaceLookups,
        window: ActivityWindow,
        policy: FailurePolicy = FailurePolicy.ISOLATE,
        resource_workers: int = 4,
        lookup_workers: int = 5,
        retry_config: RetryConfig | None = None,
    ):
        self.region = region
        self.directory = directory
        self.classifier = classifier
        self.topology = topology
        self.lookups = lookups
        self.window = window
        self.policy = policy
        self.resource_workers = 1 if policy == FailurePolicy.ABORT else max(1, resource_workers)
        self.lookup_workers = max(1, lookup_workers)
        self.retry_config = retry_config or RetryConfig()

    # -------------------------------------------------------------------------
    # WorkSpace 하나
    # -------------------------------------------------------------------------

    def _lookup_tasks(self, record: WorkspaceRecord) -> dict[str, Callable[[], Any]]:
        """조인 필드 이름 → 조회 함수 (dict 순서가 실패 보고 순서)"""
        return {
            "user": lambda: self.directory.resolve_user(record.user_name),
            "computer": lambda: self.directory.resolve_computer(record.computer_name),
            "connection": lambda: self.lookups.connection_status(record.workspace_id),
            "subnet": lambda: self.topology.resolve_subnet(record.subnet_id),
            "verdict": lambda: self.classifier.classify(record.workspace_id, self.window),
            "directory_name": lambda: self.lookups.directory_name(record.directory_id),
            "bundle_name": lambda: self.lookups.bundle_name(record.bundle_id),
            "tags": lambda: self.lookups.tags(record.workspace_id),
        }

    def enrich_one(self, record: WorkspaceRecord) -> ReportRow:
        """WorkSpace 하나의 조회를 모두 실행하고 조인

        Raises:
            QueryFailed: 조회 실패 (여러 개가 실패하면 조회 순서상 첫 번째)
        """
        tasks = self._lookup_tasks(record)
        parent_quiet = is_quiet()

        def run(name: str, func: Callable[[], Any]) -> Any:
            set_quiet(parent_quiet)
            return call_with_retry(func, self.retry_config, f"{record.workspace_id}:{name}")

        with ThreadPoolExecutor(max_workers=self.lookup_workers) as pool:
            futures = {name: pool.submit(run, name, func) for name, func in tasks.items()}
            values = {name: future.result() for name, future in futures.items()}

        return ReportRow(record=record, region=self.region, **values)

    # -------------------------------------------------------------------------
    # 전체 열거
    # -------------------------------------------------------------------------

    def enrich_all(
        self,
        records: Sequence[WorkspaceRecord],
        progress_callback: ProgressCallback | None = None,
        progress_tracker: ParallelTracker | None = None,
    ) -> list[EnrichmentResult]:
        """전체 WorkSpace 보강

        Args:
            records: 인벤토리 순서의 WorkSpace 목록
            progress_callback: WorkSpace 하나를 마칠 때마다 (record, 남은 개수)로 호출
            progress_tracker: 성공/실패 카운트 추적기

        Returns:
            인벤토리 순서(index)와 같은 순서의 결과 목록 (WorkSpace당 정확히 하나)

        Raises:
            EnrichmentAborted: ABORT 정책에서 조회 실패
        """
        if self.policy == FailurePolicy.ABORT:
            return self._enrich_sequential_abort(records, progress_callback, progress_tracker)
        return self._enrich_isolated(records, progress_callback, progress_tracker)

    def _enrich_isolated(
        self,
        records: Sequence[WorkspaceRecord],
        progress_callback: ProgressCallback | None,
        progress_tracker: ParallelTracker | None,
    ) -> list[EnrichmentResult]:
        remaining = len(records)
        lock = threading.Lock()
        if progress_tracker:
            progress_tracker.set_total(len(records))

        def report_progress(record: WorkspaceRecord, success: bool) -> None:
            nonlocal remaining
            with lock:
                remaining -= 1
                left = remaining
            # 실패 행도 parallel_map 입장에서는 성공이므로 추적기는 여기서 직접 갱신
            if progress_tracker:
                progress_tracker.on_complete(success)
            if progress_callback:
                progress_callback(record, left)

        def task(item: tuple[int, WorkspaceRecord]) -> EnrichmentResult:
            index, record = item
            success = False
            try:
                outcome = EnrichmentOk(index=index, row=self.enrich_one(record))
                success = True
                return outcome
            except QueryFailed as e:
                logger.warning(f"[{record.workspace_id}] 보강 실패: {e}")
                return EnrichmentFailed(index=index, record=record, reason=e.reason, error=e)
            finally:
                report_progress(record, success)

        items = list(enumerate(records))
        result = parallel_map(
            items,
            task,
            identify=lambda item: item[1].workspace_id,
            config=ParallelConfig(max_workers=self.resource_workers),
        )

        outcomes: list[EnrichmentResult] = []
        for task_result in result.results:
            if task_result.success:
                outcomes.append(task_result.data)
                continue
            # QueryFailed 이외의 예상치 못한 예외
            error = task_result.error
            index = task_result.index
            logger.error(f"[{task_result.identifier}] 보강 중 예외: {error}")
            outcomes.append(
                EnrichmentFailed(
                    index=index,
                    record=records[index],
                    reason=error.message if error else "unknown error",
                    error=error.original_exception if error else None,
                )
            )
        return outcomes

    def _enrich_sequential_abort(
        self,
        records: Sequence[WorkspaceRecord],
        progress_callback: ProgressCallback | None,
        progress_tracker: ParallelTracker | None,
    ) -> list[EnrichmentResult]:
        if progress_tracker:
            progress_tracker.set_total(len(records))

        outcomes: list[EnrichmentResult] = []
        for index, record in enumerate(records):
            try:
                row = self.enrich_one(record)
            except QueryFailed as e:
                if progress_tracker:
                    progress_tracker.on_complete(False)
                logger.error(f"[{record.workspace_id}] 보강 실패, 남은 {len(records) - index - 1}개 중단: {e}")
                raise EnrichmentAborted(record.workspace_id, e, completed=[o.row for o in outcomes]) from e

            outcomes.append(EnrichmentOk(index=index, row=row))
            if progress_tracker:
                progress_tracker.on_complete(True)
            if progress_callback:
                progress_callback(record, len(records) - index - 1)

        return outcomes
