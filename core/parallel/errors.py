"""
core/parallel/errors.py - 표시용 부가 조회 에러 수집

태그, 번들 이름, 디렉터리 이름처럼 리포트 행을 막지 않는 조회의 실패를
WorkSpace 처리 중단 없이 모아 두었다가 실행 종료 후 건수로 보고합니다.

Example:
    collector = ErrorCollector("workspaces", region="ap-northeast-2")

    bundle = try_or_default(
        lambda: fetch_bundle_name(bundle_id),
        default=None,
        collector=collector,
        item=bundle_id,
        operation="describe_workspace_bundles",
    )

    if collector.has_errors:
        print(collector.get_summary())  # "에러 1건 (describe_workspace_bundles: 1건)"
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TypeVar

from .decorators import categorize_error, get_error_code
from .types import ErrorCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorSeverity(Enum):
    """수집 에러 심각도 (로그 레벨 결정)"""

    WARNING = "warning"
    INFO = "info"  # 권한 없음 등 운영상 예상 가능한 실패


@dataclass(frozen=True)
class CollectedError:
    """수집된 조회 실패 한 건"""

    service: str
    operation: str
    item: str
    error_code: str
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    region: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        location = f"{self.region}/{self.item}" if self.region else self.item
        return f"{self.service}.{self.operation} [{location}]: {self.error_code}"


class ErrorCollector:
    """스레드 세이프 에러 수집기

    Args:
        service: 서비스 이름 (수집된 에러에 공통 적용)
        region: 리전 (수집된 에러에 공통 적용)
    """

    def __init__(self, service: str, region: str = ""):
        self.service = service
        self.region = region
        self._errors: list[CollectedError] = []
        self._lock = threading.Lock()

    def collect(
        self,
        error: Exception,
        item: str,
        operation: str,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
    ) -> CollectedError:
        """예외를 분류해 기록하고 로깅

        권한 없음(ACCESS_DENIED)은 INFO로 낮춥니다.
        """
        category = categorize_error(error)
        if category == ErrorCategory.ACCESS_DENIED:
            severity = ErrorSeverity.INFO

        collected = CollectedError(
            service=self.service,
            operation=operation,
            item=item,
            error_code=get_error_code(error),
            message=str(error),
            category=category,
            severity=severity,
            region=self.region,
        )
        with self._lock:
            self._errors.append(collected)

        if severity == ErrorSeverity.WARNING:
            logger.warning(str(collected))
        else:
            logger.info(str(collected))
        return collected

    @property
    def errors(self) -> list[CollectedError]:
        """수집된 에러 복사본 (수집 순서)"""
        with self._lock:
            return list(self._errors)

    @property
    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    def count_by_operation(self) -> dict[str, int]:
        """작업 이름별 실패 건수"""
        with self._lock:
            return dict(Counter(e.operation for e in self._errors))

    def get_summary(self) -> str:
        """예: "에러 3건 (describe_tags: 2건, describe_workspace_bundles: 1건)" """
        counts = self.count_by_operation()
        if not counts:
            return "에러 없음"
        parts = ", ".join(f"{op}: {n}건" for op, n in sorted(counts.items()))
        return f"에러 {sum(counts.values())}건 ({parts})"


def try_or_default(
    func: Callable[[], T],
    default: T,
    collector: ErrorCollector | None = None,
    item: str = "",
    operation: str = "",
    severity: ErrorSeverity = ErrorSeverity.WARNING,
) -> T:
    """func 실행, 실패하면 에러를 수집하고 default 반환

    Args:
        func: 실행할 함수 (인자 없음)
        default: 실패 시 반환값
        collector: ErrorCollector (None이면 경고 로그만)
        item: 관련 식별자
        operation: 작업 이름
        severity: 수집 심각도
    """
    try:
        return func()
    except Exception as e:
        if collector is not None:
            collector.collect(e, item, operation, severity)
        else:
            logger.warning(f"[{item}] {operation}: {get_error_code(e)}")
        return default
