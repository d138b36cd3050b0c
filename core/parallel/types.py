"""
core/parallel/types.py - 병렬 실행 결과 타입

병렬 실행의 개별 작업 결과와 전체 결과 집계를 표현합니다.
결과는 항상 입력 순서(index)로 정렬되어 완료 순서와 무관합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """에러 카테고리 (재시도/보고 정책 결정용)"""

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    TIMEOUT = "timeout"
    EXPIRED_TOKEN = "expired_token"
    INVALID_REQUEST = "invalid_request"
    SERVICE_ERROR = "service_error"
    UNKNOWN = "unknown"


@dataclass
class TaskError:
    """작업 실패 정보

    Attributes:
        identifier: 작업 식별자 (예: WorkSpace ID)
        category: 에러 카테고리
        error_code: 에러 코드
        message: 에러 메시지
        original_exception: 원본 예외
    """

    identifier: str
    category: ErrorCategory
    error_code: str
    message: str
    original_exception: BaseException | None = None

    def __str__(self) -> str:
        return f"[{self.identifier}] {self.error_code}: {self.message}"


@dataclass
class TaskResult(Generic[T]):
    """단일 작업 결과

    Attributes:
        index: 입력 시퀀스 내 위치
        identifier: 작업 식별자
        success: 성공 여부
        data: 성공 시 반환값
        error: 실패 시 에러 정보
        duration_ms: 실행 시간 (밀리초)
    """

    index: int
    identifier: str
    success: bool
    data: T | None = None
    error: TaskError | None = None
    duration_ms: float = 0.0

    def __str__(self) -> str:
        if self.success:
            return f"[{self.identifier}] OK ({self.duration_ms:.0f}ms)"
        return f"[{self.identifier}] FAILED: {self.error}"


@dataclass(frozen=True)
class ParallelExecutionResult(Generic[T]):
    """병렬 실행 전체 결과

    results는 입력 순서(index)로 정렬되어 있습니다.
    """

    results: tuple[TaskResult[T], ...] = ()

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.success)
