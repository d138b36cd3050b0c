"""
core/parallel/executor.py - 순서 보존 병렬 실행기

ThreadPoolExecutor 기반으로 항목 목록에 같은 작업을 병렬 적용합니다.
결과는 완료 순서가 아니라 입력 위치(index)별 슬롯에 기록되므로
출력 순서가 입력 순서와 항상 같습니다.

주요 구성 요소:
- ParallelConfig: 병렬 실행 설정 (워커 수, 재시도)
- call_with_retry: 지수 백오프 재시도 래퍼
- parallel_map: 순서 보존 병렬 매핑

Example:
    from core.parallel import parallel_map

    result = parallel_map(
        records,
        enrich_one,
        identify=lambda r: r.workspace_id,
        config=ParallelConfig(max_workers=4),
    )
    rows = [r.data for r in result.results if r.success]
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TypeVar

from .decorators import RetryConfig, categorize_error, get_error_code, is_retryable
from .quiet import is_quiet, set_quiet
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (1~100)
        retry_config: 재시도 설정 (None이면 재시도 안함)
    """

    max_workers: int = 4
    retry_config: RetryConfig | None = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > 100:
            self.max_workers = 100


def call_with_retry(
    func: Callable[[], R],
    retry_config: RetryConfig | None = None,
    identifier: str = "",
) -> R:
    """재시도 가능한 에러에 대해 지수 백오프로 재시도

    재시도 불가능한 에러이거나 재시도를 소진하면 마지막 예외를 그대로 전파합니다.

    Args:
        func: 실행할 함수 (인자 없음)
        retry_config: 재시도 설정 (None이면 1회만 실행)
        identifier: 로깅용 식별자

    Returns:
        func의 반환값
    """
    config = retry_config or RetryConfig(max_retries=0)

    attempt = 0
    while True:
        try:
            return func()
        except Exception as e:
            if not is_retryable(e) or attempt >= config.max_retries:
                raise
            delay = config.get_delay(attempt)
            logger.debug(f"[{identifier}] 시도 {attempt + 1} 실패 ({get_error_code(e)}), {delay:.2f}초 후 재시도...")
            time.sleep(delay)
            attempt += 1


def parallel_map(
    items: Sequence[T],
    func: Callable[[T], R],
    identify: Callable[[T], str] = str,
    config: ParallelConfig | None = None,
) -> ParallelExecutionResult[R]:
    """항목별 작업을 병렬 실행하고 입력 순서대로 결과 반환

    각 작업의 예외는 잡아서 TaskResult(success=False)로 기록하며,
    다른 항목의 실행에는 영향을 주지 않습니다.

    Args:
        items: 입력 항목 시퀀스
        func: 항목 하나를 처리하는 함수
        identify: 항목 식별자 추출 함수 (로깅/에러 보고용)
        config: 병렬 실행 설정

    Returns:
        ParallelExecutionResult[R]: results가 입력 순서로 정렬된 결과
    """
    config = config or ParallelConfig()

    if not items:
        logger.debug("실행할 작업이 없습니다")
        return ParallelExecutionResult()

    logger.info(f"병렬 실행 시작: {len(items)}개 작업, max_workers={config.max_workers}")

    # 입력 위치별 슬롯 (완료 순서와 무관하게 순서 보존)
    slots: list[TaskResult[R] | None] = [None] * len(items)
    start_time = time.monotonic()

    # 부모 스레드의 quiet 상태를 워커 스레드에 전파
    parent_quiet = is_quiet()

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        futures = {
            executor.submit(_execute_single, func, item, index, identify(item), config, parent_quiet): index
            for index, item in enumerate(items)
        }

        for future in as_completed(futures):
            index = futures[future]
            try:
                result = future.result()
            except Exception as e:
                # _execute_single 밖에서 발생한 예상치 못한 executor 에러
                logger.error(f"작업 실행 중 예외 [{index}]: {e}")
                _clear_exception_chain(e)
                identifier = identify(items[index])
                result = TaskResult(
                    index=index,
                    identifier=identifier,
                    success=False,
                    error=TaskError(
                        identifier=identifier,
                        category=ErrorCategory.UNKNOWN,
                        error_code="ExecutorError",
                        message=str(e),
                        original_exception=e,
                    ),
                )

            slots[index] = result

    results = tuple(r for r in slots if r is not None)
    exec_result = ParallelExecutionResult(results=results)

    total_time = (time.monotonic() - start_time) * 1000
    logger.info(
        f"병렬 실행 완료: 성공 {exec_result.success_count}, 실패 {exec_result.error_count}, 총 {total_time:.0f}ms"
    )

    return exec_result


def _execute_single(
    func: Callable[[T], R],
    item: T,
    index: int,
    identifier: str,
    config: ParallelConfig,
    quiet: bool,
) -> TaskResult[R]:
    """단일 작업 실행 (워커 스레드 내에서 호출)

    Args:
        func: 항목 처리 함수
        item: 처리할 항목
        index: 입력 위치
        identifier: 항목 식별자
        config: 병렬 실행 설정 (재시도 포함)
        quiet: quiet 모드 여부 (부모 스레드에서 전파)

    Returns:
        TaskResult[R]: 성공 시 데이터, 실패 시 에러 정보 포함
    """
    set_quiet(quiet)
    start_time = time.monotonic()

    try:
        data = call_with_retry(lambda: func(item), config.retry_config, identifier)
        return TaskResult(
            index=index,
            identifier=identifier,
            success=True,
            data=data,
            duration_ms=(time.monotonic() - start_time) * 1000,
        )
    except Exception as e:
        _clear_exception_chain(e)
        return TaskResult(
            index=index,
            identifier=identifier,
            success=False,
            error=TaskError(
                identifier=identifier,
                category=categorize_error(e),
                error_code=get_error_code(e),
                message=str(e),
                original_exception=e,
            ),
            duration_ms=(time.monotonic() - start_time) * 1000,
        )
