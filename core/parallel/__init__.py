"""
core/parallel - 병렬 처리 모듈

리소스별 보강 조회를 병렬로 안전하게 처리합니다.

주요 구성 요소:
- parallel_map: 입력 순서를 보존하는 병렬 매핑
- call_with_retry: 지수 백오프 재시도
- get_client / get_session: retry 설정이 적용된 boto3 client
- ErrorCollector / try_or_default: 부수 조회 실패 수집

Example:
    from core.parallel import ParallelConfig, parallel_map

    result = parallel_map(records, enrich_one, identify=lambda r: r.workspace_id)
    print(f"성공: {result.success_count}, 실패: {result.error_count}")
"""

from .client import get_client, get_session
from .decorators import RetryConfig, categorize_error, get_error_code, is_retryable
from .errors import (
    CollectedError,
    ErrorCollector,
    ErrorSeverity,
    try_or_default,
)
from .executor import ParallelConfig, call_with_retry, parallel_map
from .quiet import is_quiet, quiet_mode, set_quiet
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

__all__: list[str] = [
    # Executor
    "ParallelConfig",
    "parallel_map",
    "call_with_retry",
    # Client
    "get_client",
    "get_session",
    # Retry / 분류
    "RetryConfig",
    "categorize_error",
    "get_error_code",
    "is_retryable",
    # Error handling
    "ErrorCollector",
    "ErrorSeverity",
    "CollectedError",
    "try_or_default",
    # Quiet mode
    "quiet_mode",
    "is_quiet",
    "set_quiet",
    # Types
    "ErrorCategory",
    "TaskError",
    "TaskResult",
    "ParallelExecutionResult",
]
