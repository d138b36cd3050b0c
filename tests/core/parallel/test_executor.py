"""
tests/core/parallel/test_executor.py - parallel_map / call_with_retry 테스트
"""

import threading
import time
from unittest.mock import MagicMock, patch

import pytest
from conftest import create_mock_client_error
from ldap3.core.exceptions import LDAPSocketReceiveError

from core.exceptions import DirectoryQueryFailed, MetricsQueryFailed
from core.parallel.decorators import RetryConfig
from core.parallel.executor import ParallelConfig, call_with_retry, parallel_map
from core.parallel.quiet import is_quiet, quiet_mode
from core.parallel.types import ErrorCategory


class TestParallelConfig:
    """ParallelConfig 테스트"""

    def test_default_values(self):
        """기본값 확인"""
        config = ParallelConfig()

        assert config.max_workers == 4
        assert config.retry_config is None

    def test_invalid_workers(self):
        """max_workers < 1은 거부"""
        with pytest.raises(ValueError):
            ParallelConfig(max_workers=0)

    def test_workers_capped(self):
        """max_workers는 100으로 제한"""
        assert ParallelConfig(max_workers=500).max_workers == 100


class TestCallWithRetry:
    """call_with_retry 테스트"""

    def test_success_first_try(self):
        func = MagicMock(return_value="ok")

        assert call_with_retry(func, RetryConfig(max_retries=3)) == "ok"
        assert func.call_count == 1

    @patch("core.parallel.executor.time.sleep")
    def test_retries_throttling_then_succeeds(self, mock_sleep):
        """Throttling은 재시도 후 성공"""
        func = MagicMock(side_effect=[create_mock_client_error("Throttling"), "ok"])

        assert call_with_retry(func, RetryConfig(max_retries=2)) == "ok"
        assert func.call_count == 2
        assert mock_sleep.call_count == 1

    @patch("core.parallel.executor.time.sleep")
    def test_retries_exhausted_reraises(self, mock_sleep):
        error = create_mock_client_error("ThrottlingException")
        func = MagicMock(side_effect=error)

        with pytest.raises(type(error)):
            call_with_retry(func, RetryConfig(max_retries=2))

        assert func.call_count == 3

    def test_non_retryable_raises_immediately(self):
        """AccessDenied는 재시도하지 않음"""
        func = MagicMock(side_effect=create_mock_client_error("AccessDenied"))

        with pytest.raises(Exception):
            call_with_retry(func, RetryConfig(max_retries=5))

        assert func.call_count == 1

    @patch("core.parallel.executor.time.sleep")
    def test_query_failed_with_retryable_code(self, mock_sleep):
        """QueryFailed도 에러 코드로 재시도 여부 판단"""
        error = MetricsQueryFailed("get_metric_data", "ws-1", error_code="Throttling")
        func = MagicMock(side_effect=[error, "ok"])

        assert call_with_retry(func, RetryConfig(max_retries=1)) == "ok"

    @patch("core.parallel.executor.time.sleep")
    def test_ldap_socket_error_retried(self, mock_sleep):
        """LDAP 소켓 오류를 감싼 DirectoryQueryFailed는 재시도"""
        cause = LDAPSocketReceiveError("connection reset")
        error = DirectoryQueryFailed("search_user", "jdoe", error_code=type(cause).__name__, cause=cause)
        func = MagicMock(side_effect=[error, error, "ok"])

        assert call_with_retry(func, RetryConfig(max_retries=2)) == "ok"
        assert func.call_count == 3

    def test_no_config_runs_once(self):
        func = MagicMock(side_effect=create_mock_client_error("Throttling"))

        with pytest.raises(Exception):
            call_with_retry(func)

        assert func.call_count == 1


class TestParallelMap:
    """parallel_map 테스트"""

    def test_empty_items(self):
        result = parallel_map([], lambda x: x)

        assert result.results == ()
        assert result.success_count == 0

    def test_preserves_input_order(self):
        """완료 순서와 무관하게 입력 순서로 결과 반환"""
        delays = [0.05, 0.0, 0.03, 0.01]

        def work(item):
            time.sleep(item[1])
            return item[0]

        result = parallel_map(list(enumerate(delays)), work, config=ParallelConfig(max_workers=4))

        assert [r.index for r in result.results] == [0, 1, 2, 3]
        assert [r.data for r in result.results] == [0, 1, 2, 3]

    def test_exception_captured_per_item(self):
        """한 항목의 예외가 다른 항목에 영향을 주지 않음"""

        def work(x):
            if x == 2:
                raise create_mock_client_error("AccessDenied")
            return x * 10

        result = parallel_map([1, 2, 3], work)

        assert result.success_count == 2
        assert result.error_count == 1
        failed = result.results[1]
        assert failed.success is False
        assert failed.error.category == ErrorCategory.ACCESS_DENIED
        assert failed.error.error_code == "AccessDenied"
        assert failed.error.original_exception is not None

    def test_identify_used_for_identifier(self):
        result = parallel_map(["a", "b"], str.upper, identify=lambda x: f"id-{x}")

        assert [r.identifier for r in result.results] == ["id-a", "id-b"]

    def test_quiet_state_propagated(self):
        """부모 스레드의 quiet 상태가 워커에 전파됨"""
        seen = []
        lock = threading.Lock()

        def work(x):
            with lock:
                seen.append(is_quiet())
            return x

        with quiet_mode():
            parallel_map([1, 2, 3], work, config=ParallelConfig(max_workers=2))

        assert seen == [True, True, True]
