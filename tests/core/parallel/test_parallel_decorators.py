"""
tests/core/parallel/test_parallel_decorators.py - core/parallel/decorators.py 테스트
"""

import pytest
from conftest import create_mock_client_error
from ldap3.core.exceptions import LDAPSocketOpenError, LDAPSocketSendError

from core.exceptions import DirectoryQueryFailed, TopologyQueryFailed
from core.parallel.decorators import (
    RETRYABLE_ERROR_CODES,
    RetryConfig,
    categorize_error,
    get_error_code,
    is_retryable,
)
from core.parallel.types import ErrorCategory


class TestRetryConfig:
    """RetryConfig 테스트"""

    def test_default_values(self):
        config = RetryConfig()

        assert config.max_retries == 2
        assert config.base_delay == 1.0
        assert config.max_delay == 20.0
        assert config.jitter is True

    def test_delay_without_jitter(self):
        """지수 백오프"""
        config = RetryConfig(base_delay=1.0, jitter=False)

        assert config.get_delay(0) == 1.0
        assert config.get_delay(1) == 2.0
        assert config.get_delay(2) == 4.0

    def test_delay_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=False)

        assert config.get_delay(10) == 5.0

    def test_jitter_within_range(self):
        config = RetryConfig(base_delay=2.0, jitter=True)

        for _ in range(20):
            assert 0 <= config.get_delay(1) <= 4.0


class TestCategorizeError:
    """categorize_error 테스트"""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("Throttling", ErrorCategory.THROTTLING),
            ("AccessDeniedException", ErrorCategory.ACCESS_DENIED),
            ("InvalidSubnetID.NotFound", ErrorCategory.NOT_FOUND),
            ("ExpiredToken", ErrorCategory.EXPIRED_TOKEN),
            ("ServiceUnavailable", ErrorCategory.SERVICE_ERROR),
            ("ValidationException", ErrorCategory.INVALID_REQUEST),
            ("SomethingElse", ErrorCategory.UNKNOWN),
        ],
    )
    def test_client_error_codes(self, code, expected):
        assert categorize_error(create_mock_client_error(code)) == expected

    def test_query_failed_uses_error_code(self):
        error = TopologyQueryFailed("describe_subnets", "subnet-1", error_code="InvalidSubnetID.NotFound")

        assert categorize_error(error) == ErrorCategory.NOT_FOUND

    def test_ldap_timeout(self):
        error = DirectoryQueryFailed("search_user", "jdoe", error_code="timeLimitExceeded")

        assert categorize_error(error) == ErrorCategory.TIMEOUT

    def test_network_error(self):
        assert categorize_error(ConnectionError("reset")) == ErrorCategory.NETWORK


class TestGetErrorCode:
    """get_error_code 테스트"""

    def test_client_error(self):
        assert get_error_code(create_mock_client_error("AccessDenied")) == "AccessDenied"

    def test_plain_exception_uses_class_name(self):
        assert get_error_code(ValueError("x")) == "ValueError"

    def test_query_failed(self):
        error = DirectoryQueryFailed("search_user", "jdoe", error_code="busy")

        assert get_error_code(error) == "busy"


class TestIsRetryable:
    """is_retryable 테스트"""

    def test_retryable_codes(self):
        assert "Throttling" in RETRYABLE_ERROR_CODES
        assert is_retryable(create_mock_client_error("Throttling")) is True

    def test_access_denied_not_retryable(self):
        assert is_retryable(create_mock_client_error("AccessDenied")) is False

    def test_ldap_busy_retryable(self):
        assert is_retryable(DirectoryQueryFailed("search_user", "jdoe", error_code="busy")) is True

    def test_network_error_retryable(self):
        assert is_retryable(ConnectionError("reset")) is True

    @pytest.mark.parametrize("cause", [LDAPSocketOpenError("refused"), LDAPSocketSendError("broken pipe")])
    def test_ldap_socket_error_retryable(self, cause):
        """error_code가 ldap3 예외 클래스 이름이어도 원인이 소켓 오류면 재시도"""
        error = DirectoryQueryFailed("search_user", "jdoe", error_code=type(cause).__name__, cause=cause)

        assert is_retryable(error) is True
        assert categorize_error(error) == ErrorCategory.NETWORK

    def test_ldap_non_transport_not_retryable(self):
        error = DirectoryQueryFailed("search_user", "jdoe", error_code="LDAPInvalidFilterError", cause=ValueError("x"))

        assert is_retryable(error) is False
