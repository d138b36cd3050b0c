"""
core/parallel/decorators.py - 원격 호출 실패 분류와 백오프 정책

CloudWatch/EC2/WorkSpaces 호출의 ClientError와 LDAP 결과 코드를 담은
QueryFailed를 같은 기준으로 분류합니다. 보강 단계의 재시도 판단과
부가 조회 실패 집계(ErrorCollector)가 모두 이 모듈을 씁니다.
"""

import random
from dataclasses import dataclass

from ldap3.core.exceptions import LDAPCommunicationError

from core.exceptions import QueryFailed, is_access_denied, is_not_found, is_throttling

from .types import ErrorCategory


@dataclass
class RetryConfig:
    """WorkSpace 한 건 보강 시 원격 호출 재시도 정책

    대기 시간은 base_delay * 2^attempt 이며 max_delay에서 잘립니다.
    jitter가 켜져 있으면 [0, 대기 시간] 구간에서 균등 추출합니다.
    """

    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 20.0
    jitter: bool = True

    def get_delay(self, attempt: int) -> float:
        ceiling = min(self.base_delay * 2**attempt, self.max_delay)
        return random.uniform(0, ceiling) if self.jitter else ceiling


# AWS 쪽 일시적 실패
_AWS_TRANSIENT_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
    "ServiceUnavailable",
    "ServiceUnavailableException",
    "InternalError",
    "InternalServiceError",
    "InternalFailure",
    "RequestTimeout",
    "RequestTimeoutException",
}

# ldap3 result description 중 다시 시도할 만한 것
_LDAP_TRANSIENT_CODES = {"busy", "unavailable", "timeLimitExceeded"}

RETRYABLE_ERROR_CODES: set[str] = _AWS_TRANSIENT_CODES | _LDAP_TRANSIENT_CODES

# ldap3 소켓 열기/송신/수신 실패는 LDAPCommunicationError 하위 클래스
_TRANSPORT_ERRORS = (ConnectionError, TimeoutError, OSError, LDAPCommunicationError)


def _is_transport(error: Exception) -> bool:
    """전송 계층 실패 또는 그것을 감싼 QueryFailed"""
    if isinstance(error, QueryFailed):
        return isinstance(error.cause, _TRANSPORT_ERRORS)
    return isinstance(error, _TRANSPORT_ERRORS)


def _code_of(error: Exception) -> str | None:
    """QueryFailed면 내부 코드, ClientError면 응답 코드, 그 외 None"""
    if isinstance(error, QueryFailed):
        return error.error_code
    response = getattr(error, "response", None)
    if response is None:
        return None
    return response.get("Error", {}).get("Code", "")


def _categorize_code(code: str) -> ErrorCategory | None:
    if "Timeout" in code or code == "timeLimitExceeded":
        return ErrorCategory.TIMEOUT
    if code.startswith("ExpiredToken"):
        return ErrorCategory.EXPIRED_TOKEN
    if code in RETRYABLE_ERROR_CODES:
        return ErrorCategory.SERVICE_ERROR
    lowered = code.lower()
    if "invalid" in lowered or "validation" in lowered or "malformed" in lowered:
        return ErrorCategory.INVALID_REQUEST
    return None


def categorize_error(error: Exception) -> ErrorCategory:
    """예외를 ErrorCategory로 분류

    코드로 판단할 수 없는 QueryFailed는 원인 예외(cause)로 다시 분류합니다.
    """
    if is_throttling(error):
        return ErrorCategory.THROTTLING
    if is_access_denied(error):
        return ErrorCategory.ACCESS_DENIED
    if is_not_found(error):
        return ErrorCategory.NOT_FOUND
    if _is_transport(error):
        return ErrorCategory.NETWORK

    code = _code_of(error)
    if code:
        category = _categorize_code(code)
        if category is not None:
            return category

    if isinstance(error, QueryFailed) and error.cause is not None:
        return categorize_error(error.cause)
    return ErrorCategory.UNKNOWN


def get_error_code(error: Exception) -> str:
    """에러 코드, 없으면 예외 클래스 이름"""
    return _code_of(error) or type(error).__name__


def is_retryable(error: Exception) -> bool:
    """일시적 실패(코드 기준) 또는 전송 계층 실패인지 여부

    QueryFailed의 error_code가 ldap3 예외 클래스 이름이어도 원인이 소켓 오류면 재시도합니다.
    """
    if _is_transport(error):
        return True
    code = _code_of(error)
    if code:
        return code in RETRYABLE_ERROR_CODES
    if isinstance(error, QueryFailed):
        return error.cause is not None and is_retryable(error.cause)
    return False
