"""
core/exceptions.py - WorkSpaces 리포트 예외

실패가 어디에서 났는지(서비스, 작업, 대상 식별자)를 메시지에 남겨
CLI가 그대로 출력할 수 있게 합니다.

    ReportError
    ├── ConfigError, ValidationError      실행 전 설정/입력 문제
    ├── InventoryUnavailable              WorkSpaces 목록 자체를 못 읽음 (치명적)
    ├── QueryFailed                       WorkSpace 한 건 보강 중 원격 호출 실패
    │   └── Directory/Metrics/Topology/ConnectionStatus/DisplayLookup
    └── EnrichmentAborted                 ABORT 정책에서 열거 중단

    try:
        response = cloudwatch.get_metric_data(**params)
    except ClientError as e:
        raise MetricsQueryFailed.from_client_error("get_metric_data", workspace_id, e) from e
"""

from __future__ import annotations

from typing import Any


class ReportError(Exception):
    """리포트 예외 공통 부모

    message는 사람이 읽는 한 줄, cause는 원인 예외, details는 로그/디버깅용 부가 정보입니다.
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = dict(details) if details else {}

    def __str__(self) -> str:
        return f"{self.message}: {self.cause}" if self.cause else self.message


class ConfigError(ReportError):
    """설정 파일/옵션 값 오류 (key는 문제된 설정 키 또는 파일 경로)"""

    def __init__(self, key: str, message: str, cause: Exception | None = None):
        super().__init__(f"설정 오류 [{key}]: {message}", cause, {"config_key": key})
        self.config_key = key


class ValidationError(ReportError):
    """사용자 입력이 허용 범위 밖"""

    def __init__(self, field: str, value: Any, expected: str, cause: Exception | None = None):
        super().__init__(
            f"검증 오류 [{field}]: 예상값 '{expected}', 실제값 '{value}'",
            cause,
            {"field": field, "value": str(value), "expected": expected},
        )
        self.field = field
        self.value = value
        self.expected = expected


class InventoryUnavailable(ReportError):
    """WorkSpaces 목록 조회 실패

    순회할 리소스가 없으므로 전체 실행이 즉시 종료됩니다.
    """

    def __init__(self, region: str, cause: Exception | None = None):
        super().__init__(f"WorkSpaces 목록 조회 실패 [{region}]", cause, {"region": region})
        self.region = region


class QueryFailed(ReportError):
    """리소스 보강 중 원격 서비스 호출 실패

    NotFound(디렉터리 사용자 없음 등)와 달리 전송/서비스 오류를 나타냅니다.

    Attributes:
        service: 서비스 이름 (예: "cloudwatch", "ldap")
        operation: 작업 이름 (예: "get_metric_data")
        item: 실패와 연관된 식별자 (WorkSpace ID, 사용자명, 컴퓨터명, 서브넷 ID)
        error_code: 서비스 에러 코드 (있는 경우)
    """

    service = "unknown"

    def __init__(
        self,
        operation: str,
        item: str,
        error_code: str | None = None,
        error_message: str | None = None,
        cause: Exception | None = None,
    ):
        message = f"{self.service}.{operation} [{item}] 실패"
        if error_code:
            message += f" ({error_code})"
        if error_message:
            message += f": {error_message}"

        details = {"service": self.service, "operation": operation, "item": item, "error_code": error_code}
        super().__init__(message, cause, details)
        self.operation = operation
        self.item = item
        self.error_code = error_code
        self.error_message = error_message

    @property
    def reason(self) -> str:
        """행에 기록할 짧은 실패 사유"""
        return self.error_message or self.error_code or str(self.cause or self.message)

    def __str__(self) -> str:
        if self.error_message or self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"

    @classmethod
    def from_client_error(cls, operation: str, item: str, client_error: Exception) -> QueryFailed:
        """ClientError(응답 코드/메시지) 또는 그 밖의 boto 예외(클래스명/문자열)로부터 생성"""
        response = getattr(client_error, "response", None)
        if response is None:
            code, text = type(client_error).__name__, str(client_error)
        else:
            info = response.get("Error", {})
            code, text = info.get("Code"), info.get("Message")
        return cls(operation, item, error_code=code, error_message=text, cause=client_error)


class DirectoryQueryFailed(QueryFailed):
    """디렉터리(LDAP) 조회 실패"""

    service = "ldap"


class MetricsQueryFailed(QueryFailed):
    """CloudWatch 메트릭 조회 실패"""

    service = "cloudwatch"


class TopologyQueryFailed(QueryFailed):
    """서브넷 조회 실패"""

    service = "ec2"


class ConnectionStatusQueryFailed(QueryFailed):
    """WorkSpace 연결 상태 조회 실패"""

    service = "workspaces"


class DisplayLookupFailed(QueryFailed):
    """태그/번들/디렉터리 이름 조회 실패 (strict 모드에서만 발생)"""

    service = "workspaces"


class EnrichmentAborted(ReportError):
    """ABORT 정책에서 첫 조회 실패로 나머지 열거를 중단

    Attributes:
        workspace_id: 실패한 WorkSpace ID
        completed: 중단 전까지 완료된 행 (인벤토리 순서의 prefix)
    """

    def __init__(self, workspace_id: str, cause: QueryFailed, completed: list[Any] | None = None):
        super().__init__(f"보강 중단 [{workspace_id}]", cause)
        self.workspace_id = workspace_id
        self.completed = list(completed or [])
        self.details["workspace_id"] = workspace_id
        self.details["completed"] = len(self.completed)


_ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedAccess",
    "UnauthorizedOperation",
    "insufficientAccessRights",
}

_THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
}

_NOT_FOUND_CODES = {
    "ResourceNotFoundException",
    "ResourceNotFound.Exception",
    "NotFoundException",
    "InvalidSubnetID.NotFound",
    "noSuchObject",
}

# 코드별로 사용자가 바로 할 수 있는 조치
_USER_HINTS = {
    "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
    "AccessDeniedException": "권한이 없습니다. IAM 정책을 확인하세요.",
    "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
    "InvalidClientTokenId": "잘못된 자격 증명입니다.",
    "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
    "invalidCredentials": "디렉터리 바인드 자격 증명이 올바르지 않습니다.",
}


def _error_code(error: Exception) -> str:
    if isinstance(error, QueryFailed):
        return error.error_code or ""
    response = getattr(error, "response", None)
    return response.get("Error", {}).get("Code", "") if response is not None else ""


def is_access_denied(error: Exception) -> bool:
    """AWS 권한 거부 또는 LDAP insufficientAccessRights"""
    return _error_code(error) in _ACCESS_DENIED_CODES


def is_throttling(error: Exception) -> bool:
    return _error_code(error) in _THROTTLING_CODES


def is_not_found(error: Exception) -> bool:
    """존재하지 않는 리소스 (서브넷, LDAP 객체 등)"""
    return _error_code(error) in _NOT_FOUND_CODES


def _with_hint(text: str, code: str | None) -> str:
    hint = _USER_HINTS.get(code or "")
    return f"{text} - {hint}" if hint else text


def format_error_for_user(error: Exception) -> str:
    """CLI 종료 직전에 출력할 한 줄 메시지

    EnrichmentAborted는 실패한 WorkSpace ID를 앞에 붙이고,
    QueryFailed 계열은 에러 코드에 맞는 조치 안내를 덧붙입니다.
    """
    if isinstance(error, EnrichmentAborted) and isinstance(error.cause, QueryFailed):
        return _with_hint(f"[{error.workspace_id}] {error.cause.message}", error.cause.error_code)
    if isinstance(error, QueryFailed):
        return _with_hint(error.message, error.error_code)
    if isinstance(error, ReportError):
        return str(error)

    response = getattr(error, "response", None)
    if response is None:
        return str(error)
    info = response.get("Error", {})
    code = info.get("Code", "UnknownError")
    return _USER_HINTS.get(code, f"{code}: {info.get('Message', str(error))}")
