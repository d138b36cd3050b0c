"""
analyzers/workspaces/types.py - WorkSpaces 사용 현황 리포트 데이터 모델

디렉터리 필드 규약:
    None  → 해석되지 않음 (사용자/컴퓨터를 찾지 못했거나 조회하지 않음)
    ""    → 디렉터리에 값이 비어 있음
    빈 문자열로의 변환은 출력 직전(report.row_values)에서만 수행합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from core.shared.aws.metrics import DAILY_PERIOD

FAILURE_MARKER = "enrichment failed"


# =============================================================================
# 인벤토리
# =============================================================================


@dataclass(frozen=True)
class WorkspaceRecord:
    """describe_workspaces 응답의 WorkSpace 한 건 (읽은 뒤 변경하지 않음)

    Attributes:
        workspace_id: WorkSpace ID (ws-xxxx)
        user_name: 소유 사용자 (sAMAccountName)
        computer_name: 디렉터리에 가입된 컴퓨터 이름
        ip_address: WorkSpace IP
        directory_id: 디렉터리 ID (d-xxxx)
        bundle_id: 번들 ID (wsb-xxxx)
        subnet_id: 서브넷 ID
        state: 수명 주기 상태 (AVAILABLE, STOPPED, ...)
        root_volume_encrypted: 루트 볼륨 암호화 여부
        user_volume_encrypted: 사용자 볼륨 암호화 여부
        compute_type: 컴퓨트 타입 (STANDARD, PERFORMANCE, ...)
        root_volume_size_gib: 루트 볼륨 크기
        user_volume_size_gib: 사용자 볼륨 크기
        running_mode: AUTO_STOP / ALWAYS_ON / MANUAL
        auto_stop_timeout_minutes: AUTO_STOP 유휴 시간 (분)
    """

    workspace_id: str
    user_name: str = ""
    computer_name: str = ""
    ip_address: str = ""
    directory_id: str = ""
    bundle_id: str = ""
    subnet_id: str = ""
    state: str = ""
    root_volume_encrypted: bool = False
    user_volume_encrypted: bool = False
    compute_type: str = ""
    root_volume_size_gib: int | None = None
    user_volume_size_gib: int | None = None
    running_mode: str = ""
    auto_stop_timeout_minutes: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkspaceRecord:
        props = data.get("WorkspaceProperties", {})
        return cls(
            workspace_id=data["WorkspaceId"],
            user_name=data.get("UserName", ""),
            computer_name=data.get("ComputerName", ""),
            ip_address=data.get("IpAddress", ""),
            directory_id=data.get("DirectoryId", ""),
            bundle_id=data.get("BundleId", ""),
            subnet_id=data.get("SubnetId", ""),
            state=data.get("State", ""),
            root_volume_encrypted=bool(data.get("RootVolumeEncryptionEnabled", False)),
            user_volume_encrypted=bool(data.get("UserVolumeEncryptionEnabled", False)),
            compute_type=props.get("ComputeTypeName", ""),
            root_volume_size_gib=props.get("RootVolumeSizeGib"),
            user_volume_size_gib=props.get("UserVolumeSizeGib"),
            running_mode=props.get("RunningMode", ""),
            auto_stop_timeout_minutes=props.get("RunningModeAutoStopTimeoutInMinutes"),
        )


# =============================================================================
# 디렉터리
# =============================================================================


@dataclass(frozen=True)
class DirectoryUserInfo:
    """디렉터리 사용자 정보

    found=False이면 모든 속성이 None (해석되지 않음)입니다.
    manager는 DN이 아닌 관리자의 표시 이름입니다.
    """

    user_name: str
    found: bool
    full_name: str | None = None
    department: str | None = None
    enabled: bool | None = None
    email: str | None = None
    manager: str | None = None
    mobile: str | None = None

    @classmethod
    def not_found(cls, user_name: str) -> DirectoryUserInfo:
        return cls(user_name=user_name, found=False)


@dataclass(frozen=True)
class DirectoryComputerInfo:
    """디렉터리 컴퓨터 정보"""

    computer_name: str
    found: bool
    created: datetime | None = None
    operating_system: str | None = None

    @classmethod
    def not_found(cls, computer_name: str) -> DirectoryComputerInfo:
        return cls(computer_name=computer_name, found=False)


# =============================================================================
# 연결 상태 / 네트워크
# =============================================================================


@dataclass(frozen=True)
class ConnectionStatus:
    """조회 시점의 WorkSpace 연결 상태"""

    workspace_id: str
    state: str | None = None
    state_check_time: datetime | None = None
    last_connection_time: datetime | None = None


@dataclass(frozen=True)
class SubnetInfo:
    """서브넷 배치 정보

    label은 대소문자를 구분한 "Name" 태그 값이며, 태그가 없으면 빈 문자열입니다.
    """

    subnet_id: str
    label: str = ""
    availability_zone: str = ""
    availability_zone_id: str = ""
    available_ip_count: int | None = None


# =============================================================================
# 활동 판정
# =============================================================================


@dataclass(frozen=True)
class ActivityWindow:
    """미사용 판정 기간 [start, end)

    CloudWatch 해상도 저하와 무관하게 전체 기간에서 유효하도록
    1일 단위(86400초) 샘플을 사용합니다.
    """

    start: datetime
    end: datetime
    period: int = DAILY_PERIOD

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"end({self.end})는 start({self.start})보다 이후여야 합니다")
        if self.period <= 0:
            raise ValueError(f"period는 양수여야 합니다: {self.period}")

    @classmethod
    def trailing(cls, days: int, now: datetime | None = None) -> ActivityWindow:
        """[now - days, now] 기간 생성

        Args:
            days: 기간 (일, 1 이상)
            now: 기준 시각 (기본: 현재 UTC)
        """
        if days < 1:
            raise ValueError(f"days는 1 이상이어야 합니다: {days}")
        end = now or datetime.now(timezone.utc)
        return cls(start=end - timedelta(days=days), end=end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days


@dataclass(frozen=True)
class ActivityVerdict:
    """기간 내 사용 여부 판정

    Attributes:
        unused: 기간 동안 한 번도 접속에 성공하지 않았으면 True
        window: 판정에 사용한 기간
        peak: 일별 최대값 중 가장 큰 값 (샘플이 없으면 None)
    """

    unused: bool
    window: ActivityWindow
    peak: float | None = None


# =============================================================================
# 리포트 행
# =============================================================================


@dataclass(frozen=True)
class ReportRow:
    """WorkSpace 한 건의 최종 조인 결과

    보강에 실패한 행은 error에 "enrichment failed: <사유>"가 기록되고
    인벤토리에서 읽은 기본 필드만 채워집니다.
    """

    record: WorkspaceRecord
    region: str
    user: DirectoryUserInfo | None = None
    computer: DirectoryComputerInfo | None = None
    connection: ConnectionStatus | None = None
    subnet: SubnetInfo | None = None
    verdict: ActivityVerdict | None = None
    directory_name: str | None = None
    bundle_name: str | None = None
    tags: tuple[tuple[str, str], ...] | None = None
    error: str | None = None

    @classmethod
    def failed(cls, record: WorkspaceRecord, region: str, reason: str) -> ReportRow:
        return cls(record=record, region=region, error=f"{FAILURE_MARKER}: {reason}")

    @property
    def workspace_id(self) -> str:
        return self.record.workspace_id

    @property
    def is_failed(self) -> bool:
        return self.error is not None

    @property
    def is_unused(self) -> bool:
        return self.verdict is not None and self.verdict.unused


# =============================================================================
# 보강 결과
# =============================================================================


@dataclass(frozen=True)
class EnrichmentOk:
    """보강 성공 (index는 인벤토리 위치)"""

    index: int
    row: ReportRow


@dataclass(frozen=True)
class EnrichmentFailed:
    """보강 실패"""

    index: int
    record: WorkspaceRecord
    reason: str
    error: Exception | None = None

    def to_row(self, region: str) -> ReportRow:
        return ReportRow.failed(self.record, region, self.reason)


EnrichmentResult = Union[EnrichmentOk, EnrichmentFailed]
