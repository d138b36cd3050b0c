"""core/config.py - 리포트 실행 설정.

YAML 설정 파일을 로드하여 ReportConfig로 변환합니다.

설정 선택 우선순위:
    1. 함수 파라미터 (path).
    2. 환경변수 (WSREPORT_CONFIG).
    3. 내장 기본값.

예시 (wsreport.yaml):
    inactivity_days: 60
    resource_workers: 4
    lookup_workers: 5
    failure_policy: isolate
    include_failed_rows: true
    strict_display_lookups: false
    output_format: excel
    ldap:
      enabled: true
      server: ldaps://dc01.corp.example.com
      base_dn: DC=corp,DC=example,DC=com
      use_ssl: true
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# 환경변수 키
ENV_CONFIG = "WSREPORT_CONFIG"
ENV_LDAP_USER = "WSREPORT_LDAP_USER"
ENV_LDAP_PASSWORD = "WSREPORT_LDAP_PASSWORD"

# 미사용 판단 기간 (일)
DEFAULT_INACTIVITY_DAYS = 30
MAX_INACTIVITY_DAYS = 999

# CloudWatch는 1시간 해상도 데이터를 455일까지만 보존
RETENTION_ADVISORY_DAYS = 455

FAILURE_POLICIES = ("isolate", "abort")
OUTPUT_FORMATS = ("csv", "excel")

_VERSION_FILE = Path(__file__).resolve().parent.parent / "version.txt"


@dataclass
class LdapSettings:
    """디렉터리(LDAP) 연결 설정

    Attributes:
        enabled: False이면 디렉터리 조회를 건너뜀 (필드 미해결, found=False)
        server: LDAP URL (예: ldaps://dc01.corp.example.com)
        base_dn: 검색 기준 DN
        use_ssl: LDAPS 사용 여부
        user: 바인드 사용자 (없으면 환경변수)
        password: 바인드 암호 (없으면 환경변수)
    """

    enabled: bool = False
    server: str = ""
    base_dn: str = ""
    use_ssl: bool = True
    user: str | None = None
    password: str | None = field(default=None, repr=False)


@dataclass
class ReportConfig:
    """WorkSpaces 사용 현황 리포트 설정"""

    inactivity_days: int = DEFAULT_INACTIVITY_DAYS
    resource_workers: int = 4
    lookup_workers: int = 5
    failure_policy: str = "isolate"
    include_failed_rows: bool = True
    strict_display_lookups: bool = False
    output_format: str = "csv"
    ldap: LdapSettings = field(default_factory=LdapSettings)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """값 범위 검증

        Raises:
            ConfigError: 허용 범위를 벗어난 값
        """
        if not 1 <= self.inactivity_days <= MAX_INACTIVITY_DAYS:
            raise ConfigError("inactivity_days", f"1~{MAX_INACTIVITY_DAYS} 사이여야 합니다 ({self.inactivity_days})")
        if self.resource_workers < 1:
            raise ConfigError("resource_workers", "1 이상이어야 합니다")
        if self.lookup_workers < 1:
            raise ConfigError("lookup_workers", "1 이상이어야 합니다")
        if self.failure_policy not in FAILURE_POLICIES:
            raise ConfigError("failure_policy", f"{FAILURE_POLICIES} 중 하나여야 합니다 ({self.failure_policy})")
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError("output_format", f"{OUTPUT_FORMATS} 중 하나여야 합니다 ({self.output_format})")
        if self.ldap.enabled and not (self.ldap.server and self.ldap.base_dn):
            raise ConfigError("ldap", "enabled이면 server와 base_dn이 필요합니다")

    @property
    def needs_retention_advisory(self) -> bool:
        """CloudWatch 보존 기간 안내가 필요한지 여부"""
        return self.inactivity_days >= RETENTION_ADVISORY_DAYS


def resolve_config_path(path: str | Path | None = None) -> Path | None:
    """설정 파일 경로 결정 (우선순위 적용)"""
    if path:
        return Path(path)
    env_path = os.environ.get(ENV_CONFIG)
    return Path(env_path) if env_path else None


def _load_yaml(config_file: Path) -> dict[str, Any]:
    if not config_file.exists():
        raise ConfigError(str(config_file), "설정 파일이 없습니다")

    try:
        with config_file.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(str(config_file), "YAML 파싱 실패", cause=e) from e

    if not isinstance(data, dict):
        raise ConfigError(str(config_file), "최상위는 매핑이어야 합니다")
    return data


def load_config(path: str | Path | None = None, **overrides: Any) -> ReportConfig:
    """설정 로드

    Args:
        path: 설정 파일 경로 (None이면 환경변수 → 기본값 순서)
        **overrides: None이 아닌 값만 파일 설정 위에 덮어씀 (CLI 옵션용)

    Returns:
        검증된 ReportConfig

    Raises:
        ConfigError: 파일이 없거나 값이 잘못된 경우
    """
    config_file = resolve_config_path(path)
    data: dict[str, Any] = _load_yaml(config_file) if config_file else {}
    if config_file:
        logger.debug(f"설정 파일 로드: {config_file}")

    ldap_data = data.pop("ldap", None) or {}
    unknown = set(data) - set(ReportConfig.__dataclass_fields__)
    if unknown:
        raise ConfigError(", ".join(sorted(unknown)), "알 수 없는 설정 키")

    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        ldap = LdapSettings(**ldap_data)
    except TypeError as e:
        raise ConfigError("ldap", str(e), cause=e) from e

    ldap.user = ldap.user or os.environ.get(ENV_LDAP_USER)
    ldap.password = ldap.password or os.environ.get(ENV_LDAP_PASSWORD)

    try:
        return ReportConfig(ldap=ldap, **data)
    except TypeError as e:
        raise ConfigError("config", str(e), cause=e) from e


def get_version() -> str:
    """버전 문자열 반환

    설치된 패키지 메타데이터를 우선 사용하고, 소스 실행 시 version.txt를 읽습니다.
    """
    try:
        return metadata.version("workspaces-usage-report")
    except metadata.PackageNotFoundError:
        pass
    if _VERSION_FILE.exists():
        return _VERSION_FILE.read_text(encoding="utf-8").strip()
    return "0.0.0"
