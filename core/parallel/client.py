"""
core/parallel/client.py - 리포트용 boto3 세션/클라이언트

workspaces, cloudwatch, ec2 클라이언트를 한 번씩 만들어 보강 워커들이 공유합니다.
boto3 client는 스레드 세이프하므로 워커 수만큼 연결 풀을 넉넉히 잡아 둡니다.
자격 증명은 프로파일, 환경 변수, 인스턴스 역할 중 boto3 기본 체인을 따릅니다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from botocore.config import Config

if TYPE_CHECKING:
    import boto3

# 보강 워커(기본 4) x 부가 조회 워커(기본 5)보다 크게
_POOL_SIZE = 25

_BASE_CONFIG = Config(
    retries={"max_attempts": 5, "mode": "adaptive"},
    connect_timeout=10,
    read_timeout=30,
    max_pool_connections=_POOL_SIZE,
)


def get_session(profile_name: str | None = None, region_name: str | None = None) -> boto3.Session:
    """프로파일(없으면 기본 체인)과 리전으로 boto3 Session 생성"""
    import boto3

    return boto3.Session(profile_name=profile_name, region_name=region_name)


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    config: Config | None = None,
    **kwargs: Any,
) -> Any:
    """adaptive 재시도와 타임아웃이 적용된 client

    Args:
        session: boto3 Session
        service_name: "workspaces", "cloudwatch", "ec2"
        region_name: 리전 (None이면 세션 기본값)
        config: 기본 설정 위에 덮어쓸 botocore Config
        **kwargs: session.client()에 그대로 전달
    """
    merged = _BASE_CONFIG.merge(config) if config is not None else _BASE_CONFIG
    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name,
        config=merged,
        **kwargs,
    )
