"""
tests/conftest.py - pytest 공통 픽스처

AWS/LDAP 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(moto_ec2, make_workspace):
        # moto_ec2: moto를 사용한 EC2 모킹 (client, vpc_id, subnet_id)
        # make_workspace: describe_workspaces 응답 항목 생성 함수
        pass
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """테스트 환경 설정"""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    # 사용자 환경의 설정 파일/LDAP 자격 증명이 테스트에 섞이지 않도록
    monkeypatch.delenv("WSREPORT_CONFIG", raising=False)
    monkeypatch.delenv("WSREPORT_LDAP_USER", raising=False)
    monkeypatch.delenv("WSREPORT_LDAP_PASSWORD", raising=False)

    yield


# =============================================================================
# 유틸리티 함수
# =============================================================================


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "TestOperation",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


def create_workspace_payload(
    workspace_id: str = "ws-0001",
    user_name: str = "jdoe",
    directory_id: str = "d-1234567890",
    bundle_id: str = "wsb-abc",
    subnet_id: str = "subnet-0001",
    **overrides: Any,
) -> Dict[str, Any]:
    """describe_workspaces 응답의 Workspaces 항목 생성"""
    payload = {
        "WorkspaceId": workspace_id,
        "DirectoryId": directory_id,
        "UserName": user_name,
        "IpAddress": "10.0.1.10",
        "State": "AVAILABLE",
        "BundleId": bundle_id,
        "SubnetId": subnet_id,
        "ComputerName": f"WS-{workspace_id[-4:].upper()}",
        "UserVolumeEncryptionEnabled": True,
        "RootVolumeEncryptionEnabled": False,
        "WorkspaceProperties": {
            "RunningMode": "AUTO_STOP",
            "RunningModeAutoStopTimeoutInMinutes": 60,
            "RootVolumeSizeGib": 80,
            "UserVolumeSizeGib": 50,
            "ComputeTypeName": "STANDARD",
        },
    }
    payload.update(overrides)
    return payload


def create_ldap_search_result(
    entries: Optional[List[Dict[str, Any]]] = None,
    result_code: int = 0,
    description: str = "success",
    message: str = "",
):
    """ldap3 SAFE_SYNC search() 반환값 (status, result, response, request) 생성"""
    response = [
        {"type": "searchResEntry", "dn": entry.get("dn", ""), "attributes": entry.get("attributes", {})}
        for entry in entries or []
    ]
    result = {"result": result_code, "description": description, "message": message}
    status = result_code == 0 and bool(response)
    return status, result, response, {}


# =============================================================================
# 픽스처
# =============================================================================


@pytest.fixture
def make_workspace():
    """describe_workspaces 항목 생성 함수"""
    return create_workspace_payload


@pytest.fixture
def mock_workspaces_client():
    """WorkSpaces 클라이언트 모킹 (부가 조회 기본 응답 포함)"""
    client = MagicMock()
    client.describe_workspaces_connection_status.return_value = {
        "WorkspacesConnectionStatus": [{"ConnectionState": "DISCONNECTED"}]
    }
    client.describe_tags.return_value = {"TagList": []}
    client.describe_workspace_directories.return_value = {"Directories": [{"DirectoryName": "corp.example.com"}]}
    client.describe_workspace_bundles.return_value = {"Bundles": [{"Name": "Standard with Windows 10"}]}
    return client


@pytest.fixture
def mock_ldap_connection():
    """ldap3 SAFE_SYNC Connection 모킹 (기본: 항목 없음)"""
    conn = MagicMock()
    conn.search.return_value = create_ldap_search_result()
    return conn


# =============================================================================
# moto 통합 (선택적)
# =============================================================================

try:
    import moto

    @pytest.fixture
    def aws_credentials(monkeypatch):
        """moto 사용 시 AWS 자격 증명 설정"""
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
        monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
        monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
        monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")

    @pytest.fixture
    def moto_ec2(aws_credentials):
        """moto를 사용한 EC2 모킹"""
        with moto.mock_aws():
            import boto3

            ec2 = boto3.client("ec2", region_name="ap-northeast-2")

            # VPC 생성
            vpc = ec2.create_vpc(CidrBlock="10.0.0.0/16")
            vpc_id = vpc["Vpc"]["VpcId"]

            # 서브넷 생성
            subnet = ec2.create_subnet(VpcId=vpc_id, CidrBlock="10.0.1.0/24", AvailabilityZone="ap-northeast-2a")
            subnet_id = subnet["Subnet"]["SubnetId"]

            yield ec2, vpc_id, subnet_id

except ImportError:
    # moto가 설치되지 않은 경우 더미 픽스처
    @pytest.fixture
    def moto_ec2():
        pytest.skip("moto not installed")
