"""
analyzers/workspaces/topology.py - 서브넷 배치 정보 조회

여러 WorkSpace가 같은 서브넷을 공유하므로 실행 단위로 결과를 캐시합니다.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import TopologyQueryFailed
from core.parallel import get_client

from .types import SubnetInfo

logger = logging.getLogger(__name__)


def name_tag(tags: list[dict[str, str]] | None) -> str:
    """태그 목록에서 "Name" 태그 값 추출 (대소문자 구분, 없으면 "")"""
    for tag in tags or []:
        if tag.get("Key") == "Name":
            return tag.get("Value", "")
    return ""


def subnet_from_api(subnet: dict[str, Any]) -> SubnetInfo:
    return SubnetInfo(
        subnet_id=subnet["SubnetId"],
        label=name_tag(subnet.get("Tags")),
        availability_zone=subnet.get("AvailabilityZone", ""),
        availability_zone_id=subnet.get("AvailabilityZoneId", ""),
        available_ip_count=subnet.get("AvailableIpAddressCount"),
    )


class NetworkTopologyLookup:
    """서브넷 ID → SubnetInfo"""

    def __init__(self, ec2_client: Any):
        self._client = ec2_client
        self._cache: dict[str, SubnetInfo] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_session(cls, session: Any, region: str) -> NetworkTopologyLookup:
        return cls(get_client(session, "ec2", region_name=region))

    def resolve_subnet(self, subnet_id: str) -> SubnetInfo:
        """서브넷 조회 (성공한 결과만 캐시)

        Raises:
            TopologyQueryFailed: EC2 API 오류 또는 서브넷이 없는 경우
        """
        if not subnet_id:
            return SubnetInfo(subnet_id="")

        with self._lock:
            cached = self._cache.get(subnet_id)
        if cached is not None:
            return cached

        try:
            response = self._client.describe_subnets(SubnetIds=[subnet_id])
        except (ClientError, BotoCoreError) as e:
            raise TopologyQueryFailed.from_client_error("describe_subnets", subnet_id, e) from e

        subnets = response.get("Subnets", [])
        if not subnets:
            raise TopologyQueryFailed(
                operation="describe_subnets",
                item=subnet_id,
                error_code="InvalidSubnetID.NotFound",
                error_message="서브넷이 존재하지 않습니다",
            )

        info = subnet_from_api(subnets[0])
        with self._lock:
            self._cache[subnet_id] = info
        return info
