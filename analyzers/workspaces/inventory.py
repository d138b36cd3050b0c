"""
analyzers/workspaces/inventory.py - WorkSpaces 인벤토리 수집
"""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import InventoryUnavailable
from core.parallel import get_client

from .types import WorkspaceRecord

logger = logging.getLogger(__name__)


class ResourceInventory:
    """리전의 전체 WorkSpace 목록

    페이지네이션은 내부에서 모두 소진하여 한 번에 반환합니다.
    """

    def __init__(self, workspaces_client: Any, region: str):
        self._client = workspaces_client
        self.region = region

    @classmethod
    def from_session(cls, session: Any, region: str) -> ResourceInventory:
        return cls(get_client(session, "workspaces", region_name=region), region)

    def list_workspaces(self) -> list[WorkspaceRecord]:
        """WorkSpace 전체 조회

        Returns:
            WorkspaceRecord 목록 (API 반환 순서)

        Raises:
            InventoryUnavailable: API 오류 (부분 목록은 반환하지 않음)
        """
        records: list[WorkspaceRecord] = []
        try:
            paginator = self._client.get_paginator("describe_workspaces")
            for page in paginator.paginate():
                records.extend(WorkspaceRecord.from_api(ws) for ws in page.get("Workspaces", []))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"WorkSpaces 목록 조회 실패 [{self.region}]: {e}")
            raise InventoryUnavailable(self.region, cause=e) from e

        logger.info(f"WorkSpaces {len(records)}개 조회 [{self.region}]")
        return records
