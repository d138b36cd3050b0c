"""
analyzers/workspaces/lookups.py - WorkSpaces 부가 조회

연결 상태는 필수 조회이며 실패 시 ConnectionStatusQueryFailed를 발생시킵니다.
태그/번들 이름/디렉터리 이름은 표시용 부가 정보이므로 기본적으로 실패를
ErrorCollector에 기록하고 값을 비워 둡니다. strict=True이면 DisplayLookupFailed를 발생시킵니다.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import ConnectionStatusQueryFailed, DisplayLookupFailed
from core.parallel import ErrorCollector, get_client, try_or_default

from .types import ConnectionStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkspaceLookups:
    """연결 상태, 태그, 번들/디렉터리 표시 이름 조회"""

    def __init__(
        self,
        workspaces_client: Any,
        collector: ErrorCollector | None = None,
        strict: bool = False,
    ):
        self._client = workspaces_client
        self.collector = collector or ErrorCollector("workspaces")
        self.strict = strict
        self._directory_names: dict[str, str] = {}
        self._bundle_names: dict[str, str] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_session(
        cls, session: Any, region: str, collector: ErrorCollector | None = None, strict: bool = False
    ) -> WorkspaceLookups:
        return cls(get_client(session, "workspaces", region_name=region), collector, strict)

    # -------------------------------------------------------------------------
    # 필수 조회
    # -------------------------------------------------------------------------

    def connection_status(self, workspace_id: str) -> ConnectionStatus:
        """조회 시점의 연결 상태

        Raises:
            ConnectionStatusQueryFailed: API 오류
        """
        try:
            response = self._client.describe_workspaces_connection_status(WorkspaceIds=[workspace_id])
        except (ClientError, BotoCoreError) as e:
            raise ConnectionStatusQueryFailed.from_client_error(
                "describe_workspaces_connection_status", workspace_id, e
            ) from e

        statuses = response.get("WorkspacesConnectionStatus", [])
        if not statuses:
            return ConnectionStatus(workspace_id=workspace_id)

        status = statuses[0]
        return ConnectionStatus(
            workspace_id=workspace_id,
            state=status.get("ConnectionState"),
            state_check_time=status.get("ConnectionStateCheckTimestamp"),
            last_connection_time=status.get("LastKnownUserConnectionTimestamp"),
        )

    # -------------------------------------------------------------------------
    # 표시용 부가 조회
    # -------------------------------------------------------------------------

    def _best_effort(self, fetch: Callable[[], T], item: str, operation: str) -> T | None:
        if not self.strict:
            return try_or_default(fetch, None, self.collector, item=item, operation=operation)
        try:
            return fetch()
        except (ClientError, BotoCoreError) as e:
            raise DisplayLookupFailed.from_client_error(operation, item, e) from e

    def tags(self, workspace_id: str) -> tuple[tuple[str, str], ...] | None:
        """WorkSpace 태그 (키 기준 정렬)"""

        def fetch() -> tuple[tuple[str, str], ...]:
            response = self._client.describe_tags(ResourceId=workspace_id)
            pairs = ((t["Key"], t.get("Value", "")) for t in response.get("TagList", []))
            return tuple(sorted(pairs))

        return self._best_effort(fetch, workspace_id, "describe_tags")

    def directory_name(self, directory_id: str) -> str | None:
        """디렉터리 ID → 디렉터리 이름 (실행 단위 캐시)"""
        if not directory_id:
            return None
        with self._lock:
            if directory_id in self._directory_names:
                return self._directory_names[directory_id]

        def fetch() -> str:
            response = self._client.describe_workspace_directories(DirectoryIds=[directory_id])
            directories = response.get("Directories", [])
            return directories[0].get("DirectoryName", "") if directories else ""

        name = self._best_effort(fetch, directory_id, "describe_workspace_directories")
        if name is not None:
            with self._lock:
                self._directory_names[directory_id] = name
        return name

    def bundle_name(self, bundle_id: str) -> str | None:
        """번들 ID → 번들 이름 (실행 단위 캐시)"""
        if not bundle_id:
            return None
        with self._lock:
            if bundle_id in self._bundle_names:
                return self._bundle_names[bundle_id]

        def fetch() -> str:
            response = self._client.describe_workspace_bundles(BundleIds=[bundle_id])
            bundles = response.get("Bundles", [])
            return bundles[0].get("Name", "") if bundles else ""

        name = self._best_effort(fetch, bundle_id, "describe_workspace_bundles")
        if name is not None:
            with self._lock:
                self._bundle_names[bundle_id] = name
        return name
