"""
analyzers/workspaces/activity.py - 접속 기록 기반 미사용 판정

CloudWatch AWS/WorkSpaces ConnectionSuccess 메트릭의 일별 Maximum을 조회합니다.

판정 규칙:
    - 일별 최대값 중 가장 큰 값이 1 이상 → 기간 내 사용됨
    - 샘플이 없거나 모두 0 → 미사용 (메트릭 이력이 없는 신규 WorkSpace 포함)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import MetricsQueryFailed
from core.parallel import get_client
from core.shared.aws.metrics import MetricDataError, build_workspaces_connection_query, get_metric_series

from .types import ActivityVerdict, ActivityWindow

logger = logging.getLogger(__name__)

# 하루 한 번이라도 접속에 성공하면 일별 Maximum >= 1
USED_THRESHOLD = 1.0


def peak_of(samples: Sequence[float]) -> float | None:
    """일별 최대값 목록에서 가장 큰 값 (샘플이 없으면 None)"""
    return max(samples) if samples else None


def is_unused(samples: Sequence[float]) -> bool:
    peak = peak_of(samples)
    return peak is None or peak < USED_THRESHOLD


class MetricActivityClassifier:
    """WorkSpace 기간 내 사용 여부 판정기"""

    def __init__(self, cloudwatch_client: Any):
        self._client = cloudwatch_client

    @classmethod
    def from_session(cls, session: Any, region: str) -> MetricActivityClassifier:
        return cls(get_client(session, "cloudwatch", region_name=region))

    def fetch_samples(self, workspace_id: str, window: ActivityWindow) -> list[float]:
        """기간 내 일별 ConnectionSuccess Maximum 값 조회

        Raises:
            MetricsQueryFailed: CloudWatch 오류 또는 결과 StatusCode 실패 (InternalError, Forbidden)
        """
        query = build_workspaces_connection_query(workspace_id)
        try:
            series = get_metric_series(
                self._client,
                [query],
                window.start,
                window.end,
                period=window.period,
            )
        except (ClientError, BotoCoreError) as e:
            raise MetricsQueryFailed.from_client_error("get_metric_data", workspace_id, e) from e
        except MetricDataError as e:
            raise MetricsQueryFailed(
                "get_metric_data",
                workspace_id,
                error_code=e.status_code,
                error_message="; ".join(e.messages) or None,
                cause=e,
            ) from e
        return series.get(query.id, [])

    def classify(self, workspace_id: str, window: ActivityWindow) -> ActivityVerdict:
        """기간 내 사용 여부 판정

        Args:
            workspace_id: WorkSpace ID
            window: 판정 기간

        Returns:
            ActivityVerdict (unused=True이면 기간 내 접속 성공 기록 없음)

        Raises:
            MetricsQueryFailed: CloudWatch 오류
        """
        samples = self.fetch_samples(workspace_id, window)
        verdict = ActivityVerdict(unused=is_unused(samples), window=window, peak=peak_of(samples))
        logger.debug(f"[{workspace_id}] 샘플 {len(samples)}개, peak={verdict.peak}, unused={verdict.unused}")
        return verdict
