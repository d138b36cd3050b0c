"""
core/shared/aws/metrics/batch_metrics.py - CloudWatch GetMetricData 유틸리티

GetMetricData API로 메트릭 시계열을 조회합니다.
분석 단위(예: 일별 최대값)의 데이터 포인트를 합산하지 않고 그대로 반환하므로
호출 측에서 최대값/존재 여부 등 원하는 방식으로 집계할 수 있습니다.

Period 선택:
    CloudWatch는 오래된 데이터의 해상도를 점진적으로 낮춥니다
    (60초 → 15일, 300초 → 63일, 3600초 → 455일).
    긴 기간을 작은 Period로 조회하면 에러 없이 데이터가 누락되므로
    최대 조회 기간 전체에서 유효한 86400초(1일)를 기본으로 사용합니다.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# 1일 (초)
DAILY_PERIOD = 86400


@dataclass(frozen=True)
class MetricQuery:
    """CloudWatch 메트릭 쿼리 정의

    Attributes:
        id: 쿼리 식별자 (결과 매핑용, 영문/숫자/_ 만 허용)
        namespace: AWS 네임스페이스 (예: "AWS/WorkSpaces")
        metric_name: 메트릭 이름 (예: "ConnectionSuccess")
        dimensions: 차원 튜플 (예: (("WorkspaceId", "ws-abc"),))
        stat: 통계 타입 (Sum, Average, Maximum, Minimum)
    """

    id: str
    namespace: str
    metric_name: str
    dimensions: tuple[tuple[str, str], ...]
    stat: str = "Maximum"

    def to_api(self, period: int) -> dict[str, Any]:
        """MetricDataQueries 항목으로 변환"""
        return {
            "Id": self.id,
            "MetricStat": {
                "Metric": {
                    "Namespace": self.namespace,
                    "MetricName": self.metric_name,
                    "Dimensions": [{"Name": k, "Value": v} for k, v in self.dimensions],
                },
                "Period": period,
                "Stat": self.stat,
            },
            "ReturnData": True,
        }


class MetricDataError(Exception):
    """GetMetricData 응답은 성공했지만 쿼리 결과 StatusCode가 실패인 경우

    InternalError/Forbidden 결과는 Values가 비어 있으므로 "데이터 없음"과 구분해야 합니다.
    """

    def __init__(self, query_id: str, status_code: str, messages: list[str]):
        detail = "; ".join(messages) if messages else status_code
        super().__init__(f"{query_id}: {detail}")
        self.query_id = query_id
        self.status_code = status_code
        self.messages = messages


# 결과 StatusCode 중 값이 신뢰할 수 없는 것 (Complete, PartialData는 정상)
FAILED_STATUS_CODES = {"InternalError", "Forbidden"}


def get_metric_series(
    cloudwatch_client: Any,
    queries: list[MetricQuery],
    start_time: datetime,
    end_time: datetime,
    period: int = DAILY_PERIOD,
) -> dict[str, list[float]]:
    """CloudWatch 메트릭 시계열 조회 (NextToken 페이지네이션)

    Throttling 재시도는 client의 botocore adaptive 설정에 맡깁니다.

    Args:
        cloudwatch_client: boto3 CloudWatch client
        queries: 메트릭 쿼리 목록 (요청 하나에 모두 담음, 최대 500개)
        start_time: 조회 시작 시간
        end_time: 조회 종료 시간
        period: 집계 주기 (초, 기본 86400=1일)

    Returns:
        {query_id: [값, ...]} 딕셔너리. 데이터 포인트가 없으면 빈 리스트.

    Raises:
        ClientError: API 오류
        MetricDataError: 쿼리 결과 StatusCode가 InternalError/Forbidden
    """
    results: dict[str, list[float]] = {q.id: [] for q in queries}
    params: dict[str, Any] = {
        "MetricDataQueries": [q.to_api(period) for q in queries],
        "StartTime": start_time,
        "EndTime": end_time,
    }

    while True:
        try:
            response = cloudwatch_client.get_metric_data(**params)
        except ClientError as e:
            logger.warning(f"CloudWatch get_metric_data 오류: {e.response.get('Error', {}).get('Code', '')}")
            raise

        for result in response.get("MetricDataResults", []):
            status = result.get("StatusCode", "Complete")
            if status in FAILED_STATUS_CODES:
                messages = [m.get("Value", "") for m in result.get("Messages", [])]
                raise MetricDataError(result["Id"], status, messages)
            # pagination 시 같은 Id의 값이 여러 페이지에 나뉘어 옴
            results.setdefault(result["Id"], []).extend(float(v) for v in result.get("Values", []))

        next_token = response.get("NextToken")
        if not next_token:
            return results
        params["NextToken"] = next_token


def sanitize_metric_id(name: str) -> str:
    """AWS MetricDataQuery ID 규칙에 맞게 변환

    AWS 제약:
    - 소문자로 시작
    - 영숫자, `_`만 허용
    - 최대 255자

    Example:
        sanitize_metric_id("ws-0a1b2c3d4")  # "ws_0a1b2c3d4"
        sanitize_metric_id("123-func")      # "m_123_func"
    """
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "_", name)
    sanitized = re.sub(r"_+", "_", sanitized)

    if sanitized and not sanitized[0].islower():
        sanitized = f"m_{sanitized}"

    if not sanitized:
        sanitized = "metric"

    return sanitized[:200]


def build_workspaces_connection_query(workspace_id: str) -> MetricQuery:
    """WorkSpace 접속 성공 메트릭 쿼리 생성

    ConnectionSuccess의 일별 Maximum을 조회합니다.
    하루에 한 번이라도 접속에 성공하면 해당 일의 값은 1 이상입니다.
    """
    return MetricQuery(
        id=sanitize_metric_id(f"{workspace_id}_connection_success"),
        namespace="AWS/WorkSpaces",
        metric_name="ConnectionSuccess",
        dimensions=(("WorkspaceId", workspace_id),),
        stat="Maximum",
    )
