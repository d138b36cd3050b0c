"""
analyzers/workspaces - WorkSpaces 사용 현황 리포트

WorkSpaces 인벤토리에 디렉터리(AD), CloudWatch 접속 메트릭, 서브넷 정보를 조인하여
WorkSpace당 한 행의 리포트를 만듭니다.
"""

from .activity import MetricActivityClassifier
from .directory import DirectoryLookup
from .enricher import Enricher, FailurePolicy
from .inventory import ResourceInventory
from .lookups import WorkspaceLookups
from .report import COLUMNS, ReportAssembler, format_tags, write_report
from .topology import NetworkTopologyLookup
from .usage_report import ReportSummary, run_report

__all__ = [
    "ResourceInventory",
    "MetricActivityClassifier",
    "DirectoryLookup",
    "NetworkTopologyLookup",
    "WorkspaceLookups",
    "Enricher",
    "FailurePolicy",
    "ReportAssembler",
    "COLUMNS",
    "format_tags",
    "write_report",
    "ReportSummary",
    "run_report",
]
