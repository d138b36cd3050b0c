# core/__init__.py
"""
core - WorkSpaces 리포트 공용 인프라

아키텍처:
    core/
    ├── parallel/       # 병렬 처리 (parallel_map, 재시도, boto3 client, 에러 수집)
    ├── region/         # WorkSpaces 리전 데이터
    ├── cli/ui/         # Rich 콘솔, 진행 표시
    ├── shared/aws/     # CloudWatch 메트릭 유틸리티
    ├── io/             # CSV/Excel 출력
    ├── config.py       # 설정 (YAML + 환경변수)
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import load_config
    config = load_config("wsreport.yaml")

    # 예외 처리
    from core.exceptions import QueryFailed, is_access_denied
    try:
        row = enricher.enrich_one(record)
    except QueryFailed as e:
        if is_access_denied(e):
            print("권한이 없습니다")
"""

from core import config, exceptions, parallel, region

__all__: list[str] = [
    # 서브패키지
    "region",
    "parallel",
    # 모듈
    "config",
    "exceptions",
]
