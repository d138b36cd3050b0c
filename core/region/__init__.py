# core/region - 리전 데이터
"""
WorkSpaces 리전 데이터 모듈

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = ["WORKSPACES_REGIONS", "REGION_NAMES", "DEFAULT_REGION", "validate_region", "format_region"]


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in __all__:
        from . import data

        return getattr(data, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
