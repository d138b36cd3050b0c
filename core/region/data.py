# core/region/data.py - WorkSpaces 리전 데이터
"""
Amazon WorkSpaces (Personal)를 제공하는 리전 목록과 표시 이름.

리전이 추가되면 WORKSPACES_REGIONS와 REGION_NAMES를 함께 갱신합니다.
"""

from __future__ import annotations

from core.exceptions import ValidationError

WORKSPACES_REGIONS: list[str] = [
    "us-east-1",
    "us-west-2",
    "ca-central-1",
    "sa-east-1",
    "eu-central-1",
    "eu-west-1",
    "eu-west-2",
    "af-south-1",
    "il-central-1",
    "ap-south-1",
    "ap-northeast-1",
    "ap-northeast-2",
    "ap-southeast-1",
    "ap-southeast-2",
    "us-gov-west-1",
    "us-gov-east-1",
]

REGION_NAMES: dict[str, str] = {
    "us-east-1": "버지니아 북부",
    "us-west-2": "오레곤",
    "ca-central-1": "캐나다 중부",
    "sa-east-1": "상파울루",
    "eu-central-1": "프랑크푸르트",
    "eu-west-1": "아일랜드",
    "eu-west-2": "런던",
    "af-south-1": "케이프타운",
    "il-central-1": "텔아비브",
    "ap-south-1": "뭄바이",
    "ap-northeast-1": "도쿄",
    "ap-northeast-2": "서울",
    "ap-southeast-1": "싱가포르",
    "ap-southeast-2": "시드니",
    "us-gov-west-1": "GovCloud (미국 서부)",
    "us-gov-east-1": "GovCloud (미국 동부)",
}

DEFAULT_REGION = "ap-northeast-2"


def validate_region(region: str) -> str:
    """WorkSpaces 리전 코드 검증

    Args:
        region: 리전 코드 (앞뒤 공백, 대문자 허용)

    Returns:
        정규화된 리전 코드

    Raises:
        ValidationError: WorkSpaces를 제공하지 않는 리전
    """
    normalized = (region or "").strip().lower()
    if normalized not in WORKSPACES_REGIONS:
        raise ValidationError(
            "region",
            region,
            expected=", ".join(WORKSPACES_REGIONS),
        )
    return normalized


def format_region(region: str) -> str:
    """'ap-northeast-2 (서울)' 형태의 표시 문자열"""
    name = REGION_NAMES.get(region)
    return f"{region} ({name})" if name else region
