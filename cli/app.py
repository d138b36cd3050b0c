"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 WorkSpaces 사용 현황 리포트 명령입니다.

명령어 구조:
    wsreport                                 # 누락된 값은 대화형으로 입력
    wsreport -r ap-northeast-2 -d 30 -o ./out
    wsreport --format excel --policy abort
    wsreport --version

우선순위:
    명령줄 옵션 > 설정 파일 (--config 또는 WSREPORT_CONFIG) > 기본값

Usage:
    $ wsreport
    $ python -m cli.app
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import click

from core.cli.ui.console import console, print_error, print_info, print_success, print_warning, setup_logging
from core.config import (
    FAILURE_POLICIES,
    MAX_INACTIVITY_DAYS,
    OUTPUT_FORMATS,
    RETENTION_ADVISORY_DAYS,
    get_version,
    load_config,
)
from core.exceptions import EnrichmentAborted, ReportError, format_error_for_user
from core.region.data import DEFAULT_REGION, REGION_NAMES, WORKSPACES_REGIONS, format_region, validate_region

logger = logging.getLogger(__name__)

VERSION = get_version()

FILE_EXTENSIONS = {"csv": "csv", "excel": "xlsx"}


def default_filename(region: str, output_format: str, today: datetime | None = None) -> str:
    """WorkSpaces_Usage_<region>_<YYYYMMDD>.<ext>"""
    stamp = (today or datetime.now()).strftime("%Y%m%d")
    return f"WorkSpaces_Usage_{region}_{stamp}.{FILE_EXTENSIONS[output_format]}"


def resolve_output_path(output: str, region: str, output_format: str) -> Path:
    """출력 경로 결정 및 디렉토리 생성

    디렉토리(또는 확장자 없는 경로)가 주어지면 기본 파일 이름을 붙입니다.
    """
    path = Path(output).expanduser()
    if path.is_dir() or not path.suffix:
        path = path / default_filename(region, output_format)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _prompt_region() -> str:
    console.print("[bold]WorkSpaces 리전[/bold]")
    for code in WORKSPACES_REGIONS:
        console.print(f"  {code:<16} {REGION_NAMES.get(code, '')}")
    return click.prompt("리전", default=DEFAULT_REGION, show_default=True)


@click.command(name="wsreport", context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=VERSION, prog_name="wsreport")
@click.option("-r", "--region", help="WorkSpaces 리전 (예: ap-northeast-2)")
@click.option(
    "-d",
    "--days",
    type=click.IntRange(1, MAX_INACTIVITY_DAYS),
    help="미사용 판단 기간 (일)",
)
@click.option("-o", "--output", help="출력 파일 또는 디렉토리")
@click.option("-f", "--format", "output_format", type=click.Choice(OUTPUT_FORMATS), help="출력 형식")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="설정 파일 (YAML)")
@click.option("--profile", help="AWS 프로파일")
@click.option("--policy", type=click.Choice(FAILURE_POLICIES), help="보강 실패 처리 정책")
@click.option("--no-progress", is_flag=True, help="진행 표시 끄기")
@click.option("-v", "--verbose", is_flag=True, help="상세 로그 출력")
def cli(
    region: str | None,
    days: int | None,
    output: str | None,
    output_format: str | None,
    config_path: str | None,
    profile: str | None,
    policy: str | None,
    no_progress: bool,
    verbose: bool,
) -> None:
    """WorkSpaces 사용 현황 리포트 생성"""
    setup_logging(verbose)

    # 무거운 모듈은 실제 실행 시점에 로드
    from analyzers.workspaces.usage_report import run_report

    try:
        region = validate_region(region or _prompt_region())
        config = load_config(
            config_path,
            inactivity_days=days,
            output_format=output_format,
            failure_policy=policy,
        )
        if days is None:
            days = click.prompt(
                "미사용 판단 기간 (일)",
                type=click.IntRange(1, MAX_INACTIVITY_DAYS),
                default=config.inactivity_days,
                show_default=True,
            )
            config = replace(config, inactivity_days=days)
        if output is None:
            output = click.prompt("출력 경로", default=".", show_default=True)
        output_path = resolve_output_path(output, region, config.output_format)
    except ReportError as e:
        print_error(str(e))
        sys.exit(1)

    if config.needs_retention_advisory:
        print_warning(
            f"{config.inactivity_days}일은 CloudWatch 메트릭 보존 기간({RETENTION_ADVISORY_DAYS}일) 이상입니다. "
            "판정 방식은 같지만 오래된 구간은 샘플이 적거나 없을 수 있습니다."
        )

    print_info(f"리전 {format_region(region)} / 기간 {config.inactivity_days}일 / 정책 {config.failure_policy}")

    try:
        summary = run_report(config, region, output_path, profile=profile, show_progress=not no_progress)
    except EnrichmentAborted as e:
        logger.debug(f"에러 상세: {e.details}")
        print_error(format_error_for_user(e))
        print_error(f"완료된 {len(e.completed)}개 행을 포함해 리포트를 저장하지 않았습니다.")
        sys.exit(1)
    except ReportError as e:
        logger.debug(f"에러 상세: {e.details}")
        print_error(format_error_for_user(e))
        sys.exit(1)

    if summary.display_errors:
        print_warning(f"표시용 조회 {summary.display_error_summary}, 태그/번들/디렉터리 이름 비어 있음")
        for message in summary.display_errors:
            logger.debug(message)

    print_success(f"리포트 저장: {summary.output_path}")
    console.print(f"  전체 {summary.total}개 / 미사용 {summary.unused}개 / 보강 실패 {summary.failed}개")


if __name__ == "__main__":
    cli()
