"""
core/io/writers.py - 리포트 파일 출력

CSV는 Excel에서 한글이 깨지지 않도록 BOM 포함 UTF-8(utf-8-sig)로 작성하고,
Excel은 openpyxl로 헤더 스타일/테두리/틀 고정/자동 필터를 적용합니다.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

logger = logging.getLogger(__name__)

# =============================================================================
# 스타일 상수
# =============================================================================

COLOR_HEADER_BG = "4472C4"  # 헤더 배경 (파란색)
COLOR_HEADER_FG = "FFFFFF"  # 헤더 글자 (흰색)
COLOR_WARNING = "FFEB9C"  # 경고 (연한 노랑)
COLOR_ERROR = "FFCCCC"  # 에러 (연한 빨강)

FONT_NAME = "맑은 고딕"

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 50

ALIGN_LEFT = Alignment(horizontal="left", vertical="center", wrap_text=False)
ALIGN_CENTER = Alignment(horizontal="center", vertical="center", wrap_text=False)


def _solid_fill(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def get_thin_border() -> Border:
    """얇은 테두리 스타일 반환"""
    thin_side = Side(style="thin", color="808080")
    return Border(left=thin_side, right=thin_side, top=thin_side, bottom=thin_side)


# 행 강조 스타일 이름 → 채우기 색상
ROW_FILLS: dict[str, str] = {
    "warning": COLOR_WARNING,
    "error": COLOR_ERROR,
}


# =============================================================================
# Writers
# =============================================================================


def write_csv(path: str | Path, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> Path:
    """CSV 파일 작성

    Args:
        path: 출력 파일 경로 (상위 디렉토리는 자동 생성)
        headers: 헤더 행
        rows: 데이터 행 목록

    Returns:
        작성된 파일 경로
    """
    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with filepath.open("w", newline="", encoding="utf-8-sig") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)

    logger.debug(f"CSV 작성 완료: {filepath} ({len(rows)}행)")
    return filepath


def write_excel(
    path: str | Path,
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    sheet_title: str = "Report",
    row_styles: Sequence[str | None] | None = None,
) -> Path:
    """Excel 파일 작성

    Args:
        path: 출력 파일 경로 (상위 디렉토리는 자동 생성)
        headers: 헤더 행
        rows: 데이터 행 목록
        sheet_title: 시트 이름
        row_styles: 행별 강조 스타일 ("warning", "error", None). rows와 길이가 같아야 함

    Returns:
        작성된 파일 경로
    """
    if row_styles is not None and len(row_styles) != len(rows):
        raise ValueError(f"row_styles 길이({len(row_styles)})가 rows 길이({len(rows)})와 다릅니다")

    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title[:31]

    border = get_thin_border()
    header_font = Font(name=FONT_NAME, size=10, bold=True, color=COLOR_HEADER_FG)
    header_fill = _solid_fill(COLOR_HEADER_BG)
    data_font = Font(name=FONT_NAME, size=10)
    fills = {name: _solid_fill(color) for name, color in ROW_FILLS.items()}

    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.border = border
        cell.alignment = ALIGN_CENTER

    widths = [len(str(h)) for h in headers]

    for row_idx, row in enumerate(rows, start=2):
        style = row_styles[row_idx - 2] if row_styles is not None else None
        fill = fills.get(style) if style else None
        for col_idx, value in enumerate(row, start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.font = data_font
            cell.border = border
            cell.alignment = ALIGN_LEFT
            if fill is not None:
                cell.fill = fill
            if col_idx <= len(widths):
                widths[col_idx - 1] = max(widths[col_idx - 1], len(str(value)) if value is not None else 0)

    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max(width + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)

    if headers:
        ws.freeze_panes = "A2"
        ws.auto_filter.ref = f"A1:{get_column_letter(len(headers))}{len(rows) + 1}"

    wb.save(filepath)
    logger.debug(f"Excel 작성 완료: {filepath} ({len(rows)}행)")
    return filepath
