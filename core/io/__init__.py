"""
core/io - 리포트 파일 출력 (CSV, Excel)
"""

from .writers import write_csv, write_excel

__all__ = ["write_csv", "write_excel"]
