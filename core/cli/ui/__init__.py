"""
core/cli/ui - Rich 콘솔 및 진행 표시
"""

from .console import console, print_error, print_info, print_success, print_warning, setup_logging
from .progress import ParallelTracker, parallel_progress

__all__ = [
    "console",
    "setup_logging",
    "print_success",
    "print_error",
    "print_warning",
    "print_info",
    "ParallelTracker",
    "parallel_progress",
]
