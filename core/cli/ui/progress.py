"""
core/cli/ui/progress.py - 보강 단계 진행 표시

WorkSpace별 보강이 여러 스레드에서 끝날 때마다 완료/실패 수와
마지막으로 처리한 WorkSpace를 한 줄 Progress bar에 갱신합니다.

    with parallel_progress("WorkSpaces 보강") as tracker:
        with quiet_mode():
            results = enricher.enrich_all(records, progress_tracker=tracker)

    ok, failed, total = tracker.stats
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

if TYPE_CHECKING:
    from rich.console import Console

from .console import console as default_console


class OutcomeColumn(ProgressColumn):
    """'12✓ 1✗' 형태의 완료/실패 수"""

    def __init__(self, tracker: ParallelTracker) -> None:
        super().__init__()
        self.tracker = tracker

    def render(self, task: Task) -> Text:
        ok, failed, _ = self.tracker.stats
        return Text.assemble((f"{ok}✓ ", "green"), (f"{failed}✗", "red"))


class ParallelTracker:
    """스레드 세이프 완료/실패 카운터

    progress가 None이면 숫자만 셉니다 (테스트, --no-progress).
    """

    def __init__(self, progress: Progress | None, task_id: TaskID | None, description: str) -> None:
        self.description = description
        self._progress = progress
        self._task_id = task_id
        self._lock = threading.Lock()
        self._ok = 0
        self._failed = 0
        self._total = 0

    def attach(self, progress: Progress, task_id: TaskID) -> None:
        """나중에 만든 Progress 작업에 연결"""
        with self._lock:
            self._progress = progress
            self._task_id = task_id

    def _update(self, **fields) -> None:
        # 호출자가 _lock을 잡고 있어야 함
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, **fields)

    def set_total(self, total: int) -> None:
        with self._lock:
            self._total = total
            self._update(total=total)

    def on_complete(self, success: bool) -> None:
        """WorkSpace 한 건 처리 완료"""
        with self._lock:
            if success:
                self._ok += 1
            else:
                self._failed += 1
            self._update(completed=self._ok + self._failed)

    def on_item(self, label: str, remaining: int) -> None:
        """마지막으로 끝난 항목과 남은 수를 설명란에 표시"""
        with self._lock:
            self._update(description=f"[cyan]{escape(label)}[/cyan] · 남은 {remaining}개")

    @property
    def stats(self) -> tuple[int, int, int]:
        """(성공, 실패, 전체)"""
        with self._lock:
            return self._ok, self._failed, self._total

    @property
    def success_count(self) -> int:
        return self.stats[0]

    @property
    def failed_count(self) -> int:
        return self.stats[1]


def _final_description(tracker: ParallelTracker) -> str | None:
    _, failed, total = tracker.stats
    if total == 0:
        return None
    if failed:
        return f"[yellow]{escape(tracker.description)} 완료 ({failed}개 실패)"
    return f"[green]{escape(tracker.description)} 완료"


@contextmanager
def parallel_progress(
    description: str,
    console: Console | None = None,
) -> Generator[ParallelTracker, None, None]:
    """ParallelTracker가 연결된 Progress bar를 띄우고 종료 시 결과 요약으로 바꿈"""
    tracker = ParallelTracker(None, None, description)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        OutcomeColumn(tracker),
        MofNCompleteColumn(),
        BarColumn(bar_width=40),
        TimeElapsedColumn(),
        console=console or default_console,
        expand=False,
    )

    with progress:
        task_id = progress.add_task(f"[cyan]{escape(description)}", total=None)
        tracker.attach(progress, task_id)
        try:
            yield tracker
        finally:
            final = _final_description(tracker)
            if final:
                progress.update(task_id, description=final)
