"""
core/parallel/quiet.py - 진행 표시 중 콘솔 로그 억제

Progress bar가 표시되는 동안 워커 스레드의 로그가 섞이면
출력이 지저분해지므로, ERROR 미만의 로그를 스레드 단위로 억제합니다.

Example:
    from core.parallel.quiet import quiet_mode

    with parallel_progress("WorkSpaces 보강") as tracker:
        with quiet_mode():
            results = enricher.enrich_all(records, progress_tracker=tracker)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager

# 스레드-로컬 저장소로 quiet 상태 관리
_quiet_state = threading.local()

# filter 참조 카운팅 (중첩 quiet_mode 안전성)
_filter_refcount = 0
_filter_lock = threading.Lock()


class _QuietFilter(logging.Filter):
    """quiet 스레드에서 발생한 ERROR 미만 로그 레코드를 차단"""

    def filter(self, record: logging.LogRecord) -> bool:
        return not (is_quiet() and record.levelno < logging.ERROR)


_quiet_filter = _QuietFilter()


def is_quiet() -> bool:
    """현재 스레드가 quiet 모드인지 확인"""
    return getattr(_quiet_state, "quiet", False)


def set_quiet(value: bool) -> None:
    """현재 스레드의 quiet 모드 설정

    parallel_map이 부모 스레드 상태를 워커 스레드로 전파할 때 사용합니다.
    """
    _quiet_state.quiet = value


@contextmanager
def quiet_mode(enabled: bool = True) -> Generator[None, None, None]:
    """ERROR 미만 로그를 억제하는 컨텍스트 매니저

    글로벌 로거 레벨을 바꾸지 않고 루트 로거 핸들러의 Filter로 동작하므로
    다른 스레드의 출력에는 영향을 주지 않습니다.

    Args:
        enabled: False이면 아무 것도 하지 않음 (--verbose 실행용)
    """
    global _filter_refcount

    if not enabled:
        yield
        return

    old_value = is_quiet()
    _quiet_state.quiet = True

    handlers = logging.getLogger().handlers
    with _filter_lock:
        _filter_refcount += 1
        if _filter_refcount == 1:
            for handler in handlers:
                handler.addFilter(_quiet_filter)

    try:
        yield
    finally:
        _quiet_state.quiet = old_value
        with _filter_lock:
            _filter_refcount -= 1
            if _filter_refcount == 0:
                for handler in logging.getLogger().handlers:
                    handler.removeFilter(_quiet_filter)
