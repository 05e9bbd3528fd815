"""
ec2_inventory/scheduler.py - 부트스트랩 및 주기적 갱신 스케줄러

시작 시 한 번 부트스트랩(레지스트리 설정 + 인스턴스 강제 갱신)을 수행하고,
이후 벽시계 기준 고정 주기(기본: 매시 0분/30분)마다 인스턴스와 보안 그룹을 강제 갱신합니다.

정책:
- 부트스트랩 실패 → InitState.failed (프로세스는 종료되지 않음, 영구 실패 상태)
- 갱신 주기 실패 → 로깅 + 에러 리포트 후 다음 주기 계속
- 인스턴스 갱신이 실패해도 같은 주기의 보안 그룹 갱신은 수행

Example:
    scheduler = Scheduler(registry, accounts, instances, security_groups, reporter=reporter)
    scheduler.start()

    if scheduler.init_state.wait(timeout=300) and scheduler.init_state.completed:
        records = instances.get()

    scheduler.stop()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from ec2_inventory.parallel.errors import ErrorReporter, safe_report

if TYPE_CHECKING:
    from ec2_inventory.auth.types import AccountConfig
    from ec2_inventory.inventory.collector import CachedInventory
    from ec2_inventory.registry import AccountRegistry

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MINUTES = 30
DEFAULT_MIN_TICK_GAP = 1.0  # 초


def local_now() -> datetime:
    """로컬 타임존 기준 현재 시각"""
    return datetime.now().astimezone()


def seconds_until_next_tick(now: datetime, interval_minutes: int, min_gap: float = DEFAULT_MIN_TICK_GAP) -> float:
    """다음 정렬된 실행 시각까지 남은 시간 (초)

    자정부터 interval_minutes 배수 시각에 실행합니다.
    interval이 60의 약수이면 cron "*/N * * * *"과 같은 시각입니다.

    min_gap초 이내의 실행 시각은 건너뜁니다. 벽시계 조정으로 경계 직전에
    깨어나도 같은 주기를 두 번 실행하지 않습니다.
    """
    ahead = now + timedelta(seconds=min_gap)
    midnight = ahead.replace(hour=0, minute=0, second=0, microsecond=0)
    interval = timedelta(minutes=interval_minutes)

    periods = (ahead - midnight) // interval + 1
    next_tick = midnight + interval * periods

    next_midnight = midnight + timedelta(days=1)
    if next_tick > next_midnight:
        next_tick = next_midnight

    return max((next_tick - now).total_seconds(), 0.0)


class InitState:
    """프로세스 초기화 상태

    completed 또는 failed 중 하나가 정확히 한 번 설정되며 이후 바뀌지 않습니다.
    """

    def __init__(self) -> None:
        self._completed = False
        self._failed = False
        self._error: Exception | None = None
        self._event = threading.Event()
        self._lock = threading.Lock()

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def failed(self) -> bool:
        return self._failed

    @property
    def error(self) -> Exception | None:
        """부트스트랩 실패 원인"""
        return self._error

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def mark_completed(self) -> bool:
        """초기화 완료 설정 (이미 설정된 경우 False)"""
        with self._lock:
            if self._event.is_set():
                logger.warning("초기화 상태가 이미 설정됨, 완료 표시 무시")
                return False
            self._completed = True
            self._event.set()
            return True

    def mark_failed(self, error: Exception | None = None) -> bool:
        """초기화 실패 설정 (이미 설정된 경우 False)"""
        with self._lock:
            if self._event.is_set():
                logger.warning("초기화 상태가 이미 설정됨, 실패 표시 무시")
                return False
            self._failed = True
            self._error = error
            self._event.set()
            return True

    def wait(self, timeout: float | None = None) -> bool:
        """완료 또는 실패가 설정될 때까지 대기

        Returns:
            제한 시간 내에 상태가 설정되었으면 True
        """
        return self._event.wait(timeout)


class Scheduler:
    """부트스트랩 + 주기적 갱신 스케줄러"""

    def __init__(
        self,
        registry: AccountRegistry,
        accounts: Sequence[AccountConfig],
        instances: CachedInventory,
        security_groups: CachedInventory | None = None,
        reporter: ErrorReporter | None = None,
        interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        clock: Callable[[], datetime] | None = None,
        init_state: InitState | None = None,
        min_tick_gap: float = DEFAULT_MIN_TICK_GAP,
    ):
        """초기화

        Args:
            registry: 계정/리전 레지스트리
            accounts: 설정 파일에서 로드한 계정 목록
            instances: 인스턴스 인벤토리
            security_groups: 보안 그룹 인벤토리 (None이면 갱신 생략)
            reporter: 에러 리포터
            interval_minutes: 갱신 주기 (분)
            clock: 현재 시각 함수 (테스트용)
            init_state: 외부에서 주입할 초기화 상태
            min_tick_gap: 이 시간(초) 이내의 실행 시각은 건너뜀
        """
        if interval_minutes < 1:
            raise ValueError(f"interval_minutes must be >= 1, got {interval_minutes}")

        self._registry = registry
        self._accounts = tuple(accounts)
        self._instances = instances
        self._security_groups = security_groups
        self._reporter = reporter
        self.interval_minutes = interval_minutes
        self._clock = clock or local_now
        self.init_state = init_state or InitState()
        self.min_tick_gap = min_tick_gap

        # 루프마다 별도 이벤트 (이전 루프가 stop 타임아웃 후에도 살아 있을 수 있음)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._bootstrap_lock = threading.Lock()
        self._tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        """완료된 주기 수 (부트스트랩 제외)"""
        return self._tick_count

    def bootstrap(self) -> bool:
        """레지스트리 설정 후 인스턴스 목록을 한 번 강제 갱신

        예외를 던지지 않으며 결과는 init_state에 기록됩니다.

        Returns:
            초기화 성공 여부
        """
        with self._bootstrap_lock:
            if self.init_state.is_set:
                return self.init_state.completed

            try:
                self._registry.setup(self._accounts)
                logger.info("AWS 인스턴스 목록 갱신")
                self._instances.refresh()
            except Exception as e:
                logger.error("AWS 모듈 로드 실패: %s", e)
                safe_report(self._reporter, f"AWS 모듈 로드 실패: {e}")
                self.init_state.mark_failed(e)
                return False

            self.init_state.mark_completed()
            logger.info("AWS 모듈 초기화 완료: %d개 계정/리전", len(self._registry.account_regions))
            return True

    def run_tick(self) -> None:
        """한 주기 실행: 인스턴스 → 보안 그룹 강제 갱신

        각 갱신의 실패는 로깅 + 리포트 후 무시됩니다.
        """
        self._refresh_quietly(self._instances, "AWS 인스턴스 목록 갱신")
        if self._security_groups is not None:
            self._refresh_quietly(self._security_groups, "보안 그룹 목록 갱신")
        self._tick_count += 1

    def _refresh_quietly(self, inventory: CachedInventory, title: str) -> None:
        logger.info(title)
        try:
            inventory.refresh()
        except Exception as e:
            logger.error("%s 실패: %s", title, e)
            safe_report(self._reporter, f"{title} 실패: {e}")

    def start(self) -> None:
        """백그라운드 스레드에서 부트스트랩 후 주기 루프 시작"""
        if self.is_running:
            logger.debug("스케줄러가 이미 실행 중")
            return

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="inventory-scheduler", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """주기 루프 중지

        timeout 내에 진행 중인 갱신이 끝나지 않으면 기다리지 않고 반환합니다.
        그 루프는 갱신을 마친 뒤 종료되며 이후 start()와 겹쳐 실행되지 않습니다.
        """
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("스케줄러 스레드가 %s초 내에 종료되지 않음 (진행 중인 갱신 후 종료)", timeout)
            self._thread = None

    def _run(self, stop_event: threading.Event) -> None:
        self.bootstrap()
        # 부트스트랩 실패 시에도 프로세스는 유지, 갱신 주기는 실행하지 않음
        if not self.init_state.completed:
            return

        while not stop_event.is_set():
            delay = seconds_until_next_tick(self._clock(), self.interval_minutes, self.min_tick_gap)
            logger.debug("다음 갱신까지 %.0f초", delay)
            if stop_event.wait(delay):
                break
            self.run_tick()
