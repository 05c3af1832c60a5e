"""
재시도 정책 (Backoff Policy)

[목적]
- 블롭 저장소 쓰기 실패 시 재시도 규칙을 한 곳에서 관리
- 선형 / 지수 / 고정 백오프 + 지터

[사용처]
- RegistrationCoordinator: 참가자 등록 (기본: 선형, 3회)
- /api/ipfs/update-file: 태그 직접 수정 (기본: 지수 + 30% 지터, 5회)
"""
import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from app.core.config import Settings
from app.core.exceptions import RetryExhaustedError


logger = logging.getLogger(__name__)

T = TypeVar("T")

STRATEGIES = ("linear", "exponential", "fixed")


@dataclass(frozen=True)
class BackoffPolicy:
    """
    재시도 정책

    attempt는 1부터 시작하며, delay_for(n)은 n번째 시도가 실패한 뒤의 대기 시간입니다.
    - linear:      base * n
    - exponential: base * 2^(n-1)
    - fixed:       base
    지터는 [0, jitter * delay] 범위의 값을 더하고, 결과는 max_delay로 제한합니다.
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    strategy: str = "linear"
    jitter: float = 0.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown backoff strategy: {self.strategy}")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError("jitter must be between 0.0 and 1.0")

    @classmethod
    def linear(cls, max_attempts: int = 3, base_delay: float = 1.0, **kwargs) -> "BackoffPolicy":
        return cls(max_attempts=max_attempts, base_delay=base_delay, strategy="linear", **kwargs)

    @classmethod
    def exponential(
        cls,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        jitter: float = 0.3,
        **kwargs,
    ) -> "BackoffPolicy":
        return cls(
            max_attempts=max_attempts,
            base_delay=base_delay,
            strategy="exponential",
            jitter=jitter,
            **kwargs,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackoffPolicy":
        return cls(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            base_delay=settings.RETRY_BASE_DELAY,
            max_delay=settings.RETRY_MAX_DELAY,
            strategy=settings.RETRY_BACKOFF_STRATEGY,
            jitter=settings.RETRY_JITTER,
        )

    def delay_for(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        if self.strategy == "linear":
            delay = self.base_delay * attempt
        elif self.strategy == "exponential":
            delay = self.base_delay * (2 ** (attempt - 1))
        else:
            delay = self.base_delay
        if self.jitter:
            delay += rng() * self.jitter * delay
        return min(delay, self.max_delay)


async def retry_async(
    operation: Callable[[int], Awaitable[T]],
    policy: BackoffPolicy,
    is_retryable: Callable[[BaseException], bool] = lambda e: True,
    deadline: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
    description: str = "operation",
) -> T:
    """
    operation(attempt)을 policy에 따라 최대 max_attempts회 실행

    Args:
        operation: 시도 번호(1부터)를 받는 코루틴 함수
        policy: 재시도 정책
        is_retryable: False를 반환하는 예외는 즉시 전파
        deadline: time.monotonic() 기준 절대 마감 시각 (넘으면 더 기다리지 않고 포기)
        sleep: 대기 함수 (테스트에서 대체)
        on_retry: (attempt, error, delay) 콜백

    Raises:
        RetryExhaustedError: 모든 시도가 실패하거나 마감 시각을 넘은 경우
    """
    last_error: Optional[BaseException] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation(attempt)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error = e

        if attempt >= policy.max_attempts:
            break

        delay = policy.delay_for(attempt)
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= delay:
                logger.warning(
                    f"[Retry] {description} 마감 시간 초과로 중단 - "
                    f"attempt {attempt}/{policy.max_attempts}, remaining={max(remaining, 0):.2f}s"
                )
                raise RetryExhaustedError(
                    f"{description} did not complete before its deadline",
                    attempts=attempt,
                    last_error=last_error,
                ) from last_error

        logger.info(
            f"[Retry] {description} 실패 - attempt {attempt}/{policy.max_attempts}, "
            f"{delay:.2f}s 후 재시도: {last_error}"
        )
        if on_retry:
            on_retry(attempt, last_error, delay)
        await sleep(delay)

    logger.error(f"[Retry] {description} 재시도 한도 초과 ({policy.max_attempts}회): {last_error}")
    raise RetryExhaustedError(
        f"{description} failed after {policy.max_attempts} attempts",
        attempts=policy.max_attempts,
        last_error=last_error,
    ) from last_error
