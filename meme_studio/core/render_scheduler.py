"""渲染调度器.

输入变化时安排一次延迟渲染：静默期内的新变化取消尚未开始的渲染；已经
开始的渲染如果被更新的变化超越，其结果在完成时丢弃。

Features:
    - 单一待执行令牌 + 固定延迟
    - 代数计数，过期结果丢弃
    - 渲染失败记录日志与 last_error，不影响后续调度
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from meme_studio.utils.constants import DEFAULT_RENDER_DEBOUNCE_MS
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")

RenderFunc = Callable[[], Awaitable[T]]
RenderedCallback = Callable[[T], Any]


class RenderScheduler(Generic[T]):
    """防抖渲染调度器.

    Attributes:
        delay: 静默期（秒）
        generation: 最近一次调度的代数
        latest_result: 最近一次有效渲染结果
        last_error: 最近一次渲染失败的异常

    Example:
        >>> scheduler = RenderScheduler(compositor.render, delay=0.3)
        >>> scheduler.schedule()
        >>> result = await scheduler.wait_idle()
    """

    def __init__(
        self,
        render: RenderFunc,
        delay: float = DEFAULT_RENDER_DEBOUNCE_MS / 1000,
        on_rendered: Optional[RenderedCallback] = None,
    ) -> None:
        """初始化调度器.

        Args:
            render: 渲染协程工厂
            delay: 静默期（秒）
            on_rendered: 有效结果回调
        """
        self._render = render
        self.delay = delay
        self._on_rendered = on_rendered

        self._generation = 0
        self._completed_generation = 0
        self._waiting: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

        self.latest_result: Optional[T] = None
        self.last_error: Optional[BaseException] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def completed_generation(self) -> int:
        """最近一次被采纳的结果对应的代数."""
        return self._completed_generation

    @property
    def is_pending(self) -> bool:
        """是否有待执行或执行中的渲染."""
        return any(not task.done() for task in self._tasks)

    def schedule(self) -> int:
        """安排一次渲染.

        取消仍处于静默期的上一次安排。无运行中的事件循环时只推进代数。

        Returns:
            本次调度的代数
        """
        self._generation += 1
        token = self._generation

        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
        self._waiting = None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"无运行中的事件循环，跳过自动渲染 (generation={token})")
            return token

        task = loop.create_task(self._run(token))
        self._waiting = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return token

    def cancel(self) -> None:
        """作废全部已安排的渲染，并丢弃最近一次结果."""
        self._generation += 1
        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
        self._waiting = None
        self.latest_result = None

    async def wait_idle(self) -> Optional[T]:
        """等待所有已安排的渲染结束.

        Returns:
            最近一次有效结果
        """
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return self.latest_result
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self, token: int) -> None:
        await asyncio.sleep(self.delay)

        if self._waiting is asyncio.current_task():
            self._waiting = None
        if token != self._generation:
            return

        try:
            result = await self._render()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if token == self._generation:
                self.last_error = e
                logger.error(f"渲染失败 (generation={token}): {e}")
            return

        if token != self._generation:
            logger.debug(f"丢弃过期渲染结果 (generation={token}, latest={self._generation})")
            return

        self.latest_result = result
        self.last_error = None
        self._completed_generation = token
        if self._on_rendered is not None:
            self._on_rendered(result)
