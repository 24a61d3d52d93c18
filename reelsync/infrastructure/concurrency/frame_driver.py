# reelsync/infrastructure/concurrency/frame_driver.py
import asyncio
import logging
from typing import Callable, Optional


class FrameDriver:
    """
    Render loop on the asyncio event loop: calls ``on_frame(dt)`` at a
    target rate until stopped or until ``until()`` returns True.
    """
    def __init__(self, fps: float = 60.0):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.logger = logging.getLogger("infrastructure.concurrency.frame_driver")
        self.fps = fps
        self.frame_interval = 1.0 / fps
        self.frames = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self):
        self._running = False

    async def run(self, on_frame: Callable[[float], None],
                  until: Optional[Callable[[], bool]] = None,
                  max_frames: Optional[int] = None) -> int:
        """
        Args:
            on_frame: Called once per frame with the seconds since the previous frame
            until: Optional predicate checked after each frame
            max_frames: Optional frame budget for this run

        Returns:
            Number of frames rendered during this run
        """
        loop = asyncio.get_running_loop()
        self._running = True
        rendered = 0
        last = loop.time()

        try:
            while self._running:
                await asyncio.sleep(self.frame_interval)
                now = loop.time()
                on_frame(now - last)
                last = now
                rendered += 1
                self.frames += 1

                if until is not None and until():
                    break
                if max_frames is not None and rendered >= max_frames:
                    self.logger.warning(f"Frame budget of {max_frames} exhausted")
                    break
        finally:
            self._running = False

        return rendered
