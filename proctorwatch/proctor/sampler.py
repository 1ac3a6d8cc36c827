"""
Frame Sampler - Pulls frames from a live source at a fixed cadence

Ticks every `interval` seconds while the session is recording. Each tick
launches one capture-to-detect cycle as a task; the blocking capture runs
in a worker thread. A tick is dropped, not queued, when the previous cycle
has not finished, so at most one frame is being captured or detected at
any time.
"""

import asyncio
import logging
from typing import Optional

import numpy as np

from .session import ProctorSession
from .utils.frame_quality import is_frame_ready

logger = logging.getLogger(__name__)


class FrameSource:
    """Anything that can hand over the current frame (or None if not ready)."""

    def read(self) -> Optional[np.ndarray]:
        raise NotImplementedError

    def release(self):
        pass


class CameraFrameSource(FrameSource):
    """OpenCV capture device"""

    def __init__(self, camera_index: int = 0, width: int = 640, height: int = 480):
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.cap = None

    def open(self):
        import cv2

        self.cap = cv2.VideoCapture(self.camera_index)
        if not self.cap.isOpened():
            self.cap = None
            raise RuntimeError(f"Could not open camera {self.camera_index}")

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        logger.info(f"Camera {self.camera_index} opened")

    def read(self) -> Optional[np.ndarray]:
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        if not ok:
            return None
        return frame

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None


class PushFrameSource(FrameSource):
    """Holds the most recent frame pushed by a client; older frames are dropped."""

    def __init__(self):
        self._latest: Optional[np.ndarray] = None

    def push(self, frame: np.ndarray):
        self._latest = frame

    def read(self) -> Optional[np.ndarray]:
        frame, self._latest = self._latest, None
        return frame


class FrameSampler:
    """
    Periodically samples a FrameSource into a ProctorSession.
    """

    def __init__(self, session: ProctorSession, source: FrameSource, interval: Optional[float] = None):
        """
        Args:
            session: Session receiving frames
            source: Where frames come from
            interval: Seconds between ticks (defaults to SAMPLE_INTERVAL)
        """
        self.session = session
        self.source = source
        self.interval = interval if interval is not None else session.settings.SAMPLE_INTERVAL

        self._task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None

        self.ticks = 0
        self.skipped_ticks = 0
        self.capture_errors = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_busy(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def start(self):
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Frame sampler started for session {self.session.id} ({self.interval}s)")

    async def stop(self):
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        inflight, self._inflight = self._inflight, None
        if inflight is not None:
            # Let the last frame finish; the session ignores results once stopped
            await asyncio.gather(inflight, return_exceptions=True)

        logger.info(
            f"Frame sampler stopped for session {self.session.id}: "
            f"{self.ticks} ticks, {self.skipped_ticks} skipped"
        )

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            if self.session.is_recording:
                self.tick()

    def tick(self) -> bool:
        """
        One sampling step.

        Returns:
            True if a capture-to-detect cycle was launched
        """
        self.ticks += 1

        if self.is_busy:
            self.skipped_ticks += 1
            logger.debug("Sampling tick skipped, previous capture or detection still running")
            return False

        self._inflight = asyncio.get_running_loop().create_task(self._cycle())
        return True

    async def _cycle(self) -> bool:
        # Capture blocks on the device, so it runs in a worker thread
        try:
            frame = await asyncio.to_thread(self.source.read)
        except Exception as e:
            self.capture_errors += 1
            logger.error(f"Frame capture failed: {e}")
            return False

        if not is_frame_ready(frame):
            return False

        return await self.session.process_frame(frame)
