import logging
import time
from collections import deque
from typing import Deque, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("dashboard_api")
logger.setLevel(logging.INFO)

formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

WINDOW_SECONDS = 3600


class RequestCounter:
    """Rolling count of requests seen during the last ``window`` seconds."""

    def __init__(self, window: float = WINDOW_SECONDS):
        self.window = window
        self._seen: Deque[float] = deque()

    def hit(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        self._seen.append(now)
        return self.count(now)

    def count(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        cutoff = now - self.window
        while self._seen and self._seen[0] < cutoff:
            self._seen.popleft()
        return len(self._seen)


request_counter = RequestCounter()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        recent = request_counter.hit()

        response = await call_next(request)

        logger.info(
            f"{request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Duration: {time.perf_counter() - started:.4f}s | "
            f"Requests last hour: {recent}"
        )

        return response
