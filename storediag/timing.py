"""Timing of diagnostic operations."""

import logging
import time
from typing import Optional


def format_duration(seconds: float) -> str:
    """Format as ``m:ss.mmm``."""
    minutes, remainder = divmod(seconds, 60)
    return f"{int(minutes)}:{remainder:06.3f}"


class Duration:
    """Context manager that measures and logs how long a block takes.

    Usage:
        with Duration(log, "Listing %s", path) as d:
            ...
        print(d.elapsed)

    ``finish()`` may be called early (e.g. on the first listing entry);
    later calls and the context exit then keep the first measurement.
    """

    def __init__(self, log: Optional[logging.Logger], text: str, *args):
        self.log = log
        self.text = text % args if args else text
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def start(self) -> "Duration":
        self._start = time.monotonic()
        if self.log:
            self.log.info("Starting: %s", self.text)
        return self

    def finish(self) -> float:
        if self._end is None:
            self._end = time.monotonic()
            if self.log:
                self.log.info("%s: duration %s", self.text, format_duration(self.elapsed))
        return self.elapsed

    @property
    def elapsed(self) -> float:
        """Seconds elapsed, up to ``finish()`` if it has been called."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.monotonic()
        return end - self._start

    def __enter__(self) -> "Duration":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()
