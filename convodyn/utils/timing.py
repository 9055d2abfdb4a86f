"""
Timing helpers for convodyn
"""

import time


class Timer:
    """Context manager for timing operations."""

    def __init__(self):
        self.start = None
        self.elapsed_ms = 0.0

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = (time.perf_counter() - self.start) * 1000
