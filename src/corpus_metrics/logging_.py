"""Logging utilities.

Standard `logging`, one line per record:

- Logs go to: `<log_dir>/<run_id>.log`
- Also printed to the console (stderr), same format.
"""

from __future__ import annotations
import logging
import os


def setup_logging(log_dir: str, run_id: str, level: int = logging.INFO) -> str:
    """
    Setup logging configuration. Returns the log file path.

    Args:
        log_dir: Directory for log files (created if missing)
        run_id: Run identifier, used as the log file name
        level: Root log level
    """
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, f"{run_id}.log")

    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    # File
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    root.addHandler(ch)
    return log_path
