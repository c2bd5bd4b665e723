# ================================
# file: appio/__init__.py
# ================================
from appio.logger import DataLogger, log_to_file, open_run_log
from appio.scan_stream import ScanStreamPublisher

__all__ = ["DataLogger", "log_to_file", "open_run_log", "ScanStreamPublisher"]
