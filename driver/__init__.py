from .scan_driver import ScanDriver, DriverState
from .timer import PeriodicTimer

__all__ = ["ScanDriver", "DriverState", "PeriodicTimer"]
