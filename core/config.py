# ================================
# file: core/config.py
# ================================
"""
Global configuration for the simulated laser scanner.
All units are SI (meters, radians, seconds).

Organization:
1. Scan Geometry
2. Map Ingestion
3. Frames
4. Driver & Scheduling
5. Sensor Carrier (kinematic sim)
6. Logging
"""
from __future__ import annotations
import math

# ================================
# 1. SCAN GEOMETRY
# ================================
SCAN_ANGLE_MIN: float = -math.pi / 2.0   # First beam, relative to sensor heading (rad)
SCAN_ANGLE_MAX: float = math.pi / 2.0    # Last beam (rad)
SCAN_ANGLE_INCREMENT: float = 0.01       # Angular step between beams (rad)
SCAN_RANGE_MIN: float = 0.05             # Blind distance (m)
SCAN_RANGE_MAX: float = 20.0             # Maximum range, also the "no return" value (m)
SCAN_TIME: float = 0.0                   # Reported scan duration (s); 0 = instantaneous

# Sub-minimum hit policy
BELOW_MIN_NO_RETURN: str = "no_return"   # report range_max
BELOW_MIN_CLAMP: str = "clamp"           # report range_min
SCAN_BELOW_MIN_POLICY: str = BELOW_MIN_NO_RETURN
BELOW_MIN_POLICIES: tuple = (BELOW_MIN_NO_RETURN, BELOW_MIN_CLAMP)

# Floating guard for sample count (span / increment landing on an integer)
SAMPLE_COUNT_EPS: float = 1e-9

# ================================
# 2. MAP INGESTION
# ================================
CELL_FREE: int = 0
CELL_OCCUPIED: int = 100
CELL_UNKNOWN: int = -1
MAP_OCCUPIED_THRESHOLD: int = 1          # any known nonzero value -> occupied
MAP_UNKNOWN_UNSIGNED: int = 255          # -1 as seen through an unsigned byte
DEFAULT_MAP_RESOLUTION: float = 0.05     # m/pixel when a map file omits it
SEGMENT_WALL_WIDTH_CELLS: int = 1        # rasterized wall thickness for segment mazes

# ================================
# 3. FRAMES
# ================================
MAP_FRAME: str = "map"
IMAGE_FRAME: str = "map_image"
LASER_FRAME: str = "laser"

# ================================
# 4. DRIVER & SCHEDULING
# ================================
SCAN_RATE_HZ: float = 10.0               # Driver tick rate
WARN_THROTTLE_S: float = 5.0             # Min seconds between repeated identical warnings
TIMER_JOIN_TIMEOUT_S: float = 1.0

# ================================
# 5. SENSOR CARRIER
# ================================
V_MAX: float = 1.0                       # m/s
W_MAX: float = 2.0                       # rad/s
SIM_DT: float = 0.1                      # default integration step (s)

# ================================
# 6. LOGGING
# ================================
LOG_DIR: str = "logs"
LOG_TIMESTAMP_FMT: str = "%H:%M:%S.%f"
