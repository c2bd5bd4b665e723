# ================================
# file: appio/scan_stream.py
# ================================
from __future__ import annotations
from typing import Optional
import json, threading
try:
    import serial  # pyserial
except Exception:
    serial = None

from core import LaserScan


class ScanStreamPublisher:
    """Writes scans as JSON lines to a text stream or a serial port.

    Frame format, one per line:
        {"type": "L", "t": stamp, "frame_id": ..., "angle_min": ..., "angle_inc": ...,
         "range_min": ..., "range_max": ..., "ranges": [...], "seq": n}
    Delivery is fire-and-forget; nothing is acknowledged back to the driver.
    """
    def __init__(self, stream=None, port: Optional[str] = None, baud: int = 115200,
                 precision: int = 4) -> None:
        self.stream = stream
        self.ser = None
        self.precision = int(precision)
        self._seq = 0
        self._lock = threading.Lock()
        if port is not None:
            self.connect(port, baud)

    def connect(self, port: str, baud: int = 115200) -> None:
        if serial is None:
            raise RuntimeError("pyserial not available")
        self.ser = serial.Serial(port, baud, timeout=1)

    def encode(self, scan: LaserScan) -> str:
        self._seq += 1
        p = self.precision
        msg = {
            "type": "L",
            "t": None if scan.stamp is None else round(scan.stamp, 6),
            "frame_id": scan.frame_id,
            "angle_min": scan.angle_min,
            "angle_inc": scan.angle_increment,
            "range_min": scan.range_min,
            "range_max": scan.range_max,
            "ranges": [round(r, p) for r in scan.ranges],
            "seq": self._seq,
        }
        return json.dumps(msg) + "\n"

    def publish(self, scan: LaserScan) -> None:
        with self._lock:
            line = self.encode(scan)
            if self.ser is not None:
                if not self.ser.is_open:
                    raise RuntimeError("serial port closed")
                self.ser.write(line.encode("utf-8"))
            elif self.stream is not None:
                self.stream.write(line)
                self.stream.flush()
            else:
                raise RuntimeError("no output stream configured")

    __call__ = publish

    @staticmethod
    def decode(line: str) -> Optional[LaserScan]:
        """Parse one frame back into a LaserScan; None for non-scan lines."""
        try:
            msg = json.loads(line)
        except ValueError:
            return None
        if not isinstance(msg, dict) or msg.get("type") != "L":
            return None
        return LaserScan(float(msg["angle_min"]), float(msg["angle_inc"]), msg["ranges"],
                         range_min=float(msg["range_min"]), range_max=float(msg["range_max"]),
                         stamp=msg.get("t"), frame_id=msg.get("frame_id", ""))

    def close(self) -> None:
        if self.ser:
            try:
                self.ser.close()
            except Exception:
                pass
