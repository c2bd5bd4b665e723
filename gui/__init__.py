from .scan_view import ScanViewer, grid_image, scan_endpoints, select_backend

__all__ = ["ScanViewer", "grid_image", "scan_endpoints", "select_backend"]
