"""
Tender Portal Monitor - Monitoring Package

Portal catalog, new-tender detection, the scan cycle, the periodic
scheduler and the PortalMonitor control surface.
"""

from monitor.dedup import DeduplicationStore
from monitor.portals import PortalRegistry
from monitor.scan import PortalScanResult, Scanner, ScanStats, filter_by_keywords
from monitor.scheduler import Clock, ScanScheduler, ThreadingClock
from monitor.service import PortalMonitor

__all__ = [
    "DeduplicationStore",
    "PortalRegistry",
    "PortalScanResult",
    "Scanner",
    "ScanStats",
    "filter_by_keywords",
    "Clock",
    "ScanScheduler",
    "ThreadingClock",
    "PortalMonitor",
]
