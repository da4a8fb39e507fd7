"""Analytics aggregation service for VisionDesk."""

from visiondesk.c2_analytics_service.analytics_service import AnalyticsService
from visiondesk.c2_analytics_service.time_windows import parse_time_frame, window_start

__all__ = ["AnalyticsService", "parse_time_frame", "window_start"]
