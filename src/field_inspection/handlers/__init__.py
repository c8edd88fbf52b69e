from field_inspection.handlers.analysis_handler import AnalysisHandler
from field_inspection.handlers.capture_handler import CaptureHandler
from field_inspection.handlers.sync_handler import SyncHandler

__all__ = ["AnalysisHandler", "CaptureHandler", "SyncHandler"]
