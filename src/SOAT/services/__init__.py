from .aggregator import AssessmentAggregator
from .reports import ReportService
from .stores import Stores, SqlAssessmentStore, SqlEnrollmentLookup, SqlScheduleStore
from .submissions import AssessmentSubmissionHandler, SubmissionOutcome
from .summary_cache import AssessmentSummaryCache, CacheConfig
from .sweeper import AutoUpdateSweeper, SweepReport, sweep_concurrency_for
from .transitions import StatusChangeService

__all__ = [
    "AssessmentAggregator",
    "ReportService",
    "Stores",
    "SqlAssessmentStore",
    "SqlEnrollmentLookup",
    "SqlScheduleStore",
    "AssessmentSubmissionHandler",
    "SubmissionOutcome",
    "AssessmentSummaryCache",
    "CacheConfig",
    "AutoUpdateSweeper",
    "SweepReport",
    "sweep_concurrency_for",
    "StatusChangeService",
]
