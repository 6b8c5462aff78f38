"""Service layer for the marketplace notifier."""

from .estimator import EstimatorConfig, ResaleEstimator
from .notifier import NotificationGate, OutgoingMessage, SmtpNotifier
from .pipeline import NotifierPipeline, RunSummary, TermResult
from .scraper import BrowserPageSource, HttpPageSource, ListingDetails, make_page_source

__all__ = [
    "BrowserPageSource",
    "EstimatorConfig",
    "HttpPageSource",
    "ListingDetails",
    "NotificationGate",
    "NotifierPipeline",
    "OutgoingMessage",
    "ResaleEstimator",
    "RunSummary",
    "SmtpNotifier",
    "TermResult",
    "make_page_source",
]
