"""CodePruner: endpoint usage ingestion and lifecycle classification."""

from codepruner.analysis.classifier import classify
from codepruner.ingestion.admission import limit_new_routes
from codepruner.ingestion.validator import validate_batch
from codepruner.plans.catalogue import PLANS, Plan
from codepruner.probe import TrackingEmitter, TrackingMiddleware, install_probe

__all__ = [
    "classify",
    "limit_new_routes",
    "validate_batch",
    "PLANS",
    "Plan",
    "TrackingEmitter",
    "TrackingMiddleware",
    "install_probe",
]
__version__ = "0.1.0"
