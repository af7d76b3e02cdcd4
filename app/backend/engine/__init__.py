from .bot_detection import classify
from .identity import ByAddress, ByHash, derive_identity, resolve_identity
from .reconciler import ReconcileResult, delete_response, submit_response, update_details
from .scanner import detect_scanner_pattern, run_scanner_detection

__all__ = [
    "classify",
    "ByAddress",
    "ByHash",
    "derive_identity",
    "resolve_identity",
    "ReconcileResult",
    "submit_response",
    "update_details",
    "delete_response",
    "detect_scanner_pattern",
    "run_scanner_detection",
]
