"""
Predictor Exception Classes

Error taxonomy for the inference pipeline. These are returned or recorded
by the public entry points rather than raised past them.
"""

from typing import Optional, Dict, Any


class PredictorException(Exception):
    """
    Base exception class for all predictor errors.

    Carries a stable error code and structured details for logging and
    HTTP error mapping.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)


class ModelLoadError(PredictorException):
    """Raised when a model document cannot be fetched, parsed or validated."""

    def __init__(self, resource: str, source: Any, reason: str):
        message = f"Failed to load {resource} from {source!r}: {reason}"
        super().__init__(
            message=message,
            error_code="MODEL_LOAD_FAILED",
            details={"resource": resource, "source": str(source), "reason": reason}
        )


class ModelNotReadyError(PredictorException):
    """Prediction requested before both model documents were loaded."""

    def __init__(self, state: str):
        super().__init__(
            message=f"Model not initialized (state: {state}). Call initialize() first.",
            error_code="MODEL_NOT_READY",
            details={"state": state}
        )


class PredictionComputationError(PredictorException):
    """Unexpected failure inside the encode/normalize/forward pipeline."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Prediction failed: {reason}",
            error_code="PREDICTION_FAILED",
            details={"reason": reason}
        )
