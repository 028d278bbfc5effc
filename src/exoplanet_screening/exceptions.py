"""
Custom exceptions for the application
"""
from typing import Dict, Any, List


class ExoplanetScreeningError(Exception):
    """Base exception for light curve screening errors"""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class FormatError(ExoplanetScreeningError):
    """Error when the time/flux columns of a table cannot be located"""

    def __init__(self, headers: List[str]):
        super().__init__(
            message=(
                "Invalid CSV format: missing time or flux columns. "
                f"Found headers: {', '.join(headers)}"
            ),
            error_code="INVALID_FORMAT",
            details={"headers": list(headers)}
        )


class InvalidDataError(ExoplanetScreeningError):
    """Error for input data that fails plausibility checks"""

    def __init__(self, field: str, value: Any = None, expected: str = None):
        details = {"field": field}
        if value is not None:
            details["received_value"] = str(value)
        if expected:
            details["expected"] = expected

        super().__init__(
            message=f"Invalid data in field '{field}'",
            error_code="INVALID_DATA",
            details=details
        )


class ProcessingError(ExoplanetScreeningError):
    """Error during data processing"""

    def __init__(self, operation: str, reason: str = None):
        super().__init__(
            message=f"Error during {operation}" + (f": {reason}" if reason else ""),
            error_code="PROCESSING_ERROR",
            details={"operation": operation, "reason": reason}
        )
