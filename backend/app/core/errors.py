"""
Error codes and user-facing error bodies for the visualization API.
"""
from typing import Dict, Optional


class ErrorCodes:
    NO_DATA = "NO_DATA"
    DATASET_TOO_LARGE = "DATASET_TOO_LARGE"
    INVALID_REQUEST = "INVALID_REQUEST"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Message returned in ValidationResult.errors for an empty dataset
NO_DATA_MESSAGE = "No data available for visualization"

ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    ErrorCodes.NO_DATA: {
        "message": NO_DATA_MESSAGE,
        "detail": "The dataset sent with the question has no rows, so there is nothing to chart.",
        "suggestion": "Load a dataset with at least one row and ask again."
    },
    ErrorCodes.DATASET_TOO_LARGE: {
        "message": "The dataset is too large",
        "detail": "The number of rows exceeds what a single request may carry.",
        "suggestion": "Filter or sample the rows you need before asking for a chart."
    },
    ErrorCodes.INVALID_REQUEST: {
        "message": "The request could not be understood",
        "detail": "Some part of the request body is malformed.",
        "suggestion": "Send the dataset as a list of flat records and the question as plain text."
    },
    ErrorCodes.RATE_LIMIT_EXCEEDED: {
        "message": "Too many requests",
        "detail": "Requests are limited per minute to keep the service responsive.",
        "suggestion": "Wait a minute and try again."
    },
    ErrorCodes.TIMEOUT: {
        "message": "This is taking longer than expected",
        "detail": "Preparing the chart took longer than the configured timeout.",
        "suggestion": "Try again with fewer rows."
    },
    ErrorCodes.UNKNOWN_ERROR: {
        "message": "Something unexpected happened",
        "detail": "We encountered an issue we weren't expecting.",
        "suggestion": "Give it another try in a moment."
    }
}


def get_error_response(error_code: str, additional_detail: Optional[str] = None) -> Dict[str, str]:
    """
    Get user-friendly error response for an error code.

    Args:
        error_code: One of the ErrorCodes constants
        additional_detail: Optional additional detail to append

    Returns:
        Dictionary with code, message, detail, and suggestion
    """
    error_info = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCodes.UNKNOWN_ERROR])

    response = {
        "code": error_code,
        "message": error_info["message"],
        "detail": error_info["detail"],
        "suggestion": error_info["suggestion"]
    }

    if additional_detail:
        response["detail"] = f"{response['detail']} {additional_detail}"

    return response
