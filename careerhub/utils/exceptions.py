"""
Custom Exception Classes for the CareerHub API
"""
from typing import Dict, Any
from fastapi import HTTPException


class CareerHubError(Exception):
    """Base exception for the CareerHub API"""

    # Message returned to clients instead of ``message`` when set
    public_message: str = None

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(CareerHubError):
    """Raised when request input is rejected"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class AuthenticationError(CareerHubError):
    """Raised when no usable credentials were presented"""

    def __init__(self, message: str = "No token provided", **kwargs):
        super().__init__(message, error_code="AUTHENTICATION_ERROR", **kwargs)


class AuthorizationError(CareerHubError):
    """Raised when a token is present but cannot be trusted"""

    def __init__(self, message: str = "Invalid or expired token", **kwargs):
        super().__init__(message, error_code="AUTHORIZATION_ERROR", **kwargs)


class NotFoundError(CareerHubError):
    """Raised when a resource does not exist for the caller"""

    def __init__(self, message: str, resource: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class ConflictError(CareerHubError):
    """Raised when a unique value is already taken"""

    def __init__(self, message: str, field: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        super().__init__(message, error_code="CONFLICT", details=details, **kwargs)


class ExtractionError(CareerHubError):
    """Raised when structured text extraction fails; recovered by OCR"""

    def __init__(self, message: str, strategy: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if strategy:
            details['strategy'] = strategy
        super().__init__(message, error_code="EXTRACTION_ERROR", details=details, **kwargs)


class UpstreamAnalysisError(CareerHubError):
    """Raised when every configured AI model failed"""

    public_message = "Failed to analyze resume"

    def __init__(self, message: str, models: list = None, **kwargs):
        details = kwargs.pop('details', {})
        if models:
            details['models'] = list(models)
        super().__init__(message, error_code="UPSTREAM_ANALYSIS_ERROR", details=details, **kwargs)


class ChatReplyError(UpstreamAnalysisError):
    """Raised when every configured AI model failed to answer a mentor chat"""

    public_message = "Failed to process chat request"


class PersistenceError(CareerHubError):
    """Raised when a database write or read fails"""

    public_message = "Failed to save data. Please try again later."

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="PERSISTENCE_ERROR", details=details, **kwargs)


class ConfigurationError(CareerHubError):
    """Raised when configuration is invalid or missing"""

    public_message = "Server is not configured correctly"

    def __init__(self, message: str, config_key: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


# HTTP Exception Mapping
def map_to_http_exception(exc: CareerHubError) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ValidationError: 400,
        ConflictError: 400,
        AuthenticationError: 401,
        AuthorizationError: 403,
        NotFoundError: 404,
        ConfigurationError: 500,
        PersistenceError: 500,
        ExtractionError: 500,
        UpstreamAnalysisError: 502,
        ChatReplyError: 500,
    }

    status_code = status_code_mapping.get(type(exc), 500)

    if exc.public_message:
        detail = {"error": exc.public_message, "message": exc.public_message}
    else:
        detail = {"error": exc.message, "message": exc.message, "error_code": exc.error_code}

    return HTTPException(status_code=status_code, detail=detail)
