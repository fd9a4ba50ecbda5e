"""
Custom Exception Classes for the Matching Service
"""
import asyncio
import functools
import inspect
import time
from random import uniform
from typing import Dict, Any

from fastapi import HTTPException
from pymongo.errors import PyMongoError


class MatcherBaseException(Exception):
    """Base exception for the matching service"""

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
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(MatcherBaseException):
    """Raised when request data validation fails"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class NotFoundError(MatcherBaseException):
    """Raised when a resume, job or user record does not exist"""

    def __init__(self, message: str, resource: str = None, resource_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        if resource_id:
            details['resource_id'] = resource_id
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class DatabaseError(MatcherBaseException):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class ModelError(MatcherBaseException):
    """Raised when embedding model operations fail"""

    def __init__(self, message: str, model_name: str = None, model_type: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if model_name:
            details['model_name'] = model_name
        if model_type:
            details['model_type'] = model_type
        error_code = kwargs.pop('error_code', "MODEL_ERROR")
        super().__init__(message, error_code=error_code, details=details, **kwargs)


class ModelUnavailableError(ModelError):
    """Raised when the embedding model could not be loaded"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="MODEL_UNAVAILABLE", **kwargs)


class EmbeddingTimeoutError(ModelError):
    """Raised when an embedding call exceeds its time budget"""

    def __init__(self, message: str, timeout: float = None, **kwargs):
        details = kwargs.pop('details', {})
        if timeout is not None:
            details['timeout_seconds'] = timeout
        super().__init__(message, error_code="EMBEDDING_TIMEOUT", details=details, **kwargs)


class ProcessingError(MatcherBaseException):
    """Raised when resume/job processing fails"""

    def __init__(self, message: str, document_id: str = None, document_type: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if document_id:
            details['document_id'] = document_id
        if document_type:
            details['document_type'] = document_type
        error_code = kwargs.pop('error_code', "PROCESSING_ERROR")
        super().__init__(message, error_code=error_code, details=details, **kwargs)


class UnsupportedFormatError(ProcessingError):
    """Raised when an uploaded document type cannot be read"""

    def __init__(self, message: str, file_type: str = None, **kwargs):
        super().__init__(message, document_type=file_type, error_code="UNSUPPORTED_FORMAT", **kwargs)


class ExtractionError(ProcessingError):
    """Raised when text could not be extracted from a supported document"""

    def __init__(self, message: str, file_type: str = None, **kwargs):
        super().__init__(message, document_type=file_type, error_code="EXTRACTION_ERROR", **kwargs)


class ConfigurationError(MatcherBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class ExternalServiceError(MatcherBaseException):
    """Raised when external service calls fail"""

    def __init__(self, message: str, service_name: str = None, status_code: int = None, **kwargs):
        details = kwargs.pop('details', {})
        if service_name:
            details['service_name'] = service_name
        if status_code:
            details['status_code'] = status_code
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", details=details, **kwargs)


# HTTP Exception Mapping
STATUS_CODE_MAPPING = {
    ValidationError: 400,
    ConfigurationError: 400,
    NotFoundError: 404,
    UnsupportedFormatError: 415,
    ExtractionError: 422,
    DatabaseError: 500,
    ModelError: 500,
    ProcessingError: 500,
    ExternalServiceError: 502,
    ModelUnavailableError: 503,
    EmbeddingTimeoutError: 504,
}


def status_code_for(exc: MatcherBaseException) -> int:
    """Resolve the HTTP status for an exception, most specific class first"""
    for klass in type(exc).__mro__:
        if klass in STATUS_CODE_MAPPING:
            return STATUS_CODE_MAPPING[klass]
    return 500


def map_to_http_exception(exc: MatcherBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""
    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }
    return HTTPException(status_code=status_code_for(exc), detail=detail)


# Exception context manager for better error handling
class ExceptionContext:
    """Context manager for handling exceptions with additional context"""

    def __init__(self, operation: str, logger=None, **context):
        self.operation = operation
        self.logger = logger
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        # Re-raise custom exceptions as-is
        if isinstance(exc_val, MatcherBaseException):
            return False

        if isinstance(exc_val, (KeyError, ValueError, TypeError)):
            raise ValidationError(
                f"Validation error in {self.operation}: {str(exc_val)}",
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        if isinstance(exc_val, PyMongoError) or "mongo" in str(exc_val).lower():
            raise DatabaseError(
                f"Database error in {self.operation}: {str(exc_val)}",
                operation=self.operation,
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        raise ProcessingError(
            f"Processing error in {self.operation}: {str(exc_val)}",
            details=dict(self.context),
            cause=exc_val
        ) from exc_val


# Retry decorator with exponential backoff
def retry_with_logging(
    max_attempts: int = 3,
    backoff_factor: float = 1.0,
    exceptions: tuple = (Exception,),
    logger=None
):
    """Decorator to retry operations with exponential backoff and logging"""

    def decorator(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if logger:
                        logger.warning(
                            f"Attempt {attempt + 1}/{max_attempts} failed for {func.__name__}: {str(e)}"
                        )
                    if attempt == max_attempts - 1:
                        if logger:
                            logger.error(f"All {max_attempts} attempts failed for {func.__name__}")
                        raise
                    await asyncio.sleep(backoff_factor * (2 ** attempt) + uniform(0, 1))

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if logger:
                        logger.warning(
                            f"Attempt {attempt + 1}/{max_attempts} failed for {func.__name__}: {str(e)}"
                        )
                    if attempt == max_attempts - 1:
                        if logger:
                            logger.error(f"All {max_attempts} attempts failed for {func.__name__}")
                        raise
                    time.sleep(backoff_factor * (2 ** attempt) + uniform(0, 1))

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
