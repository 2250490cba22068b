"""
Custom Exceptions for the Student Onboarding Service

This module defines custom exception classes used throughout the application
for consistent error handling. Every exception carries the HTTP status code
it maps to so the API layer can render it without extra branching.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"

    # Authentication & Authorization
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Business logic errors
    STUDENT_NOT_FOUND = "STUDENT_NOT_FOUND"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"

    # External service errors
    PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"
    CLASSIFIER_FAILURE = "CLASSIFIER_FAILURE"
    STORAGE_ERROR = "STORAGE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when required input is missing or malformed"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 400
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class StudentNotFoundError(ResourceNotFoundError):
    """Exception raised when a student profile is not found"""

    def __init__(
        self,
        student_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = "Student profile not found"
            if student_id:
                message += f" (ID: {student_id})"
        super().__init__("StudentProfile", student_id, message)
        self.error_code = ErrorCode.STUDENT_NOT_FOUND


class InvalidStateTransitionError(BaseAppException):
    """Exception raised when a workflow transition is not allowed"""

    def __init__(
        self,
        module: str,
        current_status: str,
        target_status: str,
        message: Optional[str] = None
    ):
        if not message:
            message = f"Cannot move {module} from '{current_status}' to '{target_status}'"
        details = {
            "module": module,
            "current_status": current_status,
            "target_status": target_status
        }
        super().__init__(message, ErrorCode.INVALID_STATE_TRANSITION, details, 409)


# ========================================
# Authentication & Authorization Exceptions
# ========================================

class AuthenticationError(BaseAppException):
    """Exception raised when the caller cannot be identified"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED, None, 401)


class AuthorizationError(BaseAppException):
    """Exception raised when the caller's role does not allow an action"""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        required_roles: Optional[List[str]] = None
    ):
        details = {"required_roles": required_roles} if required_roles else {}
        super().__init__(message, ErrorCode.INSUFFICIENT_PERMISSIONS, details, 403)


# ========================================
# Payment Exceptions
# ========================================

class SignatureMismatchError(BaseAppException):
    """Exception raised when a payment signature does not verify"""

    def __init__(
        self,
        message: str = "Invalid payment signature",
        order_id: Optional[str] = None,
        payment_id: Optional[str] = None
    ):
        details = {
            "order_id": order_id,
            "payment_id": payment_id
        }
        super().__init__(message, ErrorCode.SIGNATURE_MISMATCH, details, 400)


class PaymentGatewayError(BaseAppException):
    """Exception raised when payment gateway operations fail"""

    def __init__(
        self,
        message: str = "Payment gateway error",
        gateway_name: Optional[str] = "razorpay",
        operation: Optional[str] = None,
        order_id: Optional[str] = None
    ):
        details = {
            "gateway_name": gateway_name,
            "operation": operation,
            "order_id": order_id
        }
        super().__init__(message, ErrorCode.PAYMENT_GATEWAY_ERROR, details, 500)


# ========================================
# External Service Exceptions
# ========================================

class ClassifierFailure(BaseAppException):
    """Exception raised when every classifier model attempt failed"""

    def __init__(
        self,
        message: str = "Document classification failed",
        attempted_models: Optional[List[str]] = None,
        last_error: Optional[str] = None
    ):
        details = {
            "attempted_models": attempted_models or [],
            "last_error": last_error
        }
        super().__init__(message, ErrorCode.CLASSIFIER_FAILURE, details, 500)


class StorageError(BaseAppException):
    """Exception raised when an uploaded file cannot be stored"""

    def __init__(self, message: str = "File storage failed", path: Optional[str] = None):
        details = {"path": path} if path else {}
        super().__init__(message, ErrorCode.STORAGE_ERROR, details, 500)


# ========================================
# Utility Functions
# ========================================

def create_validation_error(field_errors: Dict[str, List[str]]) -> ValidationError:
    """Create a validation error with field-specific errors"""
    total_errors = sum(len(errors) for errors in field_errors.values())
    message = f"Validation failed with {total_errors} error(s)"
    return ValidationError(message, field_errors)


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'ValidationError',
    'ResourceNotFoundError',
    'StudentNotFoundError',
    'InvalidStateTransitionError',
    'AuthenticationError',
    'AuthorizationError',
    'SignatureMismatchError',
    'PaymentGatewayError',
    'ClassifierFailure',
    'StorageError',
    'create_validation_error',
]
