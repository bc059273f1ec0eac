class InventoryError(Exception):
    """Base exception for Grocery Inventory errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Grocery Inventory system"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class DatabaseError(InventoryError):
    """Exception raised for database-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class ValidationError(InventoryError):
    """Exception raised for data validation errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code, details)


class NotFoundError(InventoryError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource not found"
        super().__init__(message, code, details)


class BatchError(InventoryError):
    """Exception raised for inventory batch errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Batch error"
        super().__init__(message, code, details)


class QuantityAdjustmentError(BatchError):
    """Exception raised when an adjustment would drive a batch below zero."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Adjustment would result in negative quantity"
        super().__init__(message, code or 'NEGATIVE_QUANTITY', details)


class ForecastError(InventoryError):
    """Exception raised for forecasting-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Forecasting error"
        super().__init__(message, code, details)


class ReportingError(InventoryError):
    """Exception raised for reporting errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Reporting error"
        super().__init__(message, code, details)


class NotImplementedFeatureError(InventoryError):
    """Exception raised for report or forecast variants that are not supported yet."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Feature not yet implemented"
        super().__init__(message, code or 'NOT_IMPLEMENTED', details)
