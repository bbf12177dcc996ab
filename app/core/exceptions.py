"""Custom exception hierarchy."""

class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class UnsupportedFileError(ValidationError):
    """Raised when an uploaded file has a disallowed type or size."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class StorageError(AppError):
    """Raised when a blob upload or download fails."""
    pass


class ContractNotFoundError(AppError):
    """Raised when a contract does not exist or is not owned by the caller."""
    pass


class TemplateNotFoundError(AppError):
    """Raised when a template does not exist or is not visible."""
    pass


class ClauseNotFoundError(AppError):
    """Raised when a clause does not belong to the caller's contract."""
    pass


class AnalysisInProgressError(AppError):
    """Raised when another analysis already holds the contract lease."""
    pass


class AnalysisError(AppError):
    """Base exception for analysis pipeline errors."""
    pass


class AnalysisParseError(AnalysisError):
    """The model reply did not contain a parseable JSON object."""
    pass


class AnalysisValidationError(AnalysisError):
    """The model reply parsed but violated the analysis schema."""
    pass


class AnalysisFailedError(AnalysisError):
    """The remote analysis function reported a failure."""
    def __init__(self, message: str, status_code: int = None, original_error: Exception = None):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
