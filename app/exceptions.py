from typing import Optional


class FingerprintError(Exception):
    """Base class for template engine errors"""


class ValidationError(FingerprintError):
    pass


class MissingTemplate(ValidationError):
    def __init__(self, message: str = "Missing fingerprint template"):
        super().__init__(message)


class InvalidTemplate(ValidationError):
    def __init__(self, message: str = "Fingerprint template is not valid base64"):
        super().__init__(message)


class MissingFingerprintId(ValidationError):
    def __init__(self, message: str = "Missing fingerprint ID"):
        super().__init__(message)


class DuplicateTemplate(FingerprintError):
    def __init__(self, existing_id: int):
        self.existing_id = existing_id
        super().__init__(f"Fingerprint template already registered with id {existing_id}")


class NotFound(FingerprintError):
    def __init__(self, fingerprint_id: int):
        self.fingerprint_id = fingerprint_id
        super().__init__(f"Fingerprint {fingerprint_id} not found")


class StoreError(FingerprintError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class IdConflict(StoreError):
    """Raised when an insert collides with an existing identifier"""
