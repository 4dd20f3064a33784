# users/exceptions.py
"""
Custom exceptions for registration, authentication and user management
"""

class AuthenticationServiceError(Exception):
    """Base exception for authentication service errors"""
    pass


class RegistrationError(AuthenticationServiceError):
    """Raised when registration data is incomplete or invalid"""
    pass


class EmailAlreadyExistsError(RegistrationError):
    """Raised when attempting to register with an existing email"""
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidCredentialsError(AuthenticationServiceError):
    """Raised when email/password do not match an active account"""
    pass


class AccountNotApprovedError(AuthenticationServiceError):
    """Raised when a patient whose registration is not approved tries to log in"""
    def __init__(self, approval_status: str, message: str):
        self.approval_status = approval_status
        super().__init__(message)


class UserServiceError(Exception):
    """Base exception for user management errors"""
    pass


class UserNotFoundError(UserServiceError):
    """Raised when a user does not exist"""
    pass


class InvalidApprovalStatusError(UserServiceError):
    """Raised when an admin submits an unsupported approval status"""
    pass
