from typing import Any


class CoreException(Exception):
    def __init__(
        self, message: str | None = None, additional_info: dict[str, Any] | None = None
    ):
        self.message = message
        self.additional_info = additional_info


class ConfigurationException(CoreException):
    """Deployment misconfiguration. Raised at startup, never per request."""


class InfrastructureException(CoreException):
    pass


class InstanceNotFoundException(CoreException):
    pass


class InstanceAlreadyExistsException(CoreException):
    pass


class InstanceProcessingException(CoreException):
    pass


class UnauthorizedException(CoreException):
    pass


class AccessForbiddenException(CoreException):
    pass


class NotAcceptableException(CoreException):
    pass


class PermissionDeniedException(CoreException):
    pass


class SessionRejectedException(UnauthorizedException):
    """The session cookie can not be trusted any more and has to be dropped."""

    def __init__(
        self,
        message: str | None = None,
        cookie_name: str | None = None,
        additional_info: dict[str, Any] | None = None,
    ):
        super().__init__(message, additional_info)
        self.cookie_name = cookie_name


class SessionVerificationError(InfrastructureException):
    """Signature verification failed for a reason the session layer does not recognise."""

    def __init__(
        self,
        message: str | None = None,
        cookie_name: str | None = None,
        additional_info: dict[str, Any] | None = None,
    ):
        super().__init__(message, additional_info)
        self.cookie_name = cookie_name
