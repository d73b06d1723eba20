"""
Famops - Error taxonomy.

Validation and not-found errors surface immediately. Entitlement errors are
the only failures a generation pipeline lets through; everything else in a
generation flow is absorbed into the fallback path.
"""


class FamopsError(Exception):
    """Base class for all famops errors."""


class BadRequestError(FamopsError):
    """Input is missing a required field or has the wrong shape."""


class NotFoundError(FamopsError):
    """A routine, meal, list or child does not exist."""


class PermissionDeniedError(FamopsError):
    """The actor's family role does not allow the mutation."""


class EntitlementError(FamopsError):
    """Authorization precondition for a generation request failed."""


class NotAuthenticatedError(EntitlementError):
    pass


class NotAMemberError(EntitlementError):
    pass


class ProRequiredError(EntitlementError):
    pass


class GenerationUnavailable(FamopsError):
    """
    External generation could not be used.

    Raised when no client is configured or the call timed out. Never leaves
    the orchestrator.
    """
