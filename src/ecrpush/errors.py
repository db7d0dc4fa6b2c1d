"""Domain errors for ecrpush."""


class PusherError(RuntimeError):
    """Raised when the push workflow cannot continue safely."""
