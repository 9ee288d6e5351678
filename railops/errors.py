class RailOpsError(Exception):
    """Base class for dashboard errors."""


class TransportError(RailOpsError):
    """HTTP call failed: network error or non-2xx status."""

    def __init__(self, message:str, status_code:int|None=None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class NotFoundError(RailOpsError, LookupError):
    pass


class InvalidTransitionError(RailOpsError):
    pass
