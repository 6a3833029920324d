ACCESS_DENIED_MESSAGE = "You do not have access to this resource"


class AccessDeniedError(Exception):
    """
    Raised when a gate rejects an operation or the target row is outside the
    actor's restriction. Both cases look the same to the caller.
    """

    def __init__(self, message=ACCESS_DENIED_MESSAGE):
        super().__init__(message)
