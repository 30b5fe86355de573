class ApplicationError(Exception):
    pass


class TransportError(ApplicationError):
    """The HTTP request cannot be treated as an admission review at all."""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(ApplicationError):
    pass


class PatchSerializationError(ApplicationError):
    pass


class EncodeError(ApplicationError):
    pass
