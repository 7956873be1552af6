"""Exceptions raised by this package"""


class YeelightError(Exception):
    """Base class for all errors raised by this package"""


class BadRequestError(YeelightError):
    """The arguments for a call failed validation. Nothing was sent
    to the device"""


class UnsupportedMethodError(YeelightError):
    """The device did not list the method in its support field"""

    def __init__(self, method):
        super().__init__(f"device does not support {method.value}")
        self.method = method


class TransportError(YeelightError):
    """Reading from or writing to the device failed"""


class ParseError(YeelightError):
    """The response matched neither the result nor the error shape"""


class SynchronizationError(YeelightError):
    """The response belongs to some other request. The connection can no
    longer be trusted to pair requests with responses"""

    def __init__(self, expected_id: int, received_id: int):
        super().__init__(
            f"expected response id {expected_id}, received {received_id}"
        )
        self.expected_id = expected_id
        self.received_id = received_id


class ErrorResponse(YeelightError):
    """The device rejected the call"""

    def __init__(self, code: int, message: str):
        super().__init__(f"device returned error {code}: {message}")
        self.code = code
        self.message = message
