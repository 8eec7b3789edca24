class DriverError(RuntimeError):
    """Base class for driver lifecycle failures."""


class AlreadyRunningError(DriverError):
    pass


class NotRunningError(DriverError):
    pass


class ProcessStateError(DriverError):
    """The supervised process handle has no usable OS process behind it."""


class LogPathError(DriverError):
    pass


class NetworkResourceError(DriverError):
    """Raised when no local TCP port could be obtained."""


class StartupTimeoutError(DriverError):
    """The driver did not open its port before the start deadline."""


class ProcessSpawnError(DriverError):
    pass


class StreamAttachError(DriverError):
    pass


class SessionError(RuntimeError):
    """Raised by the WebDriver session client on HTTP or protocol failures."""
