class ScalerError(Exception):
    """Base class for errors raised by the autoscaler."""


class MetricUnavailableError(ScalerError):
    """The queue backlog could not be sampled this tick."""


class ActuationError(ScalerError):
    """Reading or writing the workload replica count failed."""


class ConfigurationError(ScalerError, ValueError):
    """The process configuration is malformed."""


class ShutdownRequested(BaseException):
    """
    Raised from the signal handler to stop the control loop.

    Derives from BaseException so the loop's own error handling does not
    swallow it while a blocking call is in flight.
    """
