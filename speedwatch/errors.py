"""Exception hierarchy for the speedtest agent."""

from __future__ import annotations


class SpeedwatchError(Exception):
    """Base class for every error raised by speedwatch."""


class ConfigError(SpeedwatchError):
    pass


class CatalogError(SpeedwatchError):
    """The server list could not be fetched."""


class MeasurementError(SpeedwatchError):
    """A single download/upload/ping measurement failed."""


class SelectionError(SpeedwatchError):
    pass


class NoAvailableServerError(SelectionError):
    def __init__(self, examined: int):
        super().__init__(f"no available servers ({examined} examined)")
        self.examined = examined


class ProbeStepError(SpeedwatchError):
    """One step of a probe cycle failed; names the step and keeps the cause."""

    def __init__(self, step: str, cause: BaseException):
        super().__init__(f"Error getting {step}: {cause}")
        self.step = step
        self.cause = cause


class ReportError(SpeedwatchError):
    def __init__(self, sample: str, cause: BaseException):
        super().__init__(f"DataDog error sending {sample}: {cause}")
        self.sample = sample
        self.cause = cause


class FatalCycleError(SpeedwatchError):
    """Raised by a cycle to stop the scheduler and terminate the process."""

    def __init__(self, cause: BaseException):
        super().__init__(str(cause))
        self.cause = cause
