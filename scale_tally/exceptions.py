"""Error classifications raised across the station."""


class ScaleTallyError(Exception):
    """Base class for station errors."""


class HardwareError(ScaleTallyError):
    """Serial port could not be opened or failed while reading."""


class AcquisitionTimeout(ScaleTallyError):
    """No parseable weight frame arrived before the read deadline."""


class PrinterError(ScaleTallyError):
    """Label could not be handed to the print spooler."""


class InvalidTransition(ScaleTallyError):
    """Requested sync-status change is not in the transition table."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move sync status from '{current}' to '{target}'")


class RecordNotFound(ScaleTallyError):
    """No weight record exists with the requested id."""


class ErrorType:
    """Sync failure classifications carried on SyncResult."""

    CONNECTION_FAILED = "CONNECTION_FAILED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    BUSINESS_ERROR = "BUSINESS_ERROR"
    CONFIG_MISSING = "CONFIG_MISSING"
    ALREADY_SYNCED = "ALREADY_SYNCED"
    IGNORED = "IGNORED"
    UNEXPECTED = "UNEXPECTED"
