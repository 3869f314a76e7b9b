# src/gestyx/errors.py
"""Exception taxonomy.

A missing or low-confidence landmark is not an error: it is reported as an
omitted metric or a ``None`` result. Only the classes below are raised.
"""


class GestyxError(Exception):
    """Base class for all errors raised by gestyx."""


class InvalidFrameError(GestyxError, ValueError):
    """A keypoint or landmark record is malformed (bad count, non-finite values)."""


class ProviderUnavailableError(GestyxError):
    """The landmark provider or media capture could not be acquired."""


class StateCorruptionError(GestyxError):
    """A bounded history outgrew its capacity. Always a defect."""


class ModeError(GestyxError, ValueError):
    """Unknown mode, or a session operation issued in the wrong state."""
