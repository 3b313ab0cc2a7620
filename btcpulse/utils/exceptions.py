"""
Custom exception classes for the price and candle engine.
"""


class BtcPulseError(Exception):
    """Base exception for all btcpulse errors."""
    pass


class UpstreamUnavailable(BtcPulseError):
    """Raised when an upstream source fails at the transport or HTTP level, or times out."""
    pass


class MalformedResponse(BtcPulseError):
    """Raised when an upstream response does not match its expected shape."""
    pass


class NoDataError(BtcPulseError):
    """Raised when the FX source has no usable observation, even after the widened lookup."""
    pass


class ConversionUnavailable(BtcPulseError):
    """Raised when a USD amount cannot be converted into the requested currency."""
    pass


class InvalidWindow(BtcPulseError, ValueError):
    """Raised for an unrecognized display window code."""
    pass


class ConfigurationError(BtcPulseError):
    """Raised when configuration is invalid or missing."""
    pass
