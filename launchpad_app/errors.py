"""
Error taxonomy for the launch engine.

Every rejection is raised synchronously to the caller; nothing is retried
internally. `code` is a stable machine-readable name and `status_code` is the
HTTP status the API layer answers with.
"""


class LaunchpadError(Exception):
    code: str = "launchpad_error"
    status_code: int = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


# ── Creation / configuration ──
class ValidationError(LaunchpadError):
    code = "validation_error"
    status_code = 422


class FeeOutOfRange(LaunchpadError):
    code = "fee_out_of_range"
    status_code = 422


class AlreadyInitialized(LaunchpadError):
    code = "already_initialized"
    status_code = 409


class Unauthorized(LaunchpadError):
    code = "unauthorized"
    status_code = 403


class LaunchNotFound(LaunchpadError):
    code = "launch_not_found"
    status_code = 404


# ── Trading ──
class CapExceeded(LaunchpadError):
    code = "cap_exceeded"
    status_code = 409


class SlippageExceeded(LaunchpadError):
    code = "slippage_exceeded"
    status_code = 409


class NotOpen(LaunchpadError):
    code = "not_open"
    status_code = 409


class SellDisabled(LaunchpadError):
    code = "sell_disabled"
    status_code = 403


class InsufficientCurveBalance(LaunchpadError):
    code = "insufficient_curve_balance"
    status_code = 409


class GraduationFailure(LaunchpadError):
    code = "graduation_failure"
    status_code = 502


# ── Collaborators ──
class InsufficientBalance(LaunchpadError):
    """Token custody rejected a transfer."""

    code = "insufficient_balance"
    status_code = 409


class LiquidityVenueError(LaunchpadError):
    """The liquidity venue refused or failed a deposit."""

    code = "liquidity_venue_error"
    status_code = 502
