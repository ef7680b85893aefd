"""Access-control gate: setup state, rate limits, authentication/authorization and path sandboxing."""

from nasgate.gate.outcomes import ErrorKind, GateRejected, Rejection
from nasgate.gate.path_guard import PathGuard
from nasgate.gate.rate_limiter import LimiterClass, RateLimiter, WindowPolicy
from nasgate.gate.setup_gate import SetupGate, SetupState

__all__ = [
    "ErrorKind",
    "GateRejected",
    "LimiterClass",
    "PathGuard",
    "RateLimiter",
    "Rejection",
    "SetupGate",
    "SetupState",
    "WindowPolicy",
]
