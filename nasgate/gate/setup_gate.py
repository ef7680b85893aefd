"""
First-run setup state machine.

SETUP_REQUIRED until the completion flag is "true" AND an active admin exists;
OPERATIONAL afterwards. While setup is required only the allow-listed setup paths
are routable. Once operational the setup paths are closed for good: the OPERATIONAL
state is latched for the life of the gate. Clearing the flag or removing the last
admin out-of-band only reopens setup for a gate built afterwards, i.e. after a restart.
"""

import enum
import logging
import threading
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError

from nasgate.core.logging_config import log_error
from nasgate.gate.outcomes import Rejection, internal_error, setup_already_completed, setup_required
from nasgate.services.settings_store import SetupSnapshot

logger = logging.getLogger(__name__)

SETUP_PAGE = "/setup"
SETUP_API_PREFIX = "/api/setup"

# Reachable while setup is required.
SETUP_ALLOWED_PREFIXES = (SETUP_API_PREFIX, "/api/translations", "/api/language", "/assets/")


class SetupState(str, enum.Enum):
    SETUP_REQUIRED = "setup_required"
    OPERATIONAL = "operational"


def is_setup_path(path: str) -> bool:
    return path == SETUP_PAGE or path.startswith(SETUP_API_PREFIX)


def is_allowed_during_setup(path: str) -> bool:
    return path == SETUP_PAGE or path.startswith(SETUP_ALLOWED_PREFIXES)


class SetupGate:
    """
    Decides routability from a fresh snapshot of the store on every request until
    the system has been seen OPERATIONAL.
    """

    def __init__(self) -> None:
        self._operational = False
        self._lock = threading.Lock()

    @property
    def latched(self) -> bool:
        return self._operational

    def state(self, read_snapshot: Callable[[], SetupSnapshot]) -> SetupState:
        """Current state. Storage errors propagate to the caller."""
        if self._operational:
            return SetupState.OPERATIONAL
        snapshot = read_snapshot()
        if not snapshot.is_operational:
            return SetupState.SETUP_REQUIRED
        with self._lock:
            if not self._operational:
                logger.info("Setup state is OPERATIONAL")
            self._operational = True
        return SetupState.OPERATIONAL

    def check(self, path: str, read_snapshot: Callable[[], SetupSnapshot], client_ip: str = "") -> Rejection | None:
        """None when the path is routable in the current state, otherwise the rejection."""
        try:
            state = self.state(read_snapshot)
        except SQLAlchemyError as e:
            log_error(e, "Setup state check failed", None, client_ip)
            return internal_error(detail="setup state unavailable")

        if state is SetupState.SETUP_REQUIRED:
            if is_allowed_during_setup(path):
                return None
            return setup_required()
        if is_setup_path(path):
            return setup_already_completed()
        return None
