"""Health report for monitoring the NAS gateway."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from nasgate.gate.setup_gate import SetupState


class HealthResponse(BaseModel):
    """Store reachability, setup state as the store sees it, and whether the share can be read."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    database: Literal["connected", "disconnected"]
    setup: SetupState | None = Field(default=None, description="None when the store is unreachable")
    share_root: Literal["available", "unavailable"] = Field(alias="shareRoot")
