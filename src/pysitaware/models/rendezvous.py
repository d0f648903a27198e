"""Decision-support (rendezvous) table row."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RendezvousRow(BaseModel):
    """One candidate target in a rendezvous feasibility table.

    ``distance_m`` and ``eta_seconds`` are ``None`` when they could not be
    computed; such rows are never ``feasible`` and carry a ``reason``.
    ``target_eta_seconds`` is the time a platform moving at the configured
    target speed would need to cover the same distance.
    """

    model_config = ConfigDict(frozen=True)

    target_name: str
    target_type: str
    distance_m: float | None = None
    eta_seconds: float | None = None
    target_eta_seconds: float | None = None
    target_age_seconds: float | None = None
    feasible: bool = False
    reason: str | None = None
