from typing import Optional
from redisop.types.base import BaseModel


class Probe(BaseModel):
    """Readiness or liveness probe; the command defaults to `redis-cli ping`."""

    failure_threshold: int
    initial_delay_seconds: int
    period_seconds: int
    success_threshold: int
    timeout_seconds: int
    command: Optional[list]
