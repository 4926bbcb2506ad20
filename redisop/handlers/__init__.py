from . import probes, redisreplication

__all__ = [
    "probes",
    "redisreplication",
]
