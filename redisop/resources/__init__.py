from .redisreplication import RedisReplication

__all__ = ["RedisReplication"]
