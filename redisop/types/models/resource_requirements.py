from typing import Dict, Optional
from redisop.types.base import BaseModel


class ResourceRequirements(BaseModel):
    requests: Optional[Dict[str, str]]
    limits: Optional[Dict[str, str]]
