from typing import Any, Dict, List, Optional
from redisop.types.base import BaseModel


class VolumeClaimTemplate(BaseModel):
    """Persistent volume claim requested for every redis pod."""

    size: str
    storage_class_name: Optional[str]
    access_modes: List[str]


class VolumeMount(BaseModel):
    """Extra pod volumes and the container mounts that use them, as raw k8s dicts."""

    volume: Optional[List[Dict[str, Any]]]
    mount_path: Optional[List[Dict[str, Any]]]


class RedisStorage(BaseModel):
    """redis data storage configurations."""

    volume_claim_template: VolumeClaimTemplate
    mount_path: str
    keep_after_delete: bool
    volume_mount: Optional[VolumeMount]
