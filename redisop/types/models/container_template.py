from typing import Optional, Dict, List, Any
from redisop.types.base import BaseModel
from redisop.types.models.resource_requirements import ResourceRequirements


class ConfigMapKeySelector(BaseModel):
    key: str
    name: str
    optional: Optional[bool]


class SecretKeySelector(BaseModel):
    key: str
    name: str
    optional: Optional[bool]


class ObjectFieldSelector(BaseModel):
    field_path: str
    api_version: Optional[str]


class ContainerEnvVarSource(BaseModel):
    config_map_key_ref: Optional[ConfigMapKeySelector]
    secret_key_ref: Optional[SecretKeySelector]
    field_ref: Optional[ObjectFieldSelector]


class ContainerEnvVar(BaseModel):
    name: str
    value: Optional[str]
    value_from: Optional[ContainerEnvVarSource]


class ContainerPort(BaseModel):
    name: Optional[str]
    container_port: int
    protocol: Optional[str]


class Sidecar(BaseModel):
    """A user supplied container appended to every redis pod."""

    name: str
    image: str
    image_pull_policy: Optional[str]
    resources: Optional[ResourceRequirements]
    env: Optional[List[ContainerEnvVar]]
    command: Optional[List[str]]
    args: Optional[List[str]]
    ports: Optional[List[ContainerPort]]
    security_context: Optional[Dict[str, Any]]
