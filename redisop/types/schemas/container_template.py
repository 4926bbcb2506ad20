from marshmallow import fields
from redisop.types.base import BaseSchema
from redisop.types.models import (
    ConfigMapKeySelector,
    SecretKeySelector,
    ObjectFieldSelector,
    ContainerEnvVarSource,
    ContainerEnvVar,
    ContainerPort,
    Sidecar,
)
from redisop.types.schemas.resource_requirements import ResourceRequirementsSchema


class ConfigMapKeySelectorSchema(BaseSchema):
    """Schema for ConfigMap Key Selector."""

    __model__ = ConfigMapKeySelector
    key = fields.Str(
        data_key="key",
        required=True,
        allow_none=False,
    )
    name = fields.Str(
        data_key="name",
        required=True,
        allow_none=False,
    )
    optional = fields.Bool(
        data_key="optional",
        required=False,
        allow_none=True,
        load_default=None,
    )


class SecretKeySelectorSchema(BaseSchema):
    """Schema for Secret Key Selector."""

    __model__ = SecretKeySelector
    key = fields.Str(
        data_key="key",
        required=True,
        allow_none=False,
    )
    name = fields.Str(
        data_key="name",
        required=True,
        allow_none=False,
    )
    optional = fields.Bool(
        data_key="optional",
        required=False,
        allow_none=True,
        load_default=None,
    )


class ObjectFieldSelectorSchema(BaseSchema):
    __model__ = ObjectFieldSelector
    field_path = fields.Str(data_key="fieldPath", required=True)
    api_version = fields.Str(data_key="apiVersion", allow_none=True, load_default=None)


class ContainerEnvVarSourceSchema(BaseSchema):
    """Schema for Container Environment Variable Source."""

    __model__ = ContainerEnvVarSource
    config_map_key_ref = fields.Nested(
        ConfigMapKeySelectorSchema(),
        data_key="configMapKeyRef",
        required=False,
        allow_none=True,
        load_default=None,
    )
    secret_key_ref = fields.Nested(
        SecretKeySelectorSchema(),
        data_key="secretKeyRef",
        required=False,
        allow_none=True,
        load_default=None,
    )
    field_ref = fields.Nested(
        ObjectFieldSelectorSchema(),
        data_key="fieldRef",
        required=False,
        allow_none=True,
        load_default=None,
    )


class ContainerEnvVarSchema(BaseSchema):
    """Schema for Container Environment Variables."""

    __model__ = ContainerEnvVar
    name = fields.Str(
        data_key="name",
        required=True,
        allow_none=False,
    )
    value = fields.Str(
        data_key="value",
        required=False,
        allow_none=True,
        load_default=None,
    )
    value_from = fields.Nested(
        ContainerEnvVarSourceSchema(),
        data_key="valueFrom",
        required=False,
        allow_none=True,
        load_default=None,
    )


class ContainerPortSchema(BaseSchema):
    __model__ = ContainerPort
    name = fields.Str(data_key="name", allow_none=True, load_default=None)
    container_port = fields.Int(data_key="containerPort", required=True)
    protocol = fields.Str(data_key="protocol", allow_none=True, load_default=None)


class SidecarSchema(BaseSchema):
    __model__ = Sidecar

    name = fields.Str(data_key="name", required=True)
    image = fields.Str(data_key="image", required=True)
    image_pull_policy = fields.Str(
        data_key="imagePullPolicy", allow_none=True, load_default=None
    )
    resources = fields.Nested(
        ResourceRequirementsSchema(),
        data_key="resources",
        allow_none=True,
        load_default=None,
    )
    env = fields.List(
        fields.Nested(ContainerEnvVarSchema()),
        data_key="env",
        allow_none=True,
        load_default=None,
    )
    command = fields.List(
        fields.Str(), data_key="command", allow_none=True, load_default=None
    )
    args = fields.List(fields.Str(), data_key="args", allow_none=True, load_default=None)
    ports = fields.List(
        fields.Nested(ContainerPortSchema()),
        data_key="ports",
        allow_none=True,
        load_default=None,
    )
    security_context = fields.Dict(
        keys=fields.String(),
        values=fields.Raw(),
        data_key="securityContext",
        allow_none=True,
        load_default=None,
    )
