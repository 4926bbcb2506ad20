from marshmallow import fields, validate
from redisop.types.base import BaseSchema
from redisop.types.models.storage import RedisStorage, VolumeClaimTemplate, VolumeMount


class VolumeClaimTemplateSchema(BaseSchema):
    __model__ = VolumeClaimTemplate

    size = fields.Str(data_key="size", required=True)
    storage_class_name = fields.Str(
        data_key="storageClassName", allow_none=True, load_default=None
    )
    access_modes = fields.List(
        fields.Str(),
        data_key="accessModes",
        validate=validate.Length(min=1),
        load_default=lambda: ["ReadWriteOnce"],
    )


class VolumeMountSchema(BaseSchema):
    __model__ = VolumeMount

    volume = fields.List(
        fields.Dict(keys=fields.Str(), values=fields.Raw()),
        data_key="volume",
        allow_none=True,
        load_default=None,
    )
    mount_path = fields.List(
        fields.Dict(keys=fields.Str(), values=fields.Raw()),
        data_key="mountPath",
        allow_none=True,
        load_default=None,
    )


class RedisStorageSchema(BaseSchema):
    """redis data storage configurations."""

    __model__ = RedisStorage

    volume_claim_template = fields.Nested(
        VolumeClaimTemplateSchema(), data_key="volumeClaimTemplate", required=True
    )
    mount_path = fields.Str(data_key="mountPath", load_default="/data")
    keep_after_delete = fields.Bool(data_key="keepAfterDelete", load_default=False)
    volume_mount = fields.Nested(
        VolumeMountSchema(), data_key="volumeMount", allow_none=True, load_default=None
    )
