from marshmallow import fields
from redisop.types.base import BaseSchema
from redisop.types.models.resource_requirements import ResourceRequirements


class ResourceRequirementsSchema(BaseSchema):
    __model__ = ResourceRequirements
    requests = fields.Dict(
        keys=fields.Str(), values=fields.Str(), data_key="requests", load_default=None
    )
    limits = fields.Dict(
        keys=fields.Str(), values=fields.Str(), data_key="limits", load_default=None
    )
