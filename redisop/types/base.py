from types import SimpleNamespace
from typing import Any, Dict
from marshmallow import EXCLUDE, Schema, post_load

EXCLUDE = EXCLUDE
JSON = Dict[str, Any]
MAX_REPR_LEN = 50


class BaseModel(SimpleNamespace):
    """BaseModel that all spec models inherit from.

    Note:
        Models are built by their schema's `post_load` hook, so every field
        declared on the schema (including ones loaded as `None`) is present
        as an instance attribute.
    Args:
        **kwargs: All passed parameters as converted to instance attributes.
    """

    def __init__(self, **kwargs: Any) -> None:
        self.__dict__.update(
            {k: list(v) if isinstance(v, list) else v for k, v in kwargs.items()}
        )

    def __repr__(self) -> str:
        """Return a default repr of any Model.
        Returns:
            The string model parameters up to a `MAX_REPR_LEN`.
        """
        repr_ = super().__repr__()
        if len(repr_) > MAX_REPR_LEN:
            return repr_[:MAX_REPR_LEN] + " ...)"
        else:
            return repr_

    def as_dict(self) -> Dict[str, Any]:
        result = {}
        for key, value in self.__dict__.items():
            if isinstance(value, BaseModel):
                result[key] = value.as_dict()
            elif isinstance(value, list):
                result[key] = [
                    item.as_dict() if isinstance(item, BaseModel) else item
                    for item in value
                ]
            else:
                result[key] = value
        return result


class BaseSchema(Schema):
    """The default schema for all models."""

    __model__: Any = BaseModel
    """Determine the object that is created when the load method is called."""

    class Meta:
        unknown = EXCLUDE
        ordered = True

    @post_load
    def make_object(self, data: JSON, **kwargs: Any) -> "__model__":
        """Build model for the given `__model__` class attribute.
        Args:
            data: The JSON diction to use to build the model.
            **kwargs: Unused but required to match signature of `Schema.make_object`
        Returns:
            An instance of the `__model__` class.
        """
        return self.__model__(**data)

