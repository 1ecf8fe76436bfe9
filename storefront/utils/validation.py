# storefront/utils/validation.py
from typing import Any, Mapping, Type, TypeVar, Union
from pydantic import BaseModel, ValidationError as PydanticValidationError
from ..errors import ValidationError

T = TypeVar("T", bound=BaseModel)

def parse_input(model_class: Type[T], data: Union[T, Mapping[str, Any]], message: str = "Invalid input") -> T:
    """Validate caller input into a model, raising the domain ValidationError"""
    if isinstance(data, model_class):
        return data
    try:
        return model_class.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False)
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in errors)
        raise ValidationError(f"{message}: {fields}", errors) from e
