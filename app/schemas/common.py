from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys while keeping snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        from_attributes=True,
    )


# Upper bound for quantities, rates and money amounts accepted from clients
MAX_AMOUNT = 1_000_000_000
