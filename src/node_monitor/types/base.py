"""
Pydantic bases shared by headers, reports and configuration.

Everything the monitor writes to disk or reads from an operator is JSON or
YAML keyed in camelCase, matching the Ethereum JSON-RPC naming the reports
are compared against. Python code keeps snake_case attributes.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Model whose external keys are camelCase.

    `split_size` dumps as `splitSize` with `by_alias=True`. Both spellings are
    accepted on input, so YAML configs may use either.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )


class StrictBaseModel(CamelModel):
    """
    Immutable model without type coercion.

    Used for values that are hashed or stored byte for byte, such as block
    headers. Unknown fields are rejected.
    """

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
        "strict": True,
    }
