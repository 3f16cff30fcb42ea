from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """Identity-bearing domain object. Mutable, validated on assignment."""

    model_config = ConfigDict(validate_assignment=True)
