from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for DTOs exchanged with the external backend and the rendering layer.

    Fields are snake_case in Python and camelCase on the wire; both spellings
    are accepted on input.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
