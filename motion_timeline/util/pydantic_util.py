from pydantic import BaseModel, ConfigDict


class ParentModel(BaseModel):
    """
    Base for models that carry through keys they don't know about,
    so values read from configuration files are not silently lost.
    """

    model_config = ConfigDict(extra="allow")
