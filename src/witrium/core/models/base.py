from typing import Annotated, Union

from pydantic import BaseModel, ConfigDict, Field

from witrium.core.models.status import StatusCode

# Known wire tags become StatusCode members; anything else is kept verbatim
Status = Annotated[Union[StatusCode, str], Field(union_mode="left_to_right")]


class WireModel(BaseModel):
    """Base for documents returned by the service.

    The service adds fields over time, so unknown keys are ignored rather
    than rejected.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
