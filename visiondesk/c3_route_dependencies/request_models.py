"""Base model and field types for camelCase request bodies."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Timestamps are stored as naive UTC
UtcDatetime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class CamelModel(BaseModel):
    """Accepts ``projectId`` as well as ``project_id``; enum fields hold plain values."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )

    def updates(self):
        """Fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)
