import typing as t

from pydantic import Field
from pydantic import StringConstraints


Port = t.Annotated[int, Field(ge=1, le=65535, description="Remote SSH port")]
UpperCase = t.Annotated[str, StringConstraints(to_upper=True)]
