"""Link and category records persisted in ``links.json`` and ``categories.json``."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Link(BaseModel):
    """Outbound link shown on the landing page."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str
    title: str
    url: str
    slug: str
    description: str = ""
    icon: str = ""
    categories: list[str] = Field(default_factory=list, description="Category slugs")
    active: bool = True
    order: int = 0
    created_at: str | None = None
    updated_at: str | None = None


class Category(BaseModel):
    """Grouping for links on the landing page."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str
    name: str
    slug: str
    color: str = ""
    created_at: str | None = None
    updated_at: str | None = None
