"""Read-side lookups for links and categories."""

from pydantic import TypeAdapter

from biolink.core.storage import JsonStore
from biolink.models.link import Category, Link

LINKS_KEY = "links"
CATEGORIES_KEY = "categories"

_links_adapter: TypeAdapter[list[Link]] = TypeAdapter(list[Link])
_categories_adapter: TypeAdapter[list[Category]] = TypeAdapter(list[Category])


async def get_links(store: JsonStore) -> list[Link]:
    """Return all links sorted by display order."""
    raw = await store.read(LINKS_KEY, [])
    links = _links_adapter.validate_python(raw or [])
    return sorted(links, key=lambda link: link.order)


async def get_categories(store: JsonStore) -> list[Category]:
    """Return all categories in stored order."""
    raw = await store.read(CATEGORIES_KEY, [])
    return _categories_adapter.validate_python(raw or [])


async def get_active_link_by_slug(store: JsonStore, slug: str) -> Link | None:
    """Get an active link by its slug."""
    for link in await get_links(store):
        if link.slug == slug and link.active:
            return link
    return None


async def get_public_links(
    store: JsonStore,
    category: str | None = None,
    search: str | None = None,
) -> list[Link]:
    """Active links for the landing page, optionally filtered.

    Args:
        category: Only links tagged with this category slug.
        search: Case-insensitive match on title, description or slug.
    """
    links = [link for link in await get_links(store) if link.active]
    if category:
        links = [link for link in links if category in link.categories]
    if search:
        term = search.lower()
        links = [
            link for link in links
            if term in link.title.lower()
            or term in link.description.lower()
            or term in link.slug.lower()
        ]
    return links
