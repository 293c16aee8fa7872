"""Public landing page endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from biolink.core.deps import Store
from biolink.models.link import Category, Link
from biolink.services import link as link_service

router = APIRouter(prefix="/api", tags=["public"])


@router.get("/links", response_model=list[Link])
async def list_links(
    store: Store,
    category: Annotated[str | None, Query(description="Category slug")] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> list[Link]:
    """List active links in display order."""
    return await link_service.get_public_links(store, category=category, search=search)


@router.get("/categories", response_model=list[Category])
async def list_categories(store: Store) -> list[Category]:
    """List link categories."""
    return await link_service.get_categories(store)
