# src/afterclasses/api/v1/endpoints/placeholders.py
"""Feeds the mobile client already calls but that have no backing data yet."""

from fastapi import APIRouter

router = APIRouter(tags=["placeholders"])


@router.get("/showups/active")
async def active_showups() -> dict[str, list[object]]:
    return {"showups": []}


@router.get("/buildroom/posts")
async def buildroom_posts() -> dict[str, list[object]]:
    return {"posts": []}


@router.get("/vent/posts")
async def vent_posts() -> dict[str, list[object]]:
    return {"posts": []}


@router.get("/skillmates")
async def skillmates() -> dict[str, list[object]]:
    return {"skillmates": []}
