"""
Profiles API Router
===================
Endpoints for browsing, filtering and pairing processed hardware profiles.
"""
from typing import Optional, List, Dict, Any
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from db import (
    get_all_profiles, get_profile_by_id, get_distinct_values,
    search_by_filters, get_stats,
)
from processor.config import PROFILE_TYPES
from processor.functions import get_comparisons

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


class ProfileListResponse(BaseModel):
    results: List[Dict[str, Any]]
    offset: int
    limit: int


class FilterResponse(BaseModel):
    results: list
    total: int
    offset: int
    limit: int


class DistinctValuesResponse(BaseModel):
    label: str
    values: List[str]


class ComparisonPair(BaseModel):
    left: Dict[str, Any]
    right: Dict[str, Any]


class ComparisonsResponse(BaseModel):
    type: str
    pairs: List[ComparisonPair]


def _check_type(profile_type: str):
    if profile_type not in PROFILE_TYPES:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown profile type '{profile_type}'. Use one of: {', '.join(PROFILE_TYPES)}"
        )


@router.get("/stats")
async def profile_stats():
    """Profile counts per type."""
    return get_stats()


@router.get("/{profile_type}", response_model=ProfileListResponse)
async def list_profiles(
    profile_type: str,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """List profiles of one type."""
    _check_type(profile_type)
    return ProfileListResponse(
        results=get_all_profiles(profile_type, limit=limit, offset=offset),
        offset=offset,
        limit=limit,
    )


@router.get("/{profile_type}/comparisons", response_model=ComparisonsResponse)
async def list_comparisons(
    profile_type: str,
    num: int = Query(10, ge=1, le=500),
):
    """Neighbouring profile pairs for comparison pages."""
    _check_type(profile_type)
    profiles = get_all_profiles(profile_type, limit=10**9)
    pairs = [ComparisonPair(left=a, right=b) for a, b in get_comparisons(profiles, num)]
    return ComparisonsResponse(type=profile_type, pairs=pairs)


@router.get("/{profile_type}/values/{label}", response_model=DistinctValuesResponse)
async def distinct_values(profile_type: str, label: str):
    """Distinct values of one spec field (every segment of multi-valued fields)."""
    _check_type(profile_type)
    return DistinctValuesResponse(label=label, values=get_distinct_values(profile_type, label))


@router.get("/{profile_type}/search", response_model=FilterResponse)
async def filter_search(
    profile_type: str,
    q: Optional[str] = Query(None, description="Name contains"),
    label: Optional[str] = Query(None, description="Spec field to filter on"),
    value: Optional[str] = Query(None, description="Required value of that field"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Search profiles by name and/or one spec value."""
    _check_type(profile_type)

    filters: Dict[str, Any] = {'q': q}
    if label and value:
        filters[label] = value

    return search_by_filters(profile_type, filters, limit=limit, offset=offset)


@router.get("/{profile_type}/{profile_id}")
async def get_profile(profile_type: str, profile_id: str):
    """Get one profile by id or slug."""
    _check_type(profile_type)
    profile = get_profile_by_id(profile_type, profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"{profile_type} '{profile_id}' not found")
    return profile
