"""
FastAPI router for splitting raw spec strings.
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import List, Optional

from processor.parser import SpecCategory, segment

router = APIRouter()


class ParseRequest(BaseModel):
    category: str
    value: Optional[str] = None


class ParseResponse(BaseModel):
    category: str
    segments: List[str]


@router.post("", response_model=ParseResponse)
async def parse_spec(request: ParseRequest):
    """
    Split a raw spec string into its values.
    The category may be a category name ("memory-type") or a scraped label ("Processor").
    """
    category = SpecCategory.from_label(request.category)
    if category is None:
        valid = ", ".join(c.value for c in SpecCategory)
        raise HTTPException(status_code=400, detail=f"Unknown category '{request.category}'. Use one of: {valid}")

    return ParseResponse(category=category.value, segments=segment(category, request.value))


@router.get("/categories", response_model=List[str])
async def list_categories():
    """Categories the parser can split."""
    return [c.value for c in SpecCategory]
