"""Data preparation for export."""

import json
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .. import __version__
from ..core.models import BusinessFilter, Review


def to_jsonable(obj: Any) -> Any:
    """Recursively convert analysis results into JSON-compatible values.

    Dataclasses become dicts (properties are not included), enums become
    their values and dates become ISO strings.
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
    if hasattr(obj, "model_dump"):
        # pydantic models (AI recommendations)
        return to_jsonable(obj.model_dump())
    if isinstance(obj, dict):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [to_jsonable(item) for item in obj]
    return str(obj)


def review_to_dict(review: Review) -> Dict[str, Any]:
    """Serialize a review with the keys ``Review.from_dict`` reads back."""
    return {
        "id": review.id,
        "stars": review.stars,
        "text": review.text,
        "sentiment": review.sentiment,
        "published_at": review.published_at.isoformat() if review.published_at else None,
        "owner_response_text": review.owner_response_text,
        "main_themes": review.main_themes,
        "staff_mentioned": review.staff_mentioned,
        "business_id": review.business_id,
        "business_name": review.business_name,
    }


def prepare_export(
    analysis: Dict[str, Any],
    reviews: Optional[List[Review]] = None,
    business: Optional[BusinessFilter] = None,
    recommendations: Optional[Any] = None,
) -> Dict[str, Any]:
    """Prepare an analysis (and optionally its reviews) for JSON export."""
    business = business or BusinessFilter.all()
    export_data = {
        "business": business.describe(),
        "analysis": to_jsonable(analysis),
        "reviews": [review_to_dict(r) for r in reviews or []],
        "metadata": {
            "export_timestamp": None,  # Will be set by caller
            "version": __version__,
        },
    }
    if recommendations is not None:
        export_data["recommendations"] = to_jsonable(recommendations)
    return export_data


def export_to_json(data: Dict[str, Any], filename: str) -> None:
    """Export data to JSON file."""
    data.setdefault("metadata", {})["export_timestamp"] = datetime.now().isoformat()

    with open(filename, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
