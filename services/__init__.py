# services package
from .matching_service import (
    match_company_age,
    match_region,
    match_age,
    match_industry,
    filter_announcements,
)
from .extraction_service import StructuredExtractor, infer_support_field

__all__ = [
    "match_company_age",
    "match_region",
    "match_age",
    "match_industry",
    "filter_announcements",

    "StructuredExtractor",
    "infer_support_field",
]
