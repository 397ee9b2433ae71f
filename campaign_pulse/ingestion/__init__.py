from .cleaner import apply_cleaning, exclude_test_campaigns, is_test_campaign
from .dates import parse_date, try_parse_date
from .enricher import enrich
from .loader import DataIngestionPipeline

__all__ = [
    "DataIngestionPipeline",
    "apply_cleaning",
    "enrich",
    "exclude_test_campaigns",
    "is_test_campaign",
    "parse_date",
    "try_parse_date",
]
