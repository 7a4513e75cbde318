# ABOUTME: Metadata package: raw and canonical book records plus their normalizers.
# ABOUTME: Exports the types and pure functions that turn scraped text into BookFields.

from bookscout.metadata.dates import normalize_date
from bookscout.metadata.series import normalize_series_position
from bookscout.metadata.transform import transform_record
from bookscout.metadata.types import (
    BookFields,
    DateKind,
    PublicationDate,
    RawRecord,
    ReconciledEntityIds,
)

__all__ = [
    "BookFields",
    "DateKind",
    "PublicationDate",
    "RawRecord",
    "ReconciledEntityIds",
    "normalize_date",
    "normalize_series_position",
    "transform_record",
]
