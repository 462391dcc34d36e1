"""Column types shared across models."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON elsewhere. Python None is stored as SQL NULL
# so COALESCE can tell "no value supplied" apart from a JSON document.
JSONType = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)
