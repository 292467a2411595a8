"""Domain models and pure computations for the PacaPrints finance views.

Records are Pydantic models validated on construction; computed results are
plain frozen dataclasses. Nothing here performs I/O, so every computation can
be re-run on the latest fetched inputs.
"""

__all__ = [
    "dashboard",
    "date_ranges",
    "finance",
    "order_flags",
    "queries",
    "tax_year",
]
