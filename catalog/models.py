"""
catalog/models.py -- Domain dataclasses for the product catalog.

Pure data containers with zero logic. Persistence lives in catalog/store.py,
validation in core/validation.py with the rule sets in api/rules.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Product:
    """A catalog entry.

    price accepts any finite number -- zero and negative values are stored
    as given.

    id is None before the record is written to the database.
    """

    name: str
    price: float
    description: str
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed on every update
