from .models import StoredRecord
from .record_db import SQLModelStorage

__all__ = [
    "StoredRecord",
    "SQLModelStorage",
]
