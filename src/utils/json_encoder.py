"""JSON encoding for engine values (Decimal, dates, enums, dataclasses)."""

import dataclasses
import json
from decimal import Decimal
from datetime import datetime, date
from enum import Enum
from typing import Any


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal, dates, enums and dataclasses."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, Enum):
            return obj.value
        elif hasattr(obj, "to_dict"):
            # Engine objects know their own persisted form
            return obj.to_dict()
        elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        return super().default(obj)


def json_dumps(obj: Any, **kwargs) -> str:
    """Serialize object to JSON string with Decimal support."""
    return json.dumps(obj, cls=DecimalEncoder, **kwargs)
