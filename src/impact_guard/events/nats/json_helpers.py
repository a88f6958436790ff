from typing import Any

import ujson


def dumps(msg: Any) -> str:
    """Serialize a message to a JSON string."""
    return ujson.dumps(msg)


def loads(data: str) -> Any:
    """Deserialize a JSON string to a Python object."""
    return ujson.loads(data)
