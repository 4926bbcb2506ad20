import hashlib
import mmh3
import jsonpickle
from datetime import datetime, timezone
from typing import Any


def now() -> str:
    return datetime.now(timezone.utc).isoformat()


def sort_dict_keys(d):
    """Recursively sort dictionary keys, lists keep their order."""
    if isinstance(d, dict):
        return {key: sort_dict_keys(value) for key, value in sorted(d.items())}
    elif isinstance(d, (list, tuple)):
        return [sort_dict_keys(item) for item in d]
    else:
        return d


def canonicalize_dict(data):
    """
    Returns a canonical JSON representation of a dictionary.

    Keys are sorted recursively so two dictionaries with the same content
    always serialize to the same string, whatever their insertion order.
    """
    return jsonpickle.dumps(sort_dict_keys(data), unpicklable=False)


def compute_hash(data: Any) -> str:
    """Compute a murmur3 based hash of a dict or string."""
    if isinstance(data, dict):
        _data = canonicalize_dict(data)
    elif isinstance(data, str):
        _data = data.encode()
    else:
        raise ValueError(f"Hash of {type(data)} is not supported.")
    mumur_str = str(mmh3.hash128(_data))

    full_hash = hashlib.sha256(mumur_str.encode("utf-8")).hexdigest()

    # First 16 characters stay readable in annotations
    return full_hash[:16]


def upsert_condition(conds, newc):
    """In-memory merge by .type. Only bump lastTransitionTime when status flips."""
    conds = list(conds or [])
    for i, c in enumerate(conds):
        if c.get("type") == newc["type"]:
            ltt = c.get("lastTransitionTime") or now()
            if c.get("status") != newc["status"]:
                ltt = now()
            conds[i] = {**c, **newc, "lastTransitionTime": ltt}
            break
    else:
        conds.append({**newc, "lastTransitionTime": now()})
    return conds
