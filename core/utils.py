# core/utils.py

from datetime import datetime, timezone


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def drop_undefined(data: dict) -> dict:
    """
    Remove keys whose value is None so a merge write never clears
    a stored field by accident.
    """
    return {k: v for k, v in data.items() if v is not None}


def deep_merge(base: dict, patch: dict) -> dict:
    """
    Merge `patch` into a copy of `base`:
    - nested dicts are merged key by key
    - every other value (lists included) replaces the stored one
    """
    merged = dict(base)

    for k, v in patch.items():
        current = merged.get(k)
        if isinstance(v, dict) and isinstance(current, dict):
            merged[k] = deep_merge(current, v)
        else:
            merged[k] = v

    return merged
