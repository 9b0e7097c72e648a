"""
Safe accessors for schema-less configuration objects.

Objects returned by the config store are arbitrary nested JSON. Rules never
index into them directly: every lookup goes through these helpers so that a
missing or wrongly-typed field resolves to a default instead of raising.
"""
from typing import Any, Dict, List, Optional

_MISSING = object()


def as_dict(value: Any) -> Dict[str, Any]:
    """Return value if it is a dict, else an empty dict."""
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> List[Any]:
    """Return value if it is a list, else an empty list."""
    return value if isinstance(value, list) else []


def dig(obj: Any, *path: str, default: Any = None) -> Any:
    """
    Walk a dotted path through nested dicts.

    Args:
        obj: Root object (any type)
        *path: Keys to follow, e.g. dig(spec, "https", "add_hsts_header")
        default: Returned when any step is missing or not a dict

    Returns:
        The value at the path, or default
    """
    current = obj
    for key in path:
        if not isinstance(current, dict):
            return default
        current = current.get(key, _MISSING)
        if current is _MISSING:
            return default
    return current


def has_key(obj: Any, *path: str) -> bool:
    """True when the full path exists (even if the leaf value is None or empty)."""
    return dig(obj, *path, default=_MISSING) is not _MISSING


def get_spec(obj: Any) -> Dict[str, Any]:
    """Spec of a config object; 'get_spec' (GET responses) wins over 'spec'."""
    o = as_dict(obj)
    return as_dict(o.get("get_spec") or o.get("spec"))


def get_metadata(obj: Any) -> Dict[str, Any]:
    """Metadata of a config object."""
    return as_dict(as_dict(obj).get("metadata"))


def object_name(obj: Any) -> Optional[str]:
    """Name from metadata.name, falling back to a top-level 'name' (list summaries)."""
    name = get_metadata(obj).get("name") or as_dict(obj).get("name")
    return name if isinstance(name, str) and name else None


def object_namespace(obj: Any, default: Optional[str] = None) -> Optional[str]:
    """Owning namespace from metadata.namespace (or a top-level 'namespace')."""
    namespace = get_metadata(obj).get("namespace") or as_dict(obj).get("namespace")
    return namespace if isinstance(namespace, str) and namespace else default


def ref_name(ref: Any) -> Optional[str]:
    """Name of an object reference, which is either a plain string or {name, namespace}."""
    if isinstance(ref, str):
        return ref or None
    name = as_dict(ref).get("name")
    return name if isinstance(name, str) and name else None


def ref_namespace(ref: Any, default: str) -> str:
    """Namespace of an object reference, defaulting to the referencing object's namespace."""
    namespace = as_dict(ref).get("namespace")
    return namespace if isinstance(namespace, str) and namespace else default
