"""Helpers for converting between AWS tag lists and dictionaries."""

from typing import Dict, List, Optional


def tags_to_dict(tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """Convert ``[{"Key": k, "Value": v}]`` into ``{k: v}``."""
    result = {}
    for tag in tags or []:
        if tag.get("Key"):
            result[tag["Key"]] = tag.get("Value", "")
    return result


def dict_to_tags(tags: Optional[Dict[str, str]], key_name: str = "Key", value_name: str = "Value") -> List[Dict[str, str]]:
    """Convert ``{k: v}`` into an AWS tag list.

    KMS spells the fields ``TagKey``/``TagValue``, hence the overridable names.
    """
    return [{key_name: key, value_name: str(value)} for key, value in (tags or {}).items()]


def parse_key_values(pairs: List[str]) -> Dict[str, str]:
    """Parse ``["k=v", ...]`` into a dict; raises ValueError on a pair without '='."""
    parsed = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got '{pair}'")
        parsed[key] = value
    return parsed
