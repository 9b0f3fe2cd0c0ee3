"""Label helpers"""
from typing import Mapping


def hash_labels(labels: Mapping[str, str]) -> str:
    """Canonical identity of a label set: keys sorted, rendered as ``|#k1:v1,k2:v2``"""
    keys = sorted(labels) if labels else []
    return "|#" + ",".join(f"{key}:{labels[key]}" for key in keys)
