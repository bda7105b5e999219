"""Local override merging.

Pull and print apply overrides on top of the base mapping. Push goes the
other way: keys in the working file that are also override keys are only
submitted after explicit confirmation, otherwise they are left out of the
payload entirely so the remote keeps its own value.
"""

from typing import Iterable, List, Mapping

from envsimple.types import EnvMapping


def apply_overrides(base: Mapping[str, str], overrides: Mapping[str, str]) -> EnvMapping:
    """Merge overrides onto base. Overrides win; override-only keys are added."""
    merged = dict(base)
    merged.update(overrides)
    return merged


def find_override_collisions(env: Mapping[str, str], overrides: Mapping[str, str]) -> List[str]:
    """Keys present both in ``env`` and in ``overrides``, sorted."""
    return sorted(key for key in env if key in overrides)


def strip_keys(env: Mapping[str, str], keys: Iterable[str]) -> EnvMapping:
    """Copy of ``env`` without ``keys``."""
    excluded = set(keys)
    return {key: value for key, value in env.items() if key not in excluded}
