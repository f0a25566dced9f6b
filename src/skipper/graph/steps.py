"""Step identity — ancestry paths and their canonical names."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from skipper.core.errors import MalformedRecordError

# A baseline recorded under the wrapper names each step after the child
# invocation, e.g. "/usr/bin/skipper --id <build> -v run --graph g -- cmd".
# The bare "skipper --id <build> -- cmd" form of older wrappers also matches.
_WRAPPER_PREFIX = re.compile(
    r"^(?:\S*/)?skipper "
    r"(?:(?:--id \S+|--id=\S+|-v+|--verbose) )*"
    r"(?:run (?:--\S+=\S+ |--\S+ \S+ )*)?"
    r"-- "
)


def strip_wrapper(token: str) -> str:
    """Remove a leading ``skipper [--id ID] [run OPTIONS] --`` prefix from a command token."""
    return _WRAPPER_PREFIX.sub("", token)


@dataclass(frozen=True)
class StepPath:
    """Full ancestry of a build step, outermost command first.

    Two steps are the same step only if their whole ancestry matches, so
    ``make test`` run from ``ci.sh`` and from ``release.sh`` are distinct.
    """

    tokens: tuple[str, ...] = ()

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> StepPath:
        """Build a path from raw trace tokens, dropping wrapper prefixes."""
        return cls(tuple(strip_wrapper(t) for t in tokens))

    @classmethod
    def from_name(cls, name: str) -> StepPath:
        """Parse a canonical step name back into a path."""
        try:
            data = json.loads(name)
        except json.JSONDecodeError as e:
            raise MalformedRecordError(f"invalid step name {name!r}: {e}") from e
        if not isinstance(data, list) or not all(isinstance(t, str) for t in data):
            raise MalformedRecordError(f"step name must be a JSON list of strings: {name!r}")
        return cls(tuple(data))

    @property
    def name(self) -> str:
        """Canonical, injective step name.

        JSON escapes quotes and backslashes inside tokens, so tokens that
        contain the separator never collide with a different split.
        """
        return json.dumps(list(self.tokens), separators=(",", ":"))

    @property
    def leaf(self) -> str | None:
        return self.tokens[-1] if self.tokens else None

    def child(self, token: str) -> StepPath:
        return StepPath(self.tokens + (token,))

    def __str__(self) -> str:
        return " > ".join(self.tokens)


def walk_ancestors(path: StepPath) -> Iterator[StepPath]:
    """Yield every non-empty prefix of ``path``, root to leaf.

    For ``[p1, p2, p3]`` this yields ``[p1]``, ``[p1, p2]``, ``[p1, p2, p3]``.
    An access is recorded against each of them so parent steps depend on
    everything their children touched.
    """
    for i in range(1, len(path.tokens) + 1):
        yield StepPath(path.tokens[:i])
