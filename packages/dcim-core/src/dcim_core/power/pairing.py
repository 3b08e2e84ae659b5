from __future__ import annotations

from itertools import zip_longest
from typing import Any, Callable, Iterable, Protocol, TypeVar


class VoieConnection(Protocol):
    id: str
    equipment_fk: str
    voie: str


C = TypeVar("C", bound=VoieConnection)

VoiePair = tuple[C | None, C | None]


def pair_voie_connections(
    connections: Iterable[C],
    sort_key: Callable[[C], Any] | None = None,
) -> dict[str, list[VoiePair]]:
    """Pair each equipment's voie-1 and voie-2 connections by position.

    Connections are grouped per equipment and voie, optionally ordered by
    `sort_key`, then zipped index by index. When one voie has more
    connections than the other, the extra ones are paired with None.
    """
    grouped: dict[str, tuple[list[C], list[C]]] = {}
    for conn in connections:
        if conn.voie not in ("1", "2"):
            continue
        voie1, voie2 = grouped.setdefault(conn.equipment_fk, ([], []))
        (voie1 if conn.voie == "1" else voie2).append(conn)

    pairs: dict[str, list[VoiePair]] = {}
    for equipment_id, (voie1, voie2) in grouped.items():
        if sort_key is not None:
            voie1 = sorted(voie1, key=sort_key)
            voie2 = sorted(voie2, key=sort_key)
        pairs[equipment_id] = list(zip_longest(voie1, voie2))
    return pairs


def redundant_connection_map(pairs: dict[str, list[VoiePair]]) -> dict[str, C]:
    """Map each connection id to its redundant sibling, for complete pairs only."""
    redundant: dict[str, C] = {}
    for equipment_pairs in pairs.values():
        for first, second in equipment_pairs:
            if first is not None and second is not None:
                redundant[first.id] = second
                redundant[second.id] = first
    return redundant
