"""
Input adapter for Overpass API JSON responses.

Takes an already-fetched response (`{"elements": [...]}`) and picks out the
road ways belonging to one relation, ready for compilation. No network
requests are made here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from services.way_compiler import RawWay, WayCompilation, compile_ways

logger = logging.getLogger(__name__)


class OverpassResponseError(Exception):
    """The response cannot be used: no relation, several relations, or bad shape."""


@dataclass
class OverpassElements:
    """Elements of a response, sorted by type."""

    nodes: dict[int, dict] = field(default_factory=dict)
    ways: dict[int, dict] = field(default_factory=dict)
    relations: list[dict] = field(default_factory=list)


def split_elements(response: dict) -> OverpassElements:
    """
    Sort response elements into nodes, road ways and relations.

    Ways without a `highway` tag are dropped.
    """
    elements = response.get("elements") if isinstance(response, dict) else None
    if not isinstance(elements, list):
        raise OverpassResponseError("Response has no 'elements' list")

    result = OverpassElements()
    for elem in elements:
        if not isinstance(elem, dict) or "id" not in elem:
            continue

        elem_type = elem.get("type")
        if elem_type == "node":
            result.nodes[elem["id"]] = elem
        elif elem_type == "way":
            if "highway" not in (elem.get("tags") or {}):
                continue
            result.ways[elem["id"]] = elem
        elif elem_type == "relation":
            result.relations.append(elem)

    logger.debug(
        f"Overpass response: {len(result.nodes)} nodes, {len(result.ways)} road ways, "
        f"{len(result.relations)} relations"
    )
    return result


def select_relation_ways(elements: OverpassElements, relation_id: Optional[int] = None) -> list[RawWay]:
    """
    Keep the road ways that are members of one relation, in member order.

    Args:
        elements: Output of split_elements().
        relation_id: Relation to select. When omitted the response must
            contain exactly one relation.

    Raises:
        OverpassResponseError: The relation cannot be determined.
    """
    if relation_id is not None:
        matches = [rel for rel in elements.relations if rel["id"] == relation_id]
        if not matches:
            raise OverpassResponseError(f"Relation {relation_id} is not in the response")
        relation = matches[0]
    else:
        if not elements.relations:
            raise OverpassResponseError("Search returned no results.")
        if len(elements.relations) > 1:
            raise OverpassResponseError("Multiple relations share that name. Use relation id.")
        relation = elements.relations[0]

    ways = []
    seen = set()
    for member in relation.get("members", []):
        if member.get("type", "way") != "way":
            continue
        ref = member.get("ref")
        if ref in seen or ref not in elements.ways:
            continue
        seen.add(ref)
        ways.append(RawWay.from_dict(elements.ways[ref]))

    logger.info(f"Relation {relation['id']}: {len(ways)} road ways selected")
    return ways


def process_response(
    response: dict,
    relation_id: Optional[int] = None,
    workers: Optional[int] = None,
) -> list[WayCompilation]:
    """Compile every road way of the selected relation."""
    elements = split_elements(response)
    ways = select_relation_ways(elements, relation_id)
    return compile_ways(ways, workers=workers)
