"""
Shared test fixtures for the lane tag compiler test suite.

Provides synthetic way tags and Overpass responses so that unit tests run
without network access.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the webapp directory is on sys.path so service imports work
WEBAPP_DIR = Path(__file__).parent.parent
if str(WEBAPP_DIR) not in sys.path:
    sys.path.insert(0, str(WEBAPP_DIR))


# ---------------------------------------------------------------------------
# Raw way fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_way():
    """Factory for RawWay objects with sensible id/nodes defaults."""
    from services.way_compiler import RawWay

    def _make(tags: dict, way_id: int = 1001, nodes: tuple = (1, 2, 3)):
        return RawWay(id=way_id, nodes=tuple(nodes), tags=dict(tags))

    return _make


@pytest.fixture
def oneway_tags():
    """A one-way street with no lane information."""
    return {"highway": "primary", "oneway": "yes"}


@pytest.fixture
def four_lane_tags():
    """A two-way street with only a total lane count."""
    return {"highway": "secondary", "lanes": "4", "surface": "asphalt"}


@pytest.fixture
def turn_lane_tags():
    """Forward turn markings on a two-lane forward carriageway."""
    return {
        "highway": "primary",
        "lanes:forward": "2",
        "turn:lanes:forward": "left|through;right",
    }


# ---------------------------------------------------------------------------
# Working tag fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def working_tags():
    """Factory for working tag dicts from raw OpenStreetMap tags."""
    from services.way_compiler import parse_raw_tags

    def _make(raw: dict):
        return parse_raw_tags(raw)

    return _make


# ---------------------------------------------------------------------------
# Overpass fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def overpass_response():
    """One route relation with two road ways, a footpath and a stray way."""
    return {
        "version": 0.6,
        "elements": [
            {"type": "node", "id": 1, "lat": 59.91, "lon": 10.75},
            {"type": "node", "id": 2, "lat": 59.92, "lon": 10.76},
            {"type": "node", "id": 3, "lat": 59.93, "lon": 10.77},
            {
                "type": "way",
                "id": 101,
                "nodes": [1, 2],
                "tags": {"highway": "primary", "oneway": "yes", "lanes": "2"},
            },
            {
                "type": "way",
                "id": 102,
                "nodes": [2, 3],
                "tags": {"highway": "primary", "lanes": "4"},
            },
            {
                "type": "way",
                "id": 103,
                "nodes": [3, 1],
                "tags": {"name": "Footpath without highway tag"},
            },
            {
                "type": "way",
                "id": 104,
                "nodes": [1, 3],
                "tags": {"highway": "residential"},
            },
            {
                "type": "relation",
                "id": 9001,
                "members": [
                    {"type": "way", "ref": 102, "role": ""},
                    {"type": "way", "ref": 101, "role": ""},
                    {"type": "way", "ref": 103, "role": ""},
                    {"type": "node", "ref": 1, "role": "stop"},
                ],
                "tags": {"type": "route", "route": "road", "ref": "E18"},
            },
        ],
    }
