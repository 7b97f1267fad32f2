"""Raw tag keys, string grammar and default values for way tags."""

# Raw OpenStreetMap key for each recognised tag.
# Single source of truth for the input dictionary and the serialised output.
OSM_TAG_KEYS: dict[str, str] = {
    "oneway":              "oneway",
    "junction":            "junction",
    "surface":             "surface",
    "lanes":               "lanes",
    "lanes_forward":       "lanes:forward",
    "lanes_backward":      "lanes:backward",
    "turn_lanes":          "turn:lanes",
    "turn_lanes_forward":  "turn:lanes:forward",
    "turn_lanes_backward": "turn:lanes:backward",
}

# Tags only read as input context; never part of a compiled record.
HELPER_TAGS: frozenset[str] = frozenset({"turn_lanes"})

# Array grammar: "left;through|right" is two lanes, the first with two markings.
ARRAY_DELIMITER = ";"
DOUBLE_ARRAY_DELIMITER = "|"

BOOLEAN_TRUE = "yes"
BOOLEAN_FALSE = "no"

# Explicit marking for a lane that has no turn arrows painted.
NO_MARKING = "none"

# Last-resort values when nothing else can be inferred (raw string form).
TAG_DEFAULTS: dict[str, str] = {
    "oneway":              BOOLEAN_FALSE,
    "junction":            "no",
    "surface":             "unknown",
    "lanes":               "2",
    "lanes_forward":       "1",
    "lanes_backward":      "1",
    "turn_lanes_forward":  "",
    "turn_lanes_backward": "",
}

# Junction types that imply traffic flows in one direction only.
ONEWAY_JUNCTIONS: frozenset[str] = frozenset({"roundabout", "circular"})
