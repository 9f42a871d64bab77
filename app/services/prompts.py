INFOGRAPHIC_PROMPT = """
Create a rich, visually striking infographic that explains: "{query}".

Use search to ground the facts you depict. Lay the infographic out as a set of
clearly separated visual regions (illustrations, diagrams, charts, callouts),
each covering one idea. Keep text inside the image minimal; the regions will be
annotated with interactive widgets afterwards. Dark background, vivid accents,
no borders around the whole image."""

REGION_ANALYSIS_PROMPT = """
This image is an infographic about "{query}".

Identify between 4 and 8 distinct visual regions worth annotating. For every
region return a segment with:

- "label": a short name (max 4 words)
- "format": one of "mini" (tiny detail, label only), "compact" (a concept with
  a short explanation), "stats" (a region showing quantities; include "stats"),
  "detailed" (the most important region; a longer explanation)
- "description": one to three sentences of factual context about the region
- "category": one of "concept", "data", "process", "highlight", "detail", "context"
- "icon": a single emoji
- "stats": for "stats" and "detailed" formats, 2 to 4 items of {{"label", "value"}}
- "sourceUrl" and "sourceName": an optional reference for the facts
- "bounds": the region's bounding box as percentages of the image size,
  {{"x", "y", "width", "height"}}, with x + width <= 100 and y + height <= 100

Order segments from background to foreground."""

OPENAI_JSON_INSTRUCTION = """

Return me a json in the following format: {"segments": [ ...segment objects... ]}"""

_STAT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "label": {"type": "STRING"},
        "value": {"type": "STRING"},
        "icon": {"type": "STRING"},
    },
    "required": ["label", "value"],
}

_BOUNDS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "x": {"type": "NUMBER"},
        "y": {"type": "NUMBER"},
        "width": {"type": "NUMBER"},
        "height": {"type": "NUMBER"},
    },
    "required": ["x", "y", "width", "height"],
}

ANALYSIS_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "segments": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "label": {"type": "STRING"},
                    "format": {
                        "type": "STRING",
                        "enum": ["compact", "stats", "detailed", "mini"],
                    },
                    "description": {"type": "STRING"},
                    "category": {
                        "type": "STRING",
                        "enum": [
                            "concept",
                            "data",
                            "process",
                            "highlight",
                            "detail",
                            "context",
                        ],
                    },
                    "icon": {"type": "STRING"},
                    "stats": {"type": "ARRAY", "items": _STAT_SCHEMA},
                    "sourceUrl": {"type": "STRING"},
                    "sourceName": {"type": "STRING"},
                    "actions": {
                        "type": "ARRAY",
                        "items": {
                            "type": "OBJECT",
                            "properties": {
                                "label": {"type": "STRING"},
                                "url": {"type": "STRING"},
                            },
                            "required": ["label"],
                        },
                    },
                    "bounds": _BOUNDS_SCHEMA,
                },
                "required": [
                    "label",
                    "format",
                    "description",
                    "category",
                    "icon",
                    "bounds",
                ],
            },
        }
    },
    "required": ["segments"],
}
