"""JSON Schema for signature records and hook catalogs.

A signature file holds exactly one record. Records are validated against
this schema before the store accepts them; anything that fails is skipped.
"""

_RULE_SCHEMA: dict = {
    "type": "object",
    "required": ["id", "search", "replace"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "description": {"type": "string"},
        "search": {"type": "string", "minLength": 1},
        "replace": {"type": "string"},
    },
}

SIGNATURE_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Signature Record",
    "description": (
        "A versioned bundle of literal find/replace rules. "
        "versionRange 'generic' marks the wildcard bundle; its bounds are ignored."
    ),
    "type": "object",
    "required": ["versionRange", "minVersion", "maxVersion", "targetType", "patches"],
    "properties": {
        "versionRange": {"type": "string", "minLength": 1},
        "minVersion": {"type": "string"},
        "maxVersion": {"type": "string"},
        "targetType": {"type": "string", "enum": ["binary", "script"]},
        "patches": {
            "type": "array",
            "minItems": 1,
            "items": _RULE_SCHEMA,
        },
    },
}

HOOK_CATALOG_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Hook Variant Catalog",
    "description": "Prioritized literal shapes of the same logical injection point.",
    "type": "object",
    "required": ["hooks"],
    "properties": {
        "hooks": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "search", "replace"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "description": {"type": "string"},
                    "match": {"type": "string", "minLength": 1},
                    "search": {"type": "string", "minLength": 1},
                    "replace": {"type": "string"},
                },
            },
        },
    },
}


# File names reserved for the hook catalog; the signature store ignores them.
HOOK_CATALOG_FILES = ("hooks.yaml", "hooks.yml", "hooks.json")
