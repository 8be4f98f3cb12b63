"""
Schema Descriptor - Attribute sets of the provider, its resource and data source.

Each schema lists its attributes with a role (required, optional or computed)
and a sensitivity flag. Raw declarations are decoded against a schema before
any remote call is made.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from errors import ValidationError
from validation import validate_declaration_against_schema, validate_json_schema


_JSON_TYPES = {
    "string": "string",
    "bool": "boolean",
    "int": "integer",
}


class AttributeRole(Enum):
    """How an attribute is supplied."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"


class DeclarationSource(Enum):
    """Where a raw declaration came from."""

    CONFIG = "config"
    PLAN = "plan"
    STATE = "state"


@dataclass(frozen=True)
class AttributeSpec:
    """A single attribute of a schema."""

    name: str
    role: AttributeRole
    type: str = "string"
    sensitive: bool = False
    description: str = ""

    @property
    def computed(self) -> bool:
        return self.role is AttributeRole.COMPUTED

    @property
    def required(self) -> bool:
        return self.role is AttributeRole.REQUIRED


class ResourceSchema:
    """
    Ordered attribute set for one provider, resource or data source.

    Args:
        description: Human-readable description of the schema owner.
        attributes: Attribute specs, in declaration order.
        identifier: Attribute that identifies the remote object, if any.
    """

    def __init__(
        self,
        description: str,
        attributes: List[AttributeSpec],
        identifier: Optional[str] = None,
    ):
        names = [a.name for a in attributes]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate attribute names in schema: {names}")
        for attribute in attributes:
            if attribute.type not in _JSON_TYPES:
                raise ValueError(
                    f"Unsupported attribute type '{attribute.type}' "
                    f"for '{attribute.name}'"
                )
        if identifier is not None and identifier not in names:
            raise ValueError(f"Identifier '{identifier}' is not a schema attribute")

        self.description = description
        self.identifier = identifier
        self._attributes = list(attributes)
        self._by_name = {a.name: a for a in attributes}

        for source in DeclarationSource:
            is_valid, error = validate_json_schema(self.json_schema(source))
            if not is_valid:
                raise ValueError(error)

    def describe(self) -> List[AttributeSpec]:
        """Return the attribute specs in declaration order."""
        return list(self._attributes)

    @property
    def attribute_names(self) -> List[str]:
        return [a.name for a in self._attributes]

    def attribute(self, name: str) -> AttributeSpec:
        return self._by_name[name]

    def null_declaration(self) -> Dict[str, Any]:
        """Return a declaration with every attribute set to None."""
        return {name: None for name in self.attribute_names}

    def json_schema(self, source: DeclarationSource) -> Dict[str, Any]:
        """
        Build the JSON Schema a raw declaration from `source` must satisfy.

        Config and plan blobs must carry every required attribute as a
        non-null value. Prior state only has to carry the identifier.
        """
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for attribute in self._attributes:
            json_type = _JSON_TYPES[attribute.type]
            if source is DeclarationSource.STATE:
                must_have = attribute.name == self.identifier
            else:
                must_have = attribute.required

            if must_have:
                properties[attribute.name] = {"type": json_type}
                required.append(attribute.name)
            else:
                properties[attribute.name] = {"type": [json_type, "null"]}

        return {
            "type": "object",
            "properties": properties,
            "required": required,
            "additionalProperties": False,
        }

    def decode(
        self, raw: Optional[Dict[str, Any]], source: DeclarationSource
    ) -> Dict[str, Any]:
        """
        Decode a raw attribute mapping into a full declaration.

        Args:
            raw: Attribute name to value mapping. None is treated as empty.
            source: Where the mapping came from.

        Returns:
            Dict holding every schema attribute in schema order; attributes
            missing from `raw` are None.

        Raises:
            ValidationError: If the mapping does not satisfy the schema.
        """
        raw = dict(raw or {})

        is_valid, error = validate_declaration_against_schema(
            raw, self.json_schema(source)
        )
        if not is_valid:
            raise ValidationError(error, summary="Invalid declaration")

        if source is DeclarationSource.CONFIG:
            supplied = [
                a.name
                for a in self._attributes
                if a.computed and raw.get(a.name) is not None
            ]
            if supplied:
                raise ValidationError(
                    f"Computed attributes cannot be set in configuration: "
                    f"{', '.join(supplied)}",
                    summary="Invalid declaration",
                )

        return {name: raw.get(name) for name in self.attribute_names}

    def redact(self, declaration: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of the declaration with sensitive values masked."""
        redacted = dict(declaration)
        for attribute in self._attributes:
            if attribute.sensitive and redacted.get(attribute.name) is not None:
                redacted[attribute.name] = "(sensitive)"
        return redacted


def _computed(name: str, description: str) -> AttributeSpec:
    return AttributeSpec(name, AttributeRole.COMPUTED, description=description)


PROVIDER_SCHEMA = ResourceSchema(
    description="YouTube provider",
    attributes=[
        AttributeSpec(
            "access_token",
            AttributeRole.REQUIRED,
            sensitive=True,
            description="OAuth bearer token for the YouTube Data API",
        ),
    ],
)

VIDEO_RESOURCE_SCHEMA = ResourceSchema(
    description="Video resource",
    identifier="id",
    attributes=[
        AttributeSpec(
            "id", AttributeRole.REQUIRED, description="Id of the youtube video"
        ),
        AttributeSpec(
            "title", AttributeRole.REQUIRED, description="Title of the youtube video"
        ),
        AttributeSpec(
            "description",
            AttributeRole.REQUIRED,
            description="Description of the youtube video",
        ),
        _computed("res", "Encoded snippet, or the raw update response after an update"),
    ],
)

VIDEO_DATA_SOURCE_SCHEMA = ResourceSchema(
    description="Video data source",
    identifier="id",
    attributes=[
        AttributeSpec(
            "id", AttributeRole.REQUIRED, description="Id of the youtube video"
        ),
        _computed("title", "Title of the youtube video"),
        _computed("description", "Description of the youtube video"),
        _computed("res", "Encoded video item"),
        _computed("content_details", "Encoded contentDetails part"),
        _computed("live_streaming_details", "Encoded liveStreamingDetails part"),
        _computed("localizations", "Encoded localizations part"),
        _computed("player", "Encoded player embed information"),
        _computed("recording_details", "Encoded recordingDetails part"),
        _computed("snippet", "Encoded snippet part"),
        _computed("statistics", "Encoded statistics part"),
        _computed("status", "Encoded status part"),
        _computed("topic_details", "Encoded topicDetails part"),
    ],
)
