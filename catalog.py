"""
Type catalog: the input-object and enum types of a loaded schema, by name.

The catalog is built once per run and only read afterwards, so it can be
shared by every concurrent scoring task.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from graphql import GraphQLSchema, is_enum_type, is_input_object_type

from config import ENUM_TYPE_SUFFIX, INPUT_TYPE_SUFFIX

CLASSIFICATIONS = ("kind", "suffix")


@dataclass(frozen=True)
class InputTypeDescriptor:
    name: str
    # field name -> printed field type, e.g. "[ID!]!"
    fields: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EnumDescriptor:
    name: str
    values: Tuple[str, ...]

    @property
    def default(self) -> str:
        return self.values[0]


@dataclass(frozen=True)
class TypeCatalog:
    input_types: Mapping[str, InputTypeDescriptor]
    enum_types: Mapping[str, EnumDescriptor]
    classification: str = "kind"

    @classmethod
    def from_schema(
        cls, schema: GraphQLSchema, classification: str = "kind"
    ) -> "TypeCatalog":
        """
        Build the catalog from a schema's type map.

        With classification="kind" types are picked by their structural kind.
        With classification="suffix" only types following the naming
        convention (names ending in "Input" / "Enum") are catalogued.
        """
        if classification not in CLASSIFICATIONS:
            raise ValueError(
                f"Unknown type classification {classification!r}, expected one of {CLASSIFICATIONS}"
            )
        by_suffix = classification == "suffix"

        input_types = {}
        enum_types = {}
        for type_name, gql_type in schema.type_map.items():
            if type_name.startswith("__"):
                continue
            if is_input_object_type(gql_type):
                if by_suffix and not type_name.endswith(INPUT_TYPE_SUFFIX):
                    continue
                input_types[type_name] = InputTypeDescriptor(
                    name=type_name,
                    fields=MappingProxyType(
                        {
                            field_name: str(input_field.type)
                            for field_name, input_field in gql_type.fields.items()
                        }
                    ),
                )
            elif is_enum_type(gql_type):
                if by_suffix and not type_name.endswith(ENUM_TYPE_SUFFIX):
                    continue
                # enum types without values cannot provide a default
                if not gql_type.values:
                    continue
                enum_types[type_name] = EnumDescriptor(
                    name=type_name, values=tuple(gql_type.values)
                )

        return cls(
            input_types=MappingProxyType(input_types),
            enum_types=MappingProxyType(enum_types),
            classification=classification,
        )

    def lookup_input_type(self, name: str) -> Optional[InputTypeDescriptor]:
        return self.input_types.get(name)

    def lookup_enum_type(self, name: str) -> Optional[EnumDescriptor]:
        return self.enum_types.get(name)

    def is_enum_name(self, name: str) -> bool:
        if self.classification == "suffix":
            return name.endswith(ENUM_TYPE_SUFFIX)
        return name in self.enum_types
