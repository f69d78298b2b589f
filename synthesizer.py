"""
Variable synthesizer.

Builds schema-valid placeholder values for an operation's declared variables
so the operation can be scored without real data. Values are produced from
the declared type name alone, consulting the type catalog for enums and
input objects:

- override table entries win over everything else
- list types become an empty list (elements are never generated)
- enums resolve to their first value
- String/ID/JSON become the placeholder string, Int/Float 1, Boolean True
- input objects recurse into every field

A result of None means "absent": the variable (or input field) is omitted
rather than sent as null. Unknown types never raise.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from catalog import TypeCatalog
from config import PLACEHOLDER_STRING

STRING_SCALARS = {"String", "ID", "JSON"}
NUMERIC_SCALARS = {"Int", "Float"}
BOOLEAN_SCALARS = {"Boolean"}


def strip_non_null(type_name: str) -> str:
    type_name = type_name.strip()
    if type_name.endswith("!"):
        return type_name[:-1].rstrip()
    return type_name


def is_list_type_name(type_name: str) -> bool:
    return type_name.startswith("[") or type_name.endswith("]")


@dataclass
class SynthesizedVariables:
    values: Dict[str, Any] = field(default_factory=dict)
    # non-null variables for which no value could be built
    missing_required: List[str] = field(default_factory=list)


class VariableSynthesizer:
    """Synthesizes variable values against one type catalog."""

    def __init__(
        self,
        catalog: TypeCatalog,
        overrides: Optional[Mapping[str, Any]] = None,
        placeholder: str = PLACEHOLDER_STRING,
    ):
        self.catalog = catalog
        self.overrides = dict(overrides or {})
        self.placeholder = placeholder

    def synthesize(
        self, type_name: str, _visiting: FrozenSet[str] = frozenset()
    ) -> Optional[Any]:
        name = strip_non_null(type_name)

        if name in self.overrides:
            return self.overrides[name]

        if is_list_type_name(name):
            return []

        if self.catalog.is_enum_name(name):
            enum_type = self.catalog.lookup_enum_type(name)
            return enum_type.default if enum_type else None

        if name in STRING_SCALARS:
            return self.placeholder
        if name in NUMERIC_SCALARS:
            return 1
        if name in BOOLEAN_SCALARS:
            return True

        input_type = self.catalog.lookup_input_type(name)
        if input_type is None:
            return None
        # An input type already being built higher up the path is left out,
        # so each type appears at most once per root-to-leaf path.
        if name in _visiting:
            return None

        visiting = _visiting | {name}
        value = {}
        for field_name, field_type in input_type.fields.items():
            field_value = self.synthesize(field_type, visiting)
            if field_value is not None:
                value[field_name] = field_value
        return value

    def synthesize_variables(self, declarations: Iterable[Any]) -> SynthesizedVariables:
        """
        Synthesize every declared variable of one operation.

        Args:
            declarations: VariableDeclaration objects from the extractor

        Returns:
            The values that could be built, plus the names of required
            variables that could not.
        """
        result = SynthesizedVariables()
        for declaration in declarations:
            value = self.synthesize(declaration.type_name)
            if value is not None:
                result.values[declaration.name] = value
            elif declaration.required:
                result.missing_required.append(declaration.name)
        return result


def synthesize(
    type_name: str,
    catalog: TypeCatalog,
    overrides: Optional[Mapping[str, Any]] = None,
    placeholder: str = PLACEHOLDER_STRING,
) -> Optional[Any]:
    """Synthesize a single value for `type_name`; None when it cannot be resolved."""
    return VariableSynthesizer(catalog, overrides, placeholder).synthesize(type_name)
