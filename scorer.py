import asyncio
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence

from graphql import (
    DocumentNode,
    GraphQLError,
    GraphQLField,
    GraphQLIncludeDirective,
    GraphQLSchema,
    GraphQLSkipDirective,
    OperationType,
    get_named_type,
    is_abstract_type,
    is_composite_type,
    is_interface_type,
    is_object_type,
    parse,
    value_from_ast_untyped,
)
from graphql.execution.values import (
    get_argument_values,
    get_directive_values,
    get_variable_values,
)
from graphql.language.ast import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
)

from config import COMPLEXITY_DIRECTIVE, DEFAULT_FIELD_COMPLEXITY
from extractor import Operation, parse_operation, partition_operations
from reporter import ComplexityReporter, ComplexityResult, Number
from synthesizer import VariableSynthesizer


@dataclass(frozen=True)
class EstimatorArgs:
    type_def: Any
    field: GraphQLField
    node: FieldNode
    args: Dict[str, Any]
    child_complexity: Number


Estimator = Callable[[EstimatorArgs], Optional[Number]]


class MissingVariableError(ValueError):
    pass


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and not math.isnan(value)
    )


def field_extensions_estimator() -> Estimator:
    """Cost declared in code through field.extensions["complexity"]."""

    def estimate(args: EstimatorArgs) -> Optional[Number]:
        complexity = (args.field.extensions or {}).get("complexity")
        if callable(complexity):
            return complexity(args)
        if _is_number(complexity):
            return args.child_complexity + complexity
        return None

    return estimate


def _lookup_argument(args: Mapping[str, Any], path: str) -> Any:
    value: Any = args
    for key in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def directive_estimator(name: str = COMPLEXITY_DIRECTIVE) -> Estimator:
    """
    Cost declared in SDL with a directive on the field definition:

        directive @complexity(value: Int!, multipliers: [String!]) on FIELD_DEFINITION

    Each multiplier names a (dotted) argument path. A numeric argument
    multiplies the cost, a list argument multiplies it by its length.
    """

    def estimate(args: EstimatorArgs) -> Optional[Number]:
        ast_node = args.field.ast_node
        if ast_node is None or not ast_node.directives:
            return None
        for directive in ast_node.directives:
            if directive.name.value != name:
                continue
            values = {
                argument.name.value: value_from_ast_untyped(argument.value)
                for argument in directive.arguments or []
            }
            value = values.get("value")
            if not _is_number(value):
                return None
            multipliers = values.get("multipliers") or []
            if isinstance(multipliers, str):
                multipliers = [multipliers]
            total_multiplier: Number = 1
            for path in multipliers:
                argument_value = _lookup_argument(args.args, path)
                if _is_number(argument_value):
                    total_multiplier *= argument_value
                elif isinstance(argument_value, (list, tuple)):
                    total_multiplier *= len(argument_value)
            return (value + args.child_complexity) * total_multiplier
        return None

    return estimate


def simple_estimator(default_complexity: Number = DEFAULT_FIELD_COMPLEXITY) -> Estimator:
    """Every field costs default_complexity plus its children."""

    def estimate(args: EstimatorArgs) -> Optional[Number]:
        return default_complexity + args.child_complexity

    return estimate


def default_estimators(default_complexity: Number = DEFAULT_FIELD_COMPLEXITY) -> List[Estimator]:
    return [
        field_extensions_estimator(),
        directive_estimator(),
        simple_estimator(default_complexity),
    ]


class ComplexityEstimator:
    """
    Walks one operation's selection tree and sums field costs.

    Fields missing from the schema contribute nothing. Selections on abstract
    types are scored per possible concrete type and the most expensive one
    counts.
    """

    def __init__(
        self,
        schema: GraphQLSchema,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]] = None,
        estimators: Optional[Sequence[Estimator]] = None,
        strict_fragments: bool = False,
        operation_name: Optional[str] = None,
    ):
        self.schema = schema
        self.variables = variables or {}
        self.estimators = list(estimators) if estimators else default_estimators()
        self.strict_fragments = strict_fragments
        self.operation_name = operation_name
        self.operations = [
            d for d in document.definitions if isinstance(d, OperationDefinitionNode)
        ]
        self.fragments = {
            d.name.value: d
            for d in document.definitions
            if isinstance(d, FragmentDefinitionNode)
        }
        self.variable_values: Dict[str, Any] = {}

    def estimate(self) -> Number:
        operation = self._select_operation()
        if operation is None:
            return 0
        coerced = get_variable_values(
            self.schema, operation.variable_definitions or [], self.variables
        )
        if isinstance(coerced, list):
            raise coerced[0]
        self.variable_values = coerced
        return self._node_complexity(operation, self._root_type(operation), frozenset())

    def _select_operation(self) -> Optional[OperationDefinitionNode]:
        if self.operation_name is None:
            return self.operations[0] if self.operations else None
        for operation in self.operations:
            if operation.name and operation.name.value == self.operation_name:
                return operation
        raise GraphQLError(f"Unknown operation named '{self.operation_name}'.")

    def _root_type(self, operation: OperationDefinitionNode) -> Any:
        root_types = {
            OperationType.QUERY: self.schema.query_type,
            OperationType.MUTATION: self.schema.mutation_type,
            OperationType.SUBSCRIPTION: self.schema.subscription_type,
        }
        root_type = root_types.get(operation.operation)
        if root_type is None:
            raise GraphQLError(
                f"Schema is not configured to execute {operation.operation.value} operation.",
                operation,
            )
        return root_type

    def _possible_type_names(self, type_def: Any) -> List[str]:
        if is_abstract_type(type_def):
            return [t.name for t in self.schema.get_possible_types(type_def)]
        return [type_def.name]

    def _should_include(self, node: Any) -> bool:
        skip = get_directive_values(GraphQLSkipDirective, node, self.variable_values)
        if skip and skip["if"] is True:
            return False
        include = get_directive_values(GraphQLIncludeDirective, node, self.variable_values)
        if include and include["if"] is False:
            return False
        return True

    def _estimate_field(
        self, type_def: Any, field: GraphQLField, node: FieldNode, child_complexity: Number
    ) -> Number:
        args = get_argument_values(field, node, self.variable_values)
        estimator_args = EstimatorArgs(
            type_def=type_def,
            field=field,
            node=node,
            args=args,
            child_complexity=child_complexity,
        )
        for estimator in self.estimators:
            value = estimator(estimator_args)
            if _is_number(value):
                return value
        raise GraphQLError(
            f"No complexity could be calculated for field {type_def.name}.{node.name.value}."
            " At least one complexity estimator has to return a complexity score.",
            node,
        )

    def _node_complexity(
        self, node: Any, type_def: Any, fragment_path: FrozenSet[str]
    ) -> Number:
        selection_set = getattr(node, "selection_set", None)
        if not selection_set:
            return 0

        possible_types = self._possible_type_names(type_def)
        fields = (
            type_def.fields
            if is_object_type(type_def) or is_interface_type(type_def)
            else {}
        )
        complexities: Dict[str, Number] = {name: 0 for name in possible_types}

        def add(complexity: Number, type_names: List[str]) -> None:
            for type_name in type_names:
                if type_name in complexities:
                    complexities[type_name] += complexity

        for child in selection_set.selections:
            if not self._should_include(child):
                continue

            if isinstance(child, FieldNode):
                field = fields.get(child.name.value)
                if field is None:
                    continue
                field_type = get_named_type(field.type)
                child_complexity = (
                    self._node_complexity(child, field_type, fragment_path)
                    if is_composite_type(field_type)
                    else 0
                )
                add(
                    self._estimate_field(type_def, field, child, child_complexity),
                    possible_types,
                )

            elif isinstance(child, FragmentSpreadNode):
                fragment_name = child.name.value
                fragment = self.fragments.get(fragment_name)
                if fragment is None:
                    if self.strict_fragments:
                        raise GraphQLError(f"Unknown fragment '{fragment_name}'.", child)
                    continue
                if fragment_name in fragment_path:
                    raise GraphQLError(
                        f"Cannot spread fragment '{fragment_name}' within itself.", child
                    )
                fragment_type = self.schema.get_type(fragment.type_condition.name.value)
                if not is_composite_type(fragment_type):
                    continue
                add(
                    self._node_complexity(
                        fragment, fragment_type, fragment_path | {fragment_name}
                    ),
                    self._possible_type_names(fragment_type),
                )

            elif isinstance(child, InlineFragmentNode):
                fragment_type = (
                    self.schema.get_type(child.type_condition.name.value)
                    if child.type_condition
                    else type_def
                )
                if not is_composite_type(fragment_type):
                    continue
                add(
                    self._node_complexity(child, fragment_type, fragment_path),
                    self._possible_type_names(fragment_type),
                )

        return max(complexities.values(), default=0)


def score(
    operation_text: str,
    variables: Optional[Dict[str, Any]],
    schema: GraphQLSchema,
    fragments: Optional[str] = None,
    estimators: Optional[Sequence[Estimator]] = None,
) -> Number:
    """
    Estimate the complexity of one operation.

    Without fragments, spreads of fragments that are not defined in the
    operation text contribute nothing. With fragments (even an empty
    document) they are appended and every spread must resolve.
    """
    if fragments is None:
        document = parse(operation_text)
    else:
        document = parse(f"{operation_text}\n{fragments}")
    return ComplexityEstimator(
        schema,
        document,
        variables,
        estimators,
        strict_fragments=fragments is not None,
    ).estimate()


def _error_message(error: Exception) -> str:
    message = error.message if isinstance(error, GraphQLError) else str(error)
    # keep diagnostics on one line
    return " ".join(message.split()) or error.__class__.__name__


def _failed_result(operation: Operation, message: str) -> ComplexityResult:
    ComplexityReporter.log_scoring_failure(message, operation.signature)
    return ComplexityResult(
        operation_name=operation.name,
        operation_kind=operation.kind,
        complexity=0,
        complexity_with_fragments=0,
        error=message,
        signature=operation.signature,
    )


def score_operation(
    operation: Operation,
    fragments: str,
    schema: GraphQLSchema,
    synthesizer: VariableSynthesizer,
    estimators: Optional[Sequence[Estimator]] = None,
) -> ComplexityResult:
    """Synthesize variables for one operation and score it with and without fragments."""
    try:
        synthesized = synthesizer.synthesize_variables(operation.variables)
        if synthesized.missing_required:
            declared = {v.name: v.type_name for v in operation.variables}
            missing = ", ".join(
                f"${name}: {declared[name]}" for name in synthesized.missing_required
            )
            raise MissingVariableError(
                f"Could not synthesize a value for required variable(s) {missing}"
            )
        complexity = score(operation.text, synthesized.values, schema, estimators=estimators)
        complexity_with_fragments = score(
            operation.text,
            synthesized.values,
            schema,
            fragments=fragments,
            estimators=estimators,
        )
    except Exception as e:
        # Any failure is contained to this operation
        return _failed_result(operation, _error_message(e))

    return ComplexityResult(
        operation_name=operation.name,
        operation_kind=operation.kind,
        complexity=complexity,
        complexity_with_fragments=complexity_with_fragments,
        signature=operation.signature,
    )


async def score_operations(
    operations: Sequence[Operation],
    fragments: str,
    schema: GraphQLSchema,
    synthesizer: VariableSynthesizer,
    estimators: Optional[Sequence[Estimator]] = None,
    timeout: Optional[float] = None,
) -> List[ComplexityResult]:
    """
    Score every operation concurrently.

    Each operation runs on a worker thread and only reads the shared
    schema, catalog and fragments. Results come back in input order once
    every operation has settled. The workers belong to a pool of their own
    that is released without joining, so an operation that timed out never
    holds up the caller or `asyncio.run`.
    """
    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(thread_name_prefix="complexity")

    async def score_one(operation: Operation) -> ComplexityResult:
        work = loop.run_in_executor(
            executor, score_operation, operation, fragments, schema, synthesizer, estimators
        )
        if timeout is None:
            return await work
        try:
            return await asyncio.wait_for(work, timeout)
        except asyncio.TimeoutError:
            return _failed_result(
                operation, f"Complexity estimation timed out after {timeout:g}s"
            )

    try:
        return list(await asyncio.gather(*(score_one(op) for op in operations)))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


async def analyze_corpus(
    operations_document: str,
    fragments_document: str,
    schema: GraphQLSchema,
    synthesizer: VariableSynthesizer,
    estimators: Optional[Sequence[Estimator]] = None,
    timeout: Optional[float] = None,
) -> List[ComplexityResult]:
    """Split the operations document and score each operation against the fragments."""
    operation_texts, stray_fragments = partition_operations([operations_document])
    # fragments that ended up in the operations document are still appendable
    fragments = "\n".join([fragments_document] + stray_fragments)
    operations = [parse_operation(text) for text in operation_texts]
    return await score_operations(
        operations, fragments, schema, synthesizer, estimators, timeout
    )
