"""
Extractor for GraphQL operations and their variable declarations.

This module turns raw GraphQL text into the units the complexity scorer works on:
- Splits concatenated documents into top-level definitions (queries, mutations,
  subscriptions, fragments, shorthand `{ ... }` queries)
- Partitions definitions into executable operations and fragment definitions
- Reads each operation's signature (kind and name) and its declared variables
- Optionally collects operation texts from a client source tree and writes the
  operations/fragments documents the scorer reads

Edge Cases Handled:
- **Definition splitting:**
    - Braces inside strings, block strings and comments are ignored
    - Object default values inside the variable list (`$f: In = {a: 1}`) do not
      open a new definition
    - An operation named like a keyword (`query query { ... }`) stays one block
    - Leading text that is neither whitespace nor comments is kept as its own
      block so that it fails individually instead of being dropped
    - Text the lexer cannot tokenize (unterminated strings, stray characters)
      keeps the rest of the document in one block
- **Variable declarations:**
    - Any whitespace and comma layout, several variables per line or none
    - Nested list types (`[[Int!]!]!`), default values and directives
    - Only the declaration list before the selection set is scanned, so
      variable usages in arguments are not mistaken for declarations
- **Source collection:**
    - gql`...` tagged template literals in script files, including gql(`...`)
    - `${Fragment}` interpolations are removed (fragments are appended later)
    - `${a.b.c}` and "${a.b.c}" interpolations keep only the last path segment
    - Whole .graphql and .gql files
    - Unreadable files are skipped

REGEX PATTERNS EXPLANATION:
1. VARIABLE_PATTERN: r'\\$([_A-Za-z][_0-9A-Za-z]*)\\s*:\\s*(\\[[\\s\\w!\\[\\]]*\\]|[_A-Za-z][_0-9A-Za-z]*)\\s*(!?)'
   - \\$name: the variable name
   - \\s*:\\s*: colon with optional whitespace
   - (\\[...\\]|Name): a (possibly nested) list type or a named type
   - (!?): optional non-null marker

2. GQL_LITERAL_PATTERN: r'\\bgql\\s*\\(?\\s*`([\\s\\S]*?)`'
   - gql tag, optionally called as a function, followed by a template literal
   - ([\\s\\S]*?): literal content, non-greedy, across lines
"""

import fnmatch
import os
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from graphql.error import GraphQLSyntaxError
from graphql.language import Lexer, Source, TokenKind

from config import DEFAULT_EXCLUSIONS, SOURCE_EXTENSIONS

DEFINITION_KEYWORDS = ("query", "mutation", "subscription", "fragment")
OPERATION_KINDS = ("query", "mutation", "subscription")

VARIABLE_PATTERN = re.compile(
    r"\$([_A-Za-z][_0-9A-Za-z]*)\s*:\s*(\[[\s\w!\[\]]*\]|[_A-Za-z][_0-9A-Za-z]*)\s*(!?)"
)
GQL_LITERAL_PATTERN = re.compile(r"\bgql\s*\(?\s*`([\s\S]*?)`")
SIMPLE_INTERPOLATION = re.compile(r"\$\{[a-zA-Z_]*?\}")
QUOTED_PATH_INTERPOLATION = re.compile(r"\"\$\{([a-zA-Z_.]*?)\}\"")
PATH_INTERPOLATION = re.compile(r"\$\{([a-zA-Z_.]*?)\}")


@dataclass(frozen=True)
class VariableDeclaration:
    name: str
    # declared type including wrapping markers, e.g. "[ID!]!"
    type_name: str

    @property
    def required(self) -> bool:
        return self.type_name.endswith("!")

    @property
    def base_type_name(self) -> str:
        return self.type_name[:-1] if self.required else self.type_name


@dataclass(frozen=True)
class Operation:
    kind: str
    name: Optional[str]
    text: str
    signature: str
    variables: Tuple[VariableDeclaration, ...] = field(default_factory=tuple)

    @property
    def is_fragment(self) -> bool:
        return self.kind == "fragment"


def split_definitions(document: str) -> List[str]:
    """
    Split a document of concatenated GraphQL definitions into one text per definition.

    Blocks are cut at top-level tokens, so strings, block strings and comments
    never open or close a definition. When the lexer rejects the text, the rest
    of the document stays in one block and fails on its own when scored.

    Args:
        document: GraphQL source that may hold any number of definitions

    Returns:
        The definition texts, stripped, in document order
    """
    starts: List[int] = []
    first_token: Optional[int] = None
    brace_depth = 0
    paren_depth = 0
    # True when no definition is open or the open one has closed its selection set
    body_closed = True
    lexer = Lexer(Source(document))
    try:
        token = lexer.advance()
        while token.kind != TokenKind.EOF:
            if first_token is None:
                first_token = token.start
            if token.kind == TokenKind.PAREN_L:
                paren_depth += 1
            elif token.kind == TokenKind.PAREN_R:
                paren_depth = max(0, paren_depth - 1)
            elif paren_depth == 0:
                if token.kind == TokenKind.BRACE_L:
                    if brace_depth == 0 and body_closed:
                        # shorthand query
                        starts.append(token.start)
                        body_closed = False
                    brace_depth += 1
                elif token.kind == TokenKind.BRACE_R:
                    brace_depth = max(0, brace_depth - 1)
                    if brace_depth == 0:
                        body_closed = True
                elif (
                    token.kind == TokenKind.NAME
                    and brace_depth == 0
                    and body_closed
                    and token.value in DEFINITION_KEYWORDS
                ):
                    starts.append(token.start)
                    body_closed = False
            token = lexer.advance()
    except GraphQLSyntaxError:
        if body_closed:
            rest = lexer.token.end
            starts.append(rest)
            if first_token is None:
                first_token = rest

    blocks: List[str] = []
    if first_token is not None and (not starts or first_token < starts[0]):
        leading = document[first_token : starts[0] if starts else len(document)]
        if leading.strip():
            blocks.append(leading.strip())
    for index, start in enumerate(starts):
        end = starts[index + 1] if index + 1 < len(starts) else len(document)
        block = document[start:end].strip()
        if block:
            blocks.append(block)
    return blocks


def partition_operations(texts: Iterable[str]) -> Tuple[List[str], List[str]]:
    """
    Classify extracted texts into executable operations and fragment definitions.

    Each text may hold several definitions; they are split first. Encounter
    order is preserved within each group.
    """
    operations: List[str] = []
    fragments: List[str] = []
    for text in texts:
        for block in split_definitions(text):
            if block.startswith("fragment"):
                fragments.append(block)
            else:
                operations.append(block)
    return operations, fragments


def operation_signature(text: str) -> str:
    """The operation's kind and name: everything before its arguments and selection set."""
    return text.split("{")[0].split("(")[0].strip()


def _declaration_list(text: str) -> str:
    """The parenthesized variable declaration list, or "" when there is none."""
    brace = text.find("{")
    paren = text.find("(")
    if paren == -1 or (brace != -1 and brace < paren):
        return ""
    depth = 0
    for i in range(paren, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return text[paren + 1 : i]
    return text[paren + 1 :]


def extract_variable_declarations(text: str) -> List[VariableDeclaration]:
    """
    Find every variable declared in an operation's signature.

    This is a textual scan, not a parse: it works on operations that would not
    parse and never raises.
    """
    declarations = []
    for match in VARIABLE_PATTERN.finditer(_declaration_list(text)):
        type_name = re.sub(r"\s+", "", match.group(2)) + match.group(3)
        declarations.append(VariableDeclaration(name=match.group(1), type_name=type_name))
    return declarations


def extract_variables(text: str) -> Dict[str, str]:
    """Map each declared variable to its type name, non-null marker stripped."""
    return {
        declaration.name: declaration.base_type_name
        for declaration in extract_variable_declarations(text)
    }


def parse_operation(text: str) -> Operation:
    text = text.strip()
    signature = operation_signature(text)
    words = signature.split()
    if words and words[0] in DEFINITION_KEYWORDS:
        kind = words[0]
        name = words[1] if len(words) > 1 else None
    else:
        # shorthand `{ ... }` or unrecognized text is treated as a query
        kind = "query"
        name = None
    variables = () if kind == "fragment" else tuple(extract_variable_declarations(text))
    return Operation(kind=kind, name=name, text=text, signature=signature, variables=variables)


# ----------------------------
# Source collection
#
# Pulls operation texts out of a client code base. This is the front end
# that produces the operations and fragments documents; the scorer itself
# only ever reads those documents.
# ----------------------------
def extract_gql_literals(source: str) -> List[str]:
    """Extract the content of every gql`...` literal in a script file."""
    literals = []
    for match in GQL_LITERAL_PATTERN.finditer(source):
        content = SIMPLE_INTERPOLATION.sub("", match.group(1))
        content = QUOTED_PATH_INTERPOLATION.sub(
            lambda m: '"' + m.group(1).split(".")[-1] + '"', content
        )
        content = PATH_INTERPOLATION.sub(lambda m: m.group(1).split(".")[-1], content)
        if content.strip():
            literals.append(content)
    return literals


def find_files(
    target_path: str, exclude_patterns: Optional[List[str]] = None
) -> List[str]:
    """
    Find all script and GraphQL files in the target path, excluding specified patterns.

    Args:
        target_path: Path to search (file or directory)
        exclude_patterns: List of patterns to exclude (e.g., ["node_modules", ".git"])

    Returns:
        List of file paths to process, sorted for a reproducible corpus order
    """
    files = []
    exclude_patterns = DEFAULT_EXCLUSIONS if exclude_patterns is None else exclude_patterns

    if os.path.isfile(target_path):
        if target_path.endswith(SOURCE_EXTENSIONS):
            files.append(target_path)
    elif os.path.isdir(target_path):
        for root, dirs, filenames in os.walk(target_path):
            # Filter out excluded directories
            dirs[:] = [
                d
                for d in dirs
                if not any(fnmatch.fnmatch(d, pattern) for pattern in exclude_patterns)
            ]
            for filename in filenames:
                if filename.endswith(SOURCE_EXTENSIONS):
                    files.append(os.path.join(root, filename))

    return sorted(files)


def collect_operations(
    target_path: str, exclude_patterns: Optional[List[str]] = None
) -> List[str]:
    """Collect raw operation texts from every matching file under target_path."""
    texts: List[str] = []
    for file_path in find_files(target_path, exclude_patterns):
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                source = f.read()
        except (OSError, UnicodeDecodeError):
            # Skip unreadable files
            continue
        if file_path.endswith((".graphql", ".gql")):
            if source.strip():
                texts.append(source)
        else:
            texts.extend(extract_gql_literals(source))
    return texts


def write_corpus(
    texts: Iterable[str], operations_path: str, fragments_path: str
) -> Tuple[List[str], List[str]]:
    """Partition collected texts and write the operations and fragments documents."""
    operations, fragments = partition_operations(texts)
    with open(operations_path, "w", encoding="utf-8") as f:
        f.write("\n".join(operations))
    with open(fragments_path, "w", encoding="utf-8") as f:
        f.write("\n".join(fragments))
    return operations, fragments
