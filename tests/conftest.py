"""Shared test fixtures for the complexity tool tests."""

import pytest
from graphql import build_schema

from catalog import TypeCatalog
from synthesizer import VariableSynthesizer

SCHEMA_SDL = """
directive @complexity(value: Int!, multipliers: [String!]) on FIELD_DEFINITION

scalar JSON
scalar DateTime

enum StatusEnum {
  ACTIVE
  INACTIVE
}

enum IntEnum {
  ONE
  TWO
}

enum Role {
  ADMIN
  MEMBER
}

input UserFilterInput {
  name: String
  status: StatusEnum
  role: Role
}

input PaginationInput {
  first: Int!
  after: ID
}

input SearchInput {
  filter: UserFilterInput
  page: PaginationInput!
  tags: [String!]
  createdAfter: DateTime
}

input PairInput {
  a: String
  b: IntEnum
}

input ProfileUpdate {
  bio: String
}

input CycleAInput {
  b: CycleBInput
  name: String
}

input CycleBInput {
  a: CycleAInput
  count: Int
}

input TreeInput {
  child: TreeInput
  label: String
}

interface Node {
  id: ID!
}

type User implements Node {
  id: ID!
  name: String
  email: String
  posts(first: Int): [Post!]! @complexity(value: 2, multipliers: ["first"])
  friends: [User!]!
}

type Post implements Node {
  id: ID!
  title: String
  body: String
}

union SearchResult = User | Post

type Query {
  me: User
  user(id: ID!): User
  users(filter: UserFilterInput, status: StatusEnum): [User!]!
  search(input: SearchInput!): [SearchResult!]!
  node(id: ID!): Node
  expensive: Int @complexity(value: 10)
  config(data: JSON): Boolean
}

type Mutation {
  updateUser(id: ID!, input: UserFilterInput!): User
  setRole(role: Role!): Boolean
}
"""


@pytest.fixture
def schema_sdl() -> str:
    return SCHEMA_SDL


@pytest.fixture
def schema():
    return build_schema(SCHEMA_SDL)


@pytest.fixture
def catalog(schema) -> TypeCatalog:
    return TypeCatalog.from_schema(schema)


@pytest.fixture
def suffix_catalog(schema) -> TypeCatalog:
    return TypeCatalog.from_schema(schema, classification="suffix")


@pytest.fixture
def synthesizer(catalog) -> VariableSynthesizer:
    return VariableSynthesizer(catalog)
