"""Tests for answer synthesis."""

from marvin.memory import Fact, FactKind
from marvin.query import (
    QueryDescriptor,
    QueryKind,
    QueryResult,
    QueryTarget,
    synthesize_answer,
)


def relation(key: str, value: str) -> Fact:
    return Fact(kind=FactKind.RELATION, key=key, entity="u1", value=value)


def prop(key: str, value: str) -> Fact:
    return Fact(kind=FactKind.PROPERTY, key=key, entity="general", value=value, concept="python")


class TestSingleFact:
    def test_nothing_found(self):
        query = QueryDescriptor(QueryKind.IDENTITY, QueryTarget.SELF)
        assert synthesize_answer(query, QueryResult()) is None

    def test_name(self):
        query = QueryDescriptor(QueryKind.IDENTITY, QueryTarget.SELF)
        fact = Fact(kind=FactKind.NAME, key="name", entity="u1", value="Ana")

        assert synthesize_answer(query, QueryResult(fact=fact)) == "Seu nome é Ana."

    def test_identity_with_other_fact_kind(self):
        query = QueryDescriptor(QueryKind.IDENTITY, QueryTarget.SELF)
        fact = Fact(kind=FactKind.PROPERTY, key="time", entity="u1", value="Flamengo")

        assert synthesize_answer(query, QueryResult(fact=fact)) is None

    def test_definition(self):
        query = QueryDescriptor(QueryKind.DEFINITION, QueryTarget.CONCEPT, value="api")
        fact = Fact(
            kind=FactKind.DEFINITION,
            key="api",
            entity="general",
            value="interface de programação",
        )

        answer = synthesize_answer(query, QueryResult(fact=fact))

        assert answer == "API significa interface de programação."

    def test_generic_single_fact(self):
        query = QueryDescriptor(QueryKind.PROPERTY, QueryTarget.SELF)
        fact = Fact(kind=FactKind.PROPERTY, key="time", entity="u1", value="Flamengo")

        assert synthesize_answer(query, QueryResult(fact=fact)) == "time: Flamengo"


class TestRelations:
    def test_single_friend(self):
        query = QueryDescriptor(QueryKind.RELATION, QueryTarget.SELF)
        result = QueryResult(facts=[relation("amigo", "Bob")])

        assert synthesize_answer(query, result) == "Seu amigo é Bob."

    def test_several_friends(self):
        query = QueryDescriptor(QueryKind.RELATION, QueryTarget.SELF)
        result = QueryResult(facts=[relation("amigo", "Bob"), relation("amigo", "Carlos")])

        assert synthesize_answer(query, result) == "Seus amigos são: Bob, Carlos."

    def test_other_self_relation(self):
        query = QueryDescriptor(QueryKind.RELATION, QueryTarget.SELF)
        result = QueryResult(facts=[relation("irmão", "Carlos")])

        assert synthesize_answer(query, result) == "irmão: Carlos"

    def test_third_party_exact(self):
        query = QueryDescriptor(QueryKind.RELATION, QueryTarget.THIRD_PARTY, value="bob")
        result = QueryResult(facts=[relation("amigo", "Bob"), relation("colega", "bob")])

        assert synthesize_answer(query, result) == "bob é seu amigo, colega."

    def test_third_party_partial(self):
        query = QueryDescriptor(QueryKind.RELATION, QueryTarget.THIRD_PARTY, value="bob")
        result = QueryResult(facts=[relation("amigo", "Bob Dylan")])

        assert synthesize_answer(query, result) == "Encontrei: Bob Dylan"

    def test_third_party_no_match(self):
        query = QueryDescriptor(QueryKind.RELATION, QueryTarget.THIRD_PARTY, value="bob")
        result = QueryResult(facts=[relation("amigo", "Carlos")])

        assert synthesize_answer(query, result) is None


class TestConceptProperties:
    def test_requested_property(self):
        query = QueryDescriptor(
            QueryKind.PROPERTY, QueryTarget.CONCEPT, value="python", property="características"
        )
        result = QueryResult(
            facts=[prop("características", "dinâmica"), prop("criador", "Guido")]
        )

        answer = synthesize_answer(query, result)

        assert answer == "As características de Python são: dinâmica"

    def test_all_properties_listed(self):
        query = QueryDescriptor(QueryKind.PROPERTY, QueryTarget.CONCEPT, value="python")
        result = QueryResult(facts=[prop("tipagem", "dinâmica"), prop("criador", "Guido")])

        answer = synthesize_answer(query, result)

        assert answer == "Informações sobre Python:\n- tipagem: dinâmica\n- criador: Guido"

    def test_unmatched_property_lists_everything(self):
        query = QueryDescriptor(
            QueryKind.PROPERTY, QueryTarget.CONCEPT, value="python", property="versões"
        )
        result = QueryResult(facts=[prop("tipagem", "dinâmica")])

        assert synthesize_answer(query, result) == "Informações sobre Python:\n- tipagem: dinâmica"

    def test_property_of_third_party_unsupported(self):
        query = QueryDescriptor(QueryKind.PROPERTY, QueryTarget.THIRD_PARTY, value="bob")
        result = QueryResult(facts=[prop("idade", "30")])

        assert synthesize_answer(query, result) is None


def test_multiple_definitions_listed():
    query = QueryDescriptor(QueryKind.DEFINITION, QueryTarget.CONCEPT, value="api")
    facts = [
        Fact(kind=FactKind.DEFINITION, key="api", entity="general", value="interface"),
        Fact(kind=FactKind.DEFINITION, key="api", entity="general", value="contrato"),
    ]

    answer = synthesize_answer(query, QueryResult(facts=facts))

    assert answer == "Encontrei estas informações: interface, contrato"
