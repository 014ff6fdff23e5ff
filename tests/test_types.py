from __future__ import annotations

import pytest

from jsts.types import (
    ANY,
    BOOLEAN,
    NUMBER,
    STRING,
    ArrayShape,
    FunctionShape,
    InterfaceRef,
    ObjectShape,
    Primitive,
    array_of,
    object_shape,
    render_key,
)


def test_primitive_rejects_unknown_kind():
    with pytest.raises(ValueError):
        Primitive("int")


def test_descriptors_compare_structurally():
    assert Primitive("number") == NUMBER
    assert object_shape([("a", NUMBER)]) == ObjectShape((("a", NUMBER),))
    assert hash(array_of([NUMBER])) == hash(ArrayShape((NUMBER,)))


def test_render_object_shape():
    shape = object_shape([("a", NUMBER), ("b", STRING)])
    assert shape.render() == "{ a: number; b: string }"
    assert ObjectShape().render() == "{}"
    assert shape.field_type("b") == STRING
    assert shape.field_type("c") is None


def test_object_shape_repeated_key_keeps_position_and_last_type():
    shape = object_shape([("a", NUMBER), ("b", BOOLEAN), ("a", STRING)])
    assert shape.fields == (("a", STRING), ("b", BOOLEAN))


def test_array_of_collapses_duplicates_in_first_seen_order():
    assert array_of([NUMBER, STRING, NUMBER, BOOLEAN]).render() == "Array<number | string | boolean>"
    assert array_of([STRING]).render() == "Array<string>"


def test_array_of_prefers_concrete_element_types():
    assert array_of([ANY, NUMBER]).element_types == (NUMBER,)
    assert array_of([ANY]).render() == "Array<any>"
    assert array_of([]).render() == "Array<any>"


def test_function_shape_inside_union_is_parenthesized():
    fn = FunctionShape((("a", NUMBER),), STRING)
    assert fn.render() == "(a: number) => string"
    assert array_of([fn, NUMBER]).render() == "Array<((a: number) => string) | number>"


def test_interface_ref_renders_its_name():
    assert str(InterfaceRef("Obj")) == "Obj"


def test_render_key_quotes_non_identifiers():
    assert render_key("name") == "name"
    assert render_key("$el") == "$el"
    assert render_key("first-name") == "'first-name'"
    assert render_key("it's") == "'it\\'s'"
