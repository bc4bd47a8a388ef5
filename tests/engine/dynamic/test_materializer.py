# tests/engine/dynamic/test_materializer.py
import itertools
import pytest

from actionbuttons.engine.actions.definitions import ButtonDefinition, DynamicButtonSet
from actionbuttons.engine.dynamic import DynamicButtonMaterializer, CacheKey

@pytest.fixture
def materializer(test_settings):
    counter = itertools.count(1)
    return DynamicButtonMaterializer(test_settings, id_factory=lambda: f"btn-{next(counter)}")

@pytest.fixture
def template():
    return ButtonDefinition.model_validate({
        "label": "$1",
        "styleType": "colorExpression",
        "actions": [{"kind": "applySelection", "field": "Region", "value": "$1"},
                    {"kind": "setVariable", "variable": "vParam", "value": "$2"}],
        "navigation": {"enabled": True, "action": "goToSheet", "sheet": "$3"},
    })

def test_rule_expansion_is_ordered_and_parametrised(materializer, template):
    buttons = materializer.materialize("A~1|B~2|C~3", True, template)

    assert [b.label for b in buttons] == ["A", "B", "C"]
    assert [b.actions[1].value for b in buttons] == ["1", "2", "3"]
    assert [b.actions[0].value for b in buttons] == ["A", "B", "C"]
    assert [b.cId for b in buttons] == ["btn-1", "btn-2", "btn-3"]

def test_missing_params_stay_literal(materializer, template):
    button = materializer.materialize("A", True, template)[0]

    assert button.actions[1].value == "$2"
    assert button.navigation.sheet == "$3"

def test_empty_segments_are_dropped(materializer, template):
    assert [b.label for b in materializer.materialize("A||B|", True, template)] == ["A", "B"]
    assert materializer.materialize("", True, template) == []

def test_safety_limit(materializer, template):
    rule = "|".join(f"B{i}" for i in range(150))

    limited = materializer.materialize(rule, True, template)
    unlimited = materializer.materialize(rule, False, template)

    assert len(limited) == 100
    assert [b.label for b in limited] == [f"B{i}" for i in range(100)]
    assert len(unlimited) == 150

def test_cache_returns_the_same_list(materializer, template):
    first = materializer.materialize("A|B", True, template)
    second = materializer.materialize("A|B", True, template)

    assert second is first
    assert len(materializer) == 1

def test_changed_rule_or_limit_misses_the_cache(materializer, template):
    first = materializer.materialize("A|B", True, template)

    changed_rule = materializer.materialize("A|C", True, template)
    changed_limit = materializer.materialize("A|B", False, template)

    assert changed_rule is not first
    assert changed_limit is not first
    assert [b.label for b in changed_rule] == ["A", "C"]
    assert len(materializer) == 3

def test_cache_key_is_structural(materializer):
    assert materializer.cache_key("A|B", True) == CacheKey("A|B", 100)
    assert materializer.cache_key("A|B", False) == CacheKey("A|B", None)

def test_clear_empties_the_cache(materializer, template):
    first = materializer.materialize("A", True, template)

    materializer.clear()

    assert len(materializer) == 0
    assert materializer.materialize("A", True, template) is not first

def test_style_defaults_to_outline_without_color_expression(materializer):
    plain = materializer.materialize("A", True, {"label": "$1", "styleType": "colorExpression"})[0]
    colored = materializer.materialize("B", True, {
        "label": "$1", "styleType": "colorExpression", "colorExpression": "#ff0000"
    })[0]

    assert plain.styleType == "style"
    assert colored.styleType == "colorExpression"
    assert colored.colorExpression == "#ff0000"

def test_default_dynamic_template():
    assert DynamicButtonSet().template.label == "$1"

def test_edited_template_misses_the_cache(materializer):
    template = {"label": "$1", "actions": [{"kind": "setVariable", "variable": "v", "value": "old-$1"}]}
    first = materializer.materialize("A|B", True, template)

    same = materializer.materialize("A|B", True, {
        "actions": [{"value": "old-$1", "variable": "v", "kind": "setVariable"}], "label": "$1"
    })
    template["actions"][0]["value"] = "new-$1"
    edited = materializer.materialize("A|B", True, template)

    assert same is first
    assert edited is not first
    assert [b.actions[0].value for b in edited] == ["new-A", "new-B"]
    assert materializer.position(edited[1].cId) == 1
    assert materializer.position(first[1].cId) == 1
    assert materializer.position("unknown") is None
