# tests/widget/test_controller.py
import logging
import pytest

from actionbuttons.engine.actions.definitions import ButtonDefinition, WidgetProps
from actionbuttons.widget import ButtonWidgetController

pytestmark = pytest.mark.asyncio

@pytest.fixture
def props():
    return {
        "buttons": [{
            "cId": "b1",
            "label": "Go",
            "actions": [{"kind": "setVariable", "variable": "vClicked", "value": 1}],
            "navigation": {"enabled": True, "action": "goToSheet", "sheet": "s1"},
        }],
        "buttonSet": {"dynamic": False, "rule": "A|B", "definition": [{"label": "$1"}]},
    }

@pytest.fixture
def controller(props, session, dialogs, navigator, log_sink, test_settings):
    return ButtonWidgetController(
        lambda: props, session, dialogs, navigator, log_sink=log_sink,
        state_name="widgetState", settings=test_settings
    )

async def test_press_runs_chain_then_navigation(controller, session, navigator):
    button = controller.buttons()[0]

    result = await controller.press(button)

    assert result is True
    assert session.calls == [("num", "vClicked", 1)]
    navigator.goto_sheet.assert_awaited_once_with("s1")

async def test_press_reads_live_configuration(controller, props, session):
    button = controller.buttons()[0]
    props["buttons"][0]["actions"][0]["value"] = 2

    await controller.press(button)

    assert session.calls == [("num", "vClicked", 2)]

async def test_stopped_chain_skips_navigation(controller, props, navigator):
    props["buttons"][0]["actions"].append({"kind": "continueOrTerminate", "value": "0"})

    result = await controller.press(controller.buttons()[0])

    assert result is False
    navigator.goto_sheet.assert_not_called()

async def test_press_in_edit_state_does_nothing(controller, session, navigator):
    assert await controller.press(controller.buttons()[0], in_edit_state=True) is None
    session.set_num_variable.assert_not_called()
    navigator.goto_sheet.assert_not_called()

async def test_fatal_errors_are_logged_not_raised(controller, props, navigator, caplog):
    props["buttons"][0]["actions"] = [{"kind": "doesNotExist"}]

    with caplog.at_level(logging.ERROR):
        result = await controller.press(controller.buttons()[0])

    assert result is None
    assert "doesNotExist" in caplog.text
    navigator.goto_sheet.assert_not_called()

async def test_dynamic_buttons_are_cached_until_destroy(controller, props):
    props["buttonSet"]["dynamic"] = True
    controller.on_mount()

    first = controller.buttons()
    second = controller.buttons()

    assert [b.label for b in first] == ["A", "B"]
    assert second is first
    assert all(b.styleType == "style" for b in first)

    controller.on_destroy()

    assert controller.buttons() is not first
    assert not controller.mounted

async def test_run_chain_passes_the_widget_state(controller, session):
    session.add_field("Region")

    await controller.run_chain([{"kind": "selectAll", "field": "Region"}])

    assert session.field_calls == [("Region", "widgetState")]

async def test_run_navigation_directly(controller, navigator):
    assert await controller.run_navigation({"enabled": True, "action": "goToNextSheet"}) is True
    navigator.next_sheet.assert_awaited_once()

@pytest.mark.parametrize("expression, visible", [("", True), ("abc", True), ("1", True), ("0", False), (0, False)])
async def test_visibility_and_enabled_predicates(expression, visible):
    button = ButtonDefinition(visible=expression, enabled=expression)

    assert ButtonWidgetController.is_visible(button) is visible
    assert ButtonWidgetController.is_disabled(button) is (not visible)

async def test_static_props_object(session, dialogs, navigator, test_settings):
    controller = ButtonWidgetController(WidgetProps(), session, dialogs, navigator, settings=test_settings)

    assert controller.buttons() == []

async def test_press_picks_up_dynamic_template_edits(controller, props, session):
    props["buttonSet"] = {
        "dynamic": True,
        "rule": "A|B",
        "definition": [{"label": "$1", "actions": [{"kind": "setVariable", "variable": "v", "value": "old-$1"}]}],
    }
    button = controller.buttons()[0]
    props["buttonSet"]["definition"][0]["actions"][0]["value"] = "new-$1"

    result = await controller.press(button)

    assert result is True
    assert session.calls == [("str", "v", "new-A")]
    assert [b.actions[0].value for b in controller.buttons()] == ["new-A", "new-B"]
