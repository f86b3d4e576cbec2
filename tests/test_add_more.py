from multivalue_form_element.callbacks import register_callback
from multivalue_form_element.elements.multivalue import add_more_ajax, add_more_submit
from multivalue_form_element.form_builder import ajax_response, build_form, process_form
from multivalue_form_element.form_state import FormState
from multivalue_form_element.schemas.elements import ElementDefinition


def _rows(element):
    return [k for k in element.children if k.isdigit()]


def _click_add_more(definition, storage, user_input=None):
    payload = dict(user_input or {})
    payload["_triggering_element_name"] = "contacts_add_more"
    form_state = FormState(storage=storage, input=payload)
    form = process_form(definition, form_state)
    return form, form_state


def test_add_more_increments_count_and_rebuilds(contacts_form):
    definition = contacts_form(default_value=["a"])
    storage = {}
    build_form(definition, FormState(storage=storage))

    form, form_state = _click_add_more(definition, storage, {"contacts": {"0": {"name": "typed", "_weight": "0"}}})

    assert form_state.rebuild is True
    assert form_state.errors == {}
    assert form_state.element_states.get_element_state(["contacts"], "contacts").items_count == 2
    contacts = form.children["contacts"]
    assert _rows(contacts) == ["0", "1"]
    assert contacts.children["0"].children["name"].value == "typed"
    assert contacts.children["1"].children["name"].value is None
    assert contacts.children["1"].children["_weight"].default_value == 1


def test_add_more_does_not_validate_the_rest_of_the_form(contacts_form):
    definition = contacts_form(default_value=["a"])
    storage = {}
    build_form(definition, FormState(storage=storage))

    # "title" is required and left empty
    _, form_state = _click_add_more(definition, storage)
    assert form_state.errors == {}
    assert form_state.rebuild is True


def test_required_rows_still_validate_on_add_more(contacts_form):
    children = {"name": {"type": "textfield", "title": "Name", "required": True}}
    definition = contacts_form(default_value=["a"], children=children)
    storage = {}
    build_form(definition, FormState(storage=storage))

    _, form_state = _click_add_more(definition, storage, {"contacts": {"0": {"name": ""}}})
    assert form_state.errors == {"contacts][0][name": "Name field is required."}
    assert form_state.rebuild is False
    assert form_state.element_states.get_element_state(["contacts"], "contacts").items_count == 1


def test_each_add_more_adds_exactly_one_row(contacts_form):
    definition = contacts_form(default_value=["a", "b"])
    storage = {}
    build_form(definition, FormState(storage=storage))

    for k in range(1, 4):
        _, form_state = _click_add_more(definition, storage)
        assert form_state.element_states.get_element_state(["contacts"], "contacts").items_count == 2 + k

    form = build_form(definition, FormState(storage=storage))
    assert _rows(form.children["contacts"]) == ["0", "1", "2", "3", "4"]


def test_ajax_response_returns_the_rebuilt_field(contacts_form):
    definition = contacts_form(default_value=["a"])
    storage = {}
    build_form(definition, FormState(storage=storage))

    form, form_state = _click_add_more(definition, storage)
    element = ajax_response(form, form_state)

    assert element is form.children["contacts"]
    assert _rows(element) == ["0", "1"]
    assert form_state.triggering_element.ajax.wrapper == "contacts-add-more-wrapper"


def test_ajax_handler_gives_no_update_for_bounded_fields(contacts_form):
    form_state = FormState()
    form = build_form(contacts_form(cardinality=2), form_state)
    # a trigger left over from when the field was unlimited
    form_state.triggering_element = ElementDefinition(type="submit", array_parents=["contacts", "add_more"])

    assert add_more_ajax(form, form_state) is None


def test_stale_trigger_after_cardinality_change_yields_no_update(contacts_form):
    storage = {}
    build_form(contacts_form(default_value=["a"]), FormState(storage=storage))

    bounded = contacts_form(cardinality=2, default_value=["a"])
    form, form_state = _click_add_more(bounded, storage, {"title": "T"})

    assert form_state.triggering_element is None
    assert ajax_response(form, form_state) is None
    assert form_state.element_states.get_element_state(["contacts"], "contacts").items_count == 1


def test_submit_handler_initializes_missing_state(contacts_form):
    form_state = FormState()
    form = build_form(contacts_form(default_value=["a", "b"]), form_state)
    form_state.storage.clear()
    form_state.triggering_element = form.children["contacts"].children["add_more"]

    add_more_submit(form, form_state)

    assert form_state.element_states.get_element_state(["contacts"], "contacts").items_count == 3
    assert form_state.rebuild is True


def test_non_js_submission_detects_the_button_by_name(contacts_form):
    definition = contacts_form(default_value=["a"])
    storage = {}
    build_form(definition, FormState(storage=storage))

    form_state = FormState(storage=storage, input={"contacts_add_more": "Add another item"})
    form = process_form(definition, form_state)

    assert form_state.triggering_element is not None
    assert form_state.triggering_element.name == "contacts_add_more"
    assert _rows(form.children["contacts"]) == ["0", "1"]


_final_calls = []


@register_callback("tests.final_submit")
def _final_submit(form, form_state):
    _final_calls.append(form_state.build_id)


def test_unknown_named_trigger_runs_no_form_handlers(contacts_form):
    _final_calls.clear()
    definition = contacts_form(default_value=["a"]).model_copy(update={"submit_handlers": ["tests.final_submit"]})
    storage = {}
    build_form(definition, FormState(storage=storage))

    form_state = FormState(
        storage=storage,
        input={"title": "T", "_triggering_element_name": "contacts_add_more_removed"},
    )
    form = process_form(definition, form_state)

    assert form_state.triggering_element is None
    assert _final_calls == []
    assert form_state.rebuild is False
    assert ajax_response(form, form_state) is None


def test_plain_submission_runs_form_handlers(contacts_form):
    _final_calls.clear()
    definition = contacts_form(default_value=["a"]).model_copy(update={"submit_handlers": ["tests.final_submit"]})

    process_form(definition, FormState(input={"title": "T"}, build_id="form-1"))

    assert _final_calls == ["form-1"]
