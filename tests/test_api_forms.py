import pytest
from fastapi.testclient import TestClient

from multivalue_form_element.api.main import create_app
from multivalue_form_element.cache import InMemoryFormCache
from multivalue_form_element.config import Settings


@pytest.fixture
def client():
    app = create_app(settings=Settings(), form_cache=InMemoryFormCache(ttl_sec=600))
    return TestClient(app)


def _definition(contacts_form, **kwargs):
    return contacts_form(**kwargs).model_dump(mode="json", exclude_unset=True)


def _rows(element):
    return [k for k in element["children"] if k.isdigit()]


def _start(client, contacts_form, **kwargs):
    res = client.post("/v1/forms", json={"form": _definition(contacts_form, **kwargs)})
    assert res.status_code == 200
    return res.json()


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["ok"] is True


def test_create_form_returns_build_id_and_expanded_tree(client, contacts_form):
    body = _start(client, contacts_form, default_value=["a"])
    assert body["ok"] is True
    assert body["formBuildId"].startswith("form-")

    contacts = body["form"]["children"]["contacts"]
    assert list(contacts["children"]) == ["0", "add_more"]
    assert contacts["children"]["0"]["children"]["name"]["value"] == "a"
    assert contacts["prefix"] == '<div id="contacts-add-more-wrapper">'
    assert contacts["children"]["add_more"]["ajax"]["wrapper"] == "contacts-add-more-wrapper"


def test_ajax_add_more_returns_only_the_field_and_keeps_typed_values(client, contacts_form):
    build_id = _start(client, contacts_form, default_value=["a"])["formBuildId"]

    res = client.post(
        f"/v1/forms/{build_id}/ajax",
        json={"input": {"contacts": {"0": {"name": "typed"}}}, "triggeringElement": "contacts_add_more"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["wrapper"] == "contacts-add-more-wrapper"
    element = body["element"]
    assert element["field_name"] == "contacts"
    assert _rows(element) == ["0", "1"]
    assert element["children"]["0"]["children"]["name"]["value"] == "typed"
    assert element["children"]["1"]["children"]["name"]["value"] is None


def test_add_more_count_persists_across_requests(client, contacts_form):
    build_id = _start(client, contacts_form, default_value=["a"])["formBuildId"]
    for _ in range(2):
        client.post(f"/v1/forms/{build_id}/ajax", json={"triggeringElement": "contacts_add_more"})

    res = client.get(f"/v1/forms/{build_id}")
    assert res.status_code == 200
    assert _rows(res.json()["form"]["children"]["contacts"]) == ["0", "1", "2"]


def test_full_submit_with_button_name_rebuilds_the_form(client, contacts_form):
    build_id = _start(client, contacts_form, default_value=["a"])["formBuildId"]

    res = client.post(
        f"/v1/forms/{build_id}/submit",
        json={"input": {"contacts_add_more": "Add another item", "contacts": {"0": {"name": "kept"}}}},
    )
    body = res.json()
    assert body["ok"] is True
    assert body["rebuild"] is True
    contacts = body["form"]["children"]["contacts"]
    assert _rows(contacts) == ["0", "1"]
    assert body["values"]["contacts"]["0"]["name"] == "kept"


def test_full_submit_reports_validation_errors(client, contacts_form):
    build_id = _start(client, contacts_form, default_value=["a"])["formBuildId"]
    res = client.post(f"/v1/forms/{build_id}/submit", json={"input": {"contacts": {"0": {"name": "x"}}}})
    body = res.json()
    assert body["ok"] is False
    assert body["errors"] == {"title": "Title field is required."}
    assert body["rebuild"] is False


def test_unknown_trigger_gets_no_update(client, contacts_form):
    build_id = _start(client, contacts_form, default_value=["a"])["formBuildId"]
    res = client.post(
        f"/v1/forms/{build_id}/ajax",
        json={"input": {"title": "T"}, "triggeringElement": "something_else"},
    )
    body = res.json()
    assert res.status_code == 200
    assert body["element"] is None
    assert body["wrapper"] is None


def test_programmed_submission_returns_values_without_a_session(client, contacts_form):
    res = client.post(
        "/v1/forms",
        json={
            "form": _definition(contacts_form, default_value=["a"]),
            "programmed": True,
            "values": {"title": "T", "contacts": {"0": {"name": "z"}}},
        },
    )
    body = res.json()
    assert body["ok"] is True
    assert "formBuildId" not in body
    assert body["values"] == {"title": "T", "contacts": {"0": {"name": "z", "_weight": 0}}}


def test_unknown_build_id_is_404(client):
    res = client.get("/v1/forms/form-nope")
    assert res.status_code == 404
    body = res.json()
    assert body["ok"] is False
    assert body["error"] == "form_not_found"
    assert body["requestId"].startswith("form_")


def test_malformed_default_value_is_422(client, contacts_form):
    res = client.post("/v1/forms", json={"form": _definition(contacts_form, default_value="abc")})
    assert res.status_code == 422
    assert res.json()["error"] == "element_configuration_error"


def test_unknown_element_type_is_422(client):
    res = client.post("/v1/forms", json={"form": {"type": "form", "children": {"x": {"type": "spaceship"}}}})
    assert res.status_code == 422
    assert res.json()["error"] == "element_configuration_error"


def test_body_schema_errors_are_422(client):
    res = client.post("/v1/forms", json={"values": {}})
    assert res.status_code == 422
    body = res.json()
    assert body["error"] == "validation_error"
    assert body["details"]


def test_zero_cardinality_is_rejected_as_a_body_error(client, contacts_form):
    form = _definition(contacts_form)
    form["children"]["contacts"]["cardinality"] = 0
    res = client.post("/v1/forms", json={"form": form})
    assert res.status_code == 422
    body = res.json()
    assert body["error"] == "validation_error"
    assert body["details"][0]["loc"][-1] == "cardinality"


def test_malformed_row_input_is_not_a_configuration_error(client, contacts_form):
    build_id = _start(client, contacts_form, default_value=["a"])["formBuildId"]
    res = client.post(f"/v1/forms/{build_id}/submit", json={"input": {"title": "T", "contacts": ["a"]}})
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert _rows(body["form"]["children"]["contacts"]) == ["0"]


def test_app_module_does_not_silence_serialization_warnings():
    import warnings

    from multivalue_form_element.api import main  # noqa: F401

    patterns = [f[1].pattern for f in warnings.filters if f[1] is not None]
    assert not any("PydanticSerializationUnexpectedValue" in p for p in patterns)
