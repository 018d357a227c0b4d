"""Tests for bamboohr_oaa.client.BambooHRClient.

All tests replace the client's requests.Session with a MagicMock so no real
HTTP calls are made. Responses are routed by endpoint path.
"""

import asyncio
import base64
import time
from unittest.mock import patch, MagicMock

import pytest
import requests

from bamboohr_oaa.client import (
    BambooHRClient,
    flatten_file_categories,
    normalize_client_namespace,
)
from bamboohr_oaa.exceptions import IntegrationConfigError, ProviderAuthenticationError
from bamboohr_oaa.settings import IntegrationConfig

BASE_URI = "https://api.bamboohr.com/api/gateway.php/acme/"


def _response(status=200, payload=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.reason = reason
    resp.json.return_value = payload
    return resp


def _client(routes=None, token="secret-token"):
    client = BambooHRClient(IntegrationConfig("acme", token))
    client._session = MagicMock()
    if routes is not None:
        def request(method, uri, headers=None):
            return routes[uri[len(BASE_URI):]]
        client._session.request.side_effect = request
    return client


def _requested_paths(client):
    return [c[0][1][len(BASE_URI):] for c in client._session.request.call_args_list]


# ---------------------------------------------------------------------------
# Namespace normalization
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("raw, expected", [
    ("acme", "acme"),
    ("https://acme.bamboohr.com", "acme"),
    ("http://acme.bamboohr.com", "acme"),
    ("acme.bamboohr.com", "acme"),
    ("acme.bamboohr.com/path", "acme"),
])
def test_normalize_client_namespace(raw, expected):
    assert normalize_client_namespace(raw) == expected


def test_normalize_empty_namespace_is_none():
    assert normalize_client_namespace("") is None


def test_normalize_leading_dot_is_none():
    assert normalize_client_namespace(".bamboohr.com") is None


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def test_construction_normalizes_namespace():
    client = BambooHRClient(IntegrationConfig("https://acme.bamboohr.com", "t"))
    assert client.client_namespace == "acme"


def test_construction_fails_fast_without_requests():
    with patch("bamboohr_oaa.client.requests.Session") as mock_session:
        with pytest.raises(IntegrationConfigError) as exc_info:
            BambooHRClient(IntegrationConfig("", "token"))
        mock_session.return_value.request.assert_not_called()
    assert "''" in str(exc_info.value)


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        BambooHRClient(IntegrationConfig("", "token"))


# ---------------------------------------------------------------------------
# Request primitive
# ---------------------------------------------------------------------------

def test_request_headers():
    client = _client()
    client._session.request.return_value = _response()
    client._request(client._with_base_uri("v1/employees/0"))

    method, uri = client._session.request.call_args[0]
    headers = client._session.request.call_args[1]["headers"]
    assert method == "GET"
    assert uri == BASE_URI + "v1/employees/0"
    assert headers["Accept"] == "application/json"
    expected = base64.b64encode(b"secret-token:x").decode("ascii")
    assert headers["Authorization"] == f"Basic {expected}"


def test_request_head_method():
    client = _client()
    client._session.request.return_value = _response()
    client._request(client._with_base_uri("v1/files/view"), "HEAD")
    assert client._session.request.call_args[0][0] == "HEAD"


def test_request_returns_raw_response_on_error_status():
    client = _client()
    resp = _response(status=500, reason="Internal Server Error")
    client._session.request.return_value = resp
    assert client._request(client._with_base_uri("v1/meta/users")) is resp
    resp.json.assert_not_called()


# ---------------------------------------------------------------------------
# Authentication check
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("status", [200, 404])
def test_verify_authentication_accepts_200_and_404(status):
    client = _client({"v1/employees/0": _response(status=status)})
    client.verify_authentication()
    assert _requested_paths(client) == ["v1/employees/0"]


def test_verify_authentication_wraps_bad_status():
    client = _client({"v1/employees/0": _response(status=500, reason="Internal Server Error")})
    with pytest.raises(ProviderAuthenticationError) as exc_info:
        client.verify_authentication()
    err = exc_info.value
    assert err.status == 500
    assert err.status_text == "Internal Server Error"
    assert err.endpoint == BASE_URI + "v1/employees/0"
    assert err.cause is not None


def test_verify_authentication_wraps_transport_failure():
    client = _client()
    failure = requests.ConnectionError("DNS lookup failed")
    client._session.request.side_effect = failure
    with pytest.raises(ProviderAuthenticationError) as exc_info:
        client.verify_authentication()
    err = exc_info.value
    assert err.status == -1
    assert err.status_text == ""
    assert err.cause is failure
    assert err.endpoint == BASE_URI + "v1/employees/0"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def test_iterate_users_merges_directory_entry():
    directory_entry = {"id": "5", "hireDate": "2020-01-01"}
    client = _client({
        "v1/meta/users": _response(payload={"u1": {"id": "u1", "employeeId": "5"}}),
        "v1/employees/directory": _response(payload={"employees": [directory_entry]}),
    })
    received = []
    client.iterate_users(received.append)
    assert received == [{"id": "u1", "employeeId": "5", "employeeDetails": directory_entry}]


def test_iterate_users_numeric_employee_id_matches():
    client = _client({
        "v1/meta/users": _response(payload={"1": {"id": 1, "employeeId": 5}}),
        "v1/employees/directory": _response(payload={"employees": [{"id": "5", "name": "A"}]}),
    })
    received = []
    client.iterate_users(received.append)
    assert received[0]["employeeDetails"] == {"id": "5", "name": "A"}


def test_iterate_users_unmatched_gets_empty_details():
    client = _client({
        "v1/meta/users": _response(payload={
            "a": {"id": "u1", "employeeId": "99"},
            "b": {"id": "u2"},
        }),
        "v1/employees/directory": _response(payload={"employees": [{"id": "5"}]}),
    })
    received = []
    client.iterate_users(received.append)
    assert [u["employeeDetails"] for u in received] == [{}, {}]
    assert [u["id"] for u in received] == ["u1", "u2"]


def test_iterate_users_does_not_mutate_payload():
    user = {"id": "u1", "employeeId": "5"}
    client = _client({
        "v1/meta/users": _response(payload={"u1": user}),
        "v1/employees/directory": _response(payload={"employees": [{"id": "5"}]}),
    })
    client.iterate_users(lambda u: None)
    assert "employeeDetails" not in user


def test_iterate_users_directory_failure_aborts_before_callbacks():
    client = _client()
    responses = {
        BASE_URI + "v1/meta/users": _response(payload={"u1": {"id": "u1", "employeeId": "5"}}),
    }

    def request(method, uri, headers=None):
        if uri in responses:
            return responses[uri]
        raise requests.ConnectionError("connection reset")

    client._session.request.side_effect = request
    iteratee = MagicMock()
    with pytest.raises(requests.ConnectionError):
        client.iterate_users(iteratee)
    iteratee.assert_not_called()


def test_iterate_users_decode_error_propagates():
    bad = _response()
    bad.json.side_effect = ValueError("not JSON")
    client = _client({"v1/meta/users": bad})
    with pytest.raises(ValueError):
        client.iterate_users(lambda u: None)


def test_callbacks_run_sequentially():
    client = _client({
        "v1/meta/users": _response(payload={str(i): {"id": str(i), "employeeId": str(i)} for i in range(3)}),
        "v1/employees/directory": _response(payload={"employees": []}),
    })
    log = []

    def slow(user):
        log.append(f"start {user['id']}")
        time.sleep(0.01)
        log.append(f"end {user['id']}")

    client.iterate_users(slow)
    assert log == ["start 0", "end 0", "start 1", "end 1", "start 2", "end 2"]


def test_async_callbacks_awaited_in_order():
    client = _client({
        "v1/employees/directory": _response(payload={"employees": [{"id": "1"}, {"id": "2"}]}),
    })
    log = []

    async def record(employee):
        log.append(f"start {employee['id']}")
        await asyncio.sleep(0.01)
        log.append(f"end {employee['id']}")

    client.iterate_employees(record)
    assert log == ["start 1", "end 1", "start 2", "end 2"]


def test_async_callbacks_awaited_for_users_and_files():
    client = _client({
        "v1/meta/users": _response(payload={"a": {"id": "1", "employeeId": "1"}}),
        "v1/employees/directory": _response(payload={"employees": [{"id": "1"}]}),
        "v1/files/view": _response(payload=FILES_PAYLOAD),
    })
    received = []

    async def collect(record):
        await asyncio.sleep(0)
        received.append(record["id"])

    client.iterate_users(collect)
    client.iterate_company_files(collect)
    assert received == ["1", "f1", "f2", "f3"]


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------

def test_fetch_employee_directory_last_duplicate_wins():
    client = _client({
        "v1/employees/directory": _response(payload={"employees": [
            {"id": "5", "name": "A"},
            {"id": "5", "name": "B"},
        ]}),
    })
    directory = client.fetch_employee_directory()
    assert directory == {"5": {"id": "5", "name": "B"}}


def test_iterate_employees_in_directory_order():
    client = _client({
        "v1/employees/directory": _response(payload={"employees": [
            {"id": "2"}, {"id": "1"}, {"id": "3"},
        ]}),
    })
    received = []
    client.iterate_employees(received.append)
    assert [e["id"] for e in received] == ["2", "1", "3"]


def test_get_employee_details_returns_only_dates():
    client = _client({
        "v1/employees/5/?fields=terminationDate,hireDate": _response(payload={
            "id": "5",
            "hireDate": "2020-01-01",
            "terminationDate": "0000-00-00",
            "firstName": "Ada",
        }),
    })
    assert client.get_employee_details("5") == {
        "hireDate": "2020-01-01",
        "terminationDate": "0000-00-00",
    }


def test_get_employee_details_missing_fields_are_none():
    client = _client({
        "v1/employees/5/?fields=terminationDate,hireDate": _response(payload={"id": "5"}),
    })
    assert client.get_employee_details("5") == {"hireDate": None, "terminationDate": None}


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

FILES_PAYLOAD = {"categories": [
    {"id": 1, "name": "Signed", "files": [{"id": "f1"}, {"id": "f2"}]},
    {"id": 2, "name": "Other", "files": [{"id": "f3"}]},
]}


def test_iterate_company_files_flattens_in_order():
    client = _client({"v1/files/view": _response(payload=FILES_PAYLOAD)})
    received = []
    client.iterate_company_files(received.append)
    assert [f["id"] for f in received] == ["f1", "f2", "f3"]


def test_iterate_employee_files_uses_employee_path():
    client = _client({"v1/employees/7/files/view": _response(payload=FILES_PAYLOAD)})
    received = []
    client.iterate_employee_files("7", received.append)
    assert len(received) == 3
    assert _requested_paths(client) == ["v1/employees/7/files/view"]


@pytest.mark.parametrize("status", [302, 403, 404, 500])
def test_iterate_files_non_success_is_silent(status):
    resp = _response(status=status, reason="Nope")
    client = _client({
        "v1/files/view": resp,
        "v1/employees/7/files/view": resp,
    })
    iteratee = MagicMock()
    client.iterate_company_files(iteratee)
    client.iterate_employee_files("7", iteratee)
    iteratee.assert_not_called()
    resp.json.assert_not_called()


def test_flatten_file_categories_empty():
    assert flatten_file_categories({"categories": []}) == []
    assert flatten_file_categories({"categories": [{"files": []}, {}]}) == []


def test_flatten_file_categories_null_lists():
    assert flatten_file_categories({"categories": None}) == []
    assert flatten_file_categories({"categories": [{"files": None}, {"files": [{"id": "f1"}]}]}) == [{"id": "f1"}]


def test_iterate_company_files_null_categories_is_empty():
    client = _client({"v1/files/view": _response(payload={"categories": None})})
    iteratee = MagicMock()
    client.iterate_company_files(iteratee)
    iteratee.assert_not_called()
