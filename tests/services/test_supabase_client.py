from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests

from services.supabase_client import SupabaseAPIError, SupabaseClient


def _mock_response(payload: Any, status_code: int = 200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.content = b"payload"
    response.text = "payload"
    response.raise_for_status.return_value = None
    return response


def _client(session: Mock) -> SupabaseClient:
    return SupabaseClient(url="https://project.supabase.co/", api_key="anon-key", session=session)


def test_rpc_posts_params_to_procedure_endpoint() -> None:
    session = Mock()
    session.request.return_value = _mock_response([{"gross_revenue": 10}])

    rows = _client(session).rpc_rows("finance_orders_summary", {"p_from": "2024-04-06", "p_to": "2025-04-06"})

    assert rows == [{"gross_revenue": 10}]
    session.request.assert_called_once()
    args, kwargs = session.request.call_args
    assert args == ("POST", "https://project.supabase.co/rest/v1/rpc/finance_orders_summary")
    assert kwargs["json"] == {"p_from": "2024-04-06", "p_to": "2025-04-06"}
    assert kwargs["headers"]["apikey"] == "anon-key"
    assert kwargs["headers"]["Authorization"] == "Bearer anon-key"


def test_rpc_single_unwraps_first_row() -> None:
    session = Mock()
    session.request.return_value = _mock_response([{"owners_count": 2}, {"owners_count": 3}])

    assert _client(session).rpc_single("get_finance_settings") == {"owners_count": 2}


def test_rpc_single_returns_none_for_empty_result() -> None:
    session = Mock()
    session.request.return_value = _mock_response([])

    assert _client(session).rpc_single("get_finance_settings") is None


def test_void_procedure_returns_none() -> None:
    session = Mock()
    response = _mock_response(None, status_code=204)
    response.content = b""
    session.request.return_value = response

    assert _client(session).rpc("delete_expense", {"p_expense_id": "x"}) is None
    response.json.assert_not_called()


def test_select_sends_postgrest_filters() -> None:
    session = Mock()
    session.request.return_value = _mock_response([])

    _client(session).select("orders", columns="order_date", filters=[("order_date", "gte.2025-01-01")])

    args, kwargs = session.request.call_args
    assert args == ("GET", "https://project.supabase.co/rest/v1/orders")
    assert kwargs["params"] == [("select", "order_date"), ("order_date", "gte.2025-01-01")]


def test_http_error_surfaces_postgrest_message() -> None:
    session = Mock()
    response = _mock_response({"message": "permission denied for function"}, status_code=401)
    response.raise_for_status.side_effect = requests.HTTPError(response=response)
    session.request.return_value = response

    with pytest.raises(SupabaseAPIError) as excinfo:
        _client(session).rpc("get_finance_settings")

    assert str(excinfo.value) == "permission denied for function"
    assert excinfo.value.status_code == 401


def test_connection_errors_are_wrapped() -> None:
    session = Mock()
    session.request.side_effect = requests.ConnectionError("boom")

    with pytest.raises(SupabaseAPIError):
        _client(session).rpc("get_finance_settings")


def test_rpc_rows_rejects_non_list_payload() -> None:
    session = Mock()
    session.request.return_value = _mock_response({"unexpected": True})

    with pytest.raises(SupabaseAPIError):
        _client(session).rpc_rows("list_expenses_in_range")


def test_client_requires_credentials() -> None:
    with pytest.raises(ValueError):
        SupabaseClient(url="", api_key="key")
    with pytest.raises(ValueError):
        SupabaseClient(url="https://project.supabase.co", api_key="")
