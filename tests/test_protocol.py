import json

import pytest

from schwabkit.errors import EncodeError, StreamProtocolError
from schwabkit.streaming.protocol import (
    HeartbeatMessage,
    StreamDataMessage,
    StreamResponseMessage,
    build_add,
    build_login,
    build_logout,
    build_subs,
    build_unsubs,
    build_view,
    parse_message,
)

LOGIN_SUCCESS = json.dumps(
    {
        "response": [
            {
                "service": "ADMIN",
                "command": "LOGIN",
                "requestid": 1,
                "SchwabClientCorrelId": "corr",
                "timestamp": 1234,
                "content": {"code": 0, "msg": "server=s0;status=PN"},
            }
        ]
    }
)

LOGIN_DENIED = json.dumps(
    {
        "response": [
            {
                "service": "ADMIN",
                "command": "LOGIN",
                "requestid": "0",
                "SchwabClientCorrelId": "corr",
                "timestamp": 1234,
                "content": {"code": 3, "msg": "LOGIN_DENIED"},
            }
        ]
    }
)

HEARTBEAT = json.dumps({"notify": [{"heartbeat": "1234567890"}]})

EQUITY_DATA = json.dumps(
    {
        "data": [
            {
                "service": "LEVELONE_EQUITIES",
                "timestamp": 1234,
                "command": "SUBS",
                "content": [
                    {"key": "AAPL", "0": "AAPL", "1": 150.25, "2": 150.5, "3": 150.4, "4": 100, "5": 200}
                ],
            }
        ]
    }
)

OPTIONS_DATA = json.dumps(
    {
        "data": [
            {
                "service": "LEVELONE_OPTIONS",
                "timestamp": 1234,
                "command": "SUBS",
                "content": [
                    {
                        "key": "AAPL  251219C00200000",
                        "0": "AAPL  251219C00200000",
                        "1": "AAPL Dec 2025 200 Call",
                        "2": 5.5,
                        "3": 5.7,
                        "5": 6.1,
                    }
                ],
            }
        ]
    }
)

ACCOUNT_ACTIVITY_DATA = json.dumps(
    {
        "data": [
            {
                "service": "ACCT_ACTIVITY",
                "timestamp": 1234,
                "command": "SUBS",
                "content": [
                    {
                        "seq": 42,
                        "key": "Account Activity",
                        "1": "123456789",
                        "2": "OrderEntryRequest",
                        "3": "{\"orderId\":12345,\"status\":\"ACCEPTED\"}",
                    }
                ],
            }
        ]
    }
)


def _item(text):
    return json.loads(text)["requests"][0]


def test_login_top_level_fields():
    item = _item(build_login("cust123", "correl456", "chan1", "fn1", "token"))
    assert item["SchwabClientCustomerId"] == "cust123"
    assert item["SchwabClientCorrelId"] == "correl456"
    assert item["parameters"]["Authorization"] == "token"
    assert item["parameters"]["SchwabClientChannel"] == "chan1"
    assert item["parameters"]["SchwabClientFunctionId"] == "fn1"
    assert item["service"] == "ADMIN"
    assert item["command"] == "LOGIN"
    assert item["requestid"] == "0"


def test_login_parameters_have_no_keys_or_fields():
    parameters = _item(build_login("c", "r", "chan", "fn", "token"))["parameters"]
    assert set(parameters) == {
        "Authorization",
        "SchwabClientChannel",
        "SchwabClientFunctionId",
    }


def test_logout_wire_text():
    assert build_logout("c", "r") == (
        '{"requests":[{"requestid":"1","service":"ADMIN","command":"LOGOUT",'
        '"SchwabClientCustomerId":"c","SchwabClientCorrelId":"r","parameters":{}}]}'
    )


def test_subs_joins_keys_and_fields():
    item = _item(build_subs("2", "LEVELONE_EQUITIES", "c", "r", ["AAPL", "MSFT"], [0, 1, 3]))
    assert item["command"] == "SUBS"
    assert item["requestid"] == "2"
    assert item["service"] == "LEVELONE_EQUITIES"
    assert item["parameters"] == {"keys": "AAPL,MSFT", "fields": "0,1,3"}


def test_add_uses_add_command():
    item = _item(build_add("5", "LEVELONE_OPTIONS", "c", "r", ["X"], [2]))
    assert item["command"] == "ADD"
    assert item["parameters"] == {"keys": "X", "fields": "2"}


def test_unsubs_has_keys_only():
    item = _item(build_unsubs("7", "CHART_EQUITY", "c", "r", ["AAPL", "GOOG"]))
    assert item["command"] == "UNSUBS"
    assert item["parameters"] == {"keys": "AAPL,GOOG"}


def test_view_has_fields_only():
    item = _item(build_view("8", "CHART_EQUITY", "c", "r", [1, 4]))
    assert item["command"] == "VIEW"
    assert item["parameters"] == {"fields": "1,4"}


def test_subs_rejects_non_integer_field_index():
    with pytest.raises(EncodeError):
        build_subs("1", "S", "c", "r", ["A"], ["x"])


def test_subs_rejects_negative_field_index():
    with pytest.raises(EncodeError):
        build_subs("1", "S", "c", "r", ["A"], [-1])


def test_parse_response_message():
    text = (
        '{"response":[{"service":"ADMIN","command":"LOGIN","requestid":"0",'
        '"SchwabClientCorrelId":"c","timestamp":1234,"content":{"code":0,"msg":"SUCCESS"}}]}'
    )
    messages = parse_message(text)
    assert len(messages) == 1
    assert messages[0] == StreamResponseMessage(
        service="ADMIN",
        command="LOGIN",
        requestid="0",
        correl_id="c",
        timestamp=1234,
        has_content=True,
        code=0,
        message="SUCCESS",
    )


def test_parse_heartbeat():
    messages = parse_message('{"notify":[{"heartbeat":"1234567890"}]}')
    assert messages == [HeartbeatMessage(1234567890)]


def test_parse_data_message():
    text = (
        '{"data":[{"service":"LEVELONE_EQUITIES","timestamp":1234,"command":"SUBS",'
        '"content":[{"key":"AAPL","1":150.0}]}]}'
    )
    messages = parse_message(text)
    assert len(messages) == 1
    assert isinstance(messages[0], StreamDataMessage)
    assert messages[0].content == [{"key": "AAPL", "1": 150.0}]


def test_parse_malformed_returns_error():
    with pytest.raises(StreamProtocolError):
        parse_message("not json")


def test_parse_wrong_code_type_is_error():
    with pytest.raises(StreamProtocolError):
        parse_message('{"response":[{"content":{"code":"zero"}}]}')


def test_parse_non_object_is_error():
    with pytest.raises(StreamProtocolError):
        parse_message("[1, 2]")


def test_malformed_heartbeat_is_skipped():
    messages = parse_message('{"notify":[{"heartbeat":"soon"},{"heartbeat":"5"}]}')
    assert messages == [HeartbeatMessage(5)]


def test_response_without_content():
    (message,) = parse_message('{"response":[{"service":"ADMIN"}]}')
    assert message.has_content is False
    assert message.code is None


def test_messages_are_ordered_response_notify_data():
    text = (
        '{"data":[{"service":"X"}],"notify":[{"heartbeat":"1"}],'
        '"response":[{"service":"Y"}]}'
    )
    kinds = [type(message) for message in parse_message(text)]
    assert kinds == [StreamResponseMessage, HeartbeatMessage, StreamDataMessage]


def test_parse_login_success_fixture_accepts_numeric_request_id():
    response = parse_message(LOGIN_SUCCESS)[0]
    assert isinstance(response, StreamResponseMessage)
    assert response.service == "ADMIN"
    assert response.command == "LOGIN"
    assert response.requestid == "1"
    assert response.code == 0


def test_parse_login_denied_fixture():
    response = parse_message(LOGIN_DENIED)[0]
    assert response.code == 3
    assert response.message == "LOGIN_DENIED"


def test_parse_heartbeat_fixture_timestamp():
    assert parse_message(HEARTBEAT)[0] == HeartbeatMessage(1234567890)


def test_parse_equity_data_fixture_shape():
    data = parse_message(EQUITY_DATA)[0]
    assert data.service == "LEVELONE_EQUITIES"
    assert data.content[0]["key"] == "AAPL"
    assert "5" in data.content[0]


def test_parse_options_data_fixture_shape():
    data = parse_message(OPTIONS_DATA)[0]
    assert data.service == "LEVELONE_OPTIONS"
    assert data.content[0]["0"] == "AAPL  251219C00200000"
    assert "5" in data.content[0]


def test_parse_account_activity_data_fixture_shape():
    data = parse_message(ACCOUNT_ACTIVITY_DATA)[0]
    assert data.service == "ACCT_ACTIVITY"
    assert data.content[0]["seq"] == 42
    assert data.content[0]["key"] == "Account Activity"
    assert "3" in data.content[0]


def test_built_subs_round_trips_through_json():
    text = build_subs("3", "LEVELONE_FUTURES", "cust", "corr", ["/ESM25"], [0, 1])
    document = json.loads(text)
    assert list(document) == ["requests"]
    assert list(document["requests"][0]) == [
        "requestid",
        "service",
        "command",
        "SchwabClientCustomerId",
        "SchwabClientCorrelId",
        "parameters",
    ]