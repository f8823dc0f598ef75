import pytest

from schwabkit.errors import MissingRequiredParameterError
from schwabkit.options import (
    MoverOptions,
    OptionChainOptions,
    OrderListOptions,
    PriceHistoryOptions,
    QuoteOptions,
    TransactionListOptions,
)


def test_required_options_reject_empty_values():
    options = OrderListOptions("", "2024-01-31T00:00:00Z")
    with pytest.raises(MissingRequiredParameterError) as info:
        options.to_query()
    assert info.value.parameter == "fromEnteredTime"


def test_optional_query_helpers_trim_empty_values():
    assert MoverOptions().sort("   ").to_query() == []
    assert OrderListOptions("2024-01-01", "2024-01-02").status("   ").to_query() == [
        ("fromEnteredTime", "2024-01-01"),
        ("toEnteredTime", "2024-01-02"),
    ]


def test_order_list_options_full_query():
    query = (
        OrderListOptions("2024-01-01T00:00:00Z", "2024-01-31T00:00:00Z")
        .max_results(10)
        .status("FILLED")
        .to_query()
    )
    assert query == [
        ("fromEnteredTime", "2024-01-01T00:00:00Z"),
        ("toEnteredTime", "2024-01-31T00:00:00Z"),
        ("maxResults", "10"),
        ("status", "FILLED"),
    ]


def test_order_list_options_rejects_blank_end():
    with pytest.raises(MissingRequiredParameterError) as info:
        OrderListOptions("2024-01-01", "  ").to_query()
    assert info.value.parameter == "toEnteredTime"


def test_option_chain_options_query_order():
    query = (
        OptionChainOptions("AAPL")
        .parameter("contractType", "CALL")
        .integer_parameter("strikeCount", 5)
        .include_underlying_quote(True)
        .to_query()
    )
    assert query == [
        ("symbol", "AAPL"),
        ("contractType", "CALL"),
        ("strikeCount", "5"),
        ("includeUnderlyingQuote", "true"),
    ]


def test_option_chain_options_skips_blank_and_false():
    query = (
        OptionChainOptions("AAPL")
        .parameter("contractType", "  ")
        .include_underlying_quote(False)
        .to_query()
    )
    assert query == [("symbol", "AAPL")]


@pytest.mark.parametrize(
    ("value", "expected"),
    [(5.0, "5"), (2.5, "2.5"), (0.1, "0.1"), (1e20, "100000000000000000000")],
)
def test_option_chain_number_parameter_formatting(value, expected):
    query = OptionChainOptions("AAPL").number_parameter("strike", value).to_query()
    assert query == [("symbol", "AAPL"), ("strike", expected)]


def test_mover_options_query():
    assert MoverOptions().sort("VOLUME").frequency(5).to_query() == [
        ("sort", "VOLUME"),
        ("frequency", "5"),
    ]


def test_price_history_options_query():
    query = (
        PriceHistoryOptions()
        .parameter("periodType", "day")
        .integer_parameter("period", 5)
        .bool_parameter("needExtendedHoursData", False)
        .to_query()
    )
    assert query == [
        ("periodType", "day"),
        ("period", "5"),
        ("needExtendedHoursData", "false"),
    ]


def test_quote_options_default_is_empty():
    assert QuoteOptions().to_query() == []


def test_quote_options_fields_and_indicative():
    query = QuoteOptions().fields("quote,reference").indicative(True).to_query()
    assert query == [("fields", "quote,reference"), ("indicative", "true")]


def test_transaction_list_options_query():
    query = (
        TransactionListOptions("2024-01-01T00:00:00Z", "2024-01-31T00:00:00Z", "TRADE")
        .symbol("AAPL")
        .to_query()
    )
    assert query == [
        ("startDate", "2024-01-01T00:00:00Z"),
        ("endDate", "2024-01-31T00:00:00Z"),
        ("types", "TRADE"),
        ("symbol", "AAPL"),
    ]


def test_transaction_list_options_rejects_blank_types():
    with pytest.raises(MissingRequiredParameterError) as info:
        TransactionListOptions("2024-01-01", "2024-01-31", " ").to_query()
    assert info.value.parameter == "types"