"""
Tests for intent payload validation.
"""

from __future__ import annotations

from decimal import Decimal

from zlwallet.wallet.intent import IntentAction, ParsedIntent, parse_intent_payload


class TestParsedIntent:
    def test_camel_case_aliases(self) -> None:
        intent = ParsedIntent.model_validate(
            {
                "action": "swap",
                "amount": 2,
                "isPrivate": True,
                "swapFrom": "ZEC",
                "swapTo": "BTC",
                "originalCommand": "swap 2 zec to btc",
            }
        )
        assert intent.action == IntentAction.SWAP
        assert intent.is_private is True
        assert intent.swap_from == "ZEC"
        assert intent.swap_to == "BTC"
        assert intent.original_command == "swap 2 zec to btc"

    def test_field_names_accepted(self) -> None:
        intent = ParsedIntent(action=IntentAction.SEND, is_private=True)
        assert intent.is_private is True

    def test_unknown_action_normalized(self) -> None:
        assert ParsedIntent.model_validate({"action": "teleport"}).action == IntentAction.UNKNOWN

    def test_action_case_insensitive(self) -> None:
        assert ParsedIntent.model_validate({"action": " SEND "}).action == IntentAction.SEND

    def test_currency_defaults(self) -> None:
        assert ParsedIntent.model_validate({"currency": None}).currency == "ZEC"
        assert ParsedIntent.model_validate({"currency": ""}).currency == "ZEC"
        assert ParsedIntent.model_validate({"currency": "zec"}).currency == "ZEC"

    def test_blank_recipient_is_none(self) -> None:
        assert ParsedIntent.model_validate({"recipient": "   "}).recipient is None
        assert ParsedIntent.model_validate({"recipient": " tmAbc "}).recipient == "tmAbc"


class TestParseIntentPayload:
    """Language-model output handling."""

    def test_json_text(self) -> None:
        intent = parse_intent_payload(
            '{"action": "send", "amount": 0.5, "recipient": "tmAbc", "currency": "ZEC"}',
            "send 0.5 zec to tmAbc",
        )
        assert intent.action == IntentAction.SEND
        assert intent.amount == Decimal("0.5")
        assert intent.recipient == "tmAbc"
        assert intent.original_command == "send 0.5 zec to tmAbc"

    def test_string_amount_is_exact(self) -> None:
        intent = parse_intent_payload({"action": "send", "amount": "0.1"})
        assert intent.amount == Decimal("0.1")

    def test_payload_command_wins(self) -> None:
        intent = parse_intent_payload(
            {"action": "balance", "originalCommand": "how much?"}, "ignored"
        )
        assert intent.original_command == "how much?"

    def test_invalid_json(self) -> None:
        intent = parse_intent_payload("not json", "do something")
        assert intent.action == IntentAction.UNKNOWN
        assert intent.original_command == "do something"

    def test_non_object_payload(self) -> None:
        assert parse_intent_payload("[1, 2]").action == IntentAction.UNKNOWN

    def test_invalid_field(self) -> None:
        intent = parse_intent_payload({"action": "send", "amount": "lots"}, "send lots")
        assert intent.action == IntentAction.UNKNOWN
        assert intent.amount is None
