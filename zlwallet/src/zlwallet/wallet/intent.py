"""
Structured wallet intents.

Natural-language parsing is done by an external language model; this module
validates the JSON object it returns.
"""

from __future__ import annotations

import json
from decimal import Decimal
from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator


class IntentAction(str, Enum):
    SEND = "send"
    RECEIVE = "receive"
    BALANCE = "balance"
    SHIELD = "shield"
    UNSHIELD = "unshield"
    SWAP = "swap"
    QUERY = "query"
    UNKNOWN = "unknown"


class ParsedIntent(BaseModel):
    action: IntentAction = IntentAction.UNKNOWN
    amount: Decimal | None = Field(default=None, description="Amount in ZEC")
    recipient: str | None = None
    currency: str = "ZEC"
    is_private: bool = Field(default=False, alias="isPrivate")
    swap_from: str | None = Field(default=None, alias="swapFrom")
    swap_to: str | None = Field(default=None, alias="swapTo")
    original_command: str = Field(default="", alias="originalCommand")

    model_config = {"populate_by_name": True}

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in {a.value for a in IntentAction}:
                return IntentAction.UNKNOWN
        return v

    @field_validator("currency", mode="before")
    @classmethod
    def default_currency(cls, v: Any) -> Any:
        if v is None or v == "":
            return "ZEC"
        return v.upper() if isinstance(v, str) else v

    @field_validator("recipient", mode="before")
    @classmethod
    def strip_recipient(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


def parse_intent_payload(raw: str | dict[str, Any], original_command: str = "") -> ParsedIntent:
    """
    Validate an intent object produced by the language model.

    Args:
        raw: JSON text or already-decoded object
        original_command: The user's message, used when the payload omits it

    Returns:
        ParsedIntent; an UNKNOWN intent if the payload is unusable
    """
    try:
        data = json.loads(raw) if isinstance(raw, str) else dict(raw)
        if not isinstance(data, dict):
            raise ValueError("Intent payload must be a JSON object")
        if original_command and not data.get("originalCommand"):
            data["originalCommand"] = original_command
        return ParsedIntent.model_validate(data)
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"Unusable intent payload: {e}")
        return ParsedIntent(action=IntentAction.UNKNOWN, original_command=original_command)
