"""Dynamic constant resolution for seed rows, mock responses, and outbound requests.

Scenario authors write placeholders such as ``$UUID`` or ``$TIMESTAMP`` in
string values. Each recognized token is generated once per string: every
occurrence inside the same string gets the same value, while separate strings
get independently generated values.
"""
import re
import secrets
import string
import time
import uuid
from enum import Enum
from typing import Any, Dict, List, Mapping

from testhelper.models.scenario import utc_now_iso

SEQ_PREFIX = "TST"
RANDOM_STRING_LENGTH = 8
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class ConstantToken(str, Enum):
    """Supported dynamic constants, in resolution order."""
    SEQ = "$SEQ"
    TIMESTAMP = "$TIMESTAMP"
    UNIX_TIMESTAMP = "$UNIX_TIMESTAMP"
    UUID = "$UUID"
    RANDOM_STRING = "$RANDOM_STRING"

    def generate(self) -> str:
        """Generate a fresh value for this token."""
        if self is ConstantToken.SEQ:
            # 3-char prefix + 13-digit millisecond timestamp = 16 chars
            return f"{SEQ_PREFIX}{_epoch_millis():013d}"
        if self is ConstantToken.TIMESTAMP:
            return utc_now_iso()
        if self is ConstantToken.UNIX_TIMESTAMP:
            return str(_epoch_millis())
        if self is ConstantToken.UUID:
            return str(uuid.uuid4())
        return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(RANDOM_STRING_LENGTH))

    @property
    def pattern(self) -> "re.Pattern[str]":
        return _TOKEN_PATTERNS[self]


# A token must not run into further identifier characters: "$SEQUENCE" is not "$SEQ".
_TOKEN_PATTERNS = {
    token: re.compile(re.escape(token.value) + r"(?![A-Za-z0-9_])")
    for token in ConstantToken
}


class ConstantResolver:
    """
    Stateless resolver replacing ``$TOKEN`` placeholders with generated values.

    Recurses through lists, tuples and mappings (keys are left untouched).
    Non-string scalars pass through unchanged. Holds no state between calls,
    so a single instance can be shared across concurrent callers.
    """

    def resolve(self, value: Any) -> Any:
        """
        Resolve constants anywhere inside a JSON-like value.

        Args:
            value: String, number, boolean, None, sequence, or mapping

        Returns:
            A new value with every recognized token replaced
        """
        if isinstance(value, str):
            return self.resolve_string(value)
        if isinstance(value, Mapping):
            return {key: self.resolve(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.resolve(item) for item in value]
        if isinstance(value, tuple):
            return tuple(self.resolve(item) for item in value)
        return value

    def resolve_string(self, value: str) -> str:
        """Resolve every recognized token in a single string."""
        if "$" not in value:
            return value

        result = value
        for token in ConstantToken:
            pattern = token.pattern
            if pattern.search(result):
                generated = token.generate()
                result = pattern.sub(lambda _match: generated, result)
        return result

    def resolve_headers(self, headers: Mapping[str, str]) -> Dict[str, str]:
        """Resolve constants in header values; header names are kept as-is."""
        return {name: self.resolve_string(value) for name, value in headers.items()}


def supported_constants() -> List[str]:
    """List the supported constant tokens, in resolution order."""
    return [token.value for token in ConstantToken]


_resolver = ConstantResolver()


def get_constant_resolver() -> ConstantResolver:
    """Get the shared (stateless) constant resolver."""
    return _resolver
