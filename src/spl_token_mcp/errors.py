"""Error types raised by the resolvers and validators."""

from __future__ import annotations

from solders.pubkey import Pubkey


class TokenAgentError(Exception):
    """Base class for every error this package raises."""

    kind = "error"


class ResolutionError(TokenAgentError):
    """The acting address or signer could not be determined.

    Nothing downstream is meaningful without an identity, so the command
    boundary treats this as fatal.
    """

    kind = "resolution"


class InvalidAddress(TokenAgentError):
    kind = "invalid_address"

    def __init__(self, value: str):
        super().__init__(f"Invalid address {value!r}")
        self.value = value


class RpcError(TokenAgentError):
    """Transport-level failure talking to the RPC node."""

    kind = "rpc"


class AccountError(TokenAgentError):
    """Recoverable validation failure for a single account."""

    kind = "account"

    def __init__(self, address: Pubkey, message: str):
        super().__init__(message)
        self.address = address


class AccountNotFound(AccountError):
    kind = "not_found"

    def __init__(self, address: Pubkey, what: str = "account"):
        super().__init__(address, f"Could not find {what} {address}")


class AccountDecodeError(AccountError):
    kind = "decode_failure"

    def __init__(self, address: Pubkey, what: str = "account"):
        super().__init__(address, f"Account {address} is not a valid {what}")


class OwnerMismatch(AccountError):
    kind = "ownership_mismatch"

    def __init__(self, address: Pubkey, owner: Pubkey, program_id: Pubkey):
        super().__init__(
            address,
            f"Account {address} is owned by {owner}, "
            f"not configured program id {program_id}",
        )
        self.owner = owner
        self.program_id = program_id


class DecimalsMismatch(AccountError):
    kind = "decimals_mismatch"

    def __init__(self, address: Pubkey, actual: int, expected: int):
        super().__init__(
            address,
            f"Mint {address} has decimals {actual}, not configured decimals {expected}",
        )
        self.actual = actual
        self.expected = expected


class MintMismatch(AccountError):
    kind = "mint_mismatch"

    def __init__(self, address: Pubkey, actual: Pubkey, expected: Pubkey):
        super().__init__(
            address,
            f"Source {address} does not contain {expected} tokens (holds {actual})",
        )
        self.actual = actual
        self.expected = expected
