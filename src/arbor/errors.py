from typing import Any, Optional, Type

__all__ = [
    "LDAPError",
    "Unavailable",
    "AlreadyAvailable",
    "ConnectFailure",
    "BindFailure",
    "EncryptionFailure",
    "ReadFailure",
    "WriteFailure",
    "OptionFailure",
    "PaginationFailure",
    "EntryCountRetrievalFailure",
    "EntryRetrievalFailure",
    "ReferenceRetrievalFailure",
    "ValueRetrievalFailure",
    "InformationRetrievalFailure",
    "InvalidMode",
    "IncompleteModification",
    "InvalidValueSet",
    "FeatureUnavailable",
]


class LDAPError(Exception):
    """General LDAP error."""

    code = 0

    def __init__(self, msg: Optional[str] = None, code: Optional[int] = None) -> None:
        if msg is None:
            super().__init__()
        else:
            super().__init__(msg)
        if code is not None:
            self.code = code

    @property
    def hexcode(self) -> int:
        """ Error code in 16 bit length hexadecimal format. """
        return (self.code + (1 << 16)) % (1 << 16)

    def __str__(self) -> str:
        return "{} (0x{:04X} [{:d}])".format(
            self.args[0] if self.args else "", self.hexcode, self.code
        )


class Unavailable(LDAPError):
    """
    Raised, when an operation is called without the required connection
    or bind state.
    """

    code = -101


class AlreadyAvailable(LDAPError):
    """
    Raised, when the resource that an operation would create is already
    present (e.g. connecting twice, or starting TLS on a bound connection).
    """

    code = -102


class ConnectFailure(LDAPError):
    """Raised, when the engine is not able to connect to the server."""

    code = -1


class BindFailure(LDAPError):
    """Raised, when the server rejects the bind."""

    code = 0x31


class EncryptionFailure(LDAPError):
    """Raised, when upgrading the connection with StartTLS is failed."""


class ReadFailure(LDAPError):
    """Raised, when a search or compare operation is failed."""


class WriteFailure(LDAPError):
    """Raised, when an add, delete, modify or rename operation is failed."""


class OptionFailure(LDAPError):
    """Raised, when getting or setting a connection option is failed."""


class PaginationFailure(LDAPError):
    """Raised, when the paged results control cannot be set or parsed."""


class EntryCountRetrievalFailure(LDAPError):
    """Raised, when the number of entries cannot be retrieved."""


class EntryRetrievalFailure(LDAPError):
    """Raised, when an entry of a search result cannot be retrieved."""


class ReferenceRetrievalFailure(LDAPError):
    """Raised, when a reference of a search result cannot be retrieved."""


class ValueRetrievalFailure(LDAPError):
    """
    Raised, when the DN, the attribute names or the attribute values of
    an entry, or the URLs of a reference cannot be retrieved.
    """


class InformationRetrievalFailure(LDAPError):
    """Raised, when the final result of an operation cannot be parsed."""


class InvalidMode(LDAPError):
    """Raised, when an unrecognised enumerated option is passed."""


class IncompleteModification(LDAPError):
    """
    Raised, when a modification is submitted without an attribute name,
    an operation or a required value set.
    """


class InvalidValueSet(LDAPError):
    """Raised, when a value set or a modification list is malformed."""


class FeatureUnavailable(LDAPError):
    """Raised, when the engine does not provide an optional capability."""


def _engine_error(exc_type: Type[LDAPError], engine: Any, link: Any) -> LDAPError:
    """
    Create an error of `exc_type` from the last error message and code
    that the engine left on the `link`.
    """
    return exc_type(engine.error(link), engine.errno(link))
