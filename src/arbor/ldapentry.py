from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from .errors import (
    EntryRetrievalFailure,
    InvalidMode,
    ValueRetrievalFailure,
    _engine_error,
)

MYPY = False

if MYPY:
    from .engine import BaseEngine
    from .ldapresultset import LDAPResultSet


class LDAPValueMode(IntEnum):
    """Enumeration for the format of the retrieved attribute values."""

    BINARY = 0  #: Values are returned as bytes.
    TEXT = 1  #: Values are returned as strings.


class LDAPEntry:
    """
    Read-only view of one entry of a search result. Entries of the same
    result form a forward-only chain that can be walked with
    :meth:`next_entry`. The object is created by
    :meth:`LDAPResultSet.first_entry` and :meth:`next_entry`, it is not
    meant to be instantiated directly.

    :param engine: the engine of the connection.
    :param link: the connection handle (borrowed).
    :param node: the engine's handle of the entry.
    :param LDAPResultSet resultset: the result set the entry belongs to.
    """

    __slots__ = ("__engine", "__link", "__node", "__resultset")

    def __init__(
        self,
        engine: "BaseEngine",
        link: Any,
        node: Any,
        resultset: Optional["LDAPResultSet"] = None,
    ) -> None:
        self.__engine = engine
        self.__link = link
        self.__node = node
        self.__resultset = resultset

    def next_entry(self) -> Optional["LDAPEntry"]:
        """
        Return the next entry of the search result.

        :return: the next entry, or None if this was the last one.
        :rtype: :class:`LDAPEntry`
        :raises EntryRetrievalFailure: if the engine fails to fetch the \
        next entry.
        """
        node = self.__engine.next_entry(self.__link, self.__node)
        if node is None:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(EntryRetrievalFailure, self.__engine, self.__link)
            return None
        return LDAPEntry(self.__engine, self.__link, node, self.__resultset)

    def get_values(
        self, attribute: str, mode: Union[LDAPValueMode, int] = LDAPValueMode.BINARY
    ) -> Union[List[bytes], List[str]]:
        """
        Return the values of an attribute. Binary mode is the default,
        because the values are not guaranteed to be valid text.

        :param str attribute: the name of the attribute.
        :param LDAPValueMode mode: format of the values.
        :return: the list of the values.
        :raises InvalidMode: if the `mode` is not an :class:`LDAPValueMode`.
        :raises ValueRetrievalFailure: if the engine cannot produce the \
        values (e.g. the entry has no such attribute).
        """
        if isinstance(mode, bool) or mode not in (
            LDAPValueMode.BINARY,
            LDAPValueMode.TEXT,
        ):
            raise InvalidMode("Mode must be one of the LDAPValueMode values.")
        if mode == LDAPValueMode.BINARY:
            values = self.__engine.get_values_len(self.__link, self.__node, attribute)
        else:
            values = self.__engine.get_values(self.__link, self.__node, attribute)
        if not values:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(ValueRetrievalFailure, self.__engine, self.__link)
            return []
        return values

    def get_attributes(self) -> List[str]:
        """
        Return the names of the entry's attributes in the order they were
        received.

        :raises ValueRetrievalFailure: if the engine fails.
        """
        attributes = self.__engine.get_attributes(self.__link, self.__node)
        if not attributes:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(ValueRetrievalFailure, self.__engine, self.__link)
            return []
        return attributes

    def get_dn(self) -> str:
        """
        Return the distinguished name of the entry.

        :raises ValueRetrievalFailure: if the engine fails.
        """
        dn = self.__engine.get_dn(self.__link, self.__node)
        if not dn:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(ValueRetrievalFailure, self.__engine, self.__link)
            return ""
        return dn

    @property
    def dn(self) -> str:
        """The distinguished name of the entry."""
        return self.get_dn()

    def to_dict(
        self, mode: Union[LDAPValueMode, int] = LDAPValueMode.BINARY
    ) -> Dict[str, Union[List[bytes], List[str]]]:
        """
        Collect every attribute of the entry with its values.

        :param LDAPValueMode mode: format of the values.
        :return: the attribute names mapped to their values.
        :rtype: dict
        """
        return {attr: self.get_values(attr, mode) for attr in self.get_attributes()}

    def __repr__(self) -> str:
        return "<LDAPEntry %r>" % self.__node
