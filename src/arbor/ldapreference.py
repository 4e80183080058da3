from typing import Any, List, Optional

from .errors import ReferenceRetrievalFailure, ValueRetrievalFailure, _engine_error
from .ldapurl import LDAPURL

MYPY = False

if MYPY:
    from .engine import BaseEngine
    from .ldapresultset import LDAPResultSet


class LDAPReference:
    """
    Object for handling a continuation reference (referral) of a search
    result. References of the same result form a forward-only chain that
    can be walked with :meth:`next_reference`.

    :param engine: the engine of the connection.
    :param link: the connection handle (borrowed).
    :param node: the engine's handle of the reference.
    :param LDAPResultSet resultset: the result set the reference belongs to.
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

    def next_reference(self) -> Optional["LDAPReference"]:
        """
        Return the next reference of the search result.

        :return: the next reference, or None if this was the last one.
        :rtype: :class:`LDAPReference`
        :raises ReferenceRetrievalFailure: if the engine fails to fetch \
        the next reference.
        """
        node = self.__engine.next_reference(self.__link, self.__node)
        if node is None:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(
                    ReferenceRetrievalFailure, self.__engine, self.__link
                )
            return None
        return LDAPReference(self.__engine, self.__link, node, self.__resultset)

    def parse(self) -> List[str]:
        """
        Return the referral URLs of the reference.

        :raises ValueRetrievalFailure: if the engine fails.
        """
        referrals = self.__engine.parse_reference(self.__link, self.__node)
        if referrals is None:
            raise _engine_error(ValueRetrievalFailure, self.__engine, self.__link)
        return referrals

    @property
    def references(self) -> List[LDAPURL]:
        """The list of LDAPURLs of the reference."""
        return [LDAPURL(url) for url in self.parse()]
