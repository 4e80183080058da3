import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import (
    EntryCountRetrievalFailure,
    EntryRetrievalFailure,
    InformationRetrievalFailure,
    PaginationFailure,
    ReferenceRetrievalFailure,
    ValueRetrievalFailure,
    _engine_error,
)
from .ldapentry import LDAPEntry
from .ldapreference import LDAPReference

MYPY = False

if MYPY:
    from .engine import BaseEngine

logger = logging.getLogger(__name__)


class LDAPResultSet:
    """
    Result of a completed search, list or read operation. The object owns
    the engine's result handle and releases it exactly once: when
    :meth:`close` is called, when a `with` block is left, or when the
    object is garbage collected.

    It is created by the search methods of :class:`LDAPDirectory`.

    :param engine: the engine of the connection.
    :param link: the connection handle (borrowed).
    :param result: the engine's result handle (owned).
    """

    def __init__(self, engine: "BaseEngine", link: Any, result: Any) -> None:
        self.__engine = engine
        self.__link = link
        self.__result = result
        self.__closed = False
        self.__cookie = None  # type: Optional[bytes]
        self.__estimated = None  # type: Optional[int]

    def __enter__(self) -> "LDAPResultSet":
        """ Context manager entry point. """
        return self

    def __exit__(self, type, value, traceback) -> None:
        """ Context manager exit point. """
        self.close()

    def __del__(self) -> None:
        self.close()

    def __iter__(self) -> Iterator[LDAPEntry]:
        entry = self.first_entry()
        while entry is not None:
            yield entry
            entry = entry.next_entry()

    def close(self) -> None:
        """
        Release the result. Calling it more than once has no effect and
        it never raises.
        """
        try:
            closed = self.__closed
        except AttributeError:
            return  # Not fully initialised.
        if closed:
            return
        self.__closed = True
        try:
            self.__engine.free_result(self.__result)
        except Exception:
            logger.debug("Failed to free the result %r.", self.__result, exc_info=True)

    @property
    def closed(self) -> bool:
        """Whether the result is already released."""
        return self.__closed

    @property
    def cookie(self) -> Optional[bytes]:
        """
        The paging cookie fetched by the last :meth:`control_paged_result`
        call, None before that.
        """
        return self.__cookie

    @property
    def estimated_total(self) -> Optional[int]:
        """
        The estimated number of entries reported by the server for a
        paged search, None before :meth:`control_paged_result` is called.
        """
        return self.__estimated

    def control_paged_result(self) -> Tuple[bytes, int]:
        """
        Return the cookie and the estimated total count of a paged search.
        An empty cookie means there are no further pages.

        :return: the `(cookie, estimated_total)` pair.
        :rtype: tuple
        :raises PaginationFailure: if the result has no paging information.
        """
        response = self.__engine.control_paged_result_response(
            self.__link, self.__result
        )
        if response is None:
            raise _engine_error(PaginationFailure, self.__engine, self.__link)
        self.__cookie, self.__estimated = response
        return response

    def entry_count(self) -> int:
        """
        Return the number of entries in the result.

        :raises EntryCountRetrievalFailure: if the engine fails.
        """
        count = self.__engine.count_entries(self.__link, self.__result)
        if not count:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(
                    EntryCountRetrievalFailure, self.__engine, self.__link
                )
            return 0
        return count

    def first_entry(self) -> Optional[LDAPEntry]:
        """
        Return the first entry of the result.

        :return: the first entry, or None if the result has no entries.
        :rtype: :class:`LDAPEntry`
        :raises EntryRetrievalFailure: if the engine fails.
        """
        node = self.__engine.first_entry(self.__link, self.__result)
        if node is None:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(EntryRetrievalFailure, self.__engine, self.__link)
            return None
        return LDAPEntry(self.__engine, self.__link, node, self)

    def first_reference(self) -> Optional[LDAPReference]:
        """
        Return the first reference of the result.

        :return: the first reference, or None if the result has no \
        references.
        :rtype: :class:`LDAPReference`
        :raises ReferenceRetrievalFailure: if the engine fails.
        """
        node = self.__engine.first_reference(self.__link, self.__result)
        if node is None:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(
                    ReferenceRetrievalFailure, self.__engine, self.__link
                )
            return None
        return LDAPReference(self.__engine, self.__link, node, self)

    def references(self) -> Iterator[LDAPReference]:
        """ Iterate over the references of the result. """
        ref = self.first_reference()
        while ref is not None:
            yield ref
            ref = ref.next_reference()

    def parse(self) -> Dict[str, Any]:
        """
        Parse the final result of the operation.

        :return: a dict with the `result` code, the `matched_dn`, the \
        diagnostic `message` and the list of `referrals`.
        :rtype: dict
        :raises InformationRetrievalFailure: if the engine fails.
        """
        info = self.__engine.parse_result(self.__link, self.__result)
        if info is None:
            raise _engine_error(InformationRetrievalFailure, self.__engine, self.__link)
        return {
            "result": info.get("result", 0),
            "matched_dn": info.get("matched_dn", ""),
            "message": info.get("message", ""),
            "referrals": list(info.get("referrals") or []),
        }

    def get_entries(self) -> List[Dict[str, Any]]:
        """
        Materialise every entry of the result. Each item of the returned
        list is a dict with the entry's `dn`, the `count` of its attributes
        and the `attributes` mapping (attribute name to the list of values).

        :rtype: list
        :raises ValueRetrievalFailure: if the engine fails.
        """
        entries = self.__engine.get_entries(self.__link, self.__result)
        if not entries:
            if self.__engine.errno(self.__link) != 0:
                raise _engine_error(ValueRetrievalFailure, self.__engine, self.__link)
            return []
        return entries
