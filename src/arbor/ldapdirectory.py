import logging
from enum import IntEnum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .engine import BaseEngine
from .errors import (
    AlreadyAvailable,
    BindFailure,
    ConnectFailure,
    EncryptionFailure,
    FeatureUnavailable,
    IncompleteModification,
    InvalidValueSet,
    OptionFailure,
    PaginationFailure,
    ReadFailure,
    Unavailable,
    WriteFailure,
    _engine_error,
)
from .ldapmodification import LDAPModification, LDAPModOp
from .ldapresultset import LDAPResultSet

logger = logging.getLogger(__name__)


class LDAPSearchScope(IntEnum):
    """ Enumeration for LDAP search scopes. """

    BASE = 0  #: For searching only the base DN.
    ONELEVEL = 1  #: For searching one tree level under the base DN.
    ONE = ONELEVEL  #: Alias for :attr:`LDAPSearchScope.ONELEVEL`.
    SUBTREE = 2  #: For searching the entire subtree, including the base DN.
    SUB = SUBTREE  #: Alias for :attr:`LDAPSearchScope.SUBTREE`.


class LDAPDeref(IntEnum):
    """ Enumeration for the alias dereferencing policies. """

    NEVER = 0  #: Aliases are never dereferenced.
    SEARCHING = 1  #: Aliases are dereferenced below the base.
    FINDING = 2  #: Only the base object is dereferenced.
    ALWAYS = 3  #: Aliases are always dereferenced.


class LDAPDirectory:
    """
    Synchronous connection to a directory server. The object moves from
    unconnected to connected (:meth:`connect`) and to bound
    (:meth:`bind`, :meth:`sasl_bind`) state, and every operation checks
    that the connection is in the required state.

    When `host` is set, the constructor connects to it, applies the
    `options` and binds with the `user` and `password`, if `user` is set.

    :param str host: hostname or LDAP URI of the server.
    :param int port: port of the server.
    :param str user: the DN of the binding user.
    :param str password: the password of the user.
    :param dict options: :class:`LDAPOption` keys with their values.
    :param BaseEngine engine: the directory-protocol engine. The default \
    is an :class:`arbor.ldap3engine.LDAP3Engine`.
    :raises ConnectFailure: if connecting to the server is failed.
    :raises OptionFailure: if setting an option is failed.
    :raises BindFailure: if binding is failed.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        options: Optional[Dict[int, Any]] = None,
        engine: Optional[BaseEngine] = None,
    ) -> None:
        if engine is None:
            from .ldap3engine import LDAP3Engine

            engine = LDAP3Engine()
        if not isinstance(engine, BaseEngine):
            raise TypeError("The engine must be a BaseEngine.")
        self.__engine = engine
        self.__link = None  # type: Any
        self.__bound = False
        if host is None:
            return
        if port is not None:
            self.connect(host, port)
        else:
            self.connect(host)
        for option, value in (options or {}).items():
            self.set_option(option, value)
        if user is not None:
            self.bind(user, password)

    def __enter__(self) -> "LDAPDirectory":
        """ Context manager entry point. """
        return self

    def __exit__(self, type, value, traceback) -> None:
        """ Context manager exit point. """
        self.close()

    def __del__(self) -> None:
        self.close()

    def __check_connected(self) -> None:
        if self.__link is None:
            raise Unavailable("An active connection to the directory is not available.")

    def __check_bound(self) -> None:
        if not self.__bound:
            raise Unavailable(
                "An active bound connection to the directory is not available."
            )

    def __create_resultset(self, result: Any) -> LDAPResultSet:
        return LDAPResultSet(self.__engine, self.__link, result)

    def __write(self, method: Callable, *args: Any) -> None:
        self.__check_bound()
        if not method(self.__link, *args):
            raise _engine_error(WriteFailure, self.__engine, self.__link)

    @property
    def engine(self) -> BaseEngine:
        """The directory-protocol engine of the connection."""
        return self.__engine

    @property
    def is_bound(self) -> bool:
        """Whether the connection is bound."""
        return self.__bound

    @property
    def closed(self) -> bool:
        """Whether the connection has no open link to the server."""
        return self.__link is None

    def connect(self, host: str, port: int = 389) -> None:
        """
        Connect to the directory server.

        :param str host: hostname or LDAP URI of the server.
        :param int port: port of the server.
        :raises AlreadyAvailable: if the connection is already open.
        :raises ConnectFailure: if the engine fails to connect.
        """
        if self.__link is not None:
            raise AlreadyAvailable(
                "An active connection to the directory is already available."
            )
        link = self.__engine.connect(host, port)
        if link is None:
            raise _engine_error(ConnectFailure, self.__engine, None)
        self.__link = link
        logger.debug("Connected to %s:%d.", host, port)

    def bind(self, dn: Optional[str] = None, password: Optional[str] = None) -> None:
        """
        Bind to the directory with a simple bind. Without `dn` and
        `password` it is an anonymous bind. A bound connection can be
        bound again.

        :param str dn: the DN of the binding user.
        :param str password: the password of the user.
        :raises Unavailable: if the connection is not open.
        :raises BindFailure: if the server rejects the bind.
        """
        self.__check_connected()
        if not self.__engine.bind(self.__link, dn, password):
            raise _engine_error(BindFailure, self.__engine, self.__link)
        self.__bound = True
        logger.debug("Bound as %r.", dn)

    def sasl_bind(
        self,
        dn: Optional[str] = None,
        password: Optional[str] = None,
        mechanism: Optional[str] = None,
        realm: Optional[str] = None,
        authc_id: Optional[str] = None,
        authz_id: Optional[str] = None,
        props: Optional[str] = None,
    ) -> None:
        """
        Bind to the directory with a SASL mechanism.

        :param str dn: the DN of the binding user.
        :param str password: the password of the user.
        :param str mechanism: the name of the SASL mechanism.
        :param str realm: the SASL realm.
        :param str authc_id: the authentication ID.
        :param str authz_id: the authorization ID.
        :param str props: SASL security properties.
        :raises Unavailable: if the connection is not open.
        :raises BindFailure: if the server rejects the bind.
        """
        self.__check_connected()
        if not self.__engine.sasl_bind(
            self.__link, dn, password, mechanism, realm, authc_id, authz_id, props
        ):
            raise _engine_error(BindFailure, self.__engine, self.__link)
        self.__bound = True
        logger.debug("Bound with SASL %s mechanism.", mechanism)

    def start_tls(self) -> None:
        """
        Upgrade the connection with StartTLS. It must be called before
        binding.

        :raises Unavailable: if the connection is not open.
        :raises AlreadyAvailable: if the connection is already bound.
        :raises EncryptionFailure: if the engine fails.
        """
        self.__check_connected()
        if self.__bound:
            raise AlreadyAvailable(
                "An active bound connection to the directory is already available."
            )
        if not self.__engine.start_tls(self.__link):
            raise _engine_error(EncryptionFailure, self.__engine, self.__link)

    def unbind(self) -> None:
        """
        Unbind and close the connection. A failure of the engine is not
        reported.

        :raises Unavailable: if the connection is not bound.
        """
        self.__check_bound()
        link = self.__link
        self.__link = None
        self.__bound = False
        try:
            self.__engine.unbind(link)
        except Exception:
            logger.debug("Failed to unbind the connection.", exc_info=True)
        logger.debug("Unbound.")

    def close(self) -> None:
        """
        Release the connection in any state. Calling it more than once
        has no effect and it never raises.
        """
        try:
            link = self.__link
        except AttributeError:
            return  # Not fully initialised.
        if link is None:
            return
        self.__link = None
        self.__bound = False
        try:
            self.__engine.unbind(link)
        except Exception:
            logger.debug("Failed to release the connection.", exc_info=True)
        logger.debug("Connection closed.")

    def get_option(self, option: int) -> Any:
        """
        Get the value of a connection option.

        :param int option: an :class:`LDAPOption` value.
        :return: the value of the option.
        :raises Unavailable: if the connection is not open.
        :raises OptionFailure: if the engine fails.
        """
        self.__check_connected()
        success, value = self.__engine.get_option(self.__link, option)
        if not success:
            raise _engine_error(OptionFailure, self.__engine, self.__link)
        return value

    def set_option(self, option: int, value: Any) -> None:
        """
        Set the value of a connection option.

        :param int option: an :class:`LDAPOption` value.
        :param value: the new value.
        :raises Unavailable: if the connection is not open.
        :raises OptionFailure: if the engine fails.
        """
        self.__check_connected()
        if not self.__engine.set_option(self.__link, option, value):
            raise _engine_error(OptionFailure, self.__engine, self.__link)

    def set_rebind_proc(self, callback: Callable) -> None:
        """
        Set the callback that binds the connections opened while chasing
        referrals.

        :param callable callback: the rebind procedure.
        :raises TypeError: if the `callback` is not callable.
        :raises Unavailable: if the connection is not open.
        :raises OptionFailure: if the engine fails.
        """
        if not callable(callback):
            raise TypeError("The callback must be callable.")
        self.__check_connected()
        if not self.__engine.set_rebind_proc(self.__link, callback):
            raise _engine_error(OptionFailure, self.__engine, self.__link)

    def add(self, dn: str, entry: Dict[str, Any]) -> None:
        """
        Add a new entry to the directory.

        :param str dn: the DN of the new entry.
        :param dict entry: attribute names mapped to their values.
        :raises Unavailable: if the connection is not bound.
        :raises WriteFailure: if the operation is failed.
        """
        self.__write(self.__engine.add, dn, entry)

    def delete(self, dn: str) -> None:
        """
        Remove an entry from the directory.

        :param str dn: the DN of the entry.
        :raises Unavailable: if the connection is not bound.
        :raises WriteFailure: if the operation is failed.
        """
        self.__write(self.__engine.delete, dn)

    def modify(self, dn: str, entry: Dict[str, Any]) -> None:
        """
        Replace the listed attributes of an entry with the given values.

        :param str dn: the DN of the entry.
        :param dict entry: attribute names mapped to their new values.
        :raises Unavailable: if the connection is not bound.
        :raises WriteFailure: if the operation is failed.
        """
        self.__write(self.__engine.modify, dn, entry)

    def mod_add(self, dn: str, entry: Dict[str, Any]) -> None:
        """
        Add values to the attributes of an entry.

        :param str dn: the DN of the entry.
        :param dict entry: attribute names mapped to the added values.
        :raises Unavailable: if the connection is not bound.
        :raises WriteFailure: if the operation is failed.
        """
        self.__write(self.__engine.mod_add, dn, entry)

    def mod_del(self, dn: str, entry: Dict[str, Any]) -> None:
        """
        Remove values from the attributes of an entry. An empty value list
        removes the whole attribute.

        :param str dn: the DN of the entry.
        :param dict entry: attribute names mapped to the removed values.
        :raises Unavailable: if the connection is not bound.
        :raises WriteFailure: if the operation is failed.
        """
        self.__write(self.__engine.mod_del, dn, entry)

    def mod_replace(self, dn: str, entry: Dict[str, Any]) -> None:
        """
        Replace the values of the attributes of an entry.

        :param str dn: the DN of the entry.
        :param dict entry: attribute names mapped to their new values.
        :raises Unavailable: if the connection is not bound.
        :raises WriteFailure: if the operation is failed.
        """
        self.__write(self.__engine.mod_replace, dn, entry)

    def modify_batch(self, dn: str, modifications: List[LDAPModification]) -> None:
        """
        Submit a list of attribute changes as one atomic modify request.
        The whole list is validated before anything is sent, so an invalid
        item means that none of the changes are submitted.

        :param str dn: the DN of the modified entry.
        :param list modifications: list of :class:`LDAPModification`.
        :raises FeatureUnavailable: if the engine cannot submit batch \
        modifications.
        :raises Unavailable: if the connection is not bound.
        :raises InvalidValueSet: if an item is not an \
        :class:`LDAPModification` or a REMOVE_ALL item has values.
        :raises IncompleteModification: if an item has no attribute name, \
        no operation or an empty value set.
        :raises WriteFailure: if the operation is failed.
        """
        if not self.__engine.supports_modify_batch:
            raise FeatureUnavailable(
                "Batch modification is not available with this engine."
            )
        self.__check_bound()
        ops = []
        for idx, mod in enumerate(modifications):
            if not isinstance(mod, LDAPModification):
                raise InvalidValueSet(
                    "Modifications must be a list of LDAPModification objects."
                )
            if mod.attribute_name is None:
                raise IncompleteModification(
                    "Modification %d does not define an attribute." % idx
                )
            if mod.operation is None:
                raise IncompleteModification(
                    "Modification %d does not define an operation." % idx
                )
            op = {"attrib": mod.attribute_name, "modtype": int(mod.operation)}
            if mod.operation == LDAPModOp.REMOVE_ALL:
                if len(mod.values) > 0:
                    raise InvalidValueSet(
                        "Modification %d is REMOVE_ALL with a value set." % idx
                    )
            elif len(mod.values) == 0:
                raise IncompleteModification(
                    "Modification %d does not define a value set." % idx
                )
            else:
                op["values"] = list(mod.values)
            ops.append(op)
        if not self.__engine.modify_batch(self.__link, dn, ops):
            raise _engine_error(WriteFailure, self.__engine, self.__link)

    def compare(self, dn: str, attribute: str, value: Union[str, bytes]) -> bool:
        """
        Compare the value of an attribute of an entry.

        :param str dn: the DN of the entry.
        :param str attribute: the name of the attribute.
        :param value: the asserted value.
        :return: True, if the entry has the value.
        :rtype: bool
        :raises Unavailable: if the connection is not bound.
        :raises ReadFailure: if the result is indeterminate.
        """
        self.__check_bound()
        result = self.__engine.compare(self.__link, dn, attribute, value)
        if result is None:
            raise _engine_error(ReadFailure, self.__engine, self.__link)
        return bool(result)

    def rename(
        self,
        dn: str,
        new_rdn: str,
        new_parent: Optional[str] = None,
        delete_old_rdn: bool = True,
    ) -> None:
        """
        Change the RDN of an entry and optionally move it under a new
        parent.

        :param str dn: the DN of the entry.
        :param str new_rdn: the new relative DN.
        :param str new_parent: the DN of the new parent entry.
        :param bool delete_old_rdn: remove the old RDN values.
        :raises Unavailable: if the connection is not bound.
        :raises WriteFailure: if the operation is failed.
        """
        self.__write(self.__engine.rename, dn, new_rdn, new_parent, delete_old_rdn)

    def control_paged_result(
        self, page_size: int, is_critical: bool = False, cookie: bytes = b""
    ) -> None:
        """
        Stage a paged results control for the next search on this
        connection. It does not search by itself.

        :param int page_size: the number of entries on a page.
        :param bool is_critical: whether the control is critical.
        :param bytes cookie: the cookie of the previous page.
        :raises Unavailable: if the connection is not bound.
        :raises PaginationFailure: if the engine fails.
        """
        self.__check_bound()
        if not self.__engine.control_paged_result(
            self.__link, page_size, is_critical, cookie
        ):
            raise _engine_error(PaginationFailure, self.__engine, self.__link)

    def __search(
        self,
        scope: int,
        base: str,
        filter_exp: str,
        attrlist: Optional[List[str]],
        attrsonly: bool,
        sizelimit: int,
        timelimit: int,
        deref: int,
    ) -> LDAPResultSet:
        self.__check_bound()
        result = self.__engine.search(
            self.__link,
            base,
            int(scope),
            filter_exp,
            list(attrlist) if attrlist is not None else [],
            bool(attrsonly),
            sizelimit,
            timelimit,
            int(deref),
        )
        if result is None:
            raise _engine_error(ReadFailure, self.__engine, self.__link)
        return self.__create_resultset(result)

    def search(
        self,
        base: str,
        filter_exp: str,
        attrlist: Optional[List[str]] = None,
        attrsonly: bool = False,
        sizelimit: int = 0,
        timelimit: int = 0,
        deref: Union[LDAPDeref, int] = LDAPDeref.NEVER,
    ) -> LDAPResultSet:
        """
        Search the subtree of the base DN.

        :param str base: the base DN of the search.
        :param str filter_exp: the filter expression.
        :param list attrlist: names of the returned attributes, None for \
        all attributes.
        :param bool attrsonly: return only the attribute names.
        :param int sizelimit: maximum number of entries (0: no limit).
        :param int timelimit: time limit in seconds (0: no limit).
        :param LDAPDeref deref: the alias dereferencing policy.
        :return: the result of the search.
        :rtype: :class:`LDAPResultSet`
        :raises Unavailable: if the connection is not bound.
        :raises ReadFailure: if the search is failed.
        """
        return self.__search(
            LDAPSearchScope.SUBTREE,
            base,
            filter_exp,
            attrlist,
            attrsonly,
            sizelimit,
            timelimit,
            deref,
        )

    def list_children(
        self,
        base: str,
        filter_exp: str,
        attrlist: Optional[List[str]] = None,
        attrsonly: bool = False,
        sizelimit: int = 0,
        timelimit: int = 0,
        deref: Union[LDAPDeref, int] = LDAPDeref.NEVER,
    ) -> LDAPResultSet:
        """
        Search the direct children of the base DN. The parameters are the
        same as :meth:`search`'s.
        """
        return self.__search(
            LDAPSearchScope.ONELEVEL,
            base,
            filter_exp,
            attrlist,
            attrsonly,
            sizelimit,
            timelimit,
            deref,
        )

    def read(
        self,
        base: str,
        filter_exp: str,
        attrlist: Optional[List[str]] = None,
        attrsonly: bool = False,
        sizelimit: int = 0,
        timelimit: int = 0,
        deref: Union[LDAPDeref, int] = LDAPDeref.NEVER,
    ) -> LDAPResultSet:
        """
        Read the entry of the base DN. The parameters are the same as
        :meth:`search`'s.
        """
        return self.__search(
            LDAPSearchScope.BASE,
            base,
            filter_exp,
            attrlist,
            attrsonly,
            sizelimit,
            timelimit,
            deref,
        )

    def paged_search(
        self,
        base: str,
        filter_exp: str,
        attrlist: Optional[List[str]] = None,
        attrsonly: bool = False,
        sizelimit: int = 0,
        timelimit: int = 0,
        deref: Union[LDAPDeref, int] = LDAPDeref.NEVER,
        page_size: int = 1,
        scope: Union[LDAPSearchScope, int] = LDAPSearchScope.SUBTREE,
        is_critical: bool = False,
    ) -> Iterator[LDAPResultSet]:
        """
        Search with the paged results control and yield the result of
        every page. The cookie of a page is passed to the request of the
        next page, and the iteration stops when the server returns an
        empty cookie.

        :param int page_size: the number of entries on a page.
        :param LDAPSearchScope scope: the scope of the search.
        :param bool is_critical: whether the paging control is critical.
        :raises ValueError: if `page_size` is less than 1.
        :raises Unavailable: if the connection is not bound.
        :raises PaginationFailure: if the paging control fails.
        :raises ReadFailure: if the search of a page is failed.
        """
        if page_size < 1:
            raise ValueError("The page_size must be a positive integer.")
        cookie = b""
        while True:
            self.control_paged_result(page_size, is_critical, cookie)
            page = self.__search(
                scope,
                base,
                filter_exp,
                attrlist,
                attrsonly,
                sizelimit,
                timelimit,
                deref,
            )
            cookie, _ = page.control_paged_result()
            yield page
            if not cookie:
                break
