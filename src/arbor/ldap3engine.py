"""
.. module:: ldap3engine
   :synopsis: Directory-protocol engine built on the ldap3 library.

"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ldap3 import (
    ALL_ATTRIBUTES,
    ANONYMOUS,
    AUTO_BIND_NONE,
    BASE,
    DEREF_ALWAYS,
    DEREF_BASE,
    DEREF_NEVER,
    DEREF_SEARCH,
    LEVEL,
    MODIFY_ADD,
    MODIFY_DELETE,
    MODIFY_REPLACE,
    NONE,
    SASL,
    SIMPLE,
    SUBTREE,
    SYNC,
    Connection,
    Server,
)
from ldap3.core.exceptions import LDAPCommunicationError, LDAPException

from .engine import (
    BaseEngine,
    BatchOp,
    LDAPOption,
    LDAP_COMPARE_FALSE,
    LDAP_COMPARE_TRUE,
    LDAP_CONTROL_NOT_FOUND,
    LDAP_DECODING_ERROR,
    LDAP_NO_SUCH_ATTRIBUTE,
    LDAP_NOT_SUPPORTED,
    LDAP_PARAM_ERROR,
    LDAP_REFERRAL,
    LDAP_SERVER_DOWN,
    LDAP_SIZELIMIT_EXCEEDED,
    LDAP_SUCCESS,
    LDAP_TIMELIMIT_EXCEEDED,
)
from .ldapmodification import LDAPModOp
from .ldapurl import LDAPURL

logger = logging.getLogger(__name__)

PAGED_RESULTS_OID = "1.2.840.113556.1.4.319"

_SCOPES = {0: BASE, 1: LEVEL, 2: SUBTREE}
_DEREFS = {0: DEREF_NEVER, 1: DEREF_SEARCH, 2: DEREF_BASE, 3: DEREF_ALWAYS}
_MODTYPES = {
    int(LDAPModOp.ADD): MODIFY_ADD,
    int(LDAPModOp.REMOVE): MODIFY_DELETE,
    int(LDAPModOp.REMOVE_ALL): MODIFY_DELETE,
    int(LDAPModOp.REPLACE): MODIFY_REPLACE,
}
_SASL_MECHANISMS = ("EXTERNAL", "DIGEST-MD5", "PLAIN", "GSSAPI")
# Result codes of a search that still carry usable entries.
_SEARCH_RESULT_CODES = (
    LDAP_SUCCESS,
    LDAP_TIMELIMIT_EXCEEDED,
    LDAP_SIZELIMIT_EXCEEDED,
    LDAP_REFERRAL,
)


class LDAP3Link:
    """ Connection handle of the :class:`LDAP3Engine`. """

    __slots__ = ("connection", "errno", "error", "paging", "defaults")

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self.errno = LDAP_SUCCESS
        self.error = ""
        self.paging = None  # type: Optional[Tuple[int, bool, bytes]]
        self.defaults = {
            LDAPOption.DEREF: 0,
            LDAPOption.SIZELIMIT: 0,
            LDAPOption.TIMELIMIT: 0,
        }  # type: Dict[int, int]


class LDAP3Result:
    """ Snapshot of a finished search: the response list and the result. """

    __slots__ = ("response", "result")

    def __init__(self, response: List[Dict[str, Any]], result: Dict[str, Any]) -> None:
        self.response = response  # type: Optional[List[Dict[str, Any]]]
        self.result = result  # type: Optional[Dict[str, Any]]


def _as_list(values: Any) -> List[Any]:
    if isinstance(values, (str, bytes, bytearray)):
        return [values]
    return list(values)


class LDAP3Engine(BaseEngine):
    """
    Engine that uses an :class:`ldap3.Connection` for every link.

    :param str client_strategy: the ldap3 client strategy. \
    `ldap3.MOCK_SYNC` creates an in-memory directory.
    :param float connect_timeout: timeout of opening the socket.
    :param bool use_ssl: use LDAP over SSL.
    :param ldap3.Tls tls: TLS settings for SSL and StartTLS.
    :param str get_info: the server information read by ldap3.
    """

    def __init__(
        self,
        client_strategy: str = SYNC,
        connect_timeout: Optional[float] = None,
        use_ssl: bool = False,
        tls: Any = None,
        get_info: str = NONE,
    ) -> None:
        self.__strategy = client_strategy
        self.__connect_timeout = connect_timeout
        self.__use_ssl = use_ssl
        self.__tls = tls
        self.__get_info = get_info
        self.__errno = LDAP_SUCCESS
        self.__error = ""

    @staticmethod
    def __set_error(link: LDAP3Link, code: int, msg: str) -> None:
        link.errno = code
        link.error = msg

    @staticmethod
    def __clear_error(link: LDAP3Link) -> None:
        link.errno = LDAP_SUCCESS
        link.error = ""

    def __read_result(self, link: LDAP3Link, accepted: Tuple[int, ...] = (0,)) -> int:
        result = link.connection.result
        if not result:
            self.__set_error(link, LDAP_SERVER_DOWN, "No result is received.")
            return LDAP_SERVER_DOWN
        code = result.get("result", LDAP_SERVER_DOWN)
        if code in accepted:
            self.__clear_error(link)
        else:
            self.__set_error(
                link, code, result.get("message") or result.get("description", "")
            )
        return code

    def __run(
        self,
        link: LDAP3Link,
        method: Callable,
        *args: Any,
        accepted: Tuple[int, ...] = (0,),
        **kwargs: Any
    ) -> Optional[int]:
        try:
            method(*args, **kwargs)
        except LDAPException as exc:
            if isinstance(exc, LDAPCommunicationError):
                self.__set_error(link, LDAP_SERVER_DOWN, str(exc))
            else:
                self.__set_error(link, LDAP_PARAM_ERROR, str(exc))
            return None
        return self.__read_result(link, accepted)

    def __write(self, link: LDAP3Link, method: Callable, *args: Any, **kwargs) -> bool:
        return self.__run(link, method, *args, **kwargs) == LDAP_SUCCESS

    def __item(self, link: LDAP3Link, node: Tuple[LDAP3Result, int]) -> Optional[Dict]:
        result, idx = node
        if result.response is None:
            self.__set_error(link, LDAP_PARAM_ERROR, "The result is already released.")
            return None
        return result.response[idx]

    def __find(
        self, link: LDAP3Link, result: LDAP3Result, start: int, kind: str
    ) -> Optional[Tuple[LDAP3Result, int]]:
        if result.response is None:
            self.__set_error(link, LDAP_PARAM_ERROR, "The result is already released.")
            return None
        self.__clear_error(link)
        for idx in range(start, len(result.response)):
            if result.response[idx].get("type") == kind:
                return (result, idx)
        return None

    def errno(self, link: Optional[LDAP3Link]) -> int:
        if link is None:
            return self.__errno
        return link.errno

    def error(self, link: Optional[LDAP3Link]) -> str:
        if link is None:
            return self.__error
        return link.error

    def connect(self, host: str, port: int) -> Optional[LDAP3Link]:
        use_ssl = self.__use_ssl
        try:
            if "://" in host:
                url = LDAPURL(host)
                if url.scheme == "ldaps":
                    use_ssl = True
                address = host if url.scheme == "ldapi" else url.get_address()
                server = Server(
                    address,
                    use_ssl=use_ssl,
                    get_info=self.__get_info,
                    tls=self.__tls,
                    connect_timeout=self.__connect_timeout,
                )
            else:
                server = Server(
                    host,
                    port=port,
                    use_ssl=use_ssl,
                    get_info=self.__get_info,
                    tls=self.__tls,
                    connect_timeout=self.__connect_timeout,
                )
            conn = Connection(
                server,
                auto_bind=AUTO_BIND_NONE,
                client_strategy=self.__strategy,
                raise_exceptions=False,
            )
            conn.open(read_server_info=False)
        except (LDAPException, ValueError) as exc:
            logger.debug("Failed to connect to %s.", host, exc_info=True)
            self.__errno = LDAP_SERVER_DOWN
            self.__error = str(exc)
            return None
        self.__errno = LDAP_SUCCESS
        self.__error = ""
        return LDAP3Link(conn)

    def bind(
        self, link: LDAP3Link, dn: Optional[str], password: Optional[str]
    ) -> bool:
        conn = link.connection
        if dn:
            conn.authentication = SIMPLE
            conn.user = dn
            conn.password = password
        else:
            conn.authentication = ANONYMOUS
            conn.user = None
            conn.password = None
        return self.__write(link, conn.bind, read_server_info=False)

    def sasl_bind(
        self,
        link: LDAP3Link,
        dn: Optional[str],
        password: Optional[str],
        mechanism: Optional[str],
        realm: Optional[str],
        authc_id: Optional[str],
        authz_id: Optional[str],
        props: Optional[str],
    ) -> bool:
        mech = (mechanism or "").upper()
        if mech not in _SASL_MECHANISMS:
            self.__set_error(
                link, LDAP_NOT_SUPPORTED, "SASL mechanism %r is not supported." % mech
            )
            return False
        if mech == "EXTERNAL":
            credentials = authz_id  # type: Any
        elif mech == "DIGEST-MD5":
            credentials = (realm, authc_id or dn, password, authz_id)
        elif mech == "PLAIN":
            credentials = (authz_id or "", authc_id or dn, password)
        else:
            credentials = (None, authz_id)
        conn = link.connection
        conn.authentication = SASL
        conn.sasl_mechanism = mech
        conn.sasl_credentials = credentials
        return self.__write(link, conn.bind, read_server_info=False)

    def start_tls(self, link: LDAP3Link) -> bool:
        return self.__write(link, link.connection.start_tls, read_server_info=False)

    def unbind(self, link: LDAP3Link) -> bool:
        try:
            link.connection.unbind()
        except LDAPException as exc:
            self.__set_error(link, LDAP_SERVER_DOWN, str(exc))
            return False
        self.__clear_error(link)
        return True

    def search(
        self,
        link: LDAP3Link,
        base: str,
        scope: int,
        filter_exp: str,
        attrlist: List[str],
        attrsonly: bool,
        sizelimit: int,
        timelimit: int,
        deref: int,
    ) -> Optional[LDAP3Result]:
        if scope not in _SCOPES or (deref or 0) not in _DEREFS:
            self.__set_error(link, LDAP_PARAM_ERROR, "Invalid scope or deref value.")
            return None
        if not filter_exp:
            filter_exp = "(objectClass=*)"
        elif not filter_exp.startswith("("):
            filter_exp = "(%s)" % filter_exp
        defaults = link.defaults
        kwargs = dict(
            search_base=base,
            search_filter=filter_exp,
            search_scope=_SCOPES[scope],
            dereference_aliases=_DEREFS[deref or defaults[LDAPOption.DEREF]],
            attributes=attrlist or ALL_ATTRIBUTES,
            size_limit=sizelimit or defaults[LDAPOption.SIZELIMIT],
            time_limit=timelimit or defaults[LDAPOption.TIMELIMIT],
            types_only=attrsonly,
        )  # type: Dict[str, Any]
        if link.paging is not None:
            size, critical, cookie = link.paging
            link.paging = None
            kwargs.update(
                paged_size=size, paged_criticality=critical, paged_cookie=cookie or None
            )
        conn = link.connection
        code = self.__run(link, conn.search, accepted=_SEARCH_RESULT_CODES, **kwargs)
        if code not in _SEARCH_RESULT_CODES:
            return None
        return LDAP3Result(list(conn.response or []), dict(conn.result))

    def add(self, link: LDAP3Link, dn: str, entry: Dict[str, Any]) -> bool:
        attributes = {key: _as_list(val) for key, val in entry.items()}
        return self.__write(link, link.connection.add, dn, attributes=attributes)

    def delete(self, link: LDAP3Link, dn: str) -> bool:
        return self.__write(link, link.connection.delete, dn)

    def __modify(
        self, link: LDAP3Link, dn: str, entry: Dict[str, Any], modtype: str
    ) -> bool:
        changes = {key: [(modtype, _as_list(val))] for key, val in entry.items()}
        return self.__write(link, link.connection.modify, dn, changes)

    def modify(self, link: LDAP3Link, dn: str, entry: Dict[str, Any]) -> bool:
        return self.__modify(link, dn, entry, MODIFY_REPLACE)

    def mod_add(self, link: LDAP3Link, dn: str, entry: Dict[str, Any]) -> bool:
        return self.__modify(link, dn, entry, MODIFY_ADD)

    def mod_del(self, link: LDAP3Link, dn: str, entry: Dict[str, Any]) -> bool:
        return self.__modify(link, dn, entry, MODIFY_DELETE)

    def mod_replace(self, link: LDAP3Link, dn: str, entry: Dict[str, Any]) -> bool:
        return self.__modify(link, dn, entry, MODIFY_REPLACE)

    def modify_batch(self, link: LDAP3Link, dn: str, ops: List[BatchOp]) -> bool:
        changes = {}  # type: Dict[str, List[Tuple[str, List[Any]]]]
        for op in ops:
            modtype = _MODTYPES.get(op["modtype"])
            if modtype is None:
                self.__set_error(
                    link, LDAP_PARAM_ERROR, "Invalid modification type: %r." % op["modtype"]
                )
                return False
            changes.setdefault(op["attrib"], []).append(
                (modtype, list(op.get("values", [])))
            )
        return self.__write(link, link.connection.modify, dn, changes)

    def compare(
        self, link: LDAP3Link, dn: str, attribute: str, value: Union[str, bytes]
    ) -> Optional[bool]:
        code = self.__run(
            link,
            link.connection.compare,
            dn,
            attribute,
            value,
            accepted=(LDAP_COMPARE_FALSE, LDAP_COMPARE_TRUE),
        )
        if code == LDAP_COMPARE_TRUE:
            return True
        if code == LDAP_COMPARE_FALSE:
            return False
        return None

    def rename(
        self,
        link: LDAP3Link,
        dn: str,
        new_rdn: str,
        new_parent: Optional[str],
        delete_old_rdn: bool,
    ) -> bool:
        return self.__write(
            link,
            link.connection.modify_dn,
            dn,
            new_rdn,
            delete_old_dn=delete_old_rdn,
            new_superior=new_parent,
        )

    def get_option(self, link: LDAP3Link, option: int) -> Tuple[bool, Any]:
        conn = link.connection
        if option in link.defaults:
            value = link.defaults[option]
        elif option == LDAPOption.REFERRALS:
            value = bool(conn.auto_referrals)
        elif option == LDAPOption.PROTOCOL_VERSION:
            value = conn.version
        elif option == LDAPOption.NETWORK_TIMEOUT:
            value = conn.server.connect_timeout
        else:
            self.__set_error(link, LDAP_PARAM_ERROR, "Unknown option: %r." % option)
            return (False, None)
        self.__clear_error(link)
        return (True, value)

    def set_option(self, link: LDAP3Link, option: int, value: Any) -> bool:
        conn = link.connection
        if option == LDAPOption.DEREF and value not in _DEREFS:
            self.__set_error(link, LDAP_PARAM_ERROR, "Invalid deref value.")
            return False
        if option in link.defaults:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                self.__set_error(
                    link, LDAP_PARAM_ERROR, "Option value must be a positive integer."
                )
                return False
            link.defaults[option] = value
        elif option == LDAPOption.REFERRALS:
            conn.auto_referrals = bool(value)
        elif option == LDAPOption.PROTOCOL_VERSION:
            if value not in (2, 3):
                self.__set_error(link, LDAP_PARAM_ERROR, "Invalid protocol version.")
                return False
            conn.version = value
        elif option == LDAPOption.NETWORK_TIMEOUT:
            conn.server.connect_timeout = value
        else:
            self.__set_error(link, LDAP_PARAM_ERROR, "Unknown option: %r." % option)
            return False
        self.__clear_error(link)
        return True

    def set_rebind_proc(self, link: LDAP3Link, callback: Callable) -> bool:
        self.__set_error(
            link, LDAP_NOT_SUPPORTED, "Rebind procedures are not supported by ldap3."
        )
        return False

    def control_paged_result(
        self, link: LDAP3Link, page_size: int, is_critical: bool, cookie: bytes
    ) -> bool:
        if page_size < 1:
            self.__set_error(link, LDAP_PARAM_ERROR, "Invalid page size.")
            return False
        link.paging = (page_size, bool(is_critical), cookie)
        self.__clear_error(link)
        return True

    def control_paged_result_response(
        self, link: LDAP3Link, result: LDAP3Result
    ) -> Optional[Tuple[bytes, int]]:
        if result.result is None:
            self.__set_error(link, LDAP_PARAM_ERROR, "The result is already released.")
            return None
        control = (result.result.get("controls") or {}).get(PAGED_RESULTS_OID)
        if control is None:
            self.__set_error(
                link, LDAP_CONTROL_NOT_FOUND, "Paged results control is not found."
            )
            return None
        self.__clear_error(link)
        value = control.get("value") or {}
        return (value.get("cookie") or b"", value.get("size") or 0)

    def first_entry(self, link: LDAP3Link, result: LDAP3Result) -> Any:
        return self.__find(link, result, 0, "searchResEntry")

    def next_entry(self, link: LDAP3Link, entry: Tuple[LDAP3Result, int]) -> Any:
        return self.__find(link, entry[0], entry[1] + 1, "searchResEntry")

    def first_reference(self, link: LDAP3Link, result: LDAP3Result) -> Any:
        return self.__find(link, result, 0, "searchResRef")

    def next_reference(
        self, link: LDAP3Link, reference: Tuple[LDAP3Result, int]
    ) -> Any:
        return self.__find(link, reference[0], reference[1] + 1, "searchResRef")

    def get_values_len(
        self, link: LDAP3Link, entry: Tuple[LDAP3Result, int], attribute: str
    ) -> Optional[List[bytes]]:
        item = self.__item(link, entry)
        if item is None:
            return None
        raw = item.get("raw_attributes") or {}
        for key, values in raw.items():
            if key.lower() == attribute.lower():
                self.__clear_error(link)
                return [bytes(val) for val in values or []]
        self.__set_error(
            link, LDAP_NO_SUCH_ATTRIBUTE, "No such attribute: %s." % attribute
        )
        return None

    def get_values(
        self, link: LDAP3Link, entry: Tuple[LDAP3Result, int], attribute: str
    ) -> Optional[List[str]]:
        values = self.get_values_len(link, entry, attribute)
        if values is None:
            return None
        try:
            return [val.decode("utf-8") for val in values]
        except UnicodeDecodeError as exc:
            self.__set_error(link, LDAP_DECODING_ERROR, str(exc))
            return None

    def get_attributes(
        self, link: LDAP3Link, entry: Tuple[LDAP3Result, int]
    ) -> Optional[List[str]]:
        item = self.__item(link, entry)
        if item is None:
            return None
        self.__clear_error(link)
        return list((item.get("raw_attributes") or {}).keys())

    def get_dn(self, link: LDAP3Link, entry: Tuple[LDAP3Result, int]) -> Optional[str]:
        item = self.__item(link, entry)
        if item is None:
            return None
        self.__clear_error(link)
        return item.get("dn", "")

    def parse_reference(
        self, link: LDAP3Link, reference: Tuple[LDAP3Result, int]
    ) -> Optional[List[str]]:
        item = self.__item(link, reference)
        if item is None:
            return None
        self.__clear_error(link)
        return list(item.get("uri") or [])

    def count_entries(self, link: LDAP3Link, result: LDAP3Result) -> int:
        if result.response is None:
            self.__set_error(link, LDAP_PARAM_ERROR, "The result is already released.")
            return 0
        self.__clear_error(link)
        return sum(1 for item in result.response if item.get("type") == "searchResEntry")

    def get_entries(
        self, link: LDAP3Link, result: LDAP3Result
    ) -> Optional[List[Dict[str, Any]]]:
        if result.response is None:
            self.__set_error(link, LDAP_PARAM_ERROR, "The result is already released.")
            return None
        self.__clear_error(link)
        entries = []
        for item in result.response:
            if item.get("type") != "searchResEntry":
                continue
            attributes = {
                key: [bytes(val) for val in values or []]
                for key, values in (item.get("raw_attributes") or {}).items()
            }
            entries.append(
                {"dn": item.get("dn", ""), "count": len(attributes), "attributes": attributes}
            )
        return entries

    def parse_result(
        self, link: LDAP3Link, result: LDAP3Result
    ) -> Optional[Dict[str, Any]]:
        if result.result is None:
            self.__set_error(link, LDAP_PARAM_ERROR, "The result is already released.")
            return None
        self.__clear_error(link)
        return {
            "result": result.result.get("result", LDAP_SUCCESS),
            "matched_dn": result.result.get("dn") or "",
            "message": result.result.get("message") or "",
            "referrals": list(result.result.get("referrals") or []),
        }

    def free_result(self, result: LDAP3Result) -> None:
        result.response = None
        result.result = None
