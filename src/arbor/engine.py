"""
.. module:: engine
   :synopsis: Interface of the directory-protocol engines.

"""
from abc import ABCMeta, abstractmethod
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

#: Return codes of the engine calls, following the libldap numbering.
LDAP_SUCCESS = 0x00
LDAP_OPERATIONS_ERROR = 0x01
LDAP_PROTOCOL_ERROR = 0x02
LDAP_TIMELIMIT_EXCEEDED = 0x03
LDAP_SIZELIMIT_EXCEEDED = 0x04
LDAP_COMPARE_FALSE = 0x05
LDAP_COMPARE_TRUE = 0x06
LDAP_REFERRAL = 0x0A
LDAP_NO_SUCH_ATTRIBUTE = 0x10
LDAP_SERVER_DOWN = -1
LDAP_DECODING_ERROR = -4
LDAP_PARAM_ERROR = -9
LDAP_NOT_SUPPORTED = -12
LDAP_CONTROL_NOT_FOUND = -13


class LDAPOption(IntEnum):
    """ Enumeration of the connection options an engine may support. """

    DEREF = 0x02  #: Default alias dereferencing policy.
    SIZELIMIT = 0x03  #: Default size limit of searches.
    TIMELIMIT = 0x04  #: Default time limit of searches in seconds.
    REFERRALS = 0x08  #: Chasing referrals automatically.
    PROTOCOL_VERSION = 0x11  #: The LDAP protocol version.
    NETWORK_TIMEOUT = 0x5005  #: Timeout of the network connection in seconds.


#: One attribute change of a batch request:
#: ``{"attrib": str, "modtype": int, "values": [...]}``.
BatchOp = Dict[str, Any]


class BaseEngine(metaclass=ABCMeta):
    """
    Abstract directory-protocol engine. It performs the network I/O and
    the PDU encoding/decoding for the :class:`arbor.LDAPDirectory` and
    hands out opaque handles for connections (links), results, entries
    and references.

    Every call leaves an error code and a message on the link that can be
    read with :meth:`errno` and :meth:`error`. The code is 0 after a
    successful call. Failures are signaled with a falsy return value, so
    an empty answer and an error are told apart by the error code.
    """

    @property
    def supports_modify_batch(self) -> bool:
        """ Whether the engine can submit batch modifications. """
        return True

    @abstractmethod
    def errno(self, link: Any) -> int:
        """
        Return the error code of the last call on the `link`. With `None`
        it returns the code of the last failed :meth:`connect`.
        """

    @abstractmethod
    def error(self, link: Any) -> str:
        """ Return the error message of the last call on the `link`. """

    @abstractmethod
    def connect(self, host: str, port: int) -> Any:
        pass

    @abstractmethod
    def bind(self, link: Any, dn: Optional[str], password: Optional[str]) -> bool:
        pass

    @abstractmethod
    def sasl_bind(
        self,
        link: Any,
        dn: Optional[str],
        password: Optional[str],
        mechanism: Optional[str],
        realm: Optional[str],
        authc_id: Optional[str],
        authz_id: Optional[str],
        props: Optional[str],
    ) -> bool:
        pass

    @abstractmethod
    def start_tls(self, link: Any) -> bool:
        pass

    @abstractmethod
    def unbind(self, link: Any) -> bool:
        pass

    @abstractmethod
    def search(
        self,
        link: Any,
        base: str,
        scope: int,
        filter_exp: str,
        attrlist: List[str],
        attrsonly: bool,
        sizelimit: int,
        timelimit: int,
        deref: int,
    ) -> Any:
        """ Run a search and return a result handle or `None`. """

    @abstractmethod
    def add(self, link: Any, dn: str, entry: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def delete(self, link: Any, dn: str) -> bool:
        pass

    @abstractmethod
    def modify(self, link: Any, dn: str, entry: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def mod_add(self, link: Any, dn: str, entry: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def mod_del(self, link: Any, dn: str, entry: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def mod_replace(self, link: Any, dn: str, entry: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def modify_batch(self, link: Any, dn: str, ops: List[BatchOp]) -> bool:
        pass

    @abstractmethod
    def compare(
        self, link: Any, dn: str, attribute: str, value: Union[str, bytes]
    ) -> Optional[bool]:
        """ Return True or False, or `None` if the result is indeterminate. """

    @abstractmethod
    def rename(
        self,
        link: Any,
        dn: str,
        new_rdn: str,
        new_parent: Optional[str],
        delete_old_rdn: bool,
    ) -> bool:
        pass

    @abstractmethod
    def get_option(self, link: Any, option: int) -> Tuple[bool, Any]:
        pass

    @abstractmethod
    def set_option(self, link: Any, option: int, value: Any) -> bool:
        pass

    @abstractmethod
    def set_rebind_proc(self, link: Any, callback: Callable) -> bool:
        pass

    @abstractmethod
    def control_paged_result(
        self, link: Any, page_size: int, is_critical: bool, cookie: bytes
    ) -> bool:
        """ Stage a paged results control for the next search. """

    @abstractmethod
    def control_paged_result_response(
        self, link: Any, result: Any
    ) -> Optional[Tuple[bytes, int]]:
        """ Return the `(cookie, estimated total)` pair of a paged result. """

    @abstractmethod
    def first_entry(self, link: Any, result: Any) -> Any:
        pass

    @abstractmethod
    def next_entry(self, link: Any, entry: Any) -> Any:
        pass

    @abstractmethod
    def first_reference(self, link: Any, result: Any) -> Any:
        pass

    @abstractmethod
    def next_reference(self, link: Any, reference: Any) -> Any:
        pass

    @abstractmethod
    def get_values(self, link: Any, entry: Any, attribute: str) -> Optional[List[str]]:
        """ Return the values of the attribute as strings. """

    @abstractmethod
    def get_values_len(
        self, link: Any, entry: Any, attribute: str
    ) -> Optional[List[bytes]]:
        """ Return the values of the attribute as bytes. """

    @abstractmethod
    def get_attributes(self, link: Any, entry: Any) -> Optional[List[str]]:
        pass

    @abstractmethod
    def get_dn(self, link: Any, entry: Any) -> Optional[str]:
        pass

    @abstractmethod
    def parse_reference(self, link: Any, reference: Any) -> Optional[List[str]]:
        pass

    @abstractmethod
    def count_entries(self, link: Any, result: Any) -> int:
        pass

    @abstractmethod
    def get_entries(self, link: Any, result: Any) -> Optional[List[Dict[str, Any]]]:
        pass

    @abstractmethod
    def parse_result(self, link: Any, result: Any) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def free_result(self, result: Any) -> None:
        """ Release the result. It must not raise. """
