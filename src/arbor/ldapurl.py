from ipaddress import IPv6Address
from typing import List, Optional, Tuple

import re
import urllib.parse


class LDAPURL:
    """
    LDAP URL object for referral URLs and for host URIs given to
    :meth:`LDAPDirectory.connect`. It holds the scheme, hostname, port,
    base DN, search attributes, scope and filter of the URL. If `strurl`
    is None, then the default url is `ldap://localhost:389`.

    :param str strurl: string representation of a valid LDAP URL. Must \
    be started with `ldap://`, `ldaps://` or `ldapi://`.

    :raises ValueError: if the string parameter is not a valid LDAP URL.
    """

    __slots__ = ("__hostinfo", "__searchinfo", "__ipv6")

    def __init__(self, strurl: Optional[str] = None) -> None:
        """Init method."""
        self.__hostinfo = ("ldap", "localhost", 389)  # type: Tuple[str, str, int]
        self.__searchinfo = ("", [], "", "")  # type: Tuple[str, List[str], str, str]
        self.__ipv6 = False
        if strurl:
            self.__str2url(strurl)

    def __str2url(self, strurl: str) -> None:
        """Parsing string url to LDAPURL."""
        # Form: [scheme]://[host]:[port]/[basedn]?[attrs]?[scope]?[filter]?[exts]
        scheme, host, port = self.__hostinfo
        basedn, attrlist, scope, filter_exp = self.__searchinfo
        parsed_url = urllib.parse.urlparse(strurl)
        scheme = parsed_url.scheme
        if scheme not in ("ldap", "ldaps", "ldapi"):
            raise ValueError(f"'{strurl}' is not a valid LDAP URL")
        if scheme == "ldaps":
            port = 636
        elif scheme == "ldapi":
            port = 0
        if parsed_url.hostname:
            host = parsed_url.hostname
        if scheme != "ldapi":
            valid, self.__ipv6 = self.is_valid_hostname(host)
            if not valid:
                raise ValueError(f"'{strurl}' has an invalid hostname")
        try:
            if parsed_url.port:
                port = parsed_url.port
        except ValueError:
            raise ValueError("'%s' has an invalid port" % strurl) from None
        basedn = urllib.parse.unquote(parsed_url.path[1:])
        params = parsed_url.query.split("?")
        if len(params) > 0 and len(params[0]) > 0:
            attrlist = params[0].split(",")
        if len(params) > 1 and params[1]:
            scope = params[1].lower()
            if scope not in ("base", "one", "sub"):
                raise ValueError("Invalid scope type.")
        if len(params) > 2:
            filter_exp = urllib.parse.unquote(params[2])
        self.__hostinfo = (scheme, host, port)
        self.__searchinfo = (basedn, attrlist, scope, filter_exp)

    @staticmethod
    def is_valid_hostname(hostname: str) -> Tuple[bool, bool]:
        """Validate a hostname."""
        hostname_regex = re.compile(
            r"^(([a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9\-]"
            r"*[a-zA-Z0-9])\.)*([A-Za-z0-9]|"
            r"[A-Za-z0-9][A-Za-z0-9\-]*[A-Za-z0-9])$"
        )
        try:
            IPv6Address(hostname)
            return (True, True)
        except ValueError:
            if hostname_regex.match(hostname):
                return (True, False)
            return (False, False)

    @property
    def scheme(self) -> str:
        """The URL scheme."""
        return self.__hostinfo[0]

    @property
    def host(self) -> str:
        """The hostname."""
        return self.__hostinfo[1]

    @property
    def port(self) -> int:
        """The portnumber."""
        return self.__hostinfo[2]

    @property
    def basedn(self) -> str:
        """The base DN of the URL."""
        return self.__searchinfo[0]

    @property
    def attributes(self) -> List[str]:
        """The searching attributes."""
        return self.__searchinfo[1]

    @property
    def scope(self) -> str:
        """The searching scope."""
        return self.__searchinfo[2]

    @property
    def filter_exp(self) -> str:
        """The searching filter expression."""
        return self.__searchinfo[3]

    def get_address(self) -> str:
        """
        Return the full address of the host.
        """
        if self.scheme == "ldapi":
            return f"{self.scheme}://{self.host}"
        if self.__ipv6:
            return f"{self.scheme}://[{self.host}]:{self.port:d}"
        return f"{self.scheme}://{self.host}:{self.port:d}"

    def __eq__(self, other: object) -> bool:
        """
        Check equality of two LDAPURL or an LDAPURL and a string.
        """
        if isinstance(other, LDAPURL):
            return (
                self.scheme == other.scheme
                and self.host == other.host
                and self.port == other.port
                and self.basedn.lower() == other.basedn.lower()
                and self.scope == other.scope
                and self.filter_exp == other.filter_exp
                and self.attributes == other.attributes
            )
        elif isinstance(other, str):
            try:
                other = LDAPURL(other)
            except ValueError:
                return False
            return self == other
        else:
            return NotImplemented

    def __str__(self) -> str:
        """Returns the full format of LDAP URL."""
        strurl = self.get_address()
        strbind = "?".join(
            (
                urllib.parse.quote(self.basedn, safe="=,"),
                ",".join(self.attributes),
                self.scope,
                urllib.parse.quote(self.filter_exp, safe="=,()*"),
            )
        ).rstrip("?")
        if strbind:
            strurl = "%s/%s" % (strurl, strbind)
        return strurl

    def __repr__(self) -> str:
        """The LDAPURL representation."""
        return "<LDAPURL %s>" % str(self)
