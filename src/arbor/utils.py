import logging

from ldap3.utils.log import (
    BASIC,
    EXTENDED,
    NETWORK,
    OFF,
    PROTOCOL,
    set_library_log_activation_level,
    set_library_log_detail_level,
)

ESCAPE_FILTER = 0x01
ESCAPE_DN = 0x02

_FILTER_CHARS = frozenset("\\*()\0")
_DN_CHARS = frozenset('\\,=+<>;"#')
_LDAP3_DETAILS = (OFF, BASIC, PROTOCOL, NETWORK, EXTENDED)

_debug_handler = None

__all__ = [
    "ESCAPE_DN",
    "ESCAPE_FILTER",
    "escape",
    "escape_attribute_value",
    "escape_filter_exp",
    "set_debug",
]


def _in_scope(char: str, flags: int) -> bool:
    if not flags & (ESCAPE_FILTER | ESCAPE_DN):
        return not char.isprintable()
    return bool(
        (flags & ESCAPE_FILTER and char in _FILTER_CHARS)
        or (flags & ESCAPE_DN and char in _DN_CHARS)
    )


def escape(subject: str, ignore: str = "", flags: int = 0) -> str:
    """
    Escape the characters of a string with their hexadecimal codes
    (a backslash followed by two lowercase hex digits per UTF-8 byte).

    :param str subject: the string to escape.
    :param str ignore: characters that are left unescaped.
    :param int flags: `ESCAPE_FILTER` for the special characters of a \
    search filter (RFC 4515), `ESCAPE_DN` for the special characters of a \
    distinguished name (RFC 4514), or both. Without any flag every \
    non-printable character is escaped.
    :return: the escaped string.
    :rtype: str
    """
    if not isinstance(subject, str):
        raise TypeError("The subject must be a string.")
    if not subject:
        return ""
    return "".join(
        "".join("\\%02x" % byte for byte in char.encode("utf-8"))
        if char not in ignore and _in_scope(char, flags)
        else char
        for char in subject
    )


def escape_filter_exp(filter_exp: str) -> str:
    """
    Escapes the special characters in an LDAP filter based on RFC 4515.

    :param str filter_exp: the unescaped filter expression.
    :return: the escaped filter expression.
    :rtype: str
    """
    return escape(filter_exp, flags=ESCAPE_FILTER)


def escape_attribute_value(attrval: str) -> str:
    """
    Escapes the special characters in an attribute value
    based on RFC 4514.

    :param str attrval: the attribute value.
    :return: The escaped attribute value.
    :rtype: str
    """
    return escape(attrval, flags=ESCAPE_DN)


def set_debug(debug: bool, level: int = 0) -> None:
    """
    Turn debug logging to the standard error on or off. With `level`
    greater than 0 the log of the ldap3 library is also shown, higher
    levels give more details (up to 4).

    :param bool debug: turn debug logging on.
    :param int level: detail level of the ldap3 log.
    """
    global _debug_handler
    loggers = (logging.getLogger("arbor"), logging.getLogger("ldap3"))
    if _debug_handler is not None:
        for log in loggers:
            log.removeHandler(_debug_handler)
        _debug_handler = None
    if not debug:
        loggers[0].setLevel(logging.NOTSET)
        set_library_log_detail_level(OFF)
        return
    _debug_handler = logging.StreamHandler()
    _debug_handler.setFormatter(
        logging.Formatter("%(asctime)s %(name)s %(levelname)s: %(message)s")
    )
    loggers[0].addHandler(_debug_handler)
    loggers[0].setLevel(logging.DEBUG)
    level = max(0, min(level, len(_LDAP3_DETAILS) - 1))
    set_library_log_detail_level(_LDAP3_DETAILS[level])
    if level > 0:
        set_library_log_activation_level(logging.DEBUG)
        loggers[1].addHandler(_debug_handler)
        loggers[1].setLevel(logging.DEBUG)
