from .ldapurl import LDAPURL
from .ldapdirectory import LDAPDirectory, LDAPDeref, LDAPSearchScope
from .ldapresultset import LDAPResultSet
from .ldapentry import LDAPEntry, LDAPValueMode
from .ldapreference import LDAPReference
from .ldapmodification import LDAPModification, LDAPModOp
from .ldapvaluelist import LDAPValueList
from .engine import BaseEngine, LDAPOption
from .errors import *
from .utils import *

__version__ = "1.0.0"

__all__ = [
    "BaseEngine",
    "LDAPDeref",
    "LDAPDirectory",
    "LDAPEntry",
    "LDAPModification",
    "LDAPModOp",
    "LDAPOption",
    "LDAPReference",
    "LDAPResultSet",
    "LDAPSearchScope",
    "LDAPURL",
    "LDAPValueList",
    "LDAPValueMode",
    # Errors
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
    # Util functions
    "ESCAPE_DN",
    "ESCAPE_FILTER",
    "escape",
    "escape_attribute_value",
    "escape_filter_exp",
    "set_debug",
]
