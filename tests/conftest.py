import configparser
import os

import pytest
from ldap3 import MOCK_SYNC

from arbor import LDAPDirectory
from arbor.engine import BaseEngine, LDAP_CONTROL_NOT_FOUND, LDAP_NO_SUCH_ATTRIBUTE
from arbor.ldap3engine import LDAP3Engine

BASEDN = "ou=test,o=lab"


def get_config():
    """Load config parameters."""
    curdir = os.path.abspath(os.path.dirname(__file__))
    cfg = configparser.ConfigParser()
    cfg.read(os.path.join(curdir, "test.ini"))
    return cfg


class FakeLink:
    def __init__(self, host, port):
        self.host = host
        self.port = port
        self.errno = 0
        self.error = ""
        self.options = {}
        self.paging = None


class FakeResult:
    def __init__(self, entries, references, paging=None):
        self.entries = entries
        self.references = references
        self.paging = paging
        self.freed = False


class FakeEngine(BaseEngine):
    """
    In-memory engine that records every call. A call can be set to fail
    with :meth:`fail` (falsy return and the given error code) or to raise
    with :meth:`explode`.
    """

    def __init__(self, entries=None, references=None, supports_modify_batch=True):
        self.entries = list(entries or [])
        self.references = list(references or [])
        self.pages = []
        self.calls = []
        self.failures = {}
        self.raising = set()
        self.results = []
        self.compare_result = True
        self.__batch = supports_modify_batch
        self.last_errno = 0
        self.last_error = ""

    @property
    def supports_modify_batch(self):
        return self.__batch

    def fail(self, method, code=-1, msg="Engine failure."):
        self.failures[method] = (code, msg)

    def explode(self, method):
        self.raising.add(method)

    def called(self, method):
        """Return the argument tuples of the recorded calls of `method`."""
        return [call[1:] for call in self.calls if call[0] == method]

    def _call(self, method, link, *args):
        self.calls.append((method,) + args)
        if method in self.raising:
            raise RuntimeError("%s exploded." % method)
        if method in self.failures:
            code, msg = self.failures[method]
            self._set_error(link, code, msg)
            return False
        self._set_error(link, 0, "")
        return True

    def _set_error(self, link, code, msg):
        if link is None:
            self.last_errno, self.last_error = code, msg
        else:
            link.errno, link.error = code, msg

    def errno(self, link):
        return self.last_errno if link is None else link.errno

    def error(self, link):
        return self.last_error if link is None else link.error

    def connect(self, host, port):
        if not self._call("connect", None, host, port):
            return None
        return FakeLink(host, port)

    def bind(self, link, dn, password):
        return self._call("bind", link, dn, password)

    def sasl_bind(self, link, dn, password, mechanism, realm, authc_id, authz_id, props):
        return self._call(
            "sasl_bind", link, dn, password, mechanism, realm, authc_id, authz_id, props
        )

    def start_tls(self, link):
        return self._call("start_tls", link)

    def unbind(self, link):
        return self._call("unbind", link)

    def search(
        self, link, base, scope, filter_exp, attrlist, attrsonly, sizelimit, timelimit, deref
    ):
        if not self._call(
            "search",
            link,
            base,
            scope,
            filter_exp,
            attrlist,
            attrsonly,
            sizelimit,
            timelimit,
            deref,
        ):
            return None
        paging = None
        if link.paging is not None:
            link.paging = None
            paging = self.pages.pop(0)
        result = FakeResult(list(self.entries), list(self.references), paging)
        self.results.append(result)
        return result

    def add(self, link, dn, entry):
        return self._call("add", link, dn, entry)

    def delete(self, link, dn):
        return self._call("delete", link, dn)

    def modify(self, link, dn, entry):
        return self._call("modify", link, dn, entry)

    def mod_add(self, link, dn, entry):
        return self._call("mod_add", link, dn, entry)

    def mod_del(self, link, dn, entry):
        return self._call("mod_del", link, dn, entry)

    def mod_replace(self, link, dn, entry):
        return self._call("mod_replace", link, dn, entry)

    def modify_batch(self, link, dn, ops):
        return self._call("modify_batch", link, dn, ops)

    def compare(self, link, dn, attribute, value):
        if not self._call("compare", link, dn, attribute, value):
            return None
        return self.compare_result

    def rename(self, link, dn, new_rdn, new_parent, delete_old_rdn):
        return self._call("rename", link, dn, new_rdn, new_parent, delete_old_rdn)

    def get_option(self, link, option):
        if not self._call("get_option", link, option):
            return (False, None)
        return (True, link.options.get(option, 0))

    def set_option(self, link, option, value):
        if not self._call("set_option", link, option, value):
            return False
        link.options[option] = value
        return True

    def set_rebind_proc(self, link, callback):
        return self._call("set_rebind_proc", link, callback)

    def control_paged_result(self, link, page_size, is_critical, cookie):
        if not self._call("control_paged_result", link, page_size, is_critical, cookie):
            return False
        link.paging = (page_size, is_critical, cookie)
        return True

    def control_paged_result_response(self, link, result):
        if not self._call("control_paged_result_response", link):
            return None
        if result.paging is None:
            self._set_error(link, LDAP_CONTROL_NOT_FOUND, "Control is not found.")
            return None
        return result.paging

    def __node(self, method, link, items, start):
        if not self._call(method, link, start):
            return None
        if start < len(items):
            return (items, start)
        return None

    def first_entry(self, link, result):
        return self.__node("first_entry", link, result.entries, 0)

    def next_entry(self, link, entry):
        return self.__node("next_entry", link, entry[0], entry[1] + 1)

    def first_reference(self, link, result):
        return self.__node("first_reference", link, result.references, 0)

    def next_reference(self, link, reference):
        return self.__node("next_reference", link, reference[0], reference[1] + 1)

    def get_values_len(self, link, entry, attribute):
        if not self._call("get_values_len", link, attribute):
            return None
        attrs = entry[0][entry[1]]["attributes"]
        if attribute not in attrs:
            self._set_error(link, LDAP_NO_SUCH_ATTRIBUTE, "No such attribute.")
            return None
        return list(attrs[attribute])

    def get_values(self, link, entry, attribute):
        if not self._call("get_values", link, attribute):
            return None
        attrs = entry[0][entry[1]]["attributes"]
        if attribute not in attrs:
            self._set_error(link, LDAP_NO_SUCH_ATTRIBUTE, "No such attribute.")
            return None
        return [val.decode("utf-8") for val in attrs[attribute]]

    def get_attributes(self, link, entry):
        if not self._call("get_attributes", link):
            return None
        return list(entry[0][entry[1]]["attributes"])

    def get_dn(self, link, entry):
        if not self._call("get_dn", link):
            return None
        return entry[0][entry[1]]["dn"]

    def parse_reference(self, link, reference):
        if not self._call("parse_reference", link):
            return None
        return list(reference[0][reference[1]])

    def count_entries(self, link, result):
        if not self._call("count_entries", link):
            return 0
        return len(result.entries)

    def get_entries(self, link, result):
        if not self._call("get_entries", link):
            return None
        return [
            {"dn": ent["dn"], "count": len(ent["attributes"]), "attributes": ent["attributes"]}
            for ent in result.entries
        ]

    def parse_result(self, link, result):
        if not self._call("parse_result", link):
            return None
        return {"result": 0, "matched_dn": "", "message": "", "referrals": []}

    def free_result(self, result):
        self.calls.append(("free_result", result))
        if "free_result" in self.raising:
            raise RuntimeError("free_result exploded.")
        result.freed = True


ENTRIES = [
    {
        "dn": "cn=chuck,%s" % BASEDN,
        "attributes": {
            "cn": [b"chuck"],
            "mail": [b"chuck@lab.local", b"charles@lab.local"],
            "objectClass": [b"top", b"person"],
        },
    },
    {
        "dn": "cn=sarah,%s" % BASEDN,
        "attributes": {"cn": [b"sarah"], "photo": [b"\xff\xd8\xff"]},
    },
]

REFERENCES = [["ldap://other.lab/ou=remote,o=lab"], ["ldap://third.lab:1389/o=lab"]]


@pytest.fixture
def engine():
    """Get a FakeEngine with two entries and two references."""
    return FakeEngine(ENTRIES, REFERENCES)


@pytest.fixture
def conn(engine):
    """Get a bound LDAPDirectory on the FakeEngine."""
    directory = LDAPDirectory("localhost", user="cn=admin,o=lab", password="p@ssword", engine=engine)
    yield directory
    directory.close()


@pytest.fixture(scope="module")
def basedn():
    """Get base DN."""
    return BASEDN


@pytest.fixture(scope="module")
def cfg():
    """Get config."""
    return get_config()


MOCK_ENTRIES = [
    ("o=lab", {"objectClass": ["top", "organization"], "o": "lab"}),
    (
        "cn=admin,o=lab",
        {"objectClass": ["top", "person"], "cn": "admin", "sn": "admin", "userPassword": "p@ssword"},
    ),
    (BASEDN, {"objectClass": ["top", "organizationalUnit"], "ou": "test"}),
    (
        "cn=chuck,%s" % BASEDN,
        {
            "objectClass": ["top", "person"],
            "cn": "chuck",
            "sn": "Bartowski",
            "description": ["nerd", "spy"],
        },
    ),
    (
        "cn=sarah,%s" % BASEDN,
        {"objectClass": ["top", "person"], "cn": "sarah", "sn": "Walker"},
    ),
]


class MockEngine(LDAP3Engine):
    """LDAP3Engine on ldap3's in-memory directory, filled at connect."""

    def __init__(self, entries=MOCK_ENTRIES):
        super().__init__(client_strategy=MOCK_SYNC)
        self.entries = entries

    def connect(self, host, port):
        link = super().connect(host, port)
        if link is not None:
            for dn, attrs in self.entries:
                link.connection.strategy.add_entry(dn, attrs)
        return link


@pytest.fixture
def mock_conn():
    """Get a bound LDAPDirectory on ldap3's in-memory directory."""
    directory = LDAPDirectory(
        "mock.lab", user="cn=admin,o=lab", password="p@ssword", engine=MockEngine()
    )
    yield directory
    directory.close()
