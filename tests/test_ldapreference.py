import pytest

from arbor import LDAPReference, LDAPURL
from arbor.errors import ReferenceRetrievalFailure, ValueRetrievalFailure


@pytest.fixture
def ref(conn):
    """Get the first reference of a search."""
    return conn.search("o=lab", "(cn=*)").first_reference()


def test_next_reference(ref):
    """ Test walking the reference chain. """
    second = ref.next_reference()
    assert isinstance(second, LDAPReference)
    assert second.parse() == ["ldap://third.lab:1389/o=lab"]
    assert second.next_reference() is None


def test_next_reference_failure(ref, engine):
    """ Test that a nonzero error code raises ReferenceRetrievalFailure. """
    engine.fail("next_reference", -1, "Server down")
    with pytest.raises(ReferenceRetrievalFailure):
        ref.next_reference()


def test_parse(ref, engine):
    """ Test getting the referral URLs. """
    assert ref.parse() == ["ldap://other.lab/ou=remote,o=lab"]
    engine.fail("parse_reference", -4, "Decoding error")
    with pytest.raises(ValueRetrievalFailure) as excinfo:
        ref.parse()
    assert excinfo.value.code == -4


def test_references(ref):
    """ Test getting the referral URLs as LDAPURL objects. """
    urls = ref.references
    assert urls == [LDAPURL("ldap://other.lab/ou=remote,o=lab")]
    assert urls[0].host == "other.lab"
    assert urls[0].basedn == "ou=remote,o=lab"
