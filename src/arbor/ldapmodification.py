from enum import IntEnum
from typing import Any, Iterable, Optional, Union

from .errors import InvalidMode, InvalidValueSet
from .ldapvaluelist import LDAPValueList


class LDAPModOp(IntEnum):
    """Enumeration for the operations of a batch modification."""

    ADD = 1  #: For adding new values to the attribute.
    REMOVE = 2  #: For removing the listed values from the attribute.
    REMOVE_ALL = 18  #: For removing the attribute with all of its values.
    REPLACE = 3  #: For replacing the existing attribute values.


class LDAPModification:
    """
    One attribute change of a batch modification that is submitted with
    :meth:`LDAPDirectory.modify_batch`.

    :param str attribute_name: the name of the changed attribute.
    :param LDAPModOp operation: the type of the change.
    :param values: the value set of the change (list, tuple or \
    :class:`LDAPValueList`). It must be omitted for \
    :attr:`LDAPModOp.REMOVE_ALL`.
    :raises TypeError: if `attribute_name` is not a string.
    :raises InvalidMode: if `operation` is not an :class:`LDAPModOp`, or \
    values are given to a REMOVE_ALL operation.
    :raises InvalidValueSet: if `values` is not a sequence of strings or \
    bytes.
    """

    __slots__ = ("__attrname", "__optype", "__values")

    def __init__(
        self,
        attribute_name: Optional[str] = None,
        operation: Optional[Union[LDAPModOp, int]] = None,
        values: Optional[Iterable[Any]] = None,
    ) -> None:
        self.__attrname = None  # type: Optional[str]
        self.__optype = None  # type: Optional[LDAPModOp]
        self.__values = LDAPValueList()
        if attribute_name is not None:
            self.attribute_name = attribute_name
        if operation is not None:
            self.operation = operation
        if values is not None:
            self.values = values

    @property
    def attribute_name(self) -> Optional[str]:
        """The name of the changed attribute."""
        return self.__attrname

    @attribute_name.setter
    def attribute_name(self, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("The attribute name must be a string.")
        self.__attrname = value

    @property
    def operation(self) -> Optional[LDAPModOp]:
        """
        The operation of the change. Setting it to
        :attr:`LDAPModOp.REMOVE_ALL` clears the staged values.
        """
        return self.__optype

    @operation.setter
    def operation(self, value: Union[LDAPModOp, int]) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidMode("Operation must be one of the LDAPModOp values.")
        try:
            optype = LDAPModOp(value)
        except ValueError:
            raise InvalidMode(
                "Operation must be one of the LDAPModOp values."
            ) from None
        self.__optype = optype
        if optype == LDAPModOp.REMOVE_ALL:
            self.__values = LDAPValueList()

    @property
    def values(self) -> LDAPValueList:
        """The value set of the change."""
        return self.__values

    @values.setter
    def values(self, value: Iterable[Any]) -> None:
        if self.__optype == LDAPModOp.REMOVE_ALL:
            raise InvalidMode("REMOVE_ALL operations cannot include a value set.")
        if isinstance(value, LDAPValueList):
            self.__values = value
        elif isinstance(value, (list, tuple)):
            self.__values = LDAPValueList(value)
        else:
            raise InvalidValueSet(
                "Value set must be specified as a list, a tuple or an LDAPValueList."
            )

    def is_complete(self) -> bool:
        """
        Check that the modification can be submitted: the attribute name
        and the operation are set, and the value set is not empty unless
        the operation is REMOVE_ALL.

        :return: True, if the modification is complete.
        :rtype: bool
        """
        if self.__attrname is None or self.__optype is None:
            return False
        if self.__optype == LDAPModOp.REMOVE_ALL:
            return len(self.__values) == 0
        return len(self.__values) > 0

    def __repr__(self) -> str:
        optype = self.__optype.name if self.__optype is not None else None
        return "<LDAPModification %s %s %r>" % (
            self.__attrname,
            optype,
            list(self.__values),
        )
