from typing import Any, Iterable, Optional, Union

try:
    from typing import SupportsIndex
except ImportError:
    from typing_extensions import SupportsIndex

from .errors import InvalidValueSet


class LDAPValueList(list):
    """
    Modified list for the values of an attribute. It only contains
    strings or bytes and every element is unique. Strings and bytes are
    compared as they are, so `"a"` and `b"a"` are different values.

    A new LDAPValueList can be created optionally from an existing
    sequence object.

    :param items: a sequence object.
    :raises InvalidValueSet: if any of the items is not a string or bytes.
    :raises ValueError: if `items` has a non-unique element.
    """

    __slots__ = ()

    def __init__(self, items: Optional[Iterable[Any]] = None) -> None:
        super().__init__()
        if items:
            for item in items:
                self.append(item)

    @staticmethod
    def __check(value: Any) -> None:
        if not isinstance(value, (str, bytes, bytearray)):
            raise InvalidValueSet(
                "Attribute values must be strings or bytes, not %s."
                % type(value).__name__
            )

    def __mul__(self, value: Any) -> "LDAPValueList":
        raise TypeError("Cannot multiple LDAPValueList.")

    def __add__(self, other: Iterable) -> "LDAPValueList":
        if not isinstance(other, (list, LDAPValueList)):
            raise TypeError("Can only concatenate list and LDAPValueList.")
        new_list = self.copy()
        new_list.extend(other)
        return new_list

    def __iadd__(self, other: Iterable) -> "LDAPValueList":
        if not isinstance(other, (list, LDAPValueList)):
            raise TypeError("Can only concatenate list and LDAPValueList.")
        self.extend(other)
        return self

    def __setitem__(self, idx: Union[SupportsIndex, slice], value: Any) -> None:
        old_value = self[idx]
        if isinstance(idx, slice):
            value = list(value)
            for item in value:
                self.__check(item)
                if item in self and item not in old_value:
                    raise ValueError("%r is already in the list." % item)
        else:
            self.__check(value)
            if value in self and value != old_value:
                raise ValueError("%r is already in the list." % value)
        super().__setitem__(idx, value)

    def append(self, item: Any) -> None:
        """
        Add a unique item to the end of the LDAPValueList.

        :param item: New item.
        :raises ValueError: if the `item` is not unique.
        """
        self.__check(item)
        if item in self:
            raise ValueError("%r is already in the list." % item)
        super().append(item)

    def extend(self, items: Iterable[Any]) -> None:
        """
        Extend the LDAPValueList by appending all the items in the given
        list. All element in `items` must be unique and also not
        represented in the LDAPValueList.

        :param items: List of new items.
        :raises ValueError: if any of the items is already in the list.
        """
        items = list(items)
        for idx, item in enumerate(items):
            self.__check(item)
            if item in self or item in items[:idx]:
                raise ValueError("%r is already in the list." % item)
        super().extend(items)

    def insert(self, idx: SupportsIndex, value: Any) -> None:
        """
        Insert a unique item at a given position.

        :param int idx: the position.
        :param value: the new item.
        :raises ValueError: if the `item` is not unique.
        """
        self.__check(value)
        if value in self:
            raise ValueError("%r is already in the list." % value)
        super().insert(idx, value)

    def copy(self) -> "LDAPValueList":
        """
        Return a shallow copy of the LDAPValueList.

        :rtype: LDAPValueList
        :return: The copy of the LDAPValueList.
        """
        new_list = LDAPValueList()
        list.extend(new_list, self)
        return new_list
