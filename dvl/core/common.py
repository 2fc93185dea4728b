#!/usr/bin/env python

"""
@package dvl.core.common
@file dvl/core/common.py
@brief Common base classes shared by the instrument drivers
"""

__license__ = 'Apache 2.0'


class BaseEnum(object):
    """
    Base class for enums.

    Used to code agent and instrument states, events, commands and errors.
    To use, derive a class from this subclass and set values equal to it
    such as:
    @code
    class FooEnum(BaseEnum):
       VALUE1 = "Value 1"
       VALUE2 = "Value 2"
    @endcode
    and address the values as FooEnum.VALUE1 after you import the
    class/package.

    Enumerations are part of the code in the driver packages and are
    frequently referenced from both the host application and the tests.
    """

    @classmethod
    def list(cls):
        """
        List the values of this enum.
        @retval A list of the values
        """
        return [getattr(cls, attr) for attr in cls._attrs()]

    @classmethod
    def dict(cls):
        """
        Return a dict representation of this enum.
        @retval A dict keyed by attribute name
        """
        return dict((attr, getattr(cls, attr)) for attr in cls._attrs())

    @classmethod
    def has(cls, item):
        """
        Is the object defined in the class?
        @param item An item to check the value against
        @retval True if the item is one of the values
        """
        return item in cls.list()

    @classmethod
    def name(cls, item):
        """
        Reverse lookup of the attribute name for a value.
        @raise KeyError if the value is not part of this enum
        """
        for attr in cls._attrs():
            if getattr(cls, attr) == item:
                return attr
        raise KeyError(item)

    @classmethod
    def _attrs(cls):
        return [attr for attr in dir(cls)
                if not attr.startswith('_') and not callable(getattr(cls, attr))]
