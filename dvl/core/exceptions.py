#!/usr/bin/env python

"""
@package dvl.core.exceptions Exception classes for DVL work
@file dvl/core/exceptions.py
@brief Common exceptions used by the instrument drivers. Specific ones can be
subclassed in the driver code.
"""

__license__ = 'Apache 2.0'

from dvl.exception import ApplicationException

BadRequest = 400
Timeout = 408
Conflict = 409
ServerError = 500
InstConnectionError = 610
InstProtocolError = 640
InstSampleError = 650
InstUnknownCommandError = 670
ResourceError = 700


class InstrumentException(ApplicationException):
    """Base class for an exception related to physical instruments or their
    representation on the host.
    """
    def __init__(self, msg=None, error_code=ResourceError):
        self.error_code = error_code
        self.msg = msg
        super(InstrumentException, self).__init__(msg)

    def get_triple(self):
        """ get exception info without depending on driver exception classes """
        return self.error_code, "%s: %s" % (self.__class__.__name__, self.msg), self._stacks[-1:]

    def __str__(self):
        return str(self.msg)


class InstrumentConnectionException(InstrumentException):
    """Exception related to connection with a physical instrument"""
    def __init__(self, msg=None):
        super(InstrumentConnectionException, self).__init__(msg=msg, error_code=InstConnectionError)


class InstrumentProtocolException(InstrumentException):
    """Exception related to an instrument protocol problem

    These are generally related to parsing or scripting of what is supposed
    to happen when talking at the lowest layer protocol to a device.
    """
    def __init__(self, msg=None):
        super(InstrumentProtocolException, self).__init__(msg=msg, error_code=InstProtocolError)


class InstrumentStateException(InstrumentException):
    """Exception related to an instrument state of any sort"""
    def __init__(self, msg=None):
        super(InstrumentStateException, self).__init__(msg=msg, error_code=Conflict)


class InstrumentTimeoutException(InstrumentException):
    """Exception related to a command, request, or communication timing out"""
    def __init__(self, msg=None):
        super(InstrumentTimeoutException, self).__init__(msg=msg, error_code=Timeout)


class InstrumentCommandException(InstrumentException):
    """The instrument rejected a command. The device's own text is kept in response."""
    def __init__(self, msg=None, response=None):
        super(InstrumentCommandException, self).__init__(msg=msg, error_code=InstUnknownCommandError)
        self.response = response


class InstrumentParameterException(InstrumentException):
    """A parameter is missing or cannot be represented on the wire"""
    def __init__(self, msg=None):
        super(InstrumentParameterException, self).__init__(msg=msg, error_code=BadRequest)


class ConfigurationException(InstrumentException):
    """ Applying a configuration to the instrument was aborted. """
    def __init__(self, msg=None, setting=None):
        super(ConfigurationException, self).__init__(msg=msg, error_code=ServerError)
        self.setting = setting


class SampleException(InstrumentException):
    """ An expected sample could not be extracted. """
    def __init__(self, msg=None):
        super(SampleException, self).__init__(msg=msg, error_code=InstSampleError)
