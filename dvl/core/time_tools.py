#!/usr/bin/env python

"""
@package dvl.core.time_tools
@file dvl/core/time_tools.py
@brief Common time functions for drivers
"""

import calendar
import datetime
import time

import ntplib

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

__license__ = 'Apache 2.0'


def time_to_ntp_date_time(unix_time=None):
    """
    return an NTP timestamp as a float.
    @param unix_time: Unix time (seconds since 1970/1/1) as returned from time.time()
    """
    if unix_time is None:
        unix_time = time.time()

    timestamp = ntplib.system_to_ntp_time(unix_time)
    return float(timestamp)


def datetime_to_ntp_date_time(dt):
    """
    Convert a naive datetime, assumed UTC, to an NTP timestamp (seconds since jan 1 1900)
    """
    unix_timestamp = calendar.timegm(dt.timetuple()) + (dt.microsecond / 1000000.0)
    return float(ntplib.system_to_ntp_time(unix_timestamp))


def ntp_to_string(timestamp, time_format=DATE_FORMAT):
    """
    takes an NTP timestamp (seconds since 1900/1/1) and outputs in provided format
    :param timestamp: ntp timestamp
    :param time_format: datetime compatible time string format
    :return: formatted date string
    """
    unix_time = ntplib.ntp_to_system_time(timestamp)
    dt = datetime.datetime.fromtimestamp(unix_time, datetime.timezone.utc)
    return dt.strftime(time_format)
