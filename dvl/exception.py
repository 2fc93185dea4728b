"""
base exception class for application-defined exceptions to keep the stack explicitly
so it can be caught, re-raised and inspected from a different context
"""

import sys
import traceback


class ApplicationException(Exception):
    def __init__(self, *a, **b):
        super(ApplicationException, self).__init__(*a, **b)
        self._stacks = []
        self._stacks.append((self.__class__.__name__ + ': ' + str(self), traceback.extract_stack()))

        # save cause and its stack
        cause_info = sys.exc_info()
        self._cause = cause_info[1]
        self._stack_cause = traceback.extract_tb(cause_info[2]) if cause_info[2] else None
        if self._cause is not None:
            self.add_stack('caused by: %s: %s' % (self._cause.__class__.__name__, self._cause),
                           self._stack_cause)

    def get_cause(self):
        """ if this exception was created in an except: block, return the original exception """
        return self._cause

    def add_stack(self, label, stack):
        self._stacks.append((label, stack))

    def get_stacks(self):
        return self._stacks
