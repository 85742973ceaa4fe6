import logging
from typing import NamedTuple

from .sql_helpers import table_name

logger = logging.getLogger(__name__)


class TableBindingError (ValueError):
    pass


class TableBinding (NamedTuple):
    logical_name: str
    network_id: int
    remote_id: int

    @property
    def remote_name(self):
        return table_name(self.logical_name, self.network_id, self.remote_id)


class TableRegistry (object):
    """Write-once record of the remote names of created tables.

       Each logical name may be bound exactly once; there is no update or
       delete path.
    """

    def __init__(self):
        self._bindings = {}

    def bind(self, logical_name, network_id, remote_id):
        """Record the binding for a newly created table and return it."""
        if logical_name in self._bindings:
            raise TableBindingError("Table '%s' is already bound to %s" %
                                    (logical_name, self._bindings[logical_name].remote_name))
        binding = TableBinding(logical_name, network_id, remote_id)
        # computing the name validates all three components
        remote_name = binding.remote_name
        self._bindings[logical_name] = binding
        logger.debug("Bound table '%s' to %s" % (logical_name, remote_name))
        return binding

    def binding(self, logical_name):
        try:
            return self._bindings[logical_name]
        except KeyError:
            raise TableBindingError("No table bound for '%s'" % logical_name)

    def remote_name(self, logical_name):
        return self.binding(logical_name).remote_name

    def __contains__(self, logical_name):
        return logical_name in self._bindings

    def __iter__(self):
        return iter(self._bindings.values())

    def __len__(self):
        return len(self._bindings)
