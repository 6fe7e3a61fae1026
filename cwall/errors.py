"""
Exceptions raised by the city wall loader

Everything except an incomplete way is fatal and surfaces to the CLI.
"""


class CwallError(RuntimeError):
    """Base class for loader failures"""


class DecodeError(CwallError):
    """The extract could not be opened or decoded"""


class CursorError(CwallError):
    """Dataset cursor used out of order (e.g. rewound twice)"""


class PipelineStateError(CwallError):
    """A stage was started before its inputs were complete"""


class DuplicateNodeError(CwallError):
    """A referenced node id occurred more than once in the extract"""
    
    def __init__(self, node_id: int):
        super().__init__(f"Duplicate node ID {node_id}")
        self.node_id = node_id


class StoreError(CwallError):
    """Destination database failure; the transaction was not committed"""
