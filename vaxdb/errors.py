"""Exception types raised by vaxdb."""


class VaxdbError(Exception):
    """Base class for all vaxdb errors."""


class DatabaseConnectionError(VaxdbError, ConnectionError):
    """A database session could not be opened or is no longer usable."""


class HandleClosedError(DatabaseConnectionError):
    """An operation was issued on a handle after disconnect()."""


class QueryError(VaxdbError):
    def __init__(self, message, statement=None):
        super().__init__(message)
        self.statement = statement


class WriteError(VaxdbError):
    """Insert into a table, or write of a cache file, failed.

    `target` is the table name or file path that was being written.
    """

    def __init__(self, message, target=None):
        super().__init__(message)
        self.target = target


class CacheMissError(VaxdbError, KeyError):
    def __init__(self, path):
        super().__init__(f"{path} does not exist")
        self.path = path

    def __str__(self):
        # KeyError repr()s its argument otherwise
        return self.args[0]
