"""
dbkit exception classes.

Backend failures (``sqlalchemy.exc.*``, driver errors, cancellation) are not
wrapped and reach the caller as raised by SQLAlchemy.
"""


class DbkitError(Exception):
    """Base class for errors raised by dbkit itself.
    """


class MissingWhereClauseError(DbkitError):
    """An update or delete would touch every row of the table.
    """


class UnboundModelError(DbkitError):
    """The Db handle is bound to neither a model nor a table.
    """
