"""Per-type deletion procedures.

Every module in this package (except base) may define DeletionProcedure
subclasses; ProcedureRegistry discovers and instantiates them.
"""
