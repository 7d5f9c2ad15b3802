"""
Document store.

Responsibilities:
- Hold restaurant and review documents in named collections and sub-collections.
- Build and run queries with equality predicates and a single ordering clause.
- Run optimistic, retrying transactions so read-modify-write updates never lose writes.
- Push the current state of a query or document to registered listeners after each commit.
"""
