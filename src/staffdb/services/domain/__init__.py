"""
Domain Layer

This package contains the mapping logic between domain entities and the
store. Domain services build documents and queries but do not perform I/O
(use the clients layer for that).

Domains:
- xml_store: Department/Employee XML codec and XQuery construction
"""
