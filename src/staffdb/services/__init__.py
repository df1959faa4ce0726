"""
Service Layer

Business operations over the store clients.

Modules:
- repository: Department/Employee repository
- domain.xml_store: entity codec and XQuery builder
"""
