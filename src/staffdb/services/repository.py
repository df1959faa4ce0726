#!/usr/bin/env python3
"""
Staff Repository

Reads and writes Departments and Employees in the BaseX document store.
Every operation is a sequence of single XQuery requests built by the
QueryBuilder and decoded by the codec.

Multi-step operations are not transactional. When a step fails after an
earlier mutation was applied, PartialFailureError reports the completed
steps; insert_employees, delete_department_employees and reassign_employees
are idempotent and can be re-invoked to finish the job.
"""

import logging

from ..clients.basex_client import BaseXStoreClient
from ..core.config import DocumentLayout, StoreSettings
from ..core.errors import (
    AlreadyExistsError,
    NotFoundError,
    PartialFailureError,
    ReferentialViolationError,
    StoreError,
)
from ..models.models import Department, Employee
from .domain.xml_store.codec import (
    DEPARTMENT,
    EMPLOYEE,
    EntityMapping,
    decode_value,
    encode_department,
    encode_employee,
)
from .domain.xml_store.query_builder import QueryBuilder, validate_code

logger = logging.getLogger(__name__)

EMPLOYEE_DEPARTMENT = EMPLOYEE.field("department_code")


class StaffRepository:
    """
    Repository for Department and Employee entities.

    Holds a single store connection; callers must close() it (or use the
    repository as a context manager) when done.

    Example:
        ```python
        with StaffRepository.connect() as repo:
            dept = repo.fetch_department_with_employees("D1")
        ```
    """

    def __init__(self, client, layout: DocumentLayout | None = None):
        """
        Initialize the repository.

        Args:
            client: Store client exposing ``query(xquery) -> str`` and ``close()``
            layout: Document layout; defaults to /root/departments, /root/employees
        """
        self.client = client
        self.queries = QueryBuilder(layout)

    @classmethod
    def connect(cls, settings: StoreSettings | None = None) -> "StaffRepository":
        """
        Open a BaseX session and wrap it in a repository.

        Raises:
            TransportError: If the session or the database cannot be opened
        """
        settings = settings or StoreSettings.from_env()
        client = BaseXStoreClient(
            settings.host, settings.port, settings.user, settings.password, settings.database
        )
        return cls(client, settings.layout)

    def close(self):
        """Release the store connection."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _run(self, query) -> str:
        return self.client.query(query)

    # Reads

    def _exists(self, mapping: EntityMapping, code: str) -> bool:
        return self._run(self.queries.exists(mapping, code)) != ""

    def department_exists(self, code: str) -> bool:
        return self._exists(DEPARTMENT, code)

    def employee_exists(self, code: str) -> bool:
        return self._exists(EMPLOYEE, code)

    def _fetch(self, mapping: EntityMapping, code: str):
        values = {mapping.key.attribute: code}
        # Mandatory fields first: an empty one means there is nothing to read
        fields = sorted(mapping.fields[1:], key=lambda f: not f.required)
        for field in fields:
            raw = self._run(self.queries.field(mapping, code, field))
            try:
                values[field.attribute] = decode_value(field, raw, mapping, code)
            except NotFoundError:
                logger.info(f"{mapping.entity} '{code}' not found")
                raise
        return mapping.model(**values)

    def fetch_department(self, code: str) -> Department:
        """
        Fetch a department without its employees.

        Returns:
            Department with ``employees`` left as None

        Raises:
            NotFoundError: If no department has this code
        """
        return self._fetch(DEPARTMENT, code)

    def fetch_department_with_employees(self, code: str) -> Department:
        """
        Fetch a department and every employee referencing it.

        Employees are appended in the order the store returns them. A
        department without employees gets an empty list.

        Raises:
            NotFoundError: If no department has this code
        """
        department = self.fetch_department(code)
        department.employees = []
        for employee_code in self.list_employee_codes(code):
            department.add_employee(self.fetch_employee(employee_code))
        return department

    def fetch_employee(self, code: str) -> Employee:
        """
        Fetch an employee.

        Raises:
            NotFoundError: If the employee's department code or surname is empty
            CodecError: If salary or commission is not an integer
        """
        return self._fetch(EMPLOYEE, code)

    def list_employee_codes(self, department_code: str) -> list[str]:
        """Codes of every employee whose ``dept`` attribute equals ``department_code``."""
        raw = self._run(
            self.queries.list_values(EMPLOYEE, EMPLOYEE_DEPARTMENT, department_code, EMPLOYEE.key)
        )
        if raw == "":
            return []
        return [code for code in raw.splitlines() if code]

    # Writes

    @staticmethod
    def _validate_employee_keys(employee: Employee):
        validate_code(employee.code, "Employee code")
        validate_code(employee.department_code, "Employee department_code")
        if employee.manager_code is not None:
            validate_code(employee.manager_code, "Employee manager_code")

    def _insert_employee(self, employee: Employee):
        self._run(self.queries.insert(EMPLOYEE, encode_employee(employee)))
        logger.info(f"Inserted employee {employee.code}",
                    extra={"operation": "insert_employee", "code": employee.code})

    def _missing_employees(self, employees: list[Employee]) -> list[Employee]:
        missing = []
        seen = set()
        for employee in employees:
            if employee.code in seen:
                logger.warning(f"Employee {employee.code} listed twice, inserting it once")
                continue
            seen.add(employee.code)
            if not self.employee_exists(employee.code):
                missing.append(employee)
        return missing

    def _insert_pending(self, operation: str, pending: list[Employee], completed: list[str]) -> list[str]:
        inserted = []
        for employee in pending:
            step = f"insert_employee:{employee.code}"
            try:
                self._insert_employee(employee)
            except StoreError as e:
                if not completed:
                    raise
                logger.error(f"{operation} failed at {step}: {e}",
                             extra={"operation": operation, "step": step, "code": employee.code})
                raise PartialFailureError(operation, step, completed, e) from e
            completed.append(step)
            inserted.append(employee.code)
        return inserted

    def insert_employees(self, employees: list[Employee]) -> list[str]:
        """
        Insert the employees that are not stored yet.

        Idempotent: employees whose code already exists are skipped, so this
        can be re-run to complete a partially applied insert_department.

        Returns:
            Codes of the employees actually inserted

        Raises:
            ValidationError: If a key is unsafe (before any query)
            PartialFailureError: If an insert fails after earlier ones succeeded
        """
        for employee in employees:
            self._validate_employee_keys(employee)
        pending = self._missing_employees(employees)
        return self._insert_pending("insert_employees", pending, [])

    def insert_department(self, department: Department) -> list[str]:
        """
        Insert a department and those of its employees not stored yet.

        The department node is written first, then each missing employee.

        Returns:
            Steps applied, e.g. ["insert_department:D1", "insert_employee:E1"]

        Raises:
            ValidationError: If a key is unsafe (before any query)
            AlreadyExistsError: If the department code is already stored
            PartialFailureError: If an employee insert fails after the
                department was written
        """
        validate_code(department.code, "Department code")
        employees = department.employees or []
        for employee in employees:
            self._validate_employee_keys(employee)
            if employee.department_code != department.code:
                logger.warning(
                    f"Employee {employee.code} references department "
                    f"{employee.department_code}, inserted under {department.code}"
                )

        if self.department_exists(department.code):
            raise AlreadyExistsError(DEPARTMENT.entity, department.code)

        pending = self._missing_employees(employees)

        self._run(self.queries.insert(DEPARTMENT, encode_department(department)))
        logger.info(f"Inserted department {department.code}",
                    extra={"operation": "insert_department", "code": department.code})

        completed = [f"insert_department:{department.code}"]
        self._insert_pending("insert_department", pending, completed)
        return completed

    def delete_department_employees(self, department_code: str):
        """Delete every employee referencing the department. Idempotent."""
        self._run(self.queries.delete_matching(EMPLOYEE, EMPLOYEE_DEPARTMENT, department_code))
        logger.info(f"Deleted employees of department {department_code}",
                    extra={"operation": "delete_department_employees", "code": department_code})

    def delete_department(self, department: Department):
        """
        Delete a department and every employee referencing it.

        Raises:
            NotFoundError: If the department does not exist
            PartialFailureError: If deleting the employees fails after the
                department node was removed
        """
        code = department.code
        if not self.department_exists(code):
            raise NotFoundError(DEPARTMENT.entity, code)

        self._run(self.queries.delete_by_key(DEPARTMENT, code))
        logger.info(f"Deleted department {code}",
                    extra={"operation": "delete_department", "code": code})

        step = f"delete_employees:{code}"
        try:
            self.delete_department_employees(code)
        except StoreError as e:
            logger.error(f"delete_department failed at {step}: {e}",
                         extra={"operation": "delete_department", "step": step, "code": code})
            raise PartialFailureError("delete_department", step, [f"delete_department:{code}"], e) from e

    def _reassign(self, from_code: str, to_code: str):
        self._run(self.queries.replace_attribute(EMPLOYEE, EMPLOYEE_DEPARTMENT, from_code, to_code))
        logger.info(f"Reassigned employees from {from_code} to {to_code}",
                    extra={"operation": "reassign_employees", "code": from_code})

    def reassign_employees(self, from_code: str, to_code: str):
        """
        Point every employee of ``from_code`` at ``to_code``. Idempotent.

        Raises:
            ReferentialViolationError: If ``to_code`` is not a stored department
        """
        validate_code(from_code, "Department code")
        if not self.department_exists(to_code):
            raise ReferentialViolationError(DEPARTMENT.entity, to_code)
        self._reassign(from_code, to_code)

    def delete_department_reassign(self, department: Department, new_department: Department):
        """
        Delete a department and move its employees to another one.

        The target is checked before anything is deleted, so a missing target
        leaves the store untouched.

        Raises:
            NotFoundError: If ``department`` does not exist
            ReferentialViolationError: If ``new_department`` does not exist or
                is the department being deleted
            PartialFailureError: If reassigning fails after the delete
        """
        code, new_code = department.code, new_department.code
        validate_code(code, "Department code")
        validate_code(new_code, "Department code")
        if code == new_code:
            raise ReferentialViolationError(
                DEPARTMENT.entity, new_code,
                f"Cannot reassign employees of department '{code}' to itself",
            )
        if not self.department_exists(code):
            raise NotFoundError(DEPARTMENT.entity, code)
        if not self.department_exists(new_code):
            raise ReferentialViolationError(DEPARTMENT.entity, new_code)

        self._run(self.queries.delete_by_key(DEPARTMENT, code))
        logger.info(f"Deleted department {code}",
                    extra={"operation": "delete_department_reassign", "code": code})

        step = f"reassign_employees:{code}->{new_code}"
        try:
            self._reassign(code, new_code)
        except StoreError as e:
            logger.error(f"delete_department_reassign failed at {step}: {e}",
                         extra={"operation": "delete_department_reassign", "step": step, "code": code})
            raise PartialFailureError(
                "delete_department_reassign", step, [f"delete_department:{code}"], e
            ) from e

    def replace_department(self, to_insert: Department, to_replace: Department):
        """
        Insert ``to_insert`` and retire ``to_replace`` in its favour.

        Runs insert_department(to_insert) and then
        delete_department_reassign(to_replace, to_insert). Both departments
        coexist between the two steps.

        Raises:
            NotFoundError: If ``to_replace`` does not exist (nothing is written)
            AlreadyExistsError: If ``to_insert`` already exists (nothing is written)
            PartialFailureError: If a step fails after something was written
        """
        operation = "replace_department"
        if not self.department_exists(to_replace.code):
            raise NotFoundError(DEPARTMENT.entity, to_replace.code)

        try:
            completed = self.insert_department(to_insert)
        except PartialFailureError as e:
            raise PartialFailureError(operation, e.step, e.completed_steps, e.cause) from e

        step = f"delete_department_reassign:{to_replace.code}"
        try:
            self.delete_department_reassign(to_replace, to_insert)
        except PartialFailureError as e:
            raise PartialFailureError(operation, e.step, completed + e.completed_steps, e.cause) from e
        except StoreError as e:
            logger.error(f"{operation} failed at {step}: {e}",
                         extra={"operation": operation, "step": step, "code": to_replace.code})
            raise PartialFailureError(operation, step, completed, e) from e
