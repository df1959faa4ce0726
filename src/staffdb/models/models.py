#!/usr/bin/env python3

from pydantic import BaseModel, Field, field_validator

# Pydantic Models


class Employee(BaseModel):
    """Employee record as stored under the employees collection."""

    code: str = Field(min_length=1)
    department_code: str = Field(min_length=1)  # FK to Department.code
    surname: str = Field(min_length=1)
    manager_code: str | None = None  # FK to Employee.code, None at the top of the hierarchy
    title: str | None = None
    hire_date: str | None = None  # Kept as stored text, no date parsing
    salary: int | None = None
    commission: int | None = None

    @field_validator("manager_code", "title", "hire_date", mode="before")
    @classmethod
    def empty_text_is_absent(cls, value):
        # The storage format cannot tell "" apart from a missing node
        if value == "":
            return None
        return value


class Department(BaseModel):
    """
    Department record.

    ``employees`` is None until explicitly loaded; an empty list means the
    department was loaded and has no employees.
    """

    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    location: str | None = None
    employees: list[Employee] | None = None

    @field_validator("location", mode="before")
    @classmethod
    def empty_text_is_absent(cls, value):
        if value == "":
            return None
        return value

    def add_employee(self, employee: Employee) -> None:
        if self.employees is None:
            self.employees = []
        self.employees.append(employee)
