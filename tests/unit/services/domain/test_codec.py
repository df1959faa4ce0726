#!/usr/bin/env python3
"""Unit tests for the Department/Employee XML codec."""

import pytest

from staffdb.core.errors import CodecError, NotFoundError
from staffdb.models.models import Department, Employee
from staffdb.services.domain.xml_store.codec import (
    DEPARTMENT,
    EMPLOYEE,
    decode_department,
    decode_employee,
    decode_value,
    encode_department,
    encode_employee,
)
from tests.utils.factories import DepartmentFactory, EmployeeFactory, MinimalEmployeeFactory


@pytest.mark.unit
class TestEncoding:
    """Encoding rules for both entity types."""

    def test_department_with_location(self):
        dept = Department(code="D1", name="Sales", location="Boston")

        assert encode_department(dept) == (
            '<dept codi="D1"><nom>Sales</nom><localitat>Boston</localitat></dept>'
        )

    def test_department_without_location_omits_element(self):
        dept = Department(code="D1", name="Sales")

        xml = encode_department(dept)

        assert xml == '<dept codi="D1"><nom>Sales</nom></dept>'
        assert "localitat" not in xml

    def test_department_employees_are_not_embedded(self):
        dept = DepartmentFactory(code="D9", staff=2)

        assert "<emp" not in encode_department(dept)

    def test_employee_all_fields(self):
        emp = Employee(
            code="E1", department_code="D1", manager_code="E0", surname="Smith",
            title="Clerk", hire_date="2020-01-15", salary=1200, commission=50,
        )

        assert encode_employee(emp) == (
            '<emp codi="E1" dept="D1" cap="E0"><cognom>Smith</cognom><ofici>Clerk</ofici>'
            '<dataAlta>2020-01-15</dataAlta><salari>1200</salari><comissio>50</comissio></emp>'
        )

    def test_employee_minimal_omits_optional_nodes(self):
        emp = Employee(code="E1", department_code="D1", surname="Smith")

        xml = encode_employee(emp)

        assert xml == '<emp codi="E1" dept="D1"><cognom>Smith</cognom></emp>'
        for absent in ("cap=", "ofici", "dataAlta", "salari", "comissio"):
            assert absent not in xml

    def test_zero_salary_is_written(self):
        emp = Employee(code="E1", department_code="D1", surname="Smith", salary=0, commission=0)

        xml = encode_employee(emp)

        assert "<salari>0</salari>" in xml
        assert "<comissio>0</comissio>" in xml

    def test_no_xml_declaration(self):
        xml = encode_department(Department(code="D1", name="Sales"))

        assert not xml.startswith("<?xml")

    def test_markup_in_values_is_escaped(self):
        dept = Department(code="D1", name='R&D <"core">')

        xml = encode_department(dept)

        assert "R&amp;D &lt;\"core\"&gt;" in xml
        assert decode_department(xml).name == 'R&D <"core">'


@pytest.mark.unit
class TestDecodeValue:
    """Scalar normalization of query results."""

    def test_empty_optional_is_absent(self):
        assert decode_value(EMPLOYEE.field("title"), "", EMPLOYEE, "E1") is None

    def test_empty_mandatory_is_not_found(self):
        with pytest.raises(NotFoundError) as exc_info:
            decode_value(EMPLOYEE.field("surname"), "", EMPLOYEE, "E404")

        assert exc_info.value.entity == "Employee"
        assert exc_info.value.code == "E404"

    def test_empty_department_name_is_not_found(self):
        with pytest.raises(NotFoundError):
            decode_value(DEPARTMENT.field("name"), "", DEPARTMENT, "D404")

    def test_integer_field_parsed(self):
        assert decode_value(EMPLOYEE.field("salary"), "1500", EMPLOYEE, "E1") == 1500

    def test_non_numeric_integer_is_codec_error(self):
        with pytest.raises(CodecError) as exc_info:
            decode_value(EMPLOYEE.field("commission"), "a lot", EMPLOYEE, "E1")

        assert exc_info.value.field == "commission"
        assert exc_info.value.raw == "a lot"

    def test_surrounding_whitespace_is_ignored(self):
        assert decode_value(EMPLOYEE.field("salary"), " -12\n", EMPLOYEE, "E1") == -12

    @pytest.mark.parametrize("raw", ["1_000", "\u0661\u0662", "1.5", "+"])
    def test_integer_must_be_plain_ascii_digits(self, raw):
        with pytest.raises(CodecError) as exc_info:
            decode_value(EMPLOYEE.field("salary"), raw, EMPLOYEE, "E1")

        assert exc_info.value.raw == raw

    def test_text_returned_verbatim(self):
        assert decode_value(EMPLOYEE.field("hire_date"), "1998-03-01", EMPLOYEE, "E1") == "1998-03-01"


@pytest.mark.unit
class TestRoundTrip:
    """Encode-then-decode reproduces the entity."""

    def test_fully_populated_employee(self):
        emp = EmployeeFactory(manager_code="E0000")

        assert decode_employee(encode_employee(emp)) == emp

    def test_minimal_employee_reports_absent_fields(self):
        emp = MinimalEmployeeFactory()

        decoded = decode_employee(encode_employee(emp))

        assert decoded == emp
        assert decoded.manager_code is None
        assert decoded.title is None
        assert decoded.hire_date is None
        assert decoded.salary is None
        assert decoded.commission is None

    def test_department_without_location(self):
        dept = DepartmentFactory(location=None)

        decoded = decode_department(encode_department(dept))

        assert decoded == dept
        assert decoded.location is None
        assert decoded.employees is None


@pytest.mark.unit
class TestFragmentDecoding:
    """Decoding of whole fragments."""

    def test_malformed_xml(self):
        with pytest.raises(CodecError, match="Malformed"):
            decode_department("<dept codi='D1'><nom>Sales</dept>")

    def test_wrong_root_element(self):
        with pytest.raises(CodecError, match="Expected <emp>"):
            decode_employee('<dept codi="D1"><nom>Sales</nom></dept>')

    def test_missing_mandatory_element(self):
        with pytest.raises(CodecError, match="cognom"):
            decode_employee('<emp codi="E1" dept="D1"/>')

    def test_entity_declarations_rejected(self):
        xml = '<!DOCTYPE dept [<!ENTITY x "boom">]><dept codi="D1"><nom>&x;</nom></dept>'

        with pytest.raises(CodecError):
            decode_department(xml)

    def test_non_numeric_salary_in_fragment(self):
        with pytest.raises(CodecError):
            decode_employee('<emp codi="E1" dept="D1"><cognom>Smith</cognom><salari>n/a</salari></emp>')
