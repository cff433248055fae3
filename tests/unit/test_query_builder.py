"""
Unit Tests for SQL assembly
Tests for: column fallbacks, department filters, report ordering
"""
from app.db.query_builder import (
    DEPARTMENT_DETAIL_COLUMNS,
    FACULTY_LIST_DETAIL_COLUMNS,
    build_department_list_query,
    build_department_stats_query,
    build_faculty_list_query,
    build_faculty_report_query,
    build_research_query,
    build_student_query,
    column_or_null,
    designation_rank_case,
)


class TestColumnFallbacks:
    """Missing optional columns keep their name as NULL"""

    def test_present_column_is_qualified(self):
        assert column_or_null("fd", "Email", {"Email"}) == "fd.Email"

    def test_missing_column_becomes_null(self):
        assert column_or_null("fd", "Email", set()) == "NULL AS Email"

    def test_faculty_list_without_details_keeps_every_key(self):
        sql, params = build_faculty_list_query(set(), False, False, False)

        for column in FACULTY_LIST_DETAIL_COLUMNS:
            assert f"NULL AS {column}" in sql
        assert "faculty_details" not in sql
        assert "0 AS total_contributions" in sql
        assert "0 AS professional_memberships" in sql
        assert params == {}

    def test_faculty_list_with_partial_details(self):
        sql, _ = build_faculty_list_query({"Email"}, True, True, False)

        assert "fd.Email" in sql
        assert "NULL AS Phone_Number" in sql
        assert "LEFT JOIN faculty_details fd" in sql
        assert "COUNT(DISTINCT c.Contribution_ID) AS total_contributions" in sql
        assert "GROUP BY f.F_id, f.F_name, f.F_dept, fd.Email" in sql


class TestFilters:
    """Values are bound, never spliced into the text"""

    def test_department_list_without_details(self):
        sql, params = build_department_list_query(False)

        for column in DEPARTMENT_DETAIL_COLUMNS:
            assert f"NULL AS {column}" in sql
        assert "WHERE" not in sql
        assert params == {}

    def test_department_list_search_and_scope(self):
        sql, params = build_department_list_query(True, search="Comp'uter", department_id=3)

        assert "Comp'uter" not in sql
        assert params == {"search": "%Comp'uter%", "department_id": 3}
        assert "d.Department_Name LIKE :search AND d.Department_ID = :department_id" in sql

    def test_all_means_no_department_filter(self):
        sql, params = build_department_stats_query(True, "all")

        outer = sql.split("FROM department d", 1)[1]
        assert "WHERE" not in outer
        assert params == {}

    def test_named_department_filters_outer_query(self):
        sql, params = build_department_stats_query(False, "Computer Engineering")

        outer = sql.split("FROM department d", 1)[1]
        assert "WHERE d.Department_Name" in outer
        assert params == {"department": "Computer Engineering"}

    def test_search_includes_email_only_when_present(self):
        with_email, _ = build_faculty_list_query({"Email"}, True, False, False, search="nair")
        without_email, _ = build_faculty_list_query(set(), False, False, False, search="nair")

        assert "fd.Email LIKE :search" in with_email
        assert "fd.Email" not in without_email

    def test_research_types_are_bound(self):
        sql, params = build_research_query("Computer Engineering")

        assert "LOWER(fc.Contribution_Type) IN (:type_0, :type_1, :type_2, :type_3)" in sql
        assert params["type_0"] == "journal"
        assert params["department"] == "Computer Engineering"

    def test_student_query_without_department_column_ignores_filter(self):
        sql, params = build_student_query({"id", "name"}, "Computer Engineering")

        assert "WHERE" not in sql
        assert "NULL AS department" in sql
        assert params == {}


class TestReportOrdering:
    """HOD first, then designation rank, then joining date"""

    def test_designation_rank_case(self):
        case = designation_rank_case("fd.Current_Designation")

        assert "WHEN fd.Current_Designation = 'Professor' THEN 1" in case
        assert "WHEN fd.Current_Designation = 'Assistant Professor' THEN 3" in case
        assert case.endswith("ELSE 4 END")

    def test_full_ordering_when_all_columns_exist(self):
        present = {"Email", "Current_Designation", "Highest_Degree", "Experience", "Date_of_Joining", "is_hod"}
        sql, _ = build_faculty_report_query(present, True, True)

        order_by = sql.split(" ORDER BY ", 1)[1]
        assert order_by.startswith("CASE WHEN fd.is_hod = 1 OR f.F_id IN (SELECT dd.HOD_ID")
        assert order_by.index("'Professor'") < order_by.index("fd.Date_of_Joining")
        assert order_by.endswith("f.F_name")

    def test_ordering_falls_back_to_name(self):
        sql, _ = build_faculty_report_query(set(), False, False)

        assert sql.endswith("ORDER BY f.F_name")
