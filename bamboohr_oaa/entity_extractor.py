"""
Entity Extractor - Normalizes raw BambooHR records into domain entities.

This module sits between the API client (Steps 1-4) and the OAA application
builder (Step 6). It takes the records collected from the client iteratees and
produces a flat, normalized dict of entities that downstream modules can
consume without knowing anything about the BambooHR response shapes.

Output format (returned by extract()):
    {
      "account": { "id", "name" },
      "users": [ { "id", "employee_id", "email", "first_name", "last_name",
                   "is_active", "hire_date", "termination_date", ... } ],
      "employees": [ { "id", "display_name", "work_email", "department",
                       "supervisor", "hire_date", "termination_date", ... } ],
      "departments": [ "Engineering", "Sales", ... ],
      "files": [ { "id", "name", "employee_id", "share_with_employee", ... } ]
    }

Key behaviors:
  - BambooHR reports an unset date as "0000-00-00"; it becomes None.
  - Dates are converted to RFC 3339 timestamps ("2020-01-01T00:00:00Z").
  - A user is active when its status is "enabled" and its employee has no
    termination date in the past.
  - Departments are deduplicated in first-seen order.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

EMPTY_DATE = "0000-00-00"


def normalize_date(value: Optional[str]) -> Optional[str]:
    """Convert a BambooHR date ("YYYY-MM-DD") to an RFC 3339 timestamp.

    Args:
        value: Date string from the API, possibly None, "" or "0000-00-00".

    Returns:
        "YYYY-MM-DDT00:00:00Z", or None for unset or unparseable dates.
    """
    if not value or value == EMPTY_DATE:
        return None
    try:
        parsed = datetime.strptime(value[:10], "%Y-%m-%d")
    except ValueError:
        return None
    return parsed.strftime("%Y-%m-%dT00:00:00Z")


class EntityExtractor:
    """Extracts and normalizes entities from collected BambooHR records.

    Attributes:
        debug: If True, prints details about extracted entities.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def extract(
        self,
        namespace: str,
        users: List[Dict],
        employees: List[Dict],
        employee_details: Optional[Dict[str, Dict]] = None,
        company_files: Optional[List[Dict]] = None,
        employee_files: Optional[Dict[str, List[Dict]]] = None,
    ) -> Dict[str, Any]:
        """Normalize all collected records.

        Args:
            namespace: The account namespace (used as the account id).
            users: Records from BambooHRClient.iterate_users().
            employees: Records from BambooHRClient.iterate_employees().
            employee_details: employee id -> get_employee_details() result.
            company_files: Records from iterate_company_files().
            employee_files: employee id -> records from iterate_employee_files().

        Returns:
            The normalized entities dict (see module docstring).
        """
        employee_details = employee_details or {}
        company_files = company_files or []
        employee_files = employee_files or {}

        normalized_employees = [
            self._extract_employee(employee, employee_details.get(str(employee.get("id")), {}))
            for employee in employees
        ]
        employees_by_id = {e["id"]: e for e in normalized_employees}

        normalized_users = [
            self._extract_user(user, employees_by_id, employee_details)
            for user in users
        ]

        departments: List[str] = []
        for employee in normalized_employees:
            department = employee.get("department")
            if department and department not in departments:
                departments.append(department)

        files = [self._extract_file(f, None) for f in company_files]
        for employee_id, records in employee_files.items():
            files.extend(self._extract_file(f, str(employee_id)) for f in records)

        if self.debug:
            print(f"  Extracted {len(normalized_users)} users, "
                  f"{len(normalized_employees)} employees, "
                  f"{len(departments)} departments, {len(files)} files")

        return {
            "account": {"id": namespace, "name": namespace},
            "users": normalized_users,
            "employees": normalized_employees,
            "departments": departments,
            "files": files,
        }

    def _extract_employee(self, employee: Dict, details: Dict) -> Dict[str, Any]:
        return {
            "id": str(employee.get("id")),
            "display_name": employee.get("displayName") or "",
            "first_name": employee.get("firstName") or "",
            "last_name": employee.get("lastName") or "",
            "work_email": employee.get("workEmail") or "",
            "job_title": employee.get("jobTitle") or "",
            "department": employee.get("department") or "",
            "location": employee.get("location") or "",
            "supervisor": employee.get("supervisor") or "",
            "hire_date": normalize_date(details.get("hireDate") or employee.get("hireDate")),
            "termination_date": normalize_date(
                details.get("terminationDate") or employee.get("terminationDate")
            ),
        }

    def _extract_user(
        self,
        user: Dict,
        employees_by_id: Dict[str, Dict],
        employee_details: Dict[str, Dict],
    ) -> Dict[str, Any]:
        employee_id = user.get("employeeId")
        employee_id = str(employee_id) if employee_id is not None else None
        directory_entry = user.get("employeeDetails") or {}
        employee = employees_by_id.get(employee_id, {}) if employee_id else {}
        details = employee_details.get(employee_id, {}) if employee_id else {}

        hire_date = normalize_date(details.get("hireDate") or directory_entry.get("hireDate"))
        termination_date = normalize_date(
            details.get("terminationDate") or directory_entry.get("terminationDate")
        )

        terminated = False
        if termination_date:
            terminated = termination_date <= datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        return {
            "id": str(user.get("id")),
            "employee_id": employee_id,
            "email": user.get("email") or directory_entry.get("workEmail") or "",
            "first_name": user.get("firstName") or directory_entry.get("firstName") or "",
            "last_name": user.get("lastName") or directory_entry.get("lastName") or "",
            "status": user.get("status") or "",
            "is_active": user.get("status", "enabled") == "enabled" and not terminated,
            "last_login": user.get("lastLogin"),
            "hire_date": hire_date,
            "termination_date": termination_date,
            "job_title": directory_entry.get("jobTitle") or employee.get("job_title") or "",
            "department": directory_entry.get("department") or employee.get("department") or "",
            "supervisor": directory_entry.get("supervisor") or employee.get("supervisor") or "",
        }

    def _extract_file(self, file: Dict, employee_id: Optional[str]) -> Dict[str, Any]:
        return {
            "id": str(file.get("id")),
            "name": file.get("name") or "",
            "original_file_name": file.get("originalFileName") or "",
            "size": file.get("size"),
            "date_created": file.get("dateCreated") or "",
            "created_by": file.get("createdBy") or "",
            "share_with_employee": str(file.get("shareWithEmployee", "")).lower() in ("yes", "true"),
            "employee_id": employee_id,
        }
