"""
Relationship Builder - Wires OAA relationships between BambooHR entities.

After the ApplicationBuilder (Step 6) creates the OAA users, groups, and file
resources, this module connects them:

  1. User -> Department (group membership)
     Users whose employee record has a department join that department group.

  2. User -> User (reports_to)
     The employee's supervisor (a display name in the directory) is resolved
     to the supervisor's user and stored as a reports_to property. If the
     supervisor has no user account, the display name is stored as-is.

  3. User -> Employee file (owner)
     A user owns the files attached to their own employee record.

  4. User -> Company file (view)
     Every active user can view company files shared with employees.

Pipeline context:
    Used in Step 7 of the orchestrator pipeline. Takes the CustomApplication
    from ApplicationBuilder and the entities dict from EntityExtractor.
"""

from typing import Dict, List, Any
from oaaclient.templates import CustomApplication

from .application_builder import department_unique_id, file_unique_id


class RelationshipBuilder:
    """Builds all OAA relationships from extracted entities.

    Attributes:
        debug: If True, prints relationship counts.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def build_all(self, app: CustomApplication, entities: Dict[str, Any]):
        """Build all 4 relationship types.

        Args:
            app: The CustomApplication populated by ApplicationBuilder.
            entities: Output from EntityExtractor.extract().
        """
        users = entities["users"]
        employees = entities["employees"]
        files = entities["files"]

        self._build_user_department(app, users)
        self._build_reports_to(app, users, employees)
        self._build_employee_file_owners(app, users, files)
        self._build_company_file_viewers(app, users, files)

    def _build_user_department(self, app: CustomApplication, users: List[Dict]):
        count = 0
        for user in users:
            department = user.get("department")
            local_user = app.local_users.get(user["id"])
            if not department or not local_user:
                continue
            if department_unique_id(department) not in app.local_groups:
                continue
            local_user.add_group(department_unique_id(department))
            count += 1

        if self.debug:
            print(f"  User -> Department: {count}")

    def _build_reports_to(self, app: CustomApplication, users: List[Dict], employees: List[Dict]):
        # Supervisor display name -> the supervisor's user
        users_by_employee = {u["employee_id"]: u for u in users if u.get("employee_id")}
        users_by_display_name = {}
        for employee in employees:
            user = users_by_employee.get(employee["id"])
            if user and employee.get("display_name"):
                users_by_display_name[employee["display_name"]] = user

        count = 0
        for user in users:
            supervisor = user.get("supervisor")
            local_user = app.local_users.get(user["id"])
            if not supervisor or not local_user:
                continue
            manager = users_by_display_name.get(supervisor)
            local_user.set_property("reports_to", (manager and manager.get("email")) or supervisor)
            count += 1

        if self.debug:
            print(f"  User -> User (reports_to): {count}")

    def _build_employee_file_owners(self, app: CustomApplication, users: List[Dict], files: List[Dict]):
        users_by_employee = {u["employee_id"]: u for u in users if u.get("employee_id")}

        count = 0
        for file in files:
            if not file.get("employee_id"):
                continue
            owner = users_by_employee.get(file["employee_id"])
            resource = app.resources.get(file_unique_id(file))
            local_user = app.local_users.get(owner["id"]) if owner else None
            if not resource or not local_user:
                continue
            local_user.add_permission(permission="owner", resources=[resource])
            count += 1

        if self.debug:
            print(f"  User -> Employee file (owner): {count}")

    def _build_company_file_viewers(self, app: CustomApplication, users: List[Dict], files: List[Dict]):
        shared = [
            app.resources[file_unique_id(f)]
            for f in files
            if not f.get("employee_id")
            and f.get("share_with_employee")
            and file_unique_id(f) in app.resources
        ]
        if not shared:
            return

        count = 0
        for user in users:
            local_user = app.local_users.get(user["id"])
            if not local_user or not user.get("is_active"):
                continue
            local_user.add_permission(permission="view", resources=shared)
            count += 1

        if self.debug:
            print(f"  User -> Company file (view): {count} users x {len(shared)} files")
