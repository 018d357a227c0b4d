"""
Application Builder - Builds the Veza OAA CustomApplication for BambooHR.

This module creates and populates an OAA CustomApplication from the normalized
entities dict produced by EntityExtractor. It handles:

  1. Property schema definitions (application, user, group, file resource)
  2. Custom permissions ("view" and "owner")
  3. Department group creation
  4. User creation with identity, properties, and active/inactive status
  5. File resource creation (company files and employee files)

OAA property schemas defined:
  Application: namespace, sync_timestamp
  User:        bamboohr_user_id, employee_id, job_title, department, status,
               reports_to
  Group:       department_name
  Resource:    file_id, original_file_name, size, date_created, created_by,
               share_with_employee, employee_id

Pipeline context:
    Used in Step 6 of the orchestrator pipeline. Input is the entities dict
    from EntityExtractor (Step 5). Output is a CustomApplication that
    RelationshipBuilder (Step 7) then wires with relationships.
"""

from typing import Dict, Any
from datetime import datetime, timezone

from oaaclient.templates import CustomApplication, OAAPermission, OAAPropertyType

APPLICATION_TYPE = "BambooHR"
APP_NAME_PREFIX = "bamboohr"
FILE_RESOURCE_TYPE = "file"

# Custom permission name -> Veza canonical permissions
FILE_PERMISSIONS = {
    "view": [OAAPermission.DataRead],
    "owner": [OAAPermission.DataRead, OAAPermission.DataWrite, OAAPermission.DataDelete],
}


def department_unique_id(name: str) -> str:
    return f"department_{name}"


def file_unique_id(file: Dict) -> str:
    if file.get("employee_id"):
        return f"employee_file_{file['id']}"
    return f"company_file_{file['id']}"


class ApplicationBuilder:
    """Builds an OAA CustomApplication from extracted BambooHR entities.

    Attributes:
        debug: If True, prints verbose build details.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def build(self, entities: Dict[str, Any]) -> CustomApplication:
        """Build a complete OAA CustomApplication from extracted entities.

        Args:
            entities: Output from EntityExtractor.extract() with keys:
                      account, users, departments, files.

        Returns:
            A populated CustomApplication (without relationships; those are
            added by RelationshipBuilder in Step 7).
        """
        account = entities["account"]
        app_name = f"{APP_NAME_PREFIX}_{account['id']}"

        app = CustomApplication(
            name=app_name,
            application_type=APPLICATION_TYPE,
            description=f"BambooHR - {account['name']}",
        )

        # Property schemas must exist before any set_property() call
        self._define_properties(app)

        app.set_property("namespace", account["id"])
        app.set_property("sync_timestamp", datetime.now(timezone.utc).isoformat())

        for name, oaa_permissions in FILE_PERMISSIONS.items():
            app.add_custom_permission(name, oaa_permissions)

        for department in entities["departments"]:
            self._add_department_group(app, department)

        for user in entities["users"]:
            self._add_user(app, user)

        for file in entities["files"]:
            self._add_file(app, file)

        if self.debug:
            print(f"  Built application: {app_name}")
            print(f"    Users: {len(app.local_users)}")
            print(f"    Groups: {len(app.local_groups)}")
            print(f"    Files: {len(app.resources)}")

        return app

    def _define_properties(self, app: CustomApplication):
        definitions = app.property_definitions

        definitions.define_application_property("namespace", OAAPropertyType.STRING)
        definitions.define_application_property("sync_timestamp", OAAPropertyType.STRING)

        definitions.define_local_user_property("bamboohr_user_id", OAAPropertyType.STRING)
        definitions.define_local_user_property("employee_id", OAAPropertyType.STRING)
        definitions.define_local_user_property("job_title", OAAPropertyType.STRING)
        definitions.define_local_user_property("department", OAAPropertyType.STRING)
        definitions.define_local_user_property("status", OAAPropertyType.STRING)
        definitions.define_local_user_property("reports_to", OAAPropertyType.STRING)

        definitions.define_local_group_property("department_name", OAAPropertyType.STRING)

        definitions.define_resource_property(FILE_RESOURCE_TYPE, "file_id", OAAPropertyType.STRING)
        definitions.define_resource_property(FILE_RESOURCE_TYPE, "original_file_name", OAAPropertyType.STRING)
        definitions.define_resource_property(FILE_RESOURCE_TYPE, "size", OAAPropertyType.NUMBER)
        definitions.define_resource_property(FILE_RESOURCE_TYPE, "date_created", OAAPropertyType.STRING)
        definitions.define_resource_property(FILE_RESOURCE_TYPE, "created_by", OAAPropertyType.STRING)
        definitions.define_resource_property(FILE_RESOURCE_TYPE, "share_with_employee", OAAPropertyType.BOOLEAN)
        definitions.define_resource_property(FILE_RESOURCE_TYPE, "employee_id", OAAPropertyType.STRING)

    def _add_department_group(self, app: CustomApplication, department: str):
        group = app.add_local_group(name=department, unique_id=department_unique_id(department))
        group.set_property("department_name", department)

    def _add_user(self, app: CustomApplication, user: Dict):
        """Add a BambooHR user as a local user.

        The BambooHR user id is the unique_id; the email is the display name
        and the identity used for Veza identity resolution.
        """
        email = user.get("email")
        full_name = f"{user.get('first_name', '')} {user.get('last_name', '')}".strip()
        local_user = app.add_local_user(name=email or full_name or user["id"], unique_id=user["id"])
        local_user.is_active = user.get("is_active", True)
        if email:
            local_user.add_identity(email)

        if user.get("hire_date"):
            local_user.created_at = user["hire_date"]
        if user.get("termination_date"):
            local_user.deactivated_at = user["termination_date"]
        if user.get("last_login"):
            local_user.last_login_at = user["last_login"]

        local_user.set_property("bamboohr_user_id", user["id"])
        if user.get("employee_id"):
            local_user.set_property("employee_id", user["employee_id"])
        if user.get("job_title"):
            local_user.set_property("job_title", user["job_title"])
        if user.get("department"):
            local_user.set_property("department", user["department"])
        if user.get("status"):
            local_user.set_property("status", user["status"])

    def _add_file(self, app: CustomApplication, file: Dict):
        resource = app.add_resource(
            name=file["name"] or file["original_file_name"] or file["id"],
            resource_type=FILE_RESOURCE_TYPE,
            unique_id=file_unique_id(file),
        )
        resource.set_property("file_id", file["id"])
        if file.get("original_file_name"):
            resource.set_property("original_file_name", file["original_file_name"])
        if file.get("size") not in (None, ""):
            try:
                resource.set_property("size", int(file["size"]))
            except (TypeError, ValueError):
                if self.debug:
                    print(f"  Warning: Unparseable size for file {file['id']}: {file['size']}")
        if file.get("date_created"):
            resource.set_property("date_created", file["date_created"])
        if file.get("created_by"):
            resource.set_property("created_by", file["created_by"])
        resource.set_property("share_with_employee", file.get("share_with_employee", False))
        if file.get("employee_id"):
            resource.set_property("employee_id", file["employee_id"])
