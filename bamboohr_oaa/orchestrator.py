"""
Orchestrator - Pipeline coordination for BambooHR data extraction.

Ties together BambooHRClient, EntityExtractor, ApplicationBuilder,
RelationshipBuilder, OutputManager and VezaClient into a sequential workflow:

  Step 1: AUTHENTICATION
      BambooHRClient.verify_authentication() probes GET v1/employees/0.

  Step 2: USERS
      iterate_users() collects every user account merged with its
      directory entry.

  Step 3: EMPLOYEES
      iterate_employees() collects the directory; if FETCH_EMPLOYEE_DETAILS
      is enabled, get_employee_details() adds hire/termination dates.

  Step 4: FILES (optional)
      If INCLUDE_FILES is enabled, collects company files and each
      employee's files. Listings the API refuses are skipped.

  Step 5: ENTITY EXTRACTION
  Step 6: BUILD OAA APPLICATION
  Step 7: BUILD RELATIONSHIPS
  Step 8: SAVE OUTPUT / PUSH TO VEZA

Configuration:
    Loaded from environment variables (typically via .env file).
    Required: BAMBOOHR_CLIENT_NAMESPACE, BAMBOOHR_CLIENT_ACCESS_TOKEN.
    Required for push: VEZA_URL, VEZA_API_KEY.
    See settings.py for defaults.

Typical usage:
    orchestrator = BambooHROrchestrator(env_file="./.env")
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List

from dotenv import load_dotenv

from .client import BambooHRClient
from .entity_extractor import EntityExtractor
from .application_builder import ApplicationBuilder
from .relationship_builder import RelationshipBuilder
from .output_manager import OutputManager
from .veza_client import VezaClient
from .settings import DEFAULT_SETTINGS, IntegrationConfig


def _env_flag(name: str) -> bool:
    return os.getenv(name, str(DEFAULT_SETTINGS[name])).lower() == "true"


class BambooHROrchestrator:
    """Orchestrates the BambooHR extraction pipeline.

    Attributes:
        client_namespace: Raw BambooHR namespace (subdomain, hostname or URL).
        client_access_token: BambooHR API key.
        veza_url / veza_api_key: Veza credentials (needed only for push).
        provider_name / provider_prefix: Veza provider naming.
        dry_run: If True, output is saved but not pushed.
        save_json: Whether to write the OAA payload to disk.
        debug: Verbose output.
        include_files: Whether to collect company and employee files.
        fetch_employee_details: Whether to look up per-employee dates.
        output_manager: Handles timestamped output directories.
    """

    def __init__(self, env_file: str = "./.env"):
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        self.client_namespace = os.getenv("BAMBOOHR_CLIENT_NAMESPACE", "")
        self.client_access_token = os.getenv("BAMBOOHR_CLIENT_ACCESS_TOKEN", "")

        self.veza_url = os.getenv("VEZA_URL", "")
        self.veza_api_key = os.getenv("VEZA_API_KEY", "")

        self.provider_name = os.getenv("PROVIDER_NAME", DEFAULT_SETTINGS["PROVIDER_NAME"])
        self.provider_prefix = os.getenv("PROVIDER_PREFIX", DEFAULT_SETTINGS["PROVIDER_PREFIX"])

        output_dir = os.getenv("OUTPUT_DIR", DEFAULT_SETTINGS["OUTPUT_DIR"])
        retention_days = int(os.getenv("OUTPUT_RETENTION_DAYS", str(DEFAULT_SETTINGS["OUTPUT_RETENTION_DAYS"])))

        self.dry_run = _env_flag("DRY_RUN")
        self.save_json = _env_flag("SAVE_JSON")
        self.debug = _env_flag("DEBUG")
        self.include_files = _env_flag("INCLUDE_FILES")
        self.fetch_employee_details = _env_flag("FETCH_EMPLOYEE_DETAILS")

        self.output_manager = OutputManager(output_dir, self.provider_name, retention_days)

    def validate_config(self) -> bool:
        """Check that all required configuration values are present.

        Returns:
            True if valid; otherwise prints each problem and returns False.
        """
        errors = []
        if not self.client_namespace:
            errors.append("BAMBOOHR_CLIENT_NAMESPACE is required")
        if not self.client_access_token:
            errors.append("BAMBOOHR_CLIENT_ACCESS_TOKEN is required")

        if not self.dry_run:
            if not self.veza_url:
                errors.append("VEZA_URL is required to push (or set DRY_RUN=true)")
            if not self.veza_api_key:
                errors.append("VEZA_API_KEY is required to push (or set DRY_RUN=true)")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def run(self) -> Dict[str, Any]:
        """Execute the extraction pipeline.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - connector: "bamboohr"
                - success: True if all steps completed without error
                - summary: Entity counts
                - json_path: Path to saved OAA payload (if save_json=True)
                - provider_name: Veza provider pushed to (if not dry_run)
                - push: Push summary from VezaClient (if not dry_run)
                - warnings: Non-fatal problems
                - error: Error message (if success=False)
        """
        results = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "connector": "bamboohr",
            "config": {
                "client_namespace": self.client_namespace,
                "dry_run": self.dry_run,
                "include_files": self.include_files,
                "fetch_employee_details": self.fetch_employee_details,
            },
            "success": False,
            "warnings": [],
        }

        try:
            self._banner("STEP 1: AUTHENTICATION")
            client = BambooHRClient(
                IntegrationConfig(self.client_namespace, self.client_access_token),
                debug=self.debug,
            )
            client.verify_authentication()
            print(f"  Authenticated to namespace: {client.client_namespace}")

            self._banner("STEP 2: USERS")
            users: List[Dict] = []
            client.iterate_users(users.append)
            print(f"  Users: {len(users)}")

            self._banner("STEP 3: EMPLOYEES")
            employees: List[Dict] = []
            client.iterate_employees(employees.append)
            print(f"  Employees: {len(employees)}")

            employee_details: Dict[str, Dict] = {}
            if self.fetch_employee_details:
                employee_details = self._collect_employee_details(client, employees, results["warnings"])
                print(f"  Employee details: {len(employee_details)}")

            company_files: List[Dict] = []
            employee_files: Dict[str, List[Dict]] = {}
            if self.include_files:
                self._banner("STEP 4: FILES")
                client.iterate_company_files(company_files.append)
                for employee in employees:
                    employee_id = str(employee["id"])
                    records: List[Dict] = []
                    client.iterate_employee_files(employee_id, records.append)
                    if records:
                        employee_files[employee_id] = records
                print(f"  Company files: {len(company_files)}")
                print(f"  Employee files: {sum(len(f) for f in employee_files.values())}")

            self._banner("STEP 5: ENTITY EXTRACTION")
            entities = EntityExtractor(self.debug).extract(
                client.client_namespace,
                users,
                employees,
                employee_details=employee_details,
                company_files=company_files,
                employee_files=employee_files,
            )
            print(f"  Departments: {len(entities['departments'])}")

            self._banner("STEP 6: BUILD OAA APPLICATION")
            app = ApplicationBuilder(self.debug).build(entities)
            print(f"  Application built: {app.name}")

            self._banner("STEP 7: BUILD RELATIONSHIPS")
            RelationshipBuilder(self.debug).build_all(app, entities)
            print("  Relationships built")

            self._banner("STEP 8: SAVE OUTPUT")
            self.output_manager.start_run(client.client_namespace)

            if self.save_json:
                json_path = self.output_manager.save_payload(app.get_payload())
                results["json_path"] = json_path
                print(f"  Saved OAA payload: {json_path}")

            if not self.dry_run:
                push = self._push(app, client.client_namespace)
                results["push"] = push
                results["provider_name"] = push["provider_name"]
                results["warnings"].extend(push["warnings"])

            results["success"] = True
            results["summary"] = {
                "namespace": client.client_namespace,
                "users": len(entities["users"]),
                "employees": len(entities["employees"]),
                "departments": len(entities["departments"]),
                "files": len(entities["files"]),
            }

        except Exception as e:
            results["error"] = str(e)
            print(f"\n  ERROR: {e}")
            if self.debug:
                traceback.print_exc()

        results["completed_at"] = datetime.now(timezone.utc).isoformat()

        if self.output_manager.run_dir:
            results_path = self.output_manager.save_results(results)
            print(f"\n  Results saved to: {results_path}")

        return results

    def _collect_employee_details(
        self,
        client: BambooHRClient,
        employees: List[Dict],
        warnings: List[str],
    ) -> Dict[str, Dict]:
        """Look up hire/termination dates for each employee.

        A failed lookup is recorded as a warning and the run continues
        with the directory data for that employee.
        """
        details = {}
        for employee in employees:
            employee_id = str(employee["id"])
            try:
                details[employee_id] = client.get_employee_details(employee_id)
            except Exception as e:
                message = f"Could not fetch details for employee {employee_id}: {e}"
                warnings.append(message)
                print(f"  Warning: {message}")
        return details

    def _push(self, app, namespace: str) -> Dict[str, Any]:
        self._banner("PUSH TO VEZA")
        veza = VezaClient(
            self.veza_url,
            self.veza_api_key,
            provider_name=self.provider_name,
            provider_prefix=self.provider_prefix,
            debug=self.debug,
        )
        push = veza.push_application(app, namespace)
        print(f"  Pushed {push['application']} to Veza: {push['provider_name']} / {push['data_source_name']}")
        print(f"  Users: {push['users']}, Groups: {push['groups']}, Files: {push['resources']}")
        return push

    @staticmethod
    def _banner(title: str):
        print(f"\n{'='*60}")
        print(title)
        print("="*60)

    def print_summary(self, results: Dict):
        """Print a human-readable execution summary."""
        print(f"\n{'='*60}")
        print("EXTRACTION COMPLETE")
        print("="*60)
        print(f"Status: {'SUCCESS' if results.get('success') else 'FAILED'}")

        summary = results.get("summary", {})
        if summary:
            print(f"Namespace: {summary.get('namespace', 'N/A')}")
            print(f"Users: {summary.get('users', 0)}")
            print(f"Employees: {summary.get('employees', 0)}")
            print(f"Departments: {summary.get('departments', 0)}")
            print(f"Files: {summary.get('files', 0)}")

        for warning in results.get("warnings", []):
            print(f"Warning: {warning}")

        if results.get("error"):
            print(f"Error: {results['error']}")
