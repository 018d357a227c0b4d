"""
BambooHR API Client - Handles authentication and API calls to BambooHR.

All requests go to a single gateway host, scoped by the account namespace:

    https://api.bamboohr.com/api/gateway.php/{namespace}/{path}

Authentication is HTTP Basic with the API key as the username and a literal
"x" as the password:

    Authorization: Basic base64("{access_token}:x")

Endpoints used:
    GET v1/employees/0                                      (authentication probe)
    GET v1/meta/users                                       (user accounts)
    GET v1/employees/directory                              (employee directory)
    GET v1/employees/{id}/?fields=terminationDate,hireDate  (employee details)
    GET v1/employees/{id}/files/view                        (employee files)
    GET v1/files/view                                       (company files)

Records are handed to a caller-supplied iteratee one at a time. The iteratee
may be a plain function or a coroutine function; whatever it returns is
awaited to completion before the next record is produced.

Pipeline context:
    Used in Steps 1-4 of the orchestrator pipeline (authentication, users,
    employees, files).
"""

import asyncio
import base64
import inspect
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional

import requests

from .exceptions import IntegrationConfigError, ProviderAuthenticationError, StatusError
from .settings import BAMBOOHR_API_HOST, IntegrationConfig

ResourceIteratee = Callable[[Dict[str, Any]], Optional[Awaitable[None]]]

_NAMESPACE_PATTERN = re.compile(r"(?:https?://)?([^.]+)(?:\.bamboohr\.com)?")


def normalize_client_namespace(user_input: str) -> Optional[str]:
    """Extract the account namespace from a subdomain, hostname or URL.

    Examples: "acme" -> "acme", "https://acme.bamboohr.com" -> "acme",
    "acme.bamboohr.com/path" -> "acme", "" -> None.

    Args:
        user_input: Raw namespace value from configuration.

    Returns:
        The leading segment before the first ".", or None if there is none.
    """
    match = _NAMESPACE_PATTERN.match(user_input or "")
    if match:
        return match.group(1)
    return None


async def _settle(awaitable: Awaitable[None]):
    await awaitable


def _invoke(iteratee: ResourceIteratee, record: Dict[str, Any]):
    """Call the iteratee and wait for any awaitable it returns.

    Awaitables are driven on a fresh event loop, so the client must not be
    called from inside a running loop when the iteratee is asynchronous.
    """
    result = iteratee(record)
    if inspect.isawaitable(result):
        asyncio.run(_settle(result))


class BambooHRClient:
    """Client for the BambooHR REST API.

    Attributes:
        config: The IntegrationConfig this client was built from.
        client_namespace: Normalized account namespace.
        debug: If True, print verbose request details.
    """

    def __init__(self, config: IntegrationConfig, debug: bool = False):
        """Initialize the client.

        Args:
            config: Namespace and access token for the account.
            debug: Enable verbose output.

        Raises:
            IntegrationConfigError: If the namespace cannot be parsed.
        """
        namespace = normalize_client_namespace(config.client_namespace)
        if not namespace:
            raise IntegrationConfigError(
                f"Illegal client namespace value: {config.client_namespace!r}"
            )

        self.config = config
        self.client_namespace = namespace
        self._access_token = config.client_access_token
        self.debug = debug
        self._session = requests.Session()

    def _with_base_uri(self, path: str) -> str:
        return f"https://{BAMBOOHR_API_HOST}/api/gateway.php/{self.client_namespace}/{path}"

    def _auth_header(self) -> str:
        credentials = f"{self._access_token}:x".encode("utf-8")
        return f"Basic {base64.b64encode(credentials).decode('ascii')}"

    def _request(self, uri: str, method: str = "GET") -> requests.Response:
        """Issue an authenticated request and return the raw response.

        The response is not decoded and non-2xx statuses are not raised;
        callers decide what a failure means.
        """
        headers = {
            "Accept": "application/json",
            "Authorization": self._auth_header(),
        }

        if self.debug:
            print(f"  {method} {uri}")

        return self._session.request(method, uri, headers=headers)

    def verify_authentication(self):
        """Verify the access token against a lightweight endpoint.

        BambooHR has no dedicated auth-check endpoint, so this requests
        employee 0: a 200 means the employee exists, a 404 means it does not,
        and both mean the credentials were accepted.

        Raises:
            ProviderAuthenticationError: On any other status, or if the
                request itself fails.
        """
        endpoint = self._with_base_uri("v1/employees/0")
        try:
            response = self._request(endpoint, "GET")
            if response.status_code not in (200, 404):
                raise StatusError(
                    "Provider authentication failed",
                    status_code=response.status_code,
                    status_text=response.reason or "",
                )
        except Exception as err:
            status = err.status_code if isinstance(err, StatusError) else -1
            status_text = err.status_text if isinstance(err, StatusError) else ""
            raise ProviderAuthenticationError(
                cause=err,
                endpoint=endpoint,
                status=status,
                status_text=status_text,
            ) from err

        if self.debug:
            print(f"  Authenticated to BambooHR namespace: {self.client_namespace}")

    def iterate_users(self, iteratee: ResourceIteratee):
        """Iterate each user account, merged with its directory record.

        Each user is passed as a new dict with an "employeeDetails" key
        holding the matching directory entry, or {} if there is none.

        Args:
            iteratee: Receives each user record.
        """
        response = self._request(self._with_base_uri("v1/meta/users"))
        users: List[Dict[str, Any]] = list(response.json().values())
        employees = self.fetch_employee_directory()

        if self.debug:
            print(f"  Found {len(users)} users")

        for user in users:
            employee_id = user.get("employeeId")
            details = employees.get(str(employee_id), {}) if employee_id is not None else {}
            _invoke(iteratee, {**user, "employeeDetails": details})

    def iterate_employees(self, iteratee: ResourceIteratee):
        """Iterate each employee in the directory.

        Args:
            iteratee: Receives each employee record.
        """
        employees = self.fetch_employee_directory()
        for employee in employees.values():
            _invoke(iteratee, employee)

    def fetch_employee_directory(self) -> Dict[str, Dict[str, Any]]:
        """Fetch the employee directory as a mapping of id to record.

        A later record with the same id replaces an earlier one.

        Returns:
            Dict of employee id (str) -> employee record, in response order.
        """
        response = self._request(self._with_base_uri("v1/employees/directory"))
        payload = response.json()

        employee_map: Dict[str, Dict[str, Any]] = {}
        for employee in payload["employees"]:
            employee_map[str(employee["id"])] = employee

        if self.debug:
            print(f"  Found {len(employee_map)} employees in directory")

        return employee_map

    def get_employee_details(self, employee_id: str) -> Dict[str, Any]:
        """Fetch the hire and termination dates for one employee.

        Only these two fields are returned, whatever else the API includes.
        Missing fields come back as None.

        Args:
            employee_id: BambooHR employee id.

        Returns:
            {"hireDate": ..., "terminationDate": ...}
        """
        response = self._request(
            self._with_base_uri(f"v1/employees/{employee_id}/?fields=terminationDate,hireDate")
        )
        details = response.json()

        return {
            "hireDate": details.get("hireDate"),
            "terminationDate": details.get("terminationDate"),
        }

    def iterate_employee_files(self, employee_id: str, iteratee: ResourceIteratee):
        """Iterate each file attached to an employee.

        A non-2xx response yields no files and raises nothing.

        Args:
            employee_id: BambooHR employee id.
            iteratee: Receives each file record.
        """
        self._iterate_files(self._with_base_uri(f"v1/employees/{employee_id}/files/view"), iteratee)

    def iterate_company_files(self, iteratee: ResourceIteratee):
        """Iterate each company file.

        A non-2xx response yields no files and raises nothing.

        Args:
            iteratee: Receives each file record.
        """
        self._iterate_files(self._with_base_uri("v1/files/view"), iteratee)

    def _iterate_files(self, uri: str, iteratee: ResourceIteratee):
        response = self._request(uri)

        if not 200 <= response.status_code < 300:
            if self.debug:
                print(f"  Skipping files: {response.status_code} {response.reason}")
            return

        files = flatten_file_categories(response.json())
        for file in files:
            _invoke(iteratee, file)


def flatten_file_categories(files_response: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Flatten a files/view response into one list of files.

    Files keep category order, then their order within each category.
    """
    return [
        file
        for category in files_response.get("categories") or []
        for file in category.get("files") or []
    ]
