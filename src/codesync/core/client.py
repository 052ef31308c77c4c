import logging
import re
from typing import Any, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from ..config import Config
from ..errors import RevisionNotFoundError, UpstreamServiceError
from ..sync.models import (
    IconsResponse,
    ProjectBundle,
    ProjectSyncMetadata,
    ProjectSyncTarget,
    ResolveResult,
    StyleConfigResponse,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_REVISION_NOT_FOUND = re.compile(r"revision (\d+) not found")


class CodegenClient:
    """HTTP client for the remote code-generation service.

    Every response body is validated into a model from
    ``codesync.sync.models`` before it is returned.  All failures surface as
    ``UpstreamServiceError`` (or ``RevisionNotFoundError``).
    """

    def __init__(self, config: Config):
        self.config = config
        self.base_url = config.host.rstrip("/")
        self._session: requests.Session | None = None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.auth = (self.config.user, self.config.token)
        session.verify = not self.config.insecure
        session.headers["Content-Type"] = "application/json"
        return session

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        """
        POST a JSON payload to the service and return the decoded body.
        """
        url = f"{self.base_url}{path}"
        logger.debug("POST %s", url)
        try:
            response = self.session.post(
                url,
                json=payload,
                timeout=(10, self.config.timeout),
            )
        except requests.RequestException as e:
            raise UpstreamServiceError(
                f"Could not reach {self.base_url}: {e}",
                "Check the host setting (CODESYNC_HOST) and your network.",
            ) from e

        if response.status_code >= 400:
            message = self._error_message(response)
            match = _REVISION_NOT_FOUND.search(message)
            if match:
                raise RevisionNotFoundError(
                    message,
                    revision=int(match.group(1)),
                    status_code=response.status_code,
                )
            if response.status_code in (401, 403):
                raise UpstreamServiceError(
                    message,
                    "Check CODESYNC_USER and CODESYNC_TOKEN.",
                    status_code=response.status_code,
                )
            raise UpstreamServiceError(
                message, status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamServiceError(
                f"Invalid JSON response from {url}",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        match body:
            case {"error": {"message": str() as msg}}:
                return msg
            case {"error": str() as msg} | {"message": str() as msg}:
                return msg
            case _:
                return f"HTTP {response.status_code}"

    def _parse(self, model: type[M], data: Any, what: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise UpstreamServiceError(
                f"Malformed {what} from code-generation service: {e}"
            ) from e

    def resolve_sync(
        self,
        targets: list[ProjectSyncTarget],
        recursive: bool = False,
        include_dependencies: bool = False,
    ) -> ResolveResult:
        """
        Resolve the project versions to sync.

        Returns:
            Resolved projects plus conflicts among the requested roots.
        """
        data = self._post(
            "/api/v1/code/resolve-sync",
            {
                "projects": [
                    t.model_dump(by_alias=True, exclude_none=True)
                    for t in targets
                ],
                "recursive": recursive,
                "includeDependencies": include_dependencies,
            },
        )
        return self._parse(ResolveResult, data, "resolution")

    def project_components(
        self,
        project_id: str,
        cli_version: str,
        react_web_version: str | None,
        new_component_scheme: str,
        existing_component_schemes: list[tuple[str, str | None]],
        component_ids: list[str],
        version: str,
    ) -> ProjectBundle:
        """
        Generate code for the components of one project version.
        """
        data = self._post(
            f"/api/v1/projects/{project_id}/code/components",
            {
                "cliVersion": cli_version,
                "reactWebVersion": react_web_version,
                "newCompScheme": new_component_scheme,
                "existingCompScheme": existing_component_schemes,
                "componentIdOrNames": component_ids,
                "version": version,
            },
        )
        return self._parse(ProjectBundle, data, "project bundle")

    def project_icons(
        self, project_id: str, version_range: str, icon_ids: list[str]
    ) -> IconsResponse:
        """
        Fetch icon modules.  An empty *icon_ids* list means "all icons".
        """
        data = self._post(
            f"/api/v1/projects/{project_id}/code/icons",
            {"versionRange": version_range, "iconIds": icon_ids},
        )
        return self._parse(IconsResponse, data, "icon bundle")

    def gen_style_config(self) -> StyleConfigResponse:
        """
        Fetch the default style sheet shared by all projects.
        """
        data = self._post("/api/v1/code/style-config", {})
        return self._parse(StyleConfigResponse, data, "style config")

    def project_sync_metadata(
        self, project_id: str, revision: int
    ) -> ProjectSyncMetadata:
        """
        Fetch merge-base metadata for a project revision.

        Raises:
            RevisionNotFoundError: If the service does not know *revision*.
        """
        data = self._post(
            f"/api/v1/projects/{project_id}/code/project-sync-metadata",
            {"revision": revision},
        )
        return self._parse(ProjectSyncMetadata, data, "sync metadata")
