"""
MCP Resources implementation for UHost instances.

Resources are addressed by URI. Each resource is registered under a URI
template (``uhost://instances/{instance_id}/status``); the template is
compiled and validated once at registration, and a requested URI is matched
against it to extract the placeholder values passed to the handler.

Registered resources:
- uhost://instances - all instances (no metrics)
- uhost://instances/{instance_id}/status - status of one instance
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..domain.path_template import PathTemplate, compile_template
from ..domain.views import to_json
from ..errors import MatchFailure

logger = logging.getLogger(__name__)

ResourceHandler = Callable[[str, Dict[str, str]], Awaitable[Any]]

JSON_MIME_TYPE = "application/json"


class Resource:
    """
    Represents an MCP resource (or resource template) and its handler.

    Attributes:
        uri: URI or URI template (e.g., uhost://instances/{instance_id}/status)
        name: Resource name
        description: Brief description of resource contents
        mime_type: Content type (application/json)
        template: Compiled URI template
        handler: Coroutine called with the requested URI and its variables
    """

    def __init__(
        self,
        uri: str,
        name: str,
        description: str,
        mime_type: str,
        handler: ResourceHandler,
    ):
        self.uri = uri
        self.name = name
        self.description = description
        self.mime_type = mime_type
        self.handler = handler
        self.template: PathTemplate = compile_template(uri)

    @property
    def is_template(self) -> bool:
        return bool(self.template.placeholders)

    def to_dict(self) -> Dict[str, Any]:
        """Convert resource to MCP resource list format (metadata only)."""
        return {
            "uriTemplate" if self.is_template else "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }

    async def read(self, uri: str) -> Dict[str, Any]:
        """Match ``uri``, call the handler and wrap the result in MCP format.

        Raises:
            MatchFailure: if ``uri`` does not conform to this resource's template
        """
        variables = self.template.match(uri)
        data = await self.handler(uri, variables)
        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": self.mime_type,
                    "text": to_json(data),
                }
            ]
        }


class ResourceRegistry:
    """
    Registry of MCP resources keyed by URI template.

    Templates are validated when registered so that a malformed template
    (e.g., a repeated placeholder) fails at startup rather than per request.
    """

    def __init__(self) -> None:
        self.resources: Dict[str, Resource] = {}

    def register(
        self,
        uri: str,
        name: str,
        description: str,
        handler: ResourceHandler,
        mime_type: str = JSON_MIME_TYPE,
    ) -> Resource:
        """
        Register a resource handler under ``uri``.

        Raises:
            DuplicatePlaceholder: if the template repeats a placeholder name
            ValueError: if ``uri`` is already registered
        """
        if uri in self.resources:
            raise ValueError(f"resource already registered: {uri}")
        resource = Resource(uri, name, description, mime_type, handler)
        self.resources[uri] = resource
        logger.debug(f"Registered resource: {uri}")
        return resource

    def list_resources(self) -> List[Dict[str, Any]]:
        """List concrete (placeholder-free) resources."""
        return [r.to_dict() for r in self.resources.values() if not r.is_template]

    def list_templates(self) -> List[Dict[str, Any]]:
        """List resource templates."""
        return [r.to_dict() for r in self.resources.values() if r.is_template]

    def get(self, uri: str) -> Optional[Resource]:
        return self.resources.get(uri)

    async def read_registered(self, template_uri: str, uri: str) -> Dict[str, Any]:
        """
        Read ``uri`` through the resource registered as ``template_uri``.

        Raises:
            KeyError: if nothing is registered under ``template_uri``
            MatchFailure: if ``uri`` does not conform to the template
        """
        return await self.resources[template_uri].read(uri)

    async def read_resource(self, uri: str) -> Dict[str, Any]:
        """
        Read a resource by concrete URI (MCP resources/read format).

        Literal resources are tried first, then templates in registration
        order; the first template that matches handles the request.

        Raises:
            MatchFailure: if no registered resource matches ``uri``
        """
        exact = self.resources.get(uri)
        if exact is not None and not exact.is_template:
            return await exact.read(uri)
        for resource in self.resources.values():
            if not resource.is_template:
                continue
            try:
                resource.template.match(uri)
            except MatchFailure:
                continue
            return await resource.read(uri)
        logger.warning(f"Resource not found: {uri}")
        raise MatchFailure(f"no registered resource matches {uri}")
