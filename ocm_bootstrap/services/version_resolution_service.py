import logging

from ocm_bootstrap.errors import VersionNotFoundError
from ocm_bootstrap.models import ComponentVersion
from ocm_bootstrap.repositories import ComponentRepository
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.logging import setup_logger
from ocm_bootstrap.utils.version_constraint import VersionConstraint, parse_version

REQUEST_TIMEOUT = 30.0


class VersionResolutionService:
    def __init__(self, repository: ComponentRepository):
        self.repository: ComponentRepository = repository
        self.logger: logging.Logger = setup_logger("VersionResolutionService")

    def resolve(self, ctx: RunContext, component_name: str, constraint: str) -> ComponentVersion:
        version = self.resolve_version(ctx, component_name, constraint)
        ctx.check()
        return self.repository.get(component_name, version, timeout=ctx.timeout(REQUEST_TIMEOUT))

    def resolve_version(self, ctx: RunContext, component_name: str, constraint: str) -> str:
        """Return the first listed version of the component that satisfies constraint.

        The listing order of the repository decides between several matching
        versions. Every listed version must parse, even those after the match.
        """
        parsed_constraint = VersionConstraint.parse(constraint)
        ctx.check()
        names = self.repository.list_versions(component_name, timeout=ctx.timeout(REQUEST_TIMEOUT))
        versions = [(name, parse_version(name)) for name in names]
        for name, version in versions:
            if parsed_constraint.check(version):
                self.logger.info(f"Resolved {component_name} {constraint} to version {name}")
                return name
        raise VersionNotFoundError(f"no version of {component_name} matches constraint {constraint}")
