from .component_repository import ComponentRepository, OCIComponentRepository

__all__ = [
    'ComponentRepository',
    'OCIComponentRepository'
]
