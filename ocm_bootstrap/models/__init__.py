from .component_version import ComponentReference, ComponentVersion
from .config_data import ConfigData, LocalizationRule, ResourceRef
from .extracted_resources import ExtractedResources
from .installation_run import InstallationRun
from .name_tag import NameTag
from .options import BootstrapOptions, InstallOptions
from .resource import Resource

__all__ = [
    "BootstrapOptions",
    "ComponentReference",
    "ComponentVersion",
    "ConfigData",
    "ExtractedResources",
    "InstallationRun",
    "InstallOptions",
    "LocalizationRule",
    "NameTag",
    "Resource",
    "ResourceRef",
]
