# Cache key naming shared by every resource service

from shared.modules.records.enums.resource_type_enum import ResourceType

class CacheKeyGenerator:
    @staticmethod
    def generate(resource, record_id):
        """Build the ``<resource>:<id>`` key for a single record."""
        if isinstance(resource, ResourceType):
            resource = resource.value
        return f"{resource}:{record_id}"
