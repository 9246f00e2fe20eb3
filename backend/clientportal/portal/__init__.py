from clientportal.portal.resources import CancellationToken, EntityResource, ResourceState, load_resource

__all__ = ["CancellationToken", "EntityResource", "ResourceState", "load_resource"]
