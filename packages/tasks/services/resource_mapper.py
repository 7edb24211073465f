from typing import Dict, Optional

from packages.tasks.models.domain.task import ResourceList, TaskResources


def _quantities(resource_list: ResourceList) -> Dict[str, str]:
    quantities = {}
    if resource_list.cpu is not None:
        quantities["cpu"] = resource_list.cpu
    if resource_list.memory is not None:
        quantities["memory"] = resource_list.memory
    return quantities


def map_resources(resources: TaskResources) -> Optional[Dict[str, Dict[str, str]]]:
    """
    Convert task resources into a container ``resources`` block.

    Only quantities that are set appear in the result. Returns None instead of
    an empty block when neither limits nor requests are set.
    """
    limits = _quantities(resources.limits)
    requests = _quantities(resources.requests)

    if not limits and not requests:
        return None

    requirements = {}
    if limits:
        requirements["limits"] = limits
    if requests:
        requirements["requests"] = requests
    return requirements
