import logging

from typing import Dict
from typing import Iterable
from typing import List
from typing import Tuple

from core.exceptions import ValidationError
from data.models import ComponentInfo
from data.models import DeletionPlan
from data.models import MissingComponent
from integrations.storyblok_api import ManagementService


logger = logging.getLogger(__name__)


def normalize_names(names: Iterable[str]) -> List[str]:
    """Trim names, drop blanks and duplicates, keep first order.

    Args:
        names: Raw component names.
    """

    seen: Dict[str, None] = {}
    for raw in names:
        name = raw.strip()
        if name and name not in seen:
            seen[name] = None
    return list(seen)


def parse_components_list(value: str) -> List[str]:
    """Parse a comma separated component list.

    Args:
        value: Comma separated names.
    """

    return normalize_names(value.split(","))


def read_names_file(path: str) -> List[str]:
    """Read newline separated component names.

    Args:
        path: Input file path.
    """

    with open(path, "r", encoding = "utf-8") as fp:
        return normalize_names(fp.read().splitlines())


class ComponentAuditor:
    """Find unused components of a space and delete selected ones.

    Args:
        management_service: Management API service.
        space_id: Target space id.
    """

    def __init__(self, management_service: ManagementService, space_id: str) -> None:
        self.management_service = management_service
        self.space_id = space_id

    def load_components(self) -> Dict[str, ComponentInfo]:
        """Load all components keyed by name.

        Args:
            self: Auditor instance.
        """

        logger.info("Loading list of components")
        components = self.management_service.fetch_all_components(space_id = self.space_id)
        by_name: Dict[str, ComponentInfo] = {}
        for component in components:
            if component.name in by_name:
                raise ValidationError(f"Duplicate component name detected: {component.name}")
            by_name[component.name] = component
        return by_name

    def split_by_usage(
        self,
        components: List[ComponentInfo],
        progress_label: str = "Checking component usage"
    ) -> Tuple[List[ComponentInfo], List[ComponentInfo]]:
        """Check usage sequentially and return (unused, used).

        Args:
            components: Components to check.
            progress_label: Progress log prefix.
        """

        unused: List[ComponentInfo] = []
        used: List[ComponentInfo] = []
        for index, component in enumerate(components, start = 1):
            in_use = self.management_service.is_component_used(
                space_id = self.space_id,
                component_name = component.name
            )
            (used if in_use else unused).append(component)
            logger.info("%s (%d/%d)", progress_label, index, len(components))
        return unused, used

    def find_unused(self) -> Tuple[List[ComponentInfo], List[ComponentInfo]]:
        """Check every component of the space; returns (unused, used).

        Args:
            self: Auditor instance.
        """

        components = list(self.load_components().values())
        logger.info("Checking %d components for usage", len(components))
        return self.split_by_usage(
            components = components,
            progress_label = "Looking for unused components"
        )

    def plan_deletion(self, names: List[str], components: Dict[str, ComponentInfo]) -> DeletionPlan:
        """Resolve requested names against the loaded components.

        Args:
            names: Requested component names.
            components: Components keyed by name.
        """

        plan = DeletionPlan()
        for name in names:
            component = components.get(name)
            if component is None:
                plan.missing.append(MissingComponent(name = name, reason = "not found in space"))
                continue
            if component.component_id is None:
                plan.missing.append(MissingComponent(name = name, reason = "missing component id"))
                continue
            plan.candidates.append(component)
        return plan

    def delete(self, components: List[ComponentInfo]) -> int:
        """Delete components in order.

        Args:
            components: Components with ids.
        """

        for component in components:
            logger.info("Deleting component %s (%s)", component.name, component.component_id)
            self.management_service.delete_component(
                space_id = self.space_id,
                component_id = component.component_id
            )
        return len(components)
