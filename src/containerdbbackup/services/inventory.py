"""Container discovery for container-db-backup."""

from typing import List

from containerdbbackup.models import ContainerHandle


class InventoryService:
    """Finds running containers whose image matches a substring."""

    def __init__(self, runtime, logger):
        self.runtime = runtime
        self.logger = logger

    def find_by_image(self, image: str) -> List[ContainerHandle]:
        # Listing order is kept so logs are reproducible between runs.
        matches = [
            container for container in self.runtime.list_running() if image in container.image
        ]
        if not matches:
            self.logger.warning("No running containers found for image '%s'.", image)
        else:
            self.logger.info(
                "Found %s container(s) for image '%s': %s",
                len(matches),
                image,
                ", ".join(container.name for container in matches),
            )
        return matches
