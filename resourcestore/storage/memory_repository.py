"""
Repository for memories.
"""
from resourcestore.entities import Memory
from resourcestore.exceptions import MemoryNotFoundError
from resourcestore.storage.descriptors import ResourceDescriptor
from resourcestore.storage.repository import ResourceRepository

MEMORY_DESCRIPTOR = ResourceDescriptor(
    type_name="memory",
    entity_cls=Memory,
    name_prefix="agentapi-memory-",
    data_key="memory.json",
    not_found=MemoryNotFoundError,
    tags_field="tags",
    search_fields=("title", "content"),
)


class MemoryRepository(ResourceRepository[Memory]):
    """Repository for memory operations."""

    descriptor = MEMORY_DESCRIPTOR

    def get_by_id(self, memory_id: str) -> Memory:
        """
        Get a memory by ID.

        Args:
            memory_id: Memory ID

        Returns:
            The memory

        Raises:
            MemoryNotFoundError: No memory has this ID
        """
        return self.get(memory_id)
