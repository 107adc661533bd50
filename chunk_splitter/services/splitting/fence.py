"""Version Fence: the chunk's current (lastmod, epoch), read right before its split is sent."""

from typing import Any

from chunk_splitter.repositories.mongodb.base import RepositoryError, chunk_filter_for
from chunk_splitter.repositories.mongodb.catalog_repository import MongoCatalog
from chunk_splitter.services.splitting.errors import FenceError
from chunk_splitter.services.splitting.models import ChunkDescriptor, VersionToken


async def read_version_fence(
    catalog: MongoCatalog,
    collection: dict[str, Any],
    chunk: ChunkDescriptor,
) -> VersionToken:
    """
    Read the version of the chunk with exactly chunk's bounds. Never cached: a concurrent
    split or migration between planning and now must show up as a stale fence on the shard.
    When chunk documents carry no lastmodEpoch the collection epoch is used.
    Raises FenceError if the chunk is gone or the version cannot be read.
    """
    try:
        doc = await catalog.find_chunk_version(chunk_filter_for(collection), chunk.range_min, chunk.range_max)
    except RepositoryError as e:
        raise FenceError(str(e)) from e
    if doc is None:
        raise FenceError("Chunk no longer exists with these bounds; it was split or merged concurrently")
    if doc.get("lastmod") is None:
        raise FenceError("Chunk document has no lastmod field")
    epoch = doc.get("lastmodEpoch", collection.get("lastmodEpoch"))
    if epoch is None:
        raise FenceError("Neither the chunk nor its collection has a lastmodEpoch field")
    return VersionToken(major_version=doc["lastmod"], epoch=epoch)
