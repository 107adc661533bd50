"""Split Planner: ask the owning shard for split points targeting the cluster max chunk size."""

from chunk_splitter.config.logging import get_logger
from chunk_splitter.repositories.mongodb.base import ShardCommandError
from chunk_splitter.repositories.mongodb.shard_commands import run_shard_command, split_vector_command
from chunk_splitter.resources.mongo.shards import ShardRegistry, UnknownShardError
from chunk_splitter.services.splitting.errors import SHARD_UNKNOWN, PlanningError
from chunk_splitter.services.splitting.models import Candidate

logger = get_logger(__name__)


async def plan_split(
    shards: ShardRegistry,
    candidate: Candidate,
    max_chunk_size_bytes: int,
    max_time_ms: int | None = None,
) -> Candidate:
    """
    Return a copy of candidate with split_points from splitVector. The target size is the max
    chunk size, not the split threshold, so each resulting piece ends up close to the max.
    An empty answer leaves the candidate non-splittable. Raises PlanningError.
    """
    chunk = candidate.chunk
    try:
        client = shards.get(chunk.owner_node)
    except UnknownShardError as e:
        raise PlanningError(str(e), error_code=SHARD_UNKNOWN) from e

    command = split_vector_command(
        chunk.namespace,
        chunk.shard_key_pattern,
        chunk.range_min,
        chunk.range_max,
        max_chunk_size_bytes,
        max_time_ms=max_time_ms,
    )
    try:
        response = await run_shard_command(client, command)
    except ShardCommandError as e:
        raise PlanningError(str(e), request=e.command, response=e.response) from e

    split_keys = response.get("splitKeys")
    if not isinstance(split_keys, list):
        raise PlanningError("splitVector response has no splitKeys field", request=command, response=response)

    # Bounds themselves are never valid split points
    points = [k for k in split_keys if k != chunk.range_min and k != chunk.range_max]
    if not points:
        logger.info("No split points found for candidate", extra={"chunk": chunk.identity()})
    return candidate.model_copy(update={"split_points": points})
